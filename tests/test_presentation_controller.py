"""
Tests for presentation lifecycle, slide editing and navigation.
"""

import asyncio

import pytest

from presenter.errors import (
    InvalidSlideData,
    InvalidSlideId,
    InvalidSlideIndex,
    NoPresentationLoaded,
    SlideNotFound,
    ViewRequired,
)
from presenter.models import InfoPanelState, Slide, Snapshot
from presenter.services.presentation_controller import PresentationController


def _slide(slide_id, **state):
    return Slide(id=slide_id, action_type="node-expand", state=Snapshot(**state))


@pytest.fixture
def controller(sequencer):
    ctl = PresentationController(sequencer)
    ctl.create_presentation("Tour")
    return ctl


@pytest.fixture
def four_slides(controller):
    for i in range(4):
        controller.add_slide(_slide(f"s{i}"))
    return controller


def _ids(ctl):
    return [s.id for s in ctl.get_current_presentation().slides]


# ============================================================
# Lifecycle
# ============================================================

class TestLifecycle:

    def test_create_trims_name(self, sequencer):
        ctl = PresentationController(sequencer)
        p = ctl.create_presentation("  Tour  ")
        assert p.name == "Tour"
        assert p.id.startswith("presentation-")
        assert p.slides == []
        assert ctl.get_current_slide_index() == 0

    @pytest.mark.parametrize("name", ["", "   ", None, 42])
    def test_create_requires_name(self, sequencer, name):
        with pytest.raises(ValueError, match="name is required"):
            PresentationController(sequencer).create_presentation(name)

    def test_operations_need_a_presentation(self, sequencer):
        ctl = PresentationController(sequencer)
        assert ctl.get_slide_count() == 0
        assert ctl.get_current_slide_info() is None
        with pytest.raises(NoPresentationLoaded):
            ctl.add_slide(_slide("s0"))
        with pytest.raises(NoPresentationLoaded):
            ctl.export_presentation()

    def test_load_stored_presentation(self, sequencer):
        stored = {
            "id": "presentation-abc",
            "name": "Stored",
            "created": "2024-03-01T10:00:00.000Z",
            "modified": "2024-03-02T10:00:00.000Z",
            "slides": [
                {
                    "id": "slide-1",
                    "actionType": "info-open",
                    "actionData": {"nodeId": "earth"},
                    "timestamp": "2024-03-01T10:05:00.000Z",
                    "state": {"infoPanel": {"open": True, "nodeId": "earth"}},
                    "description": "Info: Earth",
                }
            ],
        }
        ctl = PresentationController(sequencer)
        p = ctl.load_presentation(stored)
        assert p.id == "presentation-abc"
        assert p.created.year == 2024
        assert p.slides[0].state.info_panel == InfoPanelState(True, "earth")

        exported = ctl.export_presentation()
        assert exported["slides"][0]["description"] == "Info: Earth"
        assert exported["currentSlideIndex"] == 0

    def test_load_none_starts_empty(self, sequencer):
        p = PresentationController(sequencer).load_presentation(None, name="Fresh")
        assert p.name == "Fresh"
        assert p.slides == []


# ============================================================
# Editing
# ============================================================

class TestAddSlide:

    def test_add_dict_slide(self, controller):
        slide = controller.add_slide({"id": "s0", "actionType": "camera-move", "state": {}})
        assert slide.state == Snapshot()
        assert controller.get_slide("s0") is slide

    @pytest.mark.parametrize(
        "bad",
        [
            {"actionType": "camera-move", "state": {}},
            {"id": "s0", "state": {}},
            {"id": "s0", "actionType": "camera-move"},
            "not a slide",
        ],
    )
    def test_rejects_incomplete_slides(self, controller, bad):
        with pytest.raises(InvalidSlideData):
            controller.add_slide(bad)

    def test_add_touches_modified(self, controller):
        before = controller.get_current_presentation().modified
        controller.add_slide(_slide("s0"))
        assert controller.get_current_presentation().modified >= before


class TestDeleteSlide:

    def test_delete_before_current_shifts_index(self, four_slides):
        four_slides.get_current_presentation().current_slide_index = 2
        assert four_slides.delete_slide("s1") is True
        assert _ids(four_slides) == ["s0", "s2", "s3"]
        assert four_slides.get_current_slide_index() == 1

    def test_delete_current_moves_back(self, four_slides):
        four_slides.get_current_presentation().current_slide_index = 2
        four_slides.delete_slide("s2")
        assert four_slides.get_current_slide_index() == 1

    def test_delete_after_current_keeps_index(self, four_slides):
        four_slides.get_current_presentation().current_slide_index = 1
        four_slides.delete_slide("s3")
        assert four_slides.get_current_slide_index() == 1

    def test_delete_first_at_zero_stays_zero(self, four_slides):
        four_slides.delete_slide("s0")
        assert four_slides.get_current_slide_index() == 0

    def test_delete_only_slide_keeps_index_at_zero(self, controller):
        controller.add_slide(_slide("only"))
        controller.delete_slide("only")
        assert controller.get_current_slide_index() == 0
        assert controller.get_slide_count() == 0

    def test_unknown_and_empty_ids(self, four_slides):
        with pytest.raises(SlideNotFound, match="s9"):
            four_slides.delete_slide("s9")
        with pytest.raises(InvalidSlideId):
            four_slides.delete_slide("")


class TestReorderSlides:

    @pytest.mark.parametrize(
        "current, src, dst, order, new_current",
        [
            (1, 1, 3, ["s0", "s2", "s3", "s1"], 3),
            (1, 0, 2, ["s1", "s2", "s0", "s3"], 0),
            (1, 3, 0, ["s3", "s0", "s1", "s2"], 2),
            (1, 2, 3, ["s0", "s1", "s3", "s2"], 1),
        ],
    )
    def test_current_follows_its_slide(self, four_slides, current, src, dst, order, new_current):
        four_slides.get_current_presentation().current_slide_index = current
        four_slides.reorder_slides(src, dst)
        assert _ids(four_slides) == order
        assert four_slides.get_current_slide_index() == new_current

    def test_same_index_is_noop(self, four_slides):
        four_slides.reorder_slides(2, 2)
        assert _ids(four_slides) == ["s0", "s1", "s2", "s3"]

    @pytest.mark.parametrize("src, dst", [(-1, 0), (0, 4), (7, 1)])
    def test_out_of_range(self, four_slides, src, dst):
        with pytest.raises(InvalidSlideIndex):
            four_slides.reorder_slides(src, dst)


# ============================================================
# Navigation
# ============================================================

class TestNavigation:

    @pytest.fixture
    def deck(self, controller):
        controller.add_slide(_slide("start"))
        controller.add_slide(_slide("open", expanded_nodes=("sun",), info_panel=InfoPanelState(True, "sun")))
        controller.add_slide(_slide("deep", expanded_nodes=("sun", "inner", "earth")))
        return controller

    def test_next_applies_slide_state(self, deck, view):
        assert asyncio.run(deck.next_slide(view)) is True
        assert deck.get_current_slide_index() == 1
        assert view.expanded_nodes == ["sun"]
        assert view.info_panel.open is True
        assert view.info_panel.node_id == "sun"

    def test_walk_forward_and_back(self, deck, view):
        async def runner():
            await deck.next_slide(view)
            await deck.next_slide(view)
            assert view.expanded_nodes == ["sun", "inner", "earth"]
            assert view.info_panel.open is False
            assert deck.get_current_slide_index() == 2
            assert deck.has_next_slide() is False
            assert await deck.next_slide(view) is False

            await deck.previous_slide(view)
            await deck.previous_slide(view)
            assert await deck.previous_slide(view) is False

        asyncio.run(runner())
        assert deck.get_current_slide_index() == 0
        assert view.expanded_nodes == []

    def test_jump(self, deck, view):
        assert asyncio.run(deck.jump_to_slide(2, view)) is True
        assert deck.get_current_slide_info() == {
            "current": 3,
            "total": 3,
            "canGoNext": False,
            "canGoPrev": True,
            "description": "",
            "presenting": False,
        }
        with pytest.raises(InvalidSlideIndex):
            asyncio.run(deck.jump_to_slide(3, view))

    def test_view_is_required(self, deck):
        with pytest.raises(ViewRequired):
            asyncio.run(deck.next_slide(None))

    def test_unchanged_state_skips_animation(self, deck, view):
        asyncio.run(deck.jump_to_slide(0, view))
        assert view.renderer.frames_scheduled == 0
        assert deck.get_current_slide_index() == 0


# ============================================================
# Presentation mode
# ============================================================

class TestPresentationMode:

    @pytest.fixture
    def deck(self, controller):
        controller.add_slide(_slide("first", expanded_nodes=("sun",)))
        controller.add_slide(_slide("second", expanded_nodes=("sun", "outer")))
        return controller

    def test_start_without_slides(self, controller, view):
        assert asyncio.run(controller.start_presentation(view)) is False
        assert controller.is_presenting is False
        assert controller.pre_presentation_state is None

    def test_start_shows_first_slide(self, deck, view):
        view.show_info_panel("earth")
        deck.get_current_presentation().current_slide_index = 1

        assert asyncio.run(deck.start_presentation(view)) is True
        assert deck.is_presenting is True
        assert deck.get_current_slide_index() == 0
        assert deck.get_current_slide_info()["presenting"] is True
        assert view.expanded_nodes == ["sun"]
        assert deck.pre_presentation_state.info_panel == InfoPanelState(True, "earth")

    def test_stop_restores_previous_state(self, deck, view):
        view.show_info_panel("earth")

        async def runner():
            await deck.start_presentation(view)
            await deck.next_slide(view)
            assert view.expanded_nodes == ["sun", "outer"]
            return await deck.stop_presentation(view)

        assert asyncio.run(runner()) is True
        assert deck.is_presenting is False
        assert deck.pre_presentation_state is None
        assert deck.get_current_slide_index() == 0
        assert view.expanded_nodes == []
        assert view.info_panel.open is True
        assert view.info_panel.node_id == "earth"

    def test_stop_when_not_presenting(self, deck, view):
        assert asyncio.run(deck.stop_presentation(view)) is False
        assert view.expanded_nodes == []

    def test_start_needs_a_view(self, deck):
        with pytest.raises(ViewRequired):
            asyncio.run(deck.start_presentation(None))
