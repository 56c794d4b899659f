"""
Tests for snapshot capture, diffing, validation and serialization.
"""

import json
from types import SimpleNamespace

import pytest

from presenter.models import CameraState, ImageModalState, InfoPanelState, Snapshot
from presenter.services.state_engine import (
    REQUIRED_KEYS,
    capture_state,
    compare_states,
    deserialize_state,
    serialize_state,
    validate_state,
)


# ============================================================
# capture_state
# ============================================================

class TestCaptureState:

    def test_fresh_view_is_closed_and_collapsed(self, view):
        snap = capture_state(view)
        assert snap.camera == CameraState(0.0, 0.0, 1.0)
        assert snap.expanded_nodes == ()
        assert snap.info_panel == InfoPanelState(False, None)
        assert snap.image_modal == ImageModalState(False, None, None)
        assert snap.focus_mode is False

    def test_reflects_live_changes(self, view):
        view.toggle_children("sun")
        view.toggle_children("inner")
        view.set_camera(12, -4, 1.5)
        view.show_info_panel("earth")
        view.set_relationship_visible("rel-earth-moon", True)

        snap = capture_state(view)
        assert snap.expanded_nodes == ("sun", "inner")
        assert snap.camera == CameraState(12.0, -4.0, 1.5)
        assert snap.info_panel == InfoPanelState(True, "earth")
        assert snap.visible_relationships == ("rel-earth-moon",)

    def test_image_index_zero_is_kept(self, view):
        view.show_image("jupiter", 0)
        assert capture_state(view).image_modal == ImageModalState(True, "jupiter", 0)

    def test_missing_optional_fields_default(self):
        bare = SimpleNamespace(camera=SimpleNamespace(x=1, y=2, zoom=3), expanded_nodes=["a"])
        snap = capture_state(bare)
        assert snap.camera == CameraState(1.0, 2.0, 3.0)
        assert snap.expanded_nodes == ("a",)
        assert snap.info_panel.open is False
        assert snap.visible_relationships == ()

    def test_snapshot_does_not_follow_later_changes(self, view):
        snap = capture_state(view)
        view.toggle_children("sun")
        assert snap.expanded_nodes == ()


# ============================================================
# compare_states
# ============================================================

class TestCompareStates:

    def test_identical_states_give_empty_diff(self, view):
        view.toggle_children("sun")
        assert compare_states(capture_state(view), capture_state(view)).is_empty()

    def test_node_sets(self):
        a = Snapshot(expanded_nodes=("sun", "inner"))
        b = Snapshot(expanded_nodes=("sun", "outer", "jupiter"))
        diff = compare_states(a, b)
        assert diff.nodes_to_expand == ("outer", "jupiter")
        assert diff.nodes_to_collapse == ("inner",)

    def test_info_panel_open_and_close(self):
        closed = Snapshot()
        opened = Snapshot(info_panel=InfoPanelState(True, "earth"))
        assert compare_states(closed, opened).info_panel_change == {"action": "open", "nodeId": "earth"}
        assert compare_states(opened, closed).info_panel_change == {"action": "close", "nodeId": None}

    def test_info_panel_switching_node_counts_as_change(self):
        a = Snapshot(info_panel=InfoPanelState(True, "earth"))
        b = Snapshot(info_panel=InfoPanelState(True, "mars"))
        assert compare_states(a, b).info_panel_change == {"action": "open", "nodeId": "mars"}

    def test_image_modal_carries_target_index(self):
        a = Snapshot()
        b = Snapshot(image_modal=ImageModalState(True, "jupiter", 1))
        change = compare_states(a, b).image_modal_change
        assert change == {"action": "open", "nodeId": "jupiter", "imageIndex": 1}

    def test_relationships_focus_and_camera(self):
        a = Snapshot(visible_relationships=("r1", "r2"))
        b = Snapshot(
            visible_relationships=("r2", "r3"),
            focus_mode=True,
            focused_node="mars",
            camera=CameraState(5, 6, 2),
        )
        diff = compare_states(a, b)
        assert diff.relationships_to_show == ("r3",)
        assert diff.relationships_to_hide == ("r1",)
        assert diff.focus_change == {"enabled": True, "nodeId": "mars"}
        assert diff.camera_change == {"x": 5, "y": 6, "zoom": 2}

    def test_accepts_wire_dicts(self):
        a = Snapshot().to_dict()
        b = Snapshot(expanded_nodes=("sun",)).to_dict()
        assert compare_states(a, b).nodes_to_expand == ("sun",)


# ============================================================
# validate_state
# ============================================================

class TestValidateState:

    def test_valid_snapshot(self):
        result = validate_state(Snapshot(expanded_nodes=("sun",)).to_dict())
        assert result.valid
        assert result.errors == []

    def test_missing_keys_reported_alone(self):
        result = validate_state({"camera": "not even an object"})
        assert not result.valid
        assert result.errors == [f"Missing required property: {k}" for k in REQUIRED_KEYS if k != "camera"]

    def test_non_object(self):
        result = validate_state(["camera"])
        assert not result.valid
        assert result.errors == ["state must be an object"]

    def test_collects_every_field_error(self):
        state = Snapshot().to_dict()
        state["camera"]["zoom"] = "2"
        state["camera"]["x"] = True
        state["expandedNodes"] = "sun"
        del state["infoPanel"]["nodeId"]
        state["focusMode"] = 1

        result = validate_state(state)
        assert not result.valid
        assert "camera.zoom must be a number" in result.errors
        assert "camera.x must be a number" in result.errors
        assert "expandedNodes must be an array" in result.errors
        assert "infoPanel must have nodeId property" in result.errors
        assert "focusMode must be a boolean" in result.errors
        assert len(result.errors) == 5

    def test_image_modal_needs_index_key(self):
        state = Snapshot().to_dict()
        del state["imageModal"]["imageIndex"]
        assert validate_state(state).errors == ["imageModal must have imageIndex property"]


# ============================================================
# serialize / deserialize
# ============================================================

class TestSerialization:

    def test_round_trip(self, view):
        view.toggle_children("sun")
        view.show_image("jupiter", 0)
        snap = capture_state(view)
        assert deserialize_state(serialize_state(snap)) == snap

    def test_wire_format_is_camel_case(self):
        obj = json.loads(serialize_state(Snapshot()))
        assert set(obj) == set(REQUIRED_KEYS)
        assert obj["infoPanel"] == {"open": False, "nodeId": None}

    def test_rejects_non_object(self):
        with pytest.raises(ValueError, match="JSON object"):
            deserialize_state("[1, 2]")

    def test_rejects_malformed_json(self):
        with pytest.raises(ValueError):
            deserialize_state("{not json")
