from __future__ import annotations

import logging
import uuid
from typing import Any

from ..errors import (
    InvalidSlideData,
    InvalidSlideId,
    InvalidSlideIndex,
    NoPresentationLoaded,
    SlideNotFound,
    ViewRequired,
)
from ..models import Presentation, Slide, Snapshot, parse_timestamp
from .animation_sequencer import AnimationSequencer
from .state_engine import capture_state, compare_states

logger = logging.getLogger("mp.presentation_controller")


def _coerce_slide(slide: Any) -> Slide:
    if isinstance(slide, Slide):
        return slide
    if not isinstance(slide, dict):
        raise InvalidSlideData()
    missing = [k for k in ("id", "actionType") if not slide.get(k)]
    if slide.get("state") is None:
        missing.append("state")
    if missing:
        raise InvalidSlideData("missing " + ", ".join(missing))
    return Slide.from_dict(slide)


class PresentationController:
    """
    Owns the active Presentation: slide CRUD, ordering and navigation.

    Navigation applies the target slide's state to the view passed in; the
    sequencer animates the difference from the view's live state.
    """

    def __init__(self, sequencer: AnimationSequencer | None = None) -> None:
        self.sequencer = sequencer or AnimationSequencer()
        self.presentation: Presentation | None = None
        self.pre_presentation_state: Snapshot | None = None
        self._presenting = False

    # ---- lifecycle ----

    def create_presentation(self, name: Any) -> Presentation:
        if not isinstance(name, str) or not name.strip():
            raise ValueError("Presentation name is required")
        self.presentation = Presentation(id=f"presentation-{uuid.uuid4().hex}", name=name.strip())
        logger.info("created presentation %r (%s)", self.presentation.name, self.presentation.id)
        return self.presentation

    def load_presentation(self, data: dict[str, Any] | None, *, name: str = "Presentation") -> Presentation:
        """Adopt a stored `presentation` field; None starts an empty one."""
        if not data:
            return self.create_presentation(name)
        slides = [_coerce_slide(s) for s in data.get("slides") or []]
        self.presentation = Presentation(
            id=str(data.get("id") or f"presentation-{uuid.uuid4().hex}"),
            name=str(data.get("name") or name),
            created=parse_timestamp(data.get("created")),
            modified=parse_timestamp(data.get("modified")),
            slides=slides,
            current_slide_index=0,
        )
        logger.info("loaded presentation %r with %d slides", self.presentation.name, len(slides))
        return self.presentation

    def export_presentation(self) -> dict[str, Any]:
        return self._require().to_dict()

    def _require(self) -> Presentation:
        if self.presentation is None:
            raise NoPresentationLoaded()
        return self.presentation

    # ---- queries ----

    def get_current_presentation(self) -> Presentation | None:
        return self.presentation

    def get_current_slide_index(self) -> int:
        return self.presentation.current_slide_index if self.presentation else 0

    def get_slide_count(self) -> int:
        return len(self.presentation.slides) if self.presentation else 0

    def has_next_slide(self) -> bool:
        p = self.presentation
        return p is not None and p.current_slide_index < len(p.slides) - 1

    def has_previous_slide(self) -> bool:
        p = self.presentation
        return p is not None and p.current_slide_index > 0

    def get_slide(self, slide_id: str) -> Slide | None:
        p = self._require()
        return next((s for s in p.slides if s.id == slide_id), None)

    def get_slide_by_index(self, index: int) -> Slide | None:
        p = self._require()
        if 0 <= index < len(p.slides):
            return p.slides[index]
        return None

    def get_current_slide_info(self) -> dict[str, Any] | None:
        p = self.presentation
        if p is None:
            return None
        cur = p.slides[p.current_slide_index] if p.slides else None
        return {
            "current": p.current_slide_index + 1 if p.slides else 0,
            "total": len(p.slides),
            "canGoNext": self.has_next_slide(),
            "canGoPrev": self.has_previous_slide(),
            "description": cur.description if cur else "",
            "presenting": self._presenting,
        }

    # ---- editing ----

    def add_slide(self, slide: Slide | dict[str, Any]) -> Slide:
        p = self._require()
        stored = _coerce_slide(slide)
        p.slides.append(stored)
        p.touch()
        return stored

    def delete_slide(self, slide_id: str) -> bool:
        p = self._require()
        if not slide_id:
            raise InvalidSlideId()
        index = next((i for i, s in enumerate(p.slides) if s.id == slide_id), -1)
        if index < 0:
            raise SlideNotFound(slide_id)
        del p.slides[index]
        if index <= p.current_slide_index and p.current_slide_index > 0:
            p.current_slide_index -= 1
        p.touch()
        return True

    def reorder_slides(self, from_index: int, to_index: int) -> None:
        p = self._require()
        n = len(p.slides)
        for i in (from_index, to_index):
            if not isinstance(i, int) or i < 0 or i >= n:
                raise InvalidSlideIndex(i)
        if from_index == to_index:
            return
        p.slides.insert(to_index, p.slides.pop(from_index))

        cur = p.current_slide_index
        if from_index == cur:
            p.current_slide_index = to_index
        elif from_index < cur <= to_index:
            p.current_slide_index = cur - 1
        elif to_index <= cur < from_index:
            p.current_slide_index = cur + 1
        p.touch()

    # ---- presentation mode ----

    @property
    def is_presenting(self) -> bool:
        return self._presenting

    async def start_presentation(self, view: Any, *, wait_for_input: bool = False) -> bool:
        """
        Remember the view's state, rewind to the first slide and show it.
        False when there are no slides to present.
        """
        p = self._check_nav(view)
        if not p.slides:
            return False
        self.pre_presentation_state = capture_state(view)
        self._presenting = True
        p.current_slide_index = 0
        logger.info("presenting %r (%d slides)", p.name, len(p.slides))
        await self._apply_state(view, p.slides[0].state, wait_for_input=wait_for_input)
        return True

    async def stop_presentation(self, view: Any) -> bool:
        """Leave presentation mode and animate back to the remembered state."""
        if not self._presenting:
            return False
        if view is None:
            raise ViewRequired()
        self._presenting = False
        restore, self.pre_presentation_state = self.pre_presentation_state, None
        if self.presentation is not None:
            self.presentation.current_slide_index = 0
        if restore is not None:
            await self._apply_state(view, restore)
        logger.info("presentation mode left")
        return True

    # ---- navigation ----

    def _check_nav(self, view: Any) -> Presentation:
        p = self._require()
        if view is None:
            raise ViewRequired()
        return p

    async def next_slide(self, view: Any, *, wait_for_input: bool = False) -> bool:
        p = self._check_nav(view)
        if p.current_slide_index >= len(p.slides) - 1:
            return False
        p.current_slide_index += 1
        await self._apply_slide(view, p.slides[p.current_slide_index], wait_for_input=wait_for_input)
        return True

    async def previous_slide(self, view: Any, *, wait_for_input: bool = False) -> bool:
        p = self._check_nav(view)
        if p.current_slide_index <= 0:
            return False
        p.current_slide_index -= 1
        await self._apply_slide(view, p.slides[p.current_slide_index], wait_for_input=wait_for_input)
        return True

    async def jump_to_slide(self, index: int, view: Any, *, wait_for_input: bool = False) -> bool:
        p = self._check_nav(view)
        if not isinstance(index, int) or index < 0 or index >= len(p.slides):
            raise InvalidSlideIndex(index)
        p.current_slide_index = index
        await self._apply_slide(view, p.slides[index], wait_for_input=wait_for_input)
        return True

    async def _apply_slide(self, view: Any, slide: Slide, *, wait_for_input: bool = False) -> None:
        logger.debug("applying slide %s (%s)", slide.id, slide.action_type)
        await self._apply_state(view, slide.state, wait_for_input=wait_for_input)

    async def _apply_state(self, view: Any, target: Snapshot, *, wait_for_input: bool = False) -> None:
        live = capture_state(view)
        diff = compare_states(live, target)
        if diff.is_empty():
            return
        if await self.sequencer.animate_transition(view, live, target, wait_for_input=wait_for_input):
            await self.sequencer.apply_overlay_changes(view, diff)
