from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Any

from ..models import Action, ActionType, Slide, Snapshot, utc_now
from .state_engine import capture_state

logger = logging.getLogger("mp.action_recorder")

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_slide_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"slide-{int(time.time() * 1000)}-{suffix}"


def _node_text(data: dict[str, Any], view: Any) -> str:
    if data.get("nodeText"):
        return str(data["nodeText"])
    node_id = data.get("nodeId")
    node = view.get_node(node_id) if (view is not None and node_id) else None
    if node is not None and getattr(node, "text", ""):
        return str(node.text)
    return str(node_id or "?")


def describe_action(action: Action, view: Any = None) -> str:
    data = action.data
    t = action.type
    if t is ActionType.NODE_EXPAND:
        return f"Expanded: {_node_text(data, view)}"
    if t is ActionType.NODE_COLLAPSE:
        return f"Collapsed: {_node_text(data, view)}"
    if t in (ActionType.INFO_OPEN, ActionType.INFO_CLOSE):
        return f"Info: {_node_text(data, view)}"
    if t in (ActionType.IMAGE_OPEN, ActionType.IMAGE_CLOSE):
        return f"Image: {_node_text(data, view)}"
    if t in (ActionType.RELATIONSHIP_SHOW, ActionType.RELATIONSHIP_HIDE):
        name = data.get("relationshipName") or data.get("relationshipId") or "?"
        return f"Relationship: {name}"
    if t is ActionType.FOCUS_ACTIVATE:
        return f"Focus: {_node_text(data, view)}"
    if t is ActionType.CAMERA_MOVE:
        return "Camera moved"
    return f"Action: {t.value}"


class ActionRecorder:
    """Chronological log of user actions while capture mode is on."""

    def __init__(self) -> None:
        self._capturing = False
        self._log: list[Action] = []
        self.initial_state: Snapshot | None = None

    def start_capture(self, view: Any) -> None:
        if self._capturing:
            logger.warning("start_capture: capture mode already active")
            return
        self._log = []
        self.initial_state = capture_state(view)
        self._capturing = True
        logger.info("capture started")

    def stop_capture(self) -> list[Action]:
        if not self._capturing:
            logger.warning("stop_capture: capture mode not active")
            return []
        self._capturing = False
        logger.info("capture stopped (%d actions)", len(self._log))
        return list(self._log)

    def log_action(self, type: ActionType | str, data: dict[str, Any] | None = None) -> None:
        if not self._capturing:
            return
        self._log.append(Action(type=ActionType(type), timestamp=utc_now(), data=dict(data or {})))

    def get_captured_actions(self) -> list[Action]:
        return list(self._log)

    def clear_log(self) -> None:
        self._log = []

    def is_capture_active(self) -> bool:
        return self._capturing

    def get_action_count(self) -> int:
        return len(self._log)

    def create_slide_from_action(self, index: int, view: Any) -> Slide:
        """
        Slide for the logged action at `index`. The state is captured from
        `view` now, not at the time the action was logged.
        """
        if index < 0 or index >= len(self._log):
            raise IndexError("Action index out of bounds")
        action = self._log[index]
        return Slide(
            id=new_slide_id(),
            action_type=action.type.value,
            action_data=dict(action.data),
            timestamp=action.timestamp,
            state=capture_state(view),
            description=describe_action(action, view),
        )
