from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ..models import CameraState, Diff, ImageModalState, InfoPanelState, Snapshot, ValidationResult

REQUIRED_KEYS = (
    "camera",
    "expandedNodes",
    "focusedNode",
    "infoPanel",
    "imageModal",
    "visibleRelationships",
    "focusMode",
)


def _get(obj: Any, name: str, default: Any = None) -> Any:
    # Views may expose panels as dicts (JSON-fed) or as objects.
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def capture_state(view: Any) -> Snapshot:
    """
    Read the current visual state of `view` into an immutable Snapshot.
    Optional fields the view does not expose are captured as closed/empty.
    """
    camera = _get(view, "camera")
    info = _get(view, "info_panel")
    modal = _get(view, "image_modal")
    image_index = _get(modal, "image_index")
    return Snapshot(
        camera=CameraState(
            x=float(_get(camera, "x", 0.0)),
            y=float(_get(camera, "y", 0.0)),
            zoom=float(_get(camera, "zoom", 1.0)),
        ),
        expanded_nodes=tuple(_get(view, "expanded_nodes") or ()),
        focused_node=_get(view, "focused_node") or None,
        info_panel=InfoPanelState(
            open=bool(_get(info, "open", False)),
            node_id=_get(info, "node_id") or None,
        ),
        image_modal=ImageModalState(
            open=bool(_get(modal, "open", False)),
            node_id=_get(modal, "node_id") or None,
            image_index=int(image_index) if image_index is not None else None,
        ),
        visible_relationships=tuple(_get(view, "visible_relationships") or ()),
        focus_mode=bool(_get(view, "focus_mode", False)),
    )


def _missing_from(ids: tuple[str, ...], other: tuple[str, ...]) -> tuple[str, ...]:
    present = set(other)
    return tuple(i for i in ids if i not in present)


def compare_states(a: Snapshot | dict, b: Snapshot | dict) -> Diff:
    """
    Changes needed to go from `a` to `b`. Change objects always carry the
    target (`b`) values, also for a closing action.
    """
    a = Snapshot.coerce(a)
    b = Snapshot.coerce(b)

    info_change = None
    if a.info_panel != b.info_panel:
        info_change = {
            "action": "open" if b.info_panel.open else "close",
            "nodeId": b.info_panel.node_id,
        }

    modal_change = None
    if a.image_modal != b.image_modal:
        modal_change = {
            "action": "open" if b.image_modal.open else "close",
            "nodeId": b.image_modal.node_id,
            "imageIndex": b.image_modal.image_index,
        }

    focus_change = None
    if a.focus_mode != b.focus_mode or a.focused_node != b.focused_node:
        focus_change = {"enabled": b.focus_mode, "nodeId": b.focused_node}

    camera_change = None
    if a.camera != b.camera:
        camera_change = b.camera.to_dict()

    return Diff(
        nodes_to_expand=_missing_from(b.expanded_nodes, a.expanded_nodes),
        nodes_to_collapse=_missing_from(a.expanded_nodes, b.expanded_nodes),
        info_panel_change=info_change,
        image_modal_change=modal_change,
        relationships_to_show=_missing_from(b.visible_relationships, a.visible_relationships),
        relationships_to_hide=_missing_from(a.visible_relationships, b.visible_relationships),
        focus_change=focus_change,
        camera_change=camera_change,
    )


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float)) and not isinstance(v, bool)


def validate_state(state: Any) -> ValidationResult:
    """
    Structural check of a snapshot dict.

    Missing top-level keys are reported alone; once all keys are present every
    field is checked and all violations are returned together.
    """
    if isinstance(state, Snapshot):
        state = state.to_dict()
    if not isinstance(state, Mapping):
        return ValidationResult(valid=False, errors=["state must be an object"])

    errors = [f"Missing required property: {k}" for k in REQUIRED_KEYS if k not in state]
    if errors:
        return ValidationResult(valid=False, errors=errors)

    camera = state["camera"]
    if not isinstance(camera, Mapping):
        errors.append("camera must be an object")
    else:
        for k in ("x", "y", "zoom"):
            if not _is_number(camera.get(k)):
                errors.append(f"camera.{k} must be a number")

    if not isinstance(state["expandedNodes"], list):
        errors.append("expandedNodes must be an array")

    focused = state["focusedNode"]
    if focused is not None and not isinstance(focused, str):
        errors.append("focusedNode must be a string or null")

    info = state["infoPanel"]
    if not isinstance(info, Mapping):
        errors.append("infoPanel must be an object")
    else:
        if not isinstance(info.get("open"), bool):
            errors.append("infoPanel.open must be a boolean")
        if "nodeId" not in info:
            errors.append("infoPanel must have nodeId property")

    modal = state["imageModal"]
    if not isinstance(modal, Mapping):
        errors.append("imageModal must be an object")
    else:
        if not isinstance(modal.get("open"), bool):
            errors.append("imageModal.open must be a boolean")
        if "nodeId" not in modal:
            errors.append("imageModal must have nodeId property")
        if "imageIndex" not in modal:
            errors.append("imageModal must have imageIndex property")

    if not isinstance(state["visibleRelationships"], list):
        errors.append("visibleRelationships must be an array")

    if not isinstance(state["focusMode"], bool):
        errors.append("focusMode must be a boolean")

    return ValidationResult(valid=not errors, errors=errors)


def serialize_state(state: Snapshot | dict) -> str:
    return json.dumps(Snapshot.coerce(state).to_dict(), separators=(",", ":"))


def deserialize_state(raw: str) -> Snapshot:
    obj = json.loads(raw)
    if not isinstance(obj, dict):
        raise ValueError("serialized state must be a JSON object")
    return Snapshot.from_dict(obj)
