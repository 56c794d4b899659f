from __future__ import annotations

import logging
from typing import Any

from fastapi.responses import Response

from ..models import ActionType
from ..state import STATE
from .state_engine import capture_state

logger = logging.getLogger("mp.view_service")


def view_state_payload() -> dict[str, Any]:
    view = STATE.view
    return {
        "state": capture_state(view).to_dict(),
        "transform": view.transform,
        "capturing": STATE.recorder.is_capture_active(),
        "nodes": [
            {"id": n.id, "text": n.text, "level": n.level, "parentId": n.parent_id, "children": list(n.children)}
            for n in view.nodes.values()
        ],
    }


def _node_or_404(node_id: str) -> Response | None:
    if STATE.view.get_node(node_id) is None:
        logger.warning("view: 404 unknown node %r", node_id)
        return Response(status_code=404, content="Unknown nodeId", media_type="text/plain")
    return None


def toggle_node(payload: dict) -> dict | Response:
    node_id = str(payload.get("nodeId") or "").strip()
    err = _node_or_404(node_id)
    if err is not None:
        return err
    view = STATE.view
    expanded = view.toggle_children(node_id)
    node = view.get_node(node_id)
    STATE.recorder.log_action(
        ActionType.NODE_EXPAND if expanded else ActionType.NODE_COLLAPSE,
        {"nodeId": node_id, "nodeText": node.text if node else node_id},
    )
    return {"ok": True, "nodeId": node_id, "expanded": expanded}


def move_camera(payload: dict) -> dict | Response:
    cam = STATE.view.camera
    try:
        x = float(payload.get("x", cam.x))
        y = float(payload.get("y", cam.y))
        zoom = float(payload.get("zoom", cam.zoom))
    except (TypeError, ValueError):
        return Response(status_code=400, content="x, y and zoom must be numbers", media_type="text/plain")
    if zoom <= 0:
        return Response(status_code=400, content="zoom must be positive", media_type="text/plain")
    STATE.view.set_camera(x, y, zoom)
    STATE.recorder.log_action(ActionType.CAMERA_MOVE, {"x": x, "y": y, "zoom": zoom})
    return {"ok": True, "camera": {"x": x, "y": y, "zoom": zoom}}


def set_info_panel(payload: dict) -> dict | Response:
    node_id = payload.get("nodeId")
    view = STATE.view
    if node_id is None:
        closed = view.info_panel.node_id
        view.show_info_panel(None)
        STATE.recorder.log_action(ActionType.INFO_CLOSE, {"nodeId": closed})
        return {"ok": True, "open": False}
    node_id = str(node_id)
    err = _node_or_404(node_id)
    if err is not None:
        return err
    # The image modal and info panel are mutually exclusive.
    if view.image_modal.open:
        view.show_image(None)
    view.show_info_panel(node_id)
    STATE.recorder.log_action(ActionType.INFO_OPEN, {"nodeId": node_id, "nodeText": view.get_node(node_id).text})
    return {"ok": True, "open": True, "nodeId": node_id}


def set_image_modal(payload: dict) -> dict | Response:
    node_id = payload.get("nodeId")
    view = STATE.view
    if node_id is None:
        closed = view.image_modal.node_id
        view.show_image(None)
        STATE.recorder.log_action(ActionType.IMAGE_CLOSE, {"nodeId": closed})
        return {"ok": True, "open": False}
    node_id = str(node_id)
    err = _node_or_404(node_id)
    if err is not None:
        return err
    try:
        image_index = int(payload.get("imageIndex", 0))
    except (TypeError, ValueError):
        return Response(status_code=400, content="imageIndex must be an integer", media_type="text/plain")
    if view.info_panel.open:
        view.show_info_panel(None)
    view.show_image(node_id, image_index)
    STATE.recorder.log_action(
        ActionType.IMAGE_OPEN,
        {"nodeId": node_id, "nodeText": view.get_node(node_id).text, "imageIndex": image_index},
    )
    return {"ok": True, "open": True, "nodeId": node_id, "imageIndex": image_index}


def set_relationship(payload: dict) -> dict | Response:
    rel_id = str(payload.get("relationshipId") or "").strip()
    if not rel_id:
        return Response(status_code=400, content="Missing relationshipId", media_type="text/plain")
    visible = bool(payload.get("visible", True))
    STATE.view.set_relationship_visible(rel_id, visible)
    STATE.recorder.log_action(
        ActionType.RELATIONSHIP_SHOW if visible else ActionType.RELATIONSHIP_HIDE,
        {"relationshipId": rel_id, "relationshipName": payload.get("relationshipName") or rel_id},
    )
    return {"ok": True, "relationshipId": rel_id, "visible": visible}


def set_focus(payload: dict) -> dict | Response:
    node_id = payload.get("nodeId")
    view = STATE.view
    if node_id is None:
        view.set_focus(None)
        STATE.recorder.log_action(ActionType.FOCUS_DEACTIVATE, {})
        return {"ok": True, "focusMode": False}
    node_id = str(node_id)
    err = _node_or_404(node_id)
    if err is not None:
        return err
    view.set_focus(node_id)
    STATE.recorder.log_action(ActionType.FOCUS_ACTIVATE, {"nodeId": node_id, "nodeText": view.get_node(node_id).text})
    return {"ok": True, "focusMode": True, "nodeId": node_id}
