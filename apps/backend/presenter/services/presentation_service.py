from __future__ import annotations

import logging
from typing import Any

from fastapi.responses import Response

from ..errors import NoPresentationLoaded, PresentationError, SlideNotFound
from ..state import STATE, load_state
from .project_store import save_presentation

logger = logging.getLogger("mp.presentation_service")


def error_response(exc: Exception) -> Response:
    """Map controller/recorder errors onto the text/plain responses the API returns."""
    if isinstance(exc, (SlideNotFound, NoPresentationLoaded)):
        status = 404
    elif isinstance(exc, (PresentationError, ValueError, IndexError)):
        status = 400
    else:
        raise exc
    logger.warning("request rejected (%d): %s", status, exc)
    return Response(status_code=status, content=str(exc), media_type="text/plain")


def presentation_payload() -> dict[str, Any]:
    ctl = STATE.controller
    p = ctl.get_current_presentation()
    return {
        "presentation": p.to_dict() if p else None,
        "slideInfo": ctl.get_current_slide_info(),
    }


def create_presentation(payload: dict) -> dict | Response:
    try:
        STATE.controller.create_presentation(payload.get("name"))
    except ValueError as e:
        return error_response(e)
    return presentation_payload()


def delete_slide(slide_id: str) -> dict | Response:
    try:
        STATE.controller.delete_slide(slide_id)
    except PresentationError as e:
        return error_response(e)
    return presentation_payload()


def reorder_slides(payload: dict) -> dict | Response:
    src, dst = payload.get("from"), payload.get("to")
    if isinstance(src, bool) or isinstance(dst, bool) or not isinstance(src, int) or not isinstance(dst, int):
        return Response(status_code=400, content="from and to must be integers", media_type="text/plain")
    try:
        STATE.controller.reorder_slides(src, dst)
    except PresentationError as e:
        return error_response(e)
    return presentation_payload()


def save_current() -> dict | Response:
    try:
        data = STATE.controller.export_presentation()
    except PresentationError as e:
        return error_response(e)
    save_presentation(STATE.project_path, data)
    return {"ok": True, "path": str(STATE.project_path), "slides": len(data["slides"])}


async def reload_project() -> dict | Response:
    # Cancel playback first so a transition paused at a gate releases the lock.
    STATE.controller.sequencer.clear_queue()
    async with STATE.nav_lock:
        try:
            load_state(STATE.project_path)
        except (PresentationError, ValueError) as e:
            return error_response(e)
    return presentation_payload()
