from __future__ import annotations

from fastapi import APIRouter, Body
from fastapi.responses import Response

from ..errors import PresentationError
from ..services.presentation_service import error_response, presentation_payload
from ..state import STATE

router = APIRouter()


@router.post("/api/capture/start")
async def capture_start():
    STATE.recorder.start_capture(STATE.view)
    return {"ok": True, "capturing": True}


@router.post("/api/capture/stop")
async def capture_stop():
    actions = STATE.recorder.stop_capture()
    return {"ok": True, "capturing": False, "actions": [a.to_dict() for a in actions]}


@router.get("/api/capture/actions")
async def capture_actions():
    rec = STATE.recorder
    return {
        "capturing": rec.is_capture_active(),
        "count": rec.get_action_count(),
        "actions": [a.to_dict() for a in rec.get_captured_actions()],
    }


@router.post("/api/capture/clear")
async def capture_clear():
    STATE.recorder.clear_log()
    return {"ok": True}


@router.post("/api/capture/slide")
async def capture_slide(payload: dict = Body(...)):
    index = payload.get("actionIndex")
    if isinstance(index, bool) or not isinstance(index, int):
        return Response(status_code=400, content="actionIndex must be an integer", media_type="text/plain")
    try:
        slide = STATE.recorder.create_slide_from_action(index, STATE.view)
        STATE.controller.add_slide(slide)
    except (IndexError, PresentationError) as e:
        return error_response(e)
    return {"slide": slide.to_dict(), **presentation_payload()}
