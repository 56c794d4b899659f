from __future__ import annotations

from fastapi import APIRouter, Body
from fastapi.responses import Response

from ..errors import PresentationError
from ..services.presentation_service import error_response
from ..services.state_engine import capture_state
from ..state import STATE

router = APIRouter()


def _playback_payload(moved: bool) -> dict:
    ctl = STATE.controller
    return {
        "moved": moved,
        "slideInfo": ctl.get_current_slide_info(),
        "state": capture_state(STATE.view).to_dict(),
    }


def _wait_for_input(payload: dict | None) -> bool:
    return bool((payload or {}).get("waitForInput", False))


@router.post("/api/playback/start")
async def playback_start(payload: dict | None = Body(None)):
    async with STATE.nav_lock:
        try:
            moved = await STATE.controller.start_presentation(STATE.view, wait_for_input=_wait_for_input(payload))
        except PresentationError as e:
            return error_response(e)
    return _playback_payload(moved)


@router.post("/api/playback/stop")
async def playback_stop():
    # A transition waiting at a gate would otherwise hold the lock.
    STATE.controller.sequencer.clear_queue()
    async with STATE.nav_lock:
        try:
            moved = await STATE.controller.stop_presentation(STATE.view)
        except PresentationError as e:
            return error_response(e)
    return _playback_payload(moved)


@router.post("/api/playback/next")
async def playback_next(payload: dict | None = Body(None)):
    async with STATE.nav_lock:
        try:
            moved = await STATE.controller.next_slide(STATE.view, wait_for_input=_wait_for_input(payload))
        except PresentationError as e:
            return error_response(e)
    return _playback_payload(moved)


@router.post("/api/playback/previous")
async def playback_previous(payload: dict | None = Body(None)):
    async with STATE.nav_lock:
        try:
            moved = await STATE.controller.previous_slide(STATE.view, wait_for_input=_wait_for_input(payload))
        except PresentationError as e:
            return error_response(e)
    return _playback_payload(moved)


@router.post("/api/playback/jump")
async def playback_jump(payload: dict = Body(...)):
    index = payload.get("index")
    if isinstance(index, bool) or not isinstance(index, int):
        return Response(status_code=400, content="index must be an integer", media_type="text/plain")
    async with STATE.nav_lock:
        try:
            moved = await STATE.controller.jump_to_slide(index, STATE.view, wait_for_input=_wait_for_input(payload))
        except PresentationError as e:
            return error_response(e)
    return _playback_payload(moved)


@router.post("/api/playback/pause")
async def playback_pause():
    seq = STATE.controller.sequencer
    seq.pause()
    return {"ok": True, "state": seq.state.value}


@router.post("/api/playback/resume")
async def playback_resume():
    return {"resumed": STATE.controller.sequencer.resume()}


@router.post("/api/playback/clear")
async def playback_clear():
    seq = STATE.controller.sequencer
    seq.clear_queue()
    return {"ok": True, "state": seq.state.value}
