from __future__ import annotations

from fastapi import APIRouter

from ..state import STATE

router = APIRouter()


@router.get("/api/health")
async def health():
    return {
        "ok": True,
        "sequencer": STATE.controller.sequencer.state.value,
        "capturing": STATE.recorder.is_capture_active(),
    }
