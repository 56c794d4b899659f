from __future__ import annotations

from fastapi import APIRouter, Body

from ..services.view_service import (
    move_camera,
    set_focus,
    set_image_modal,
    set_info_panel,
    set_relationship,
    toggle_node,
    view_state_payload,
)

router = APIRouter()


@router.get("/api/view/state")
async def view_state():
    return view_state_payload()


@router.post("/api/view/toggle")
async def view_toggle(payload: dict = Body(...)):
    return toggle_node(payload)


@router.post("/api/view/camera")
async def view_camera(payload: dict = Body(...)):
    return move_camera(payload)


@router.post("/api/view/info")
async def view_info(payload: dict = Body(...)):
    return set_info_panel(payload)


@router.post("/api/view/image")
async def view_image(payload: dict = Body(...)):
    return set_image_modal(payload)


@router.post("/api/view/relationship")
async def view_relationship(payload: dict = Body(...)):
    return set_relationship(payload)


@router.post("/api/view/focus")
async def view_focus(payload: dict = Body(...)):
    return set_focus(payload)
