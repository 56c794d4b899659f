from __future__ import annotations

from fastapi import APIRouter, Body

from ..services.presentation_service import (
    create_presentation,
    delete_slide,
    presentation_payload,
    reload_project,
    reorder_slides,
    save_current,
)

router = APIRouter()


@router.get("/api/presentation")
async def get_presentation():
    return presentation_payload()


@router.post("/api/presentation")
async def new_presentation(payload: dict = Body(...)):
    return create_presentation(payload)


@router.delete("/api/presentation/slides/{slideId}")
async def remove_slide(slideId: str):
    return delete_slide(slideId)


@router.post("/api/presentation/reorder")
async def reorder(payload: dict = Body(...)):
    return reorder_slides(payload)


@router.post("/api/presentation/save")
async def save():
    return save_current()


@router.post("/api/presentation/load")
async def load():
    return await reload_project()
