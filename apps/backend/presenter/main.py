from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import DEV_CORS_ORIGINS, log_level
from .routers.capture import router as capture_router
from .routers.health import router as health_router
from .routers.playback import router as playback_router
from .routers.presentation import router as presentation_router
from .routers.view import router as view_router
from .state import STATE, load_state

logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logging.getLogger("mp").setLevel(log_level())
logger = logging.getLogger("mp.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    load_state()
    STATE.nav_lock = asyncio.Lock()
    logger.info("serving %s", STATE.project_path)
    yield
    STATE.controller.sequencer.clear_queue()


app = FastAPI(title="mindmap-presenter-backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=DEV_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(view_router)
app.include_router(capture_router)
app.include_router(presentation_router)
app.include_router(playback_router)
