from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


REPO_ROOT = Path(__file__).resolve().parents[3]
PROJECTS_DIR = REPO_ROOT / "projects"
DEFAULT_PROJECT_PATH = PROJECTS_DIR / "default.json"


def project_path() -> Path:
    """
    Project document the server works on.
    Prefer MP_PROJECT_PATH env var, otherwise projects/default.json.
    """
    raw = os.environ.get("MP_PROJECT_PATH")
    return Path(raw).expanduser() if raw else DEFAULT_PROJECT_PATH


def log_level() -> str:
    return (os.environ.get("MP_LOG_LEVEL") or "INFO").strip().upper()


def _env_ms(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return max(0, int(float(raw)))
    except ValueError:
        return default


@dataclass(frozen=True)
class AnimationTimings:
    step_ms: int = 300
    camera_ms: int = 500
    info_panel_ms: int = 350
    image_modal_ms: int = 500
    relationship_ms: int = 300
    focus_ms: int = 300
    frame_interval_ms: int = 16


def animation_timings() -> AnimationTimings:
    d = AnimationTimings()
    return AnimationTimings(
        step_ms=_env_ms("MP_STEP_MS", d.step_ms),
        camera_ms=_env_ms("MP_CAMERA_MS", d.camera_ms),
        info_panel_ms=_env_ms("MP_INFO_PANEL_MS", d.info_panel_ms),
        image_modal_ms=_env_ms("MP_IMAGE_MODAL_MS", d.image_modal_ms),
        relationship_ms=_env_ms("MP_RELATIONSHIP_MS", d.relationship_ms),
        focus_ms=_env_ms("MP_FOCUS_MS", d.focus_ms),
        frame_interval_ms=_env_ms("MP_FRAME_INTERVAL_MS", d.frame_interval_ms),
    )


DEV_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:8000",
    "http://127.0.0.1:8000",
]
