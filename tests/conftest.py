"""
Shared fixtures for the presenter test-suite.

- a small mindmap view (sun -> inner/outer -> planets -> moon)
- zero-duration animation timings so playback finishes in a few loop turns
- an HTTP client bound to a temporary copy of the sample project
"""

import shutil
from pathlib import Path

import pytest

from presenter.config import AnimationTimings
from presenter.services.animation_sequencer import AnimationSequencer
from presenter.services.mindmap_view import MindmapView
from presenter.services.rendering import HeadlessRenderer

REPO_ROOT = Path(__file__).resolve().parents[1]
SAMPLE_PROJECT = REPO_ROOT / "projects" / "default.json"

SAMPLE_NODES = [
    {"id": "sun", "text": "The Sun", "level": 0},
    {"id": "inner", "text": "Inner planets", "parentId": "sun"},
    {"id": "outer", "text": "Outer planets", "parentId": "sun"},
    {"id": "earth", "text": "Earth", "parentId": "inner", "images": ["earth.png"]},
    {"id": "mars", "text": "Mars", "parentId": "inner"},
    {"id": "moon", "text": "The Moon", "parentId": "earth"},
    {"id": "jupiter", "text": "Jupiter", "parentId": "outer", "images": ["jupiter.png", "io.png"]},
    {"id": "saturn", "text": "Saturn", "parentId": "outer"},
]

FAST_TIMINGS = AnimationTimings(
    step_ms=0,
    camera_ms=0,
    info_panel_ms=0,
    image_modal_ms=0,
    relationship_ms=0,
    focus_ms=0,
    frame_interval_ms=0,
)


@pytest.fixture
def view():
    return MindmapView.from_payload(SAMPLE_NODES, renderer=HeadlessRenderer(frame_interval_ms=0))


@pytest.fixture
def sequencer():
    return AnimationSequencer(FAST_TIMINGS)


@pytest.fixture
def project_file(tmp_path):
    """Writable copy of the sample project."""
    target = tmp_path / "project.json"
    shutil.copyfile(SAMPLE_PROJECT, target)
    return target


@pytest.fixture
def client(project_file, monkeypatch):
    from fastapi.testclient import TestClient

    from presenter.main import app

    monkeypatch.setenv("MP_PROJECT_PATH", str(project_file))
    for name in (
        "MP_STEP_MS",
        "MP_CAMERA_MS",
        "MP_INFO_PANEL_MS",
        "MP_IMAGE_MODAL_MS",
        "MP_RELATIONSHIP_MS",
        "MP_FOCUS_MS",
        "MP_FRAME_INTERVAL_MS",
    ):
        monkeypatch.setenv(name, "0")

    with TestClient(app) as c:
        yield c
