from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path

from .config import animation_timings, project_path
from .services.action_recorder import ActionRecorder
from .services.animation_sequencer import AnimationSequencer
from .services.mindmap_view import MindmapView
from .services.presentation_controller import PresentationController
from .services.project_store import build_view, load_project, presentation_field
from .services.rendering import HeadlessRenderer


@dataclass
class AppState:
    project_path: Path = field(default_factory=project_path)
    view: MindmapView = field(default_factory=MindmapView)
    recorder: ActionRecorder = field(default_factory=ActionRecorder)
    controller: PresentationController = field(default_factory=PresentationController)
    # Serializes playback requests; the controller itself has no reentrancy guard.
    nav_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


STATE = AppState()


def load_state(path: Path | None = None) -> AppState:
    """
    (Re)build the live view, recorder and controller from a project file.
    `nav_lock` is left alone so a reload can run while holding it.
    """
    timings = animation_timings()
    target = path or project_path()
    project = load_project(target)
    renderer = HeadlessRenderer(frame_interval_ms=timings.frame_interval_ms)

    STATE.project_path = target
    STATE.view = build_view(project, renderer=renderer)
    STATE.recorder = ActionRecorder()
    STATE.controller = PresentationController(AnimationSequencer(timings))
    STATE.controller.load_presentation(presentation_field(project), name=str(project.get("name") or "Presentation"))
    return STATE
