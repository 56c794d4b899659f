from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from .mindmap_view import MindmapView
from .rendering import Renderable

logger = logging.getLogger("mp.project_store")

PRESENTATION_KEY = "presentation"
_PERSISTED_FIELDS = ("id", "name", "slides", "created", "modified")


def empty_project() -> dict[str, Any]:
    return {"name": "Untitled", "nodes": [], PRESENTATION_KEY: None}


def load_project(path: Path) -> dict[str, Any]:
    """
    Read a project document. A missing file is an empty project; a file that
    is not a JSON object raises ValueError.
    """
    if not path.exists():
        logger.info("project %s not found; starting empty", path)
        return empty_project()
    obj = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(obj, dict):
        raise ValueError(f"{path.name} must contain a JSON object")
    obj.setdefault("nodes", [])
    obj.setdefault(PRESENTATION_KEY, None)
    return obj


def build_view(project: dict[str, Any], *, renderer: Renderable | None = None) -> MindmapView:
    return MindmapView.from_payload(project.get("nodes") or [], renderer=renderer)


def presentation_field(project: dict[str, Any]) -> dict[str, Any] | None:
    raw = project.get(PRESENTATION_KEY)
    return raw if isinstance(raw, dict) else None


def save_presentation(path: Path, presentation: dict[str, Any]) -> None:
    """Write `presentation` into the project document, leaving other keys alone."""
    doc = load_project(path)
    doc[PRESENTATION_KEY] = {k: presentation[k] for k in _PERSISTED_FIELDS if k in presentation}
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(doc, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
    tmp.replace(path)
    logger.info("saved presentation (%d slides) to %s", len(presentation.get("slides") or []), path)
