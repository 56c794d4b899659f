from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(ts: datetime | None) -> str | None:
    return ts.isoformat() if ts is not None else None


def parse_timestamp(raw: Any) -> datetime:
    if isinstance(raw, datetime):
        return raw
    if isinstance(raw, str) and raw:
        # Older project files were written by JS `toISOString()` with a trailing Z.
        return datetime.fromisoformat(raw.replace("Z", "+00:00"))
    return utc_now()


class ActionType(str, Enum):
    NODE_EXPAND = "node-expand"
    NODE_COLLAPSE = "node-collapse"
    INFO_OPEN = "info-open"
    INFO_CLOSE = "info-close"
    IMAGE_OPEN = "image-open"
    IMAGE_CLOSE = "image-close"
    RELATIONSHIP_SHOW = "relationship-show"
    RELATIONSHIP_HIDE = "relationship-hide"
    CAMERA_MOVE = "camera-move"
    FOCUS_ACTIVATE = "focus-activate"
    FOCUS_DEACTIVATE = "focus-deactivate"


class StepType(str, Enum):
    EXPAND = "expand"
    COLLAPSE = "collapse"


@dataclass(frozen=True)
class CameraState:
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0

    def to_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "zoom": self.zoom}


@dataclass(frozen=True)
class InfoPanelState:
    open: bool = False
    node_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"open": self.open, "nodeId": self.node_id}


@dataclass(frozen=True)
class ImageModalState:
    open: bool = False
    node_id: str | None = None
    image_index: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"open": self.open, "nodeId": self.node_id, "imageIndex": self.image_index}


@dataclass(frozen=True)
class Snapshot:
    """
    Visual state of a mindmap view at one instant.

    Node and relationship ids are kept as tuples in the order the view reported
    them, so two snapshots of the same view compare deterministically.
    """

    camera: CameraState = field(default_factory=CameraState)
    expanded_nodes: tuple[str, ...] = ()
    focused_node: str | None = None
    info_panel: InfoPanelState = field(default_factory=InfoPanelState)
    image_modal: ImageModalState = field(default_factory=ImageModalState)
    visible_relationships: tuple[str, ...] = ()
    focus_mode: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "camera": self.camera.to_dict(),
            "expandedNodes": list(self.expanded_nodes),
            "focusedNode": self.focused_node,
            "infoPanel": self.info_panel.to_dict(),
            "imageModal": self.image_modal.to_dict(),
            "visibleRelationships": list(self.visible_relationships),
            "focusMode": self.focus_mode,
        }

    @classmethod
    def from_dict(cls, obj: dict[str, Any] | None) -> Snapshot:
        """
        Lenient: absent fields fall back to the closed/empty defaults.
        Use `validate_state` when strictness matters.
        """
        obj = obj or {}
        cam = obj.get("camera") or {}
        info = obj.get("infoPanel") or {}
        modal = obj.get("imageModal") or {}
        image_index = modal.get("imageIndex")
        return cls(
            camera=CameraState(
                x=float(cam.get("x", 0.0)),
                y=float(cam.get("y", 0.0)),
                zoom=float(cam.get("zoom", 1.0)),
            ),
            expanded_nodes=tuple(str(n) for n in obj.get("expandedNodes") or []),
            focused_node=obj.get("focusedNode"),
            info_panel=InfoPanelState(open=bool(info.get("open", False)), node_id=info.get("nodeId")),
            image_modal=ImageModalState(
                open=bool(modal.get("open", False)),
                node_id=modal.get("nodeId"),
                image_index=int(image_index) if image_index is not None else None,
            ),
            visible_relationships=tuple(str(r) for r in obj.get("visibleRelationships") or []),
            focus_mode=bool(obj.get("focusMode", False)),
        )

    @classmethod
    def coerce(cls, obj: Snapshot | dict[str, Any] | None) -> Snapshot:
        if isinstance(obj, Snapshot):
            return obj
        return cls.from_dict(obj)


@dataclass(frozen=True)
class Diff:
    nodes_to_expand: tuple[str, ...] = ()
    nodes_to_collapse: tuple[str, ...] = ()
    info_panel_change: dict[str, Any] | None = None
    image_modal_change: dict[str, Any] | None = None
    relationships_to_show: tuple[str, ...] = ()
    relationships_to_hide: tuple[str, ...] = ()
    focus_change: dict[str, Any] | None = None
    camera_change: dict[str, float] | None = None

    def is_empty(self) -> bool:
        return not (
            self.nodes_to_expand
            or self.nodes_to_collapse
            or self.relationships_to_show
            or self.relationships_to_hide
            or self.info_panel_change is not None
            or self.image_modal_change is not None
            or self.focus_change is not None
            or self.camera_change is not None
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "nodesToExpand": list(self.nodes_to_expand),
            "nodesToCollapse": list(self.nodes_to_collapse),
            "infoPanelChange": self.info_panel_change,
            "imageModalChange": self.image_modal_change,
            "relationshipsToShow": list(self.relationships_to_show),
            "relationshipsToHide": list(self.relationships_to_hide),
            "focusChange": self.focus_change,
            "cameraChange": self.camera_change,
        }


@dataclass(frozen=True)
class NodePath:
    to_expand: tuple[str, ...] = ()
    to_collapse: tuple[str, ...] = ()

    @property
    def distance(self) -> int:
        return len(self.to_expand) + len(self.to_collapse)

    def to_dict(self) -> dict[str, Any]:
        return {"toExpand": list(self.to_expand), "toCollapse": list(self.to_collapse), "distance": self.distance}


@dataclass(frozen=True)
class AnimationStep:
    type: StepType
    node_id: str
    duration_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "nodeId": self.node_id, "durationMs": self.duration_ms}


@dataclass(frozen=True)
class Action:
    type: ActionType
    timestamp: datetime
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "timestamp": _iso(self.timestamp), "data": dict(self.data)}


@dataclass(frozen=True)
class Slide:
    id: str
    action_type: str
    state: Snapshot
    action_data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "actionType": self.action_type,
            "actionData": dict(self.action_data),
            "timestamp": _iso(self.timestamp),
            "state": self.state.to_dict(),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> Slide:
        return cls(
            id=str(obj["id"]),
            action_type=str(obj["actionType"]),
            state=Snapshot.coerce(obj["state"]),
            action_data=dict(obj.get("actionData") or {}),
            timestamp=parse_timestamp(obj.get("timestamp")),
            description=str(obj.get("description") or ""),
        )


@dataclass
class Presentation:
    id: str
    name: str
    created: datetime = field(default_factory=utc_now)
    modified: datetime = field(default_factory=utc_now)
    slides: list[Slide] = field(default_factory=list)
    current_slide_index: int = 0

    def touch(self) -> None:
        self.modified = utc_now()

    def to_dict(self) -> dict[str, Any]:
        # `slides`, `created` and `modified` are what the project file stores under `presentation`.
        return {
            "id": self.id,
            "name": self.name,
            "slides": [s.to_dict() for s in self.slides],
            "created": _iso(self.created),
            "modified": _iso(self.modified),
            "currentSlideIndex": self.current_slide_index,
        }


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: list[str] = field(default_factory=list)
