from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from .rendering import HeadlessRenderer, Renderable

logger = logging.getLogger("mp.mindmap_view")


@dataclass
class Camera:
    x: float = 0.0
    y: float = 0.0
    zoom: float = 1.0


@dataclass
class InfoPanel:
    open: bool = False
    node_id: str | None = None


@dataclass
class ImageModal:
    open: bool = False
    node_id: str | None = None
    image_index: int | None = None


@dataclass
class MindmapNode:
    id: str
    text: str = ""
    level: int = 0
    parent_id: str | None = None
    children: list[str] = field(default_factory=list)
    image_count: int = 0


class MindmapView:
    """
    Minimal live view of a mindmap: node tree, camera, panels and the set of
    expanded nodes. Mutated in place by user interactions and by playback.
    """

    def __init__(self, nodes: Iterable[MindmapNode] = (), *, renderer: Renderable | None = None) -> None:
        self.nodes: dict[str, MindmapNode] = {n.id: n for n in nodes}
        self.camera = Camera()
        self.expanded_nodes: list[str] = []
        self.focused_node: str | None = None
        self.focus_mode = False
        self.info_panel = InfoPanel()
        self.image_modal = ImageModal()
        self.visible_relationships: list[str] = []
        self.transform = ""
        self.transform_updates = 0
        self.renderer = renderer if renderer is not None else HeadlessRenderer()
        bind = getattr(self.renderer, "bind", None)
        if callable(bind):
            bind(self)

    @classmethod
    def from_payload(cls, raw_nodes: list[dict[str, Any]], *, renderer: Renderable | None = None) -> MindmapView:
        """
        Build from project `nodes`: dicts with id, text and either `level` or
        `parentId`. Children lists are derived from parent links when absent.
        """
        nodes: dict[str, MindmapNode] = {}
        for raw in raw_nodes or []:
            if not isinstance(raw, dict):
                continue
            nid = str(raw.get("id") or "").strip()
            if not nid:
                continue
            parent = raw.get("parentId")
            images = raw.get("images")
            nodes[nid] = MindmapNode(
                id=nid,
                text=str(raw.get("text") or raw.get("title") or nid),
                level=int(raw.get("level", 0) or 0),
                parent_id=str(parent) if parent else None,
                children=[str(c) for c in raw.get("children") or []],
                image_count=len(images) if isinstance(images, list) else 0,
            )

        for node in nodes.values():
            parent = nodes.get(node.parent_id) if node.parent_id else None
            if parent is not None and node.id not in parent.children:
                parent.children.append(node.id)

        # Levels from parent links win over a stored level when both exist.
        levels: dict[str, int] = {}
        for node in nodes.values():
            cur, hops, seen = node, 0, {node.id}
            while cur.parent_id in nodes and cur.parent_id not in seen:
                cur = nodes[cur.parent_id]
                seen.add(cur.id)
                hops += 1
            levels[node.id] = cur.level + hops
        for nid, level in levels.items():
            nodes[nid].level = level

        return cls(nodes.values(), renderer=renderer)

    def get_node(self, node_id: str) -> MindmapNode | None:
        return self.nodes.get(node_id)

    def is_expanded(self, node_id: str) -> bool:
        return node_id in self.expanded_nodes

    def toggle_children(self, node_id: str) -> bool:
        if node_id not in self.nodes:
            logger.warning("toggle_children: unknown node %r", node_id)
            return False
        if node_id in self.expanded_nodes:
            self.expanded_nodes.remove(node_id)
            return False
        self.expanded_nodes.append(node_id)
        return True

    def update_transform(self) -> None:
        self.transform = f"translate({self.camera.x:.2f}px, {self.camera.y:.2f}px) scale({self.camera.zoom:.4f})"
        self.transform_updates += 1

    def set_camera(self, x: float, y: float, zoom: float) -> None:
        self.camera.x = float(x)
        self.camera.y = float(y)
        self.camera.zoom = float(zoom)
        self.update_transform()

    def show_info_panel(self, node_id: str | None) -> None:
        self.info_panel.open = node_id is not None
        self.info_panel.node_id = node_id

    def show_image(self, node_id: str | None, image_index: int | None = None) -> None:
        if node_id is None:
            self.image_modal.open = False
            self.image_modal.node_id = None
            self.image_modal.image_index = None
            return
        self.image_modal.open = True
        self.image_modal.node_id = node_id
        self.image_modal.image_index = image_index

    def set_relationship_visible(self, rel_id: str, visible: bool) -> None:
        if visible and rel_id not in self.visible_relationships:
            self.visible_relationships.append(rel_id)
        elif not visible and rel_id in self.visible_relationships:
            self.visible_relationships.remove(rel_id)

    def set_focus(self, node_id: str | None) -> None:
        self.focus_mode = node_id is not None
        self.focused_node = node_id
