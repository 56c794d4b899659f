from __future__ import annotations

import asyncio
import logging
from collections import deque
from typing import Any, Callable, Protocol

logger = logging.getLogger("mp.rendering")

FrameCallback = Callable[[float], None]

STYLE_LOG_SIZE = 256


class Renderable(Protocol):
    """Style/measure capability the sequencer animates through."""

    def measure(self, target: str) -> float | None: ...

    def apply_style(self, target: str, **styles: Any) -> None: ...

    def clear_style(self, target: str) -> None: ...

    def schedule_frame(self, callback: FrameCallback) -> Any: ...


class HeadlessRenderer:
    """
    In-process Renderable: keeps inline styles in a dict and ticks frames on the
    running asyncio loop. Heights are derived from the bound view's node tree
    (one row per visible descendant). `style_log` keeps only the most recent
    `style_log_size` style writes.
    """

    def __init__(
        self,
        *,
        row_height_px: float = 28.0,
        frame_interval_ms: int = 16,
        style_log_size: int = STYLE_LOG_SIZE,
    ) -> None:
        self.row_height_px = float(row_height_px)
        self.frame_interval_ms = max(0, int(frame_interval_ms))
        self.styles: dict[str, dict[str, Any]] = {}
        self.style_log: deque[tuple[str, dict[str, Any]]] = deque(maxlen=max(0, int(style_log_size)))
        self.frames_scheduled = 0
        self._view: Any | None = None

    def bind(self, view: Any) -> None:
        self._view = view

    def measure(self, target: str) -> float | None:
        # Natural height of a node's children container; None when there is no container.
        view = self._view
        if view is None:
            return None
        node = view.get_node(target)
        if node is None or not node.children:
            return None
        return self.row_height_px * self._rows_below(target)

    def _rows_below(self, node_id: str) -> int:
        view = self._view
        node = view.get_node(node_id)
        if node is None:
            return 0
        rows = 0
        for child_id in node.children:
            rows += 1
            if view.is_expanded(child_id):
                rows += self._rows_below(child_id)
        return rows

    def apply_style(self, target: str, **styles: Any) -> None:
        self.styles.setdefault(target, {}).update(styles)
        self.style_log.append((target, dict(styles)))

    def clear_style(self, target: str) -> None:
        self.styles.pop(target, None)

    def schedule_frame(self, callback: FrameCallback) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        self.frames_scheduled += 1
        return loop.call_later(self.frame_interval_ms / 1000.0, lambda: callback(loop.time() * 1000.0))
