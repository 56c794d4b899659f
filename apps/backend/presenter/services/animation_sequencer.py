from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Mapping
from enum import Enum
from functools import partial
from typing import Any, Awaitable, Callable, Iterable

from ..config import AnimationTimings
from ..models import AnimationStep, Diff, NodePath, Snapshot, StepType

logger = logging.getLogger("mp.animation_sequencer")

AnimationFn = Callable[[], Awaitable[Any]]

UNKNOWN_LEVEL = 999
EASING = "cubic-bezier(0.4, 0, 0.2, 1)"


class SequencerState(str, Enum):
    IDLE = "idle"
    DRAINING = "draining"
    PAUSED = "paused"


def ease_in_out_cubic(p: float) -> float:
    if p < 0.5:
        return 4 * p * p * p
    return 1 - ((-2 * p + 2) ** 3) / 2


def _pan_xy(pan: Any) -> tuple[float, float]:
    if isinstance(pan, Mapping):
        return float(pan.get("x", 0.0)), float(pan.get("y", 0.0))
    x, y = pan
    return float(x), float(y)


def _set_member(container: Any, item: str, present: bool) -> None:
    # visible_relationships may be a list (ordered) or a set.
    if present:
        if item in container:
            return
        if isinstance(container, set):
            container.add(item)
        else:
            container.append(item)
    elif item in container:
        container.remove(item)


class AnimationSequencer:
    """
    Executes visual transitions between two mindmap states.

    Every unit of work goes through one FIFO queue drained by a single asyncio
    task. A failing step is logged and skipped. `pause()` suspends the queue
    after the current step until `resume()`. `clear_queue()` drops pending work
    and cancels the step in flight.
    """

    def __init__(self, timings: AnimationTimings | None = None) -> None:
        self.timings = timings or AnimationTimings()
        self._queue: deque[AnimationFn] = deque()
        self._drain_task: asyncio.Task | None = None
        self._retiring: set[asyncio.Task] = set()
        self._pause_requested = False
        self._resume_future: asyncio.Future | None = None
        self._pending: list[asyncio.Future] = []

    # ---- state ----

    @property
    def is_animating(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    @property
    def is_paused(self) -> bool:
        return self._resume_future is not None and not self._resume_future.done()

    @property
    def state(self) -> SequencerState:
        if self.is_paused:
            return SequencerState.PAUSED
        if self.is_animating:
            return SequencerState.DRAINING
        return SequencerState.IDLE

    @property
    def queue_length(self) -> int:
        return len(self._queue)

    # ---- planning ----

    def calculate_node_path(self, from_state: Snapshot | dict, to_state: Snapshot | dict) -> NodePath:
        a = Snapshot.coerce(from_state)
        b = Snapshot.coerce(to_state)
        before = set(a.expanded_nodes)
        after = set(b.expanded_nodes)
        return NodePath(
            to_expand=tuple(n for n in b.expanded_nodes if n not in before),
            to_collapse=tuple(n for n in a.expanded_nodes if n not in after),
        )

    def order_nodes_by_hierarchy(self, view: Any, node_ids: Iterable[str]) -> list[str]:
        def level(node_id: str) -> int:
            node = view.get_node(node_id) if view is not None else None
            return int(node.level) if node is not None else UNKNOWN_LEVEL

        # sorted() is stable: equal levels keep their input order.
        return sorted(node_ids, key=level)

    def generate_intermediate_steps(
        self,
        path: NodePath,
        view: Any = None,
        duration_ms: int | None = None,
    ) -> list[AnimationStep]:
        if path.distance <= 2:
            return []
        d = self.timings.step_ms if duration_ms is None else duration_ms
        steps = [AnimationStep(StepType.COLLAPSE, nid, d) for nid in path.to_collapse]
        steps += [AnimationStep(StepType.EXPAND, nid, d) for nid in self.order_nodes_by_hierarchy(view, path.to_expand)]
        return steps

    # ---- primitives ----

    async def _next_frame(self, renderer: Any) -> float:
        fut = asyncio.get_running_loop().create_future()

        def tick(ts: float) -> None:
            if not fut.done():
                fut.set_result(ts)

        renderer.schedule_frame(tick)
        return await fut

    async def animate_node_expansion(self, view: Any, node_id: str, duration_ms: int | None = None) -> None:
        d = self.timings.step_ms if duration_ms is None else duration_ms
        if view.get_node(node_id) is None or node_id in view.expanded_nodes:
            return
        renderer = view.renderer
        if renderer.measure(node_id) is None:
            view.toggle_children(node_id)
            return

        renderer.apply_style(
            node_id,
            height=0.0,
            opacity=0.0,
            overflow="hidden",
            transition=f"height {d}ms {EASING}, opacity {d}ms {EASING}",
        )
        view.toggle_children(node_id)
        try:
            # Natural height is only known once the expanded content has been laid out.
            await self._next_frame(renderer)
            target = renderer.measure(node_id) or 0.0
            renderer.apply_style(node_id, height=target, opacity=1.0)
            await asyncio.sleep(d / 1000.0)
        finally:
            renderer.clear_style(node_id)

    async def animate_node_collapse(self, view: Any, node_id: str, duration_ms: int | None = None) -> None:
        d = self.timings.step_ms if duration_ms is None else duration_ms
        if view.get_node(node_id) is None or node_id not in view.expanded_nodes:
            return
        renderer = view.renderer
        current = renderer.measure(node_id)
        if current is None:
            view.toggle_children(node_id)
            return

        renderer.apply_style(
            node_id,
            height=current,
            overflow="hidden",
            transition=f"height {d}ms {EASING}, opacity {d}ms {EASING}",
        )
        try:
            await self._next_frame(renderer)
            renderer.apply_style(node_id, height=0.0, opacity=0.0)
            await asyncio.sleep(d / 1000.0)
            view.toggle_children(node_id)
        finally:
            renderer.clear_style(node_id)

    async def animate_zoom_pan(
        self,
        view: Any,
        target_zoom: float,
        target_pan: Any,
        duration_ms: int | None = None,
    ) -> None:
        d = self.timings.camera_ms if duration_ms is None else duration_ms
        cam = view.camera
        start_zoom, start_x, start_y = float(cam.zoom), float(cam.x), float(cam.y)
        target_x, target_y = _pan_xy(target_pan)
        loop = asyncio.get_running_loop()
        start = loop.time() * 1000.0
        while True:
            await self._next_frame(view.renderer)
            now = loop.time() * 1000.0
            progress = 1.0 if d <= 0 else min((now - start) / d, 1.0)
            if progress >= 1.0:
                cam.zoom, cam.x, cam.y = float(target_zoom), target_x, target_y
                view.update_transform()
                return
            eased = ease_in_out_cubic(progress)
            cam.zoom = start_zoom + (float(target_zoom) - start_zoom) * eased
            cam.x = start_x + (target_x - start_x) * eased
            cam.y = start_y + (target_y - start_y) * eased
            view.update_transform()

    async def animate_info_panel(self, view: Any, node_id: str | None, action: str, duration_ms: int | None = None) -> None:
        d = self.timings.info_panel_ms if duration_ms is None else duration_ms
        renderer = view.renderer
        panel = view.info_panel
        if action in ("show", "open"):
            if node_id is None or view.get_node(node_id) is None:
                return
            target = f"info-panel:{node_id}"
            renderer.apply_style(
                target,
                opacity=0.0,
                transform="translateY(-10px)",
                transition=f"opacity {d}ms {EASING}, transform {d}ms {EASING}",
            )
            panel.open = True
            panel.node_id = node_id
            try:
                await self._next_frame(renderer)
                renderer.apply_style(target, opacity=1.0, transform="translateY(0)")
                await asyncio.sleep(d / 1000.0)
            finally:
                renderer.clear_style(target)
        elif action in ("hide", "close"):
            if not panel.open:
                return
            target = f"info-panel:{panel.node_id}"
            renderer.apply_style(
                target,
                opacity=0.0,
                transform="translateY(-10px)",
                transition=f"opacity {d}ms {EASING}, transform {d}ms {EASING}",
            )
            try:
                await asyncio.sleep(d / 1000.0)
                panel.open = False
                panel.node_id = None
            finally:
                renderer.clear_style(target)

    async def animate_image_modal(
        self,
        view: Any,
        node_id: str | None,
        image_index: int | None,
        action: str,
        duration_ms: int | None = None,
    ) -> None:
        d = self.timings.image_modal_ms if duration_ms is None else duration_ms
        renderer = view.renderer
        modal = view.image_modal
        target = "image-modal"
        if action == "open":
            if node_id is None or view.get_node(node_id) is None:
                return
            # Info panel and image modal are never shown together.
            if view.info_panel.open:
                await self.animate_info_panel(view, view.info_panel.node_id, "hide")
            renderer.apply_style(target, opacity=0.0, transition=f"opacity {d}ms {EASING}")
            modal.open = True
            modal.node_id = node_id
            modal.image_index = image_index
            try:
                await self._next_frame(renderer)
                renderer.apply_style(target, opacity=1.0)
                await asyncio.sleep(d / 1000.0)
            finally:
                renderer.clear_style(target)
        elif action == "close":
            if not modal.open:
                return
            renderer.apply_style(target, opacity=0.0, transition=f"opacity {d}ms {EASING}")
            try:
                await asyncio.sleep(d / 1000.0)
                modal.open = False
                modal.node_id = None
                modal.image_index = None
            finally:
                renderer.clear_style(target)

    async def animate_relationship(self, view: Any, rel_id: str, action: str, duration_ms: int | None = None) -> None:
        d = self.timings.relationship_ms if duration_ms is None else duration_ms
        renderer = view.renderer
        target = f"relationship:{rel_id}"
        if action == "show":
            # Line drawing: dash offset runs from full length (hidden) to 0.
            renderer.apply_style(target, stroke_dashoffset=1.0, opacity=1.0, transition=f"stroke-dashoffset {d}ms {EASING}")
            _set_member(view.visible_relationships, rel_id, True)
            try:
                await self._next_frame(renderer)
                renderer.apply_style(target, stroke_dashoffset=0.0)
                await asyncio.sleep(d / 1000.0)
            finally:
                renderer.clear_style(target)
        elif action == "hide":
            renderer.apply_style(target, stroke_dashoffset=0.0, transition=f"stroke-dashoffset {d}ms {EASING}")
            try:
                await self._next_frame(renderer)
                renderer.apply_style(target, stroke_dashoffset=1.0)
                await asyncio.sleep(d / 1000.0)
                _set_member(view.visible_relationships, rel_id, False)
            finally:
                renderer.clear_style(target)

    async def animate_focus_mode(self, view: Any, node_id: str | None, action: str, duration_ms: int | None = None) -> None:
        d = self.timings.focus_ms if duration_ms is None else duration_ms
        renderer = view.renderer
        node_ids = list(getattr(view, "nodes", {}) or {})
        if action == "activate":
            if node_id is None or view.get_node(node_id) is None:
                return
            for nid in node_ids:
                renderer.apply_style(
                    f"node:{nid}",
                    opacity=1.0 if nid == node_id else 0.3,
                    transition=f"opacity {d}ms {EASING}",
                )
            view.focus_mode = True
            view.focused_node = node_id
            await asyncio.sleep(d / 1000.0)
        elif action == "deactivate":
            for nid in node_ids:
                renderer.apply_style(f"node:{nid}", opacity=1.0, transition=f"opacity {d}ms {EASING}")
            try:
                await asyncio.sleep(d / 1000.0)
                view.focus_mode = False
                view.focused_node = None
            finally:
                for nid in node_ids:
                    renderer.clear_style(f"node:{nid}")

    # ---- queue ----

    def queue_animation(self, fn: AnimationFn) -> None:
        self._queue.append(fn)
        if not self.is_animating:
            self._retiring = {t for t in self._retiring if not t.done()}
            retiring = set(self._retiring)
            self._drain_task = asyncio.get_running_loop().create_task(self._drain_after(retiring))

    async def _drain_after(self, retiring: set[asyncio.Task]) -> None:
        # A drain task cancelled by clear_queue() may still be running its cleanup.
        if retiring:
            await asyncio.wait(retiring)
        await self.process_queue()

    async def process_queue(self) -> None:
        while self._queue:
            fn = self._queue.popleft()
            try:
                await fn()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("animation step failed; continuing with the next one")
            if self._pause_requested:
                await self.wait_for_user_input()

    def pause(self) -> None:
        """Suspend the queue after the step currently running, or after the next one when idle."""
        self._pause_requested = True

    async def wait_for_user_input(self) -> None:
        if self._resume_future is None or self._resume_future.done():
            self._resume_future = asyncio.get_running_loop().create_future()
        self._pause_requested = True
        await self._resume_future

    def resume(self) -> bool:
        fut = self._resume_future
        if fut is None or fut.done():
            return False
        self._pause_requested = False
        self._resume_future = None
        fut.set_result(None)
        return True

    def clear_queue(self) -> None:
        dropped = len(self._queue)
        self._queue.clear()
        task = self._drain_task
        if task is not None and not task.done():
            try:
                current = asyncio.current_task()
            except RuntimeError:
                current = None
            if task is not current:
                task.cancel()
                self._retiring.add(task)
                self._drain_task = None
        self._pause_requested = False
        fut, self._resume_future = self._resume_future, None
        if fut is not None and not fut.done():
            fut.set_result(None)
        for done in self._pending:
            if not done.done():
                done.set_result(False)
        self._pending.clear()
        if dropped:
            logger.info("cleared animation queue (%d pending steps dropped)", dropped)

    async def _run_queued(self, fns: list[AnimationFn]) -> bool:
        done = asyncio.get_running_loop().create_future()
        self._pending.append(done)

        async def settle() -> None:
            if not done.done():
                done.set_result(True)

        for fn in fns:
            self.queue_animation(fn)
        self.queue_animation(settle)
        try:
            return await done
        finally:
            if done in self._pending:
                self._pending.remove(done)

    # ---- orchestration ----

    async def _run_step(self, view: Any, step: AnimationStep) -> None:
        if step.type is StepType.EXPAND:
            await self.animate_node_expansion(view, step.node_id, step.duration_ms)
        else:
            await self.animate_node_collapse(view, step.node_id, step.duration_ms)

    async def animate_transition(
        self,
        view: Any,
        from_state: Snapshot | dict,
        to_state: Snapshot | dict,
        wait_for_input: bool = False,
    ) -> bool:
        """
        Move `view` from `from_state` to `to_state`: node changes, then one
        camera tween. Pending work (including a transition waiting at a pause
        gate) is cleared first. Returns False if a later `clear_queue()`
        cancelled this transition.
        """
        self.clear_queue()
        target = Snapshot.coerce(to_state)
        path = self.calculate_node_path(from_state, target)
        steps = self.generate_intermediate_steps(path, view)

        fns: list[AnimationFn] = []
        if not steps:
            fns += [partial(self.animate_node_collapse, view, nid) for nid in path.to_collapse]
            fns += [partial(self.animate_node_expansion, view, nid) for nid in path.to_expand]
        else:
            last = len(steps) - 1
            for i, step in enumerate(steps):
                fns.append(partial(self._run_step, view, step))
                if wait_for_input and i < last:
                    fns.append(self.wait_for_user_input)
        cam = target.camera
        fns.append(partial(self.animate_zoom_pan, view, cam.zoom, {"x": cam.x, "y": cam.y}))

        logger.debug(
            "transition: %d collapse, %d expand, %d stepped, wait_for_input=%s",
            len(path.to_collapse),
            len(path.to_expand),
            len(steps),
            wait_for_input,
        )
        return await self._run_queued(fns)

    async def apply_overlay_changes(self, view: Any, diff: Diff) -> bool:
        """Animate a diff's panel, modal, focus and relationship changes."""
        fns: list[AnimationFn] = []
        fns += [partial(self.animate_relationship, view, rid, "hide") for rid in diff.relationships_to_hide]

        info = diff.info_panel_change
        modal = diff.image_modal_change
        if info is not None and info["action"] == "close":
            fns.append(partial(self.animate_info_panel, view, info["nodeId"], "hide"))
        if modal is not None and modal["action"] == "close":
            fns.append(partial(self.animate_image_modal, view, modal["nodeId"], modal["imageIndex"], "close"))

        focus = diff.focus_change
        if focus is not None:
            if focus["enabled"] and focus["nodeId"] is not None:
                if getattr(view, "focus_mode", False):
                    fns.append(partial(self.animate_focus_mode, view, None, "deactivate"))
                fns.append(partial(self.animate_focus_mode, view, focus["nodeId"], "activate"))
            elif not focus["enabled"]:
                fns.append(partial(self.animate_focus_mode, view, None, "deactivate"))

        if info is not None and info["action"] == "open":
            fns.append(partial(self.animate_info_panel, view, info["nodeId"], "show"))
        if modal is not None and modal["action"] == "open":
            fns.append(partial(self.animate_image_modal, view, modal["nodeId"], modal["imageIndex"], "open"))

        fns += [partial(self.animate_relationship, view, rid, "show") for rid in diff.relationships_to_show]
        if not fns:
            return True
        return await self._run_queued(fns)
