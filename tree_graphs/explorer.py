"""
TreeExplorer: the hub that wires the engine's data-flow loop.

    ingest -> LayoutEngine -> render_frame (every tick)
           ^                                  |
           |                                  v
    DisclosureController <- InteractionResolver <- pointer events

The host owns the clock: it calls ``step()`` / ``settle()`` (or drives
``layout.step`` from its own timer) and feeds pointer events in screen
coordinates. Everything else happens here.
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import numpy as np

from .disclosure import DisclosureController
from .events import DEFAULT_EMIT, Emit, emit_event, log_event
from .graph_state import HierarchyNode, Point
from .ingest import ingest
from .interaction import Gesture, InteractionResolver
from .layout.engine import LayoutEngine
from .presets import ExplorerConfig
from .render2d import IDENTITY, CameraTransform, Primitive, render_frame
from .surface import draw_primitives

logger = logging.getLogger(__name__)

LAYOUT_VERSION = "tree_graphs.layout.v1"

FrameCallback = Callable[[List[Primitive]], None]


class TreeExplorer:
    """
    High-level owner of one interactive tree graph:
      - ingestion
      - force layout
      - expand / collapse
      - pointer gestures
      - per-tick frames and one-shot exports
    """

    def __init__(
        self,
        data: Union[HierarchyNode, Mapping[str, Any]],
        *,
        config: Optional[ExplorerConfig] = None,
        emit: Emit = DEFAULT_EMIT,
    ) -> None:
        self.config = config or ExplorerConfig()
        self.config.validate()
        self.emit = emit

        rng = np.random.default_rng(self.config.seed)

        self.graph = ingest(data, self.config.engine.cluster_threshold, emit=emit)
        self.layout = LayoutEngine(self.graph, self.config.forces, rng=rng, emit=emit)
        self.disclosure = DisclosureController(
            self.graph, self.layout, self.config.engine, rng=rng, emit=emit,
        )
        self.resolver = InteractionResolver(
            self.graph, self.layout, self.disclosure, self.config.interaction, emit=emit,
        )

        self.transform: CameraTransform = IDENTITY
        self._frame_callbacks: List[FrameCallback] = []
        self.layout.on_tick(self._on_tick)

    # ------------------------------------------------------------------ #
    # Frames
    # ------------------------------------------------------------------ #
    def on_frame(self, callback: FrameCallback) -> Callable[[], None]:
        """Receive the primitives of every tick; returns an unsubscribe function."""
        self._frame_callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._frame_callbacks:
                self._frame_callbacks.remove(callback)

        return _unsubscribe

    def current_frame(self) -> List[Primitive]:
        return render_frame(self.graph, self.transform, self.config.style, emit=self.emit)

    def _on_tick(self) -> None:
        if not self._frame_callbacks:
            return
        frame = self.current_frame()
        for cb in list(self._frame_callbacks):
            cb(frame)

    # ------------------------------------------------------------------ #
    # Canvas / camera
    # ------------------------------------------------------------------ #
    def set_transform(self, tx: float = 0.0, ty: float = 0.0, k: float = 1.0) -> None:
        if k <= 0:
            raise ValueError(f"zoom factor must be > 0, got {k}")
        self.transform = CameraTransform(tx, ty, k)

    def resize(self, width: float, height: float) -> None:
        """Move the centering target to the new canvas midpoint and re-settle."""
        self.config.forces.width = float(width)
        self.config.forces.height = float(height)
        self.layout.reseed()

    # ------------------------------------------------------------------ #
    # Driving
    # ------------------------------------------------------------------ #
    def step(self) -> bool:
        return self.layout.step()

    def settle(self, max_ticks: Optional[int] = None) -> int:
        t0 = time.time()
        ticks = self.layout.run(max_ticks)
        log_event(logger, logging.DEBUG, "[explorer] %d ticks in %.3fs (alpha=%.4f, energy=%.3g)",
                  None, ticks, time.time() - t0, self.layout.alpha, self.layout.sim.energy())
        return ticks

    # ------------------------------------------------------------------ #
    # Pointer input (screen space)
    # ------------------------------------------------------------------ #
    def pointer_down(self, screen_point: Point) -> Optional[str]:
        return self.resolver.start(self.transform.invert(screen_point))

    def pointer_move(self, screen_point: Point) -> None:
        self.resolver.move(self.transform.invert(screen_point))

    def pointer_up(self, screen_point: Point) -> Gesture:
        # click vs drag is judged in screen pixels, whatever the zoom
        threshold = self.config.interaction.click_threshold / self.transform.k
        return self.resolver.end(self.transform.invert(screen_point), threshold)

    def click(self, node_id: str) -> List[str]:
        """Toggle ``node_id`` as if it had been clicked; returns ids added or removed."""
        return self.disclosure.toggle(node_id)

    # ------------------------------------------------------------------ #
    # Export
    # ------------------------------------------------------------------ #
    def snapshot(self) -> Dict[str, Any]:
        """JSON-serialisable view of the current layout."""
        stats = self.graph.stats()
        return {
            "version": LAYOUT_VERSION,
            "timestamp": time.time(),
            "root": self.graph.root_id,
            "alpha": self.layout.alpha,
            "energy": self.layout.sim.energy(),
            "ticks": self.layout.ticks,
            "stats": {
                "n_nodes": stats.n_nodes,
                "n_links": stats.n_links,
                "n_collapsed": stats.n_collapsed,
                "max_depth": stats.max_depth,
            },
            "nodes": [
                {
                    "id": n.id,
                    "depth": n.depth,
                    "state": n.disclosure_state.value,
                    "child_count": n.child_count,
                    "x": None if n.position is None else n.position[0],
                    "y": None if n.position is None else n.position[1],
                }
                for n in self.graph.nodes.values()
            ],
            "links": [
                {"source": l.source_id, "target": l.target_id}
                for l in self.graph.links
            ],
            "config": self.config.to_dict(),
        }

    def write_layout_json(self, path: str) -> str:
        parent = os.path.dirname(path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.snapshot(), f, indent=2)
        emit_event(self.emit, "artifact", {"kind": "layout-json", "path": path})
        return path

    def write_png(self, path: str, title: str = "") -> str:
        draw_primitives(
            self.current_frame(),
            path,
            width=self.config.forces.width,
            height=self.config.forces.height,
            style=self.config.style,
            title=title,
        )
        emit_event(self.emit, "artifact", {"kind": "frame-png", "path": path})
        return path
