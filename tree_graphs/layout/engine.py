"""
Layout engine: binds a ForceSimulation to the shared Graph.

The engine copies node positions into the simulation on ``reseed``, advances
it one tick per ``step``, and writes the results back onto the GraphNode
objects so the renderer and hit-tester read a single source of truth.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from ..events import Emit, log_event
from ..graph_state import Graph, Point
from ..presets import ForceConfig
from .forces import ForceSimulation

logger = logging.getLogger(__name__)

TickCallback = Callable[[], None]


class LayoutEngine:
    def __init__(
        self,
        graph: Graph,
        config: Optional[ForceConfig] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        emit: Optional[Emit] = None,
    ):
        self.graph = graph
        self.config = config or ForceConfig()
        self.config.validate()
        self.emit = emit
        self.sim = ForceSimulation(self.config, rng=rng)
        self.ticks = 0

        self._callbacks: List[TickCallback] = []
        self._index: Dict[str, int] = {}
        self._order: List[str] = []

        self.reseed()

    # ------------------------------------------------------------------ #
    # Properties
    # ------------------------------------------------------------------ #
    @property
    def alpha(self) -> float:
        return self.sim.alpha

    @property
    def alpha_target(self) -> float:
        return self.sim.alpha_target

    @property
    def is_settled(self) -> bool:
        floor = self.config.alpha_min
        return self.sim.alpha < floor and self.sim.alpha_target < floor

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #
    def reseed(self, graph: Optional[Graph] = None) -> None:
        """
        Re-register the full node and link set and reheat to alpha 1.0.

        Must follow every structural edit (ingest, expand, collapse).
        """
        if graph is not None:
            self.graph = graph

        nodes = list(self.graph.nodes.values())
        self._order = [n.id for n in nodes]
        self._index = {nid: i for i, nid in enumerate(self._order)}

        self.sim.set_nodes(
            [n.position for n in nodes],
            [n.velocity for n in nodes],
            [n.pinned for n in nodes],
        )

        pairs: List[Tuple[int, int]] = []
        for l in self.graph.links:
            si, ti = self._index.get(l.source_id), self._index.get(l.target_id)
            if si is None or ti is None:
                log_event(logger, logging.ERROR,
                          "[layout] link %s -> %s has a missing endpoint; skipped", self.emit,
                          l.source_id, l.target_id)
                continue
            pairs.append((si, ti))
        self.sim.set_links(pairs)

        self.sim.alpha = self.config.alpha_reheat
        self._write_back()

    def on_tick(self, callback: TickCallback) -> Callable[[], None]:
        """Register a per-tick callback; returns a function that removes it."""
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unsubscribe

    # ------------------------------------------------------------------ #
    # Pinning / energy
    # ------------------------------------------------------------------ #
    def set_pinned(self, node_id: str, position: Optional[Point]) -> None:
        """Freeze ``node_id`` at ``position``; ``None`` hands it back to the simulation."""
        node = self.graph.node(node_id)
        node.pinned = None if position is None else (float(position[0]), float(position[1]))
        if node.pinned is not None:
            node.position = node.pinned
            node.velocity = (0.0, 0.0)

        idx = self._index.get(node_id)
        if idx is None:
            # node was added since the last reseed; the next reseed picks up the pin
            return
        self.sim.pin(idx, node.pinned)

    def boost_energy(self, target: float) -> None:
        """
        Hold alpha near ``target`` (drag keep-alive); 0 lets it decay again.
        """
        self.sim.alpha_target = float(target)
        if target > self.sim.alpha:
            self.sim.alpha = float(target)

    # ------------------------------------------------------------------ #
    # Driving
    # ------------------------------------------------------------------ #
    def step(self) -> bool:
        """
        Advance one tick if the simulation is still live.

        Returns True if a tick was taken.
        """
        if self.is_settled:
            return False

        self.sim.tick()
        self.ticks += 1
        self._write_back()

        for cb in list(self._callbacks):
            try:
                cb()
            except Exception:
                logger.exception("[layout] tick callback failed")
        return True

    def run(self, max_ticks: Optional[int] = None) -> int:
        """
        Tick until settled or ``max_ticks`` is reached; returns ticks taken.

        While energy is held (``alpha_target`` above ``alpha_min``, i.e. a drag
        is in progress) the simulation never settles, so an uncapped run
        returns 0 at once and the host keeps driving ``step`` per frame.
        """
        if max_ticks is None and self.sim.alpha_target >= self.config.alpha_min:
            log_event(logger, logging.DEBUG,
                      "[layout] energy held at %.3f; uncapped run skipped", self.emit,
                      self.sim.alpha_target)
            return 0
        taken = 0
        while max_ticks is None or taken < max_ticks:
            if not self.step():
                break
            taken += 1
        return taken

    def _write_back(self) -> None:
        pos, vel, pinned = self.sim.pos, self.sim.vel, self.sim.pinned_mask
        for i, nid in enumerate(self._order):
            node = self.graph.nodes.get(nid)
            if node is None:
                continue
            if pinned[i]:
                node.position = node.pinned
                node.velocity = (0.0, 0.0)
            else:
                node.position = (float(pos[i, 0]), float(pos[i, 1]))
                node.velocity = (float(vel[i, 0]), float(vel[i, 1]))
