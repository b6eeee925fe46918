"""
Expand / collapse state machine.

Each visible node is either EXPANDED (its children are materialised as graph
nodes) or COLLAPSED (its children live only in ``source_subtree`` and the
node shows a child-count badge). Transitions mutate the shared Graph in
place and then reseed the layout engine, so the next tick always sees a
complete edit.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Set

import numpy as np

from .errors import DuplicateNodeError
from .events import Emit, emit_event, log_event
from .graph_state import DisclosureState, Graph, GraphNode, Point
from .ingest import make_node
from .presets import EngineConfig

logger = logging.getLogger(__name__)


def descendant_ids(graph: Graph, node: GraphNode) -> List[str]:
    """
    Transitive closure of currently visible descendants, depth-first.

    Iterative so deep trees cannot hit the recursion limit.
    """
    out: List[str] = []
    seen: Set[str] = set()
    stack = list(reversed(node.visible_children))
    while stack:
        nid = stack.pop()
        if nid in seen:
            continue
        seen.add(nid)
        out.append(nid)
        child = graph.nodes.get(nid)
        if child is not None:
            stack.extend(reversed(child.visible_children))
    return out


def ring_position(
    center: Point,
    index: int,
    count: int,
    radius: float,
    jitter: float,
    rng: np.random.Generator,
) -> Point:
    """
    Slot ``index`` of ``count`` on a circle around ``center``.

    Each axis is scaled independently by a factor in [1 - jitter, 1 + jitter]
    so freshly expanded siblings never sit exactly on top of each other.
    """
    angle = index * (2.0 * math.pi / count)
    fx = 1.0 - jitter + rng.random() * 2.0 * jitter
    fy = 1.0 - jitter + rng.random() * 2.0 * jitter
    return (
        float(center[0] + radius * math.cos(angle) * fx),
        float(center[1] + radius * math.sin(angle) * fy),
    )


class DisclosureController:
    """
    Owns the expand/collapse transitions for one Graph.

    ``layout`` is anything with a ``reseed()`` method (normally a
    LayoutEngine); when it is None the graph is edited without reseeding.
    """

    def __init__(
        self,
        graph: Graph,
        layout=None,
        config: Optional[EngineConfig] = None,
        *,
        rng: Optional[np.random.Generator] = None,
        emit: Optional[Emit] = None,
    ):
        self.graph = graph
        self.layout = layout
        self.config = config or EngineConfig(cluster_threshold=graph.cluster_threshold)
        self.config.validate()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.emit = emit

    # ------------------------------------------------------------------ #
    def _reseed(self) -> None:
        if self.layout is not None:
            self.layout.reseed()

    def _anchor(self, node: GraphNode) -> Point:
        if node.position is not None:
            return node.position
        center = getattr(getattr(self.layout, "config", None), "center", None)
        return tuple(center) if center is not None else (0.0, 0.0)

    # ------------------------------------------------------------------ #
    # Transitions
    # ------------------------------------------------------------------ #
    def expand(self, node_id: str) -> List[str]:
        """
        Materialise the stored children of a collapsed node.

        Returns the ids of the nodes added (empty for a no-op).
        """
        node = self.graph.node(node_id)
        if not node.collapsed:
            return []

        children = node.source_subtree.children
        if not children:
            log_event(logger, logging.WARNING, "[disclosure] %s has no children to expand",
                      self.emit, node_id)
            return []

        clash = [
            h.id for h in node.source_subtree.walk()
            if h is not node.source_subtree and h.id is not None and h.id in self.graph.nodes
        ]
        if clash:
            raise DuplicateNodeError(clash[0])

        # Children that come out expanded get their own children materialised
        # too, the same way ingestion treats an expanded node.
        added: List[str] = []
        stack = [node]
        while stack:
            parent = stack.pop()
            hkids = parent.source_subtree.children
            center = self._anchor(parent)
            for index, h in enumerate(hkids):
                child = make_node(self.graph, h, parent.depth + 1, self.config.cluster_threshold)
                child.position = ring_position(
                    center, index, len(hkids),
                    self.config.expand_radius, self.config.expand_jitter, self.rng,
                )
                self.graph.add_child(parent, child)
                added.append(child.id)
                if not child.collapsed and h.children:
                    stack.append(child)

        node.disclosure_state = DisclosureState.EXPANDED

        log_event(logger, logging.DEBUG, "[disclosure] expanded %s (+%d nodes)",
                  None, node_id, len(added))
        emit_event(self.emit, "disclosure", {"action": "expand", "node": node_id, "added": added})
        self._reseed()
        return added

    def collapse(self, node_id: str) -> List[str]:
        """
        Remove every visible descendant of an expanded node.

        Returns the ids of the nodes removed (empty for a no-op).
        """
        node = self.graph.node(node_id)
        if node.collapsed or not node.visible_children:
            return []

        doomed = descendant_ids(self.graph, node)
        self.graph.remove_ids(doomed)
        node.visible_children = []
        node.disclosure_state = DisclosureState.COLLAPSED

        log_event(logger, logging.DEBUG, "[disclosure] collapsed %s (-%d nodes)",
                  None, node_id, len(doomed))
        emit_event(self.emit, "disclosure", {"action": "collapse", "node": node_id, "removed": doomed})
        self._reseed()
        return doomed

    def toggle(self, node_id: str) -> List[str]:
        """Expand a collapsed node, collapse an expanded one; leaves are left alone."""
        if self.graph.node(node_id).collapsed:
            return self.expand(node_id)
        return self.collapse(node_id)
