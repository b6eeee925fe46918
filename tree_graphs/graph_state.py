"""
Graph state shared by the ingester, disclosure controller, layout engine,
interaction resolver and render adapter.

A single Graph instance is authoritative. Structural edits always touch the
node table and the link list together (``add_child`` / ``remove_ids``) so a
tick never observes a half-applied edit.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple

import networkx as nx

from .errors import UnknownNodeError

Point = Tuple[float, float]


# =========================================================================== #
# Source hierarchy snapshot
# =========================================================================== #

@dataclass(frozen=True)
class HierarchyNode:
    """
    Owned, read-only snapshot of one node of the caller's hierarchy.

    ``payload`` keeps every app-specific field of the source record other
    than ``id`` and ``children``; the engine never looks inside it.
    """

    id: Optional[str] = None
    children: Tuple["HierarchyNode", ...] = ()
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False)

    @property
    def child_count(self) -> int:
        return len(self.children)

    def walk(self) -> Iterator["HierarchyNode"]:
        """Pre-order iteration over this subtree."""
        stack = [self]
        while stack:
            h = stack.pop()
            yield h
            stack.extend(reversed(h.children))


# =========================================================================== #
# Visible graph
# =========================================================================== #

class DisclosureState(str, enum.Enum):
    EXPANDED = "expanded"
    COLLAPSED = "collapsed"


@dataclass
class GraphNode:
    id: str
    depth: int
    source_subtree: HierarchyNode
    disclosure_state: DisclosureState = DisclosureState.EXPANDED
    child_count: int = 0
    visible_children: List[str] = field(default_factory=list)

    # Owned by the layout engine, except while pinned
    position: Optional[Point] = None
    velocity: Point = (0.0, 0.0)
    pinned: Optional[Point] = None

    @property
    def collapsed(self) -> bool:
        return self.disclosure_state is DisclosureState.COLLAPSED


@dataclass(frozen=True)
class GraphLink:
    source_id: str
    target_id: str


@dataclass
class GraphStats:
    n_nodes: int
    n_links: int
    n_collapsed: int
    max_depth: int


class Graph:
    """
    Visible node/link set. Nodes are kept in insertion order, which is the
    order hit-testing and rendering walk them.
    """

    def __init__(self) -> None:
        self.nodes: Dict[str, GraphNode] = {}
        self.links: List[GraphLink] = []
        self.root_id: Optional[str] = None

        # Set by ingest(); expand() recomputes child states against it
        self.cluster_threshold: int = 3
        # Every id given explicitly anywhere in the source hierarchy
        self.reserved_ids: FrozenSet[str] = frozenset()
        # Full source hierarchy and the ids generated for its anonymous
        # nodes, keyed by snapshot identity (equal snapshots are distinct nodes)
        self.hierarchy: Optional[HierarchyNode] = None
        self.generated_ids: Dict[int, str] = {}

    # ------------------------------------------------------------------ #
    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __iter__(self) -> Iterator[GraphNode]:
        return iter(list(self.nodes.values()))

    @property
    def root(self) -> Optional[GraphNode]:
        if self.root_id is None:
            return None
        return self.nodes.get(self.root_id)

    def node(self, node_id: str) -> GraphNode:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise UnknownNodeError(node_id) from None

    # ------------------------------------------------------------------ #
    # Structural edits
    # ------------------------------------------------------------------ #
    def add_root(self, node: GraphNode) -> GraphNode:
        self.nodes[node.id] = node
        self.root_id = node.id
        return node

    def add_child(self, parent: GraphNode, child: GraphNode) -> GraphNode:
        """Insert ``child`` under ``parent``: node, link and visible_children together."""
        self.nodes[child.id] = child
        self.links.append(GraphLink(parent.id, child.id))
        parent.visible_children.append(child.id)
        return child

    def remove_ids(self, ids: Iterable[str]) -> None:
        """Drop every node in ``ids`` and every link touching one, in a single pass."""
        doomed = set(ids)
        if not doomed:
            return
        self.nodes = {nid: n for nid, n in self.nodes.items() if nid not in doomed}
        self.links = [
            l for l in self.links
            if l.source_id not in doomed and l.target_id not in doomed
        ]

    # ------------------------------------------------------------------ #
    # Diagnostics
    # ------------------------------------------------------------------ #
    def to_networkx(self) -> nx.DiGraph:
        G = nx.DiGraph()
        for n in self.nodes.values():
            G.add_node(n.id, depth=n.depth, state=n.disclosure_state.value)
        for l in self.links:
            G.add_edge(l.source_id, l.target_id)
        return G

    def check_invariants(self) -> List[str]:
        """
        Return a list of human-readable invariant violations (empty if consistent).
        """
        problems: List[str] = []

        for l in self.links:
            if l.source_id not in self.nodes or l.target_id not in self.nodes:
                problems.append(f"dangling link {l.source_id} -> {l.target_id}")
                continue
            s, t = self.nodes[l.source_id], self.nodes[l.target_id]
            if t.depth != s.depth + 1:
                problems.append(f"depth mismatch on {s.id}({s.depth}) -> {t.id}({t.depth})")

        for n in self.nodes.values():
            linked = [l.target_id for l in self.links if l.source_id == n.id]
            if n.collapsed and (n.visible_children or linked):
                problems.append(f"collapsed node {n.id} still has visible children")
            if sorted(linked) != sorted(n.visible_children):
                problems.append(f"visible_children of {n.id} disagree with links")

        if self.nodes:
            G = self.to_networkx()
            if not nx.is_arborescence(G):
                problems.append("visible graph is not a single tree")
            elif self.root_id is not None and G.in_degree(self.root_id) != 0:
                problems.append(f"root {self.root_id} has a parent")

        return problems

    def stats(self) -> GraphStats:
        return GraphStats(
            n_nodes=len(self.nodes),
            n_links=len(self.links),
            n_collapsed=sum(1 for n in self.nodes.values() if n.collapsed),
            max_depth=max((n.depth for n in self.nodes.values()), default=0),
        )
