"""
Tree ingestion: hierarchy snapshot -> initial visible graph.

The walk is depth-first from the root. A node with more children than the
cluster threshold is created collapsed and the walk does not descend into
it; its children stay inside its ``source_subtree`` until expanded.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, FrozenSet, Mapping, Optional, Set, Union

from .errors import ConfigError, DuplicateNodeError, IngestionError
from .events import Emit, emit_event, log_event
from .graph_state import DisclosureState, Graph, GraphNode, HierarchyNode
from .loader import to_hierarchy

logger = logging.getLogger(__name__)


# ============================================================================ #
# Helpers shared with the disclosure controller
# ============================================================================ #

def collect_explicit_ids(root: HierarchyNode) -> Set[str]:
    """All ids given in the source data; raises on the first duplicate."""
    seen: Set[str] = set()
    for h in root.walk():
        if h.id is None:
            continue
        if h.id in seen:
            raise DuplicateNodeError(h.id)
        seen.add(h.id)
    return seen


def assign_generated_ids(root: HierarchyNode, reserved: FrozenSet[str]) -> Dict[int, str]:
    """
    One ``node-<ordinal>`` id per anonymous node of the whole hierarchy.

    The ordinal is the node's pre-order position, bumped past any id the
    source data uses. Keys are ``id(snapshot)``: the map is built once, so a
    node keeps its id across every collapse and re-expand.
    """
    out: Dict[int, str] = {}
    taken: Set[str] = set(reserved)
    for ordinal, h in enumerate(root.walk()):
        if h.id is not None:
            continue
        while f"node-{ordinal}" in taken:
            ordinal += 1
        out[id(h)] = f"node-{ordinal}"
        taken.add(out[id(h)])
    return out


def allocate_id(graph: Graph, h: HierarchyNode) -> str:
    """Source id verbatim, or the id generated for ``h`` at ingestion."""
    if h.id is not None:
        return h.id
    try:
        return graph.generated_ids[id(h)]
    except KeyError:
        raise IngestionError("hierarchy node does not belong to this graph's source") from None


def make_node(
    graph: Graph,
    h: HierarchyNode,
    depth: int,
    cluster_threshold: int,
) -> GraphNode:
    node_id = allocate_id(graph, h)
    if node_id in graph.nodes:
        raise DuplicateNodeError(node_id)
    collapsed = h.child_count > cluster_threshold
    return GraphNode(
        id=node_id,
        depth=depth,
        source_subtree=h,
        disclosure_state=DisclosureState.COLLAPSED if collapsed else DisclosureState.EXPANDED,
        child_count=h.child_count,
    )


# ============================================================================ #
# Public entry point
# ============================================================================ #

def ingest(
    root: Union[HierarchyNode, Mapping[str, Any]],
    cluster_threshold: int = 3,
    *,
    emit: Optional[Emit] = None,
) -> Graph:
    """
    Build the initial visible graph from a hierarchy.

    Parameters
    ----------
    root : HierarchyNode or mapping
        Root of the hierarchy; mappings are normalised via ``to_hierarchy``.
    cluster_threshold : int
        Nodes with more children than this start collapsed.
    emit : callable, optional
        Event emitter with signature ``emit(kind, payload)``.

    Returns
    -------
    Graph
        Nodes have no positions yet; hand it straight to the layout engine.

    Raises
    ------
    DuplicateNodeError
        If two nodes anywhere in the hierarchy share an id.
    """
    if cluster_threshold < 0:
        raise ConfigError(f"cluster_threshold must be >= 0, got {cluster_threshold}")

    hroot = to_hierarchy(root)

    graph = Graph()
    graph.cluster_threshold = cluster_threshold
    graph.reserved_ids = frozenset(collect_explicit_ids(hroot))
    graph.hierarchy = hroot
    graph.generated_ids = assign_generated_ids(hroot, graph.reserved_ids)

    root_node = graph.add_root(make_node(graph, hroot, 0, cluster_threshold))

    # (parent GraphNode, HierarchyNode) pairs; reversed pushes keep pre-order
    stack = []
    if not root_node.collapsed:
        stack.extend((root_node, c) for c in reversed(hroot.children))

    while stack:
        parent, h = stack.pop()
        child = graph.add_child(parent, make_node(graph, h, parent.depth + 1, cluster_threshold))
        if not child.collapsed:
            stack.extend((child, c) for c in reversed(h.children))

    stats = graph.stats()
    log_event(
        logger, logging.INFO,
        "[ingest] Built graph: %d nodes, %d links, %d collapsed", emit,
        stats.n_nodes, stats.n_links, stats.n_collapsed,
    )
    emit_event(emit, "ingest", {
        "root": graph.root_id,
        "n_nodes": stats.n_nodes,
        "n_links": stats.n_links,
        "n_collapsed": stats.n_collapsed,
    })
    return graph
