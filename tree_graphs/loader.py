"""
Hierarchy loaders.

Responsibilities:
  - Normalise a caller-supplied nested mapping into an owned HierarchyNode tree
  - Read the nested form from a JSON file
  - Read a flat parent/child table (CSV or DataFrame) with pandas and fold it
    into the nested form

The engine only ever sees HierarchyNode snapshots, so later mutation of the
caller's dicts or DataFrame cannot leak into a running graph.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Union

import pandas as pd

from .errors import DuplicateNodeError, IngestionError
from .events import Emit, log_event
from .graph_state import HierarchyNode

logger = logging.getLogger(__name__)


# ============================================================================ #
# Nested mappings
# ============================================================================ #

def _clean_id(raw: Any) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, float) and pd.isna(raw):
        return None
    s = str(raw)
    return s or None


def _is_missing(v: Any) -> bool:
    return v is None or (pd.api.types.is_scalar(v) and pd.isna(v))


def to_hierarchy(data: Union[HierarchyNode, Mapping[str, Any]]) -> HierarchyNode:
    """
    Convert ``{"id": ..., "children": [...], **payload}`` into a HierarchyNode.

    ``id`` and ``children`` are both optional. Any other key is kept in
    ``payload`` untouched.
    """
    if isinstance(data, HierarchyNode):
        return data
    if not isinstance(data, Mapping):
        raise IngestionError(f"Hierarchy node must be a mapping, got {type(data).__name__}")

    raw_children = data.get("children")
    if raw_children is None:
        raw_children = []
    if isinstance(raw_children, (str, bytes)) or not isinstance(raw_children, (list, tuple)):
        raise IngestionError(
            f"'children' of node {data.get('id')!r} must be a list, got {type(raw_children).__name__}"
        )

    payload = {k: v for k, v in data.items() if k not in ("id", "children")}
    return HierarchyNode(
        id=_clean_id(data.get("id")),
        children=tuple(to_hierarchy(c) for c in raw_children),
        payload=payload,
    )


def load_hierarchy_json(path: str, emit: Optional[Emit] = None) -> HierarchyNode:
    """Read a nested hierarchy from a JSON file."""
    if not os.path.exists(path):
        raise IngestionError(f"Hierarchy file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as exc:
        raise IngestionError(f"Invalid JSON in {path}: {exc}") from exc

    root = to_hierarchy(raw)
    log_event(logger, logging.INFO, "[loader] Loaded hierarchy from %s (%d nodes)", emit,
              path, sum(1 for _ in root.walk()))
    return root


# ============================================================================ #
# Flat parent/child tables
# ============================================================================ #

def load_hierarchy_table(
    table: Union[str, pd.DataFrame],
    *,
    id_col: str = "id",
    parent_col: str = "parent",
    emit: Optional[Emit] = None,
) -> HierarchyNode:
    """
    Fold a parent/child table into a nested hierarchy.

    Exactly one row must have an empty parent (the root). Child order follows
    row order. Columns other than ``id_col`` / ``parent_col`` become payload.
    """
    if isinstance(table, str):
        if not os.path.exists(table):
            raise IngestionError(f"Hierarchy table not found: {table}")
        df = pd.read_csv(table, dtype={id_col: str, parent_col: str})
    else:
        df = table.copy()

    for col in (id_col, parent_col):
        if col not in df.columns:
            raise IngestionError(f"Hierarchy table missing '{col}' column")

    df[id_col] = df[id_col].map(_clean_id)
    df[parent_col] = df[parent_col].map(_clean_id)

    if df[id_col].isna().any():
        raise IngestionError("Hierarchy table rows must all carry an id")

    dupes = df[id_col][df[id_col].duplicated()]
    if not dupes.empty:
        raise DuplicateNodeError(str(dupes.iloc[0]))

    roots = df[df[parent_col].isna()]
    if len(roots) != 1:
        raise IngestionError(f"Hierarchy table must have exactly one root row, found {len(roots)}")

    extra_cols = [c for c in df.columns if c not in (id_col, parent_col)]
    payloads: Dict[str, Dict[str, Any]] = {}
    children_of: Dict[str, List[str]] = {}
    for _, row in df.iterrows():
        nid = row[id_col]
        payloads[nid] = {c: row[c] for c in extra_cols if not _is_missing(row[c])}
        if not _is_missing(row[parent_col]):
            children_of.setdefault(row[parent_col], []).append(nid)

    unknown = set(children_of) - set(payloads)
    if unknown:
        raise IngestionError(f"Rows reference unknown parents: {sorted(unknown)}")

    root_id = roots.iloc[0][id_col]

    # Build bottom-up from a pre-order listing so no recursion is needed
    order: List[str] = []
    stack = [root_id]
    while stack:
        nid = stack.pop()
        order.append(nid)
        stack.extend(reversed(children_of.get(nid, [])))

    if len(order) != len(payloads):
        unreachable = sorted(set(payloads) - set(order))
        raise IngestionError(f"Rows not reachable from root {root_id!r}: {unreachable}")

    built: Dict[str, HierarchyNode] = {}
    for nid in reversed(order):
        built[nid] = HierarchyNode(
            id=nid,
            children=tuple(built[c] for c in children_of.get(nid, [])),
            payload=payloads[nid],
        )

    log_event(logger, logging.INFO, "[loader] Folded %d table rows into hierarchy rooted at %s",
              emit, len(order), root_id)
    return built[root_id]


def load_hierarchy(path: str, emit: Optional[Emit] = None, **table_kwargs: Any) -> HierarchyNode:
    """Dispatch on file extension: ``.csv`` → table, anything else → JSON."""
    if path.lower().endswith(".csv"):
        return load_hierarchy_table(path, emit=emit, **table_kwargs)
    return load_hierarchy_json(path, emit=emit)
