"""
Exception hierarchy for the tree graph engine.

Only conditions that make an operation impossible are raised. Everything
the interactive loop can survive (an expand with nothing to expand, a
gesture that hits no node, a dangling link at render time) is logged
instead.
"""

from __future__ import annotations


class TreeGraphError(Exception):
    """Base class for all tree_graphs errors."""


class ConfigError(TreeGraphError, ValueError):
    """Invalid configuration value."""


class IngestionError(TreeGraphError, ValueError):
    """The supplied hierarchy cannot be turned into a graph."""


class DuplicateNodeError(IngestionError):
    """Two hierarchy nodes carry the same id."""

    def __init__(self, node_id: str):
        super().__init__(f"Duplicate node id: {node_id!r}")
        self.node_id = node_id


class UnknownNodeError(TreeGraphError, KeyError):
    """An operation referenced a node id that is not in the visible graph."""

    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Unknown node id: {self.node_id!r}"
