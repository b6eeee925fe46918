# tree_graphs/layout/__init__.py

"""
Layout subpackage.

Provides:
  - ForceSimulation: numpy link / many-body / collide / center integrator
  - LayoutEngine: binds a simulation to the shared Graph
"""

from __future__ import annotations

from .forces import ForceSimulation
from .engine import LayoutEngine

__all__ = [
    "ForceSimulation",
    "LayoutEngine",
]
