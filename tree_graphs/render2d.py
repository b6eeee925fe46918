# render2d.py

"""
Render adapter: graph snapshot + camera transform -> draw primitives.

This is a pure projection. It keeps no state, never touches a drawing
surface, and never invents a location for a node the layout has not placed
yet: anything without a position is simply left out of the frame.

Draw order per frame:
  1. one line per link (both endpoints placed)
  2. per node: filled circle, child-count badge (collapsed only), id label
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Union

from .events import Emit, log_event
from .graph_state import Graph, Point
from .presets import RenderStyle

logger = logging.getLogger(__name__)


# =============================================================================
# Camera
# =============================================================================

@dataclass(frozen=True)
class CameraTransform:
    """Pan/zoom: screen = sim * k + (tx, ty)."""

    tx: float = 0.0
    ty: float = 0.0
    k: float = 1.0

    def apply(self, p: Point) -> Point:
        return (p[0] * self.k + self.tx, p[1] * self.k + self.ty)

    def invert(self, p: Point) -> Point:
        return ((p[0] - self.tx) / self.k, (p[1] - self.ty) / self.k)


IDENTITY = CameraTransform()


# =============================================================================
# Primitives
# =============================================================================

@dataclass(frozen=True)
class Line:
    start: Point
    end: Point
    color: str
    width: float = 1.0


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float
    fill: str
    stroke: str


@dataclass(frozen=True)
class Text:
    text: str
    position: Point
    color: str
    size: float
    align: str = "center"
    baseline: str = "middle"


Primitive = Union[Line, Circle, Text]


# =============================================================================
# Projection
# =============================================================================

def render_frame(
    graph: Graph,
    transform: CameraTransform = IDENTITY,
    style: Optional[RenderStyle] = None,
    *,
    emit: Optional[Emit] = None,
) -> List[Primitive]:
    """
    Project the current graph into screen-space draw primitives.
    """
    style = style or RenderStyle()
    k = transform.k
    out: List[Primitive] = []

    # ----------------------------------------------------------
    # Links
    # ----------------------------------------------------------
    for link in graph.links:
        s = graph.nodes.get(link.source_id)
        t = graph.nodes.get(link.target_id)
        if s is None or t is None:
            log_event(logger, logging.ERROR,
                      "[render] invariant violation: link %s -> %s has no endpoint; skipped",
                      emit, link.source_id, link.target_id)
            continue
        if s.position is None or t.position is None:
            continue
        out.append(Line(transform.apply(s.position), transform.apply(t.position), style.link_color))

    # ----------------------------------------------------------
    # Nodes, badges, labels
    # ----------------------------------------------------------
    for node in graph.nodes.values():
        if node.position is None:
            continue
        x, y = node.position

        out.append(Circle(
            center=transform.apply((x, y)),
            radius=style.node_radius * k,
            fill=style.collapsed_color if node.collapsed else style.expanded_color,
            stroke=style.node_stroke_color,
        ))

        if node.collapsed and node.child_count > 0:
            out.append(Text(
                text=str(node.child_count),
                position=transform.apply((x, y)),
                color=style.badge_color,
                size=style.label_size * k,
                baseline="middle",
            ))

        out.append(Text(
            text=node.id,
            position=transform.apply((x, y - style.label_offset)),
            color=style.label_color,
            size=style.label_size * k,
            baseline="bottom",
        ))

    return out
