"""
Pointer interaction: hit testing and click/drag classification.

All coordinates here are already in simulation space; mapping from screen
space (camera pan/zoom) happens before anything reaches this module.

Two layers:
  - pure functions (hit_test, classify_gesture, resolve) with no state
  - InteractionResolver, which applies a gesture stream to a live layout
    engine and disclosure controller
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

from .errors import TreeGraphError
from .events import Emit, emit_event, log_event
from .graph_state import Graph, GraphNode, Point
from .presets import InteractionConfig

logger = logging.getLogger(__name__)

CLICK = "click"
DRAG = "drag"


# =========================================================================== #
# Gesture outcomes
# =========================================================================== #

@dataclass(frozen=True)
class ToggleGesture:
    node_id: str


@dataclass(frozen=True)
class DragGesture:
    node_id: str
    final_position: Point


@dataclass(frozen=True)
class NoGesture:
    pass


Gesture = Union[ToggleGesture, DragGesture, NoGesture]


# =========================================================================== #
# Pure helpers
# =========================================================================== #

def hit_test(
    point: Point,
    nodes: Iterable[GraphNode],
    radius: float = 20.0,
) -> Optional[GraphNode]:
    """
    First node (in iteration order) whose centre lies strictly within
    ``radius`` of ``point``. Nodes without a position cannot be hit.
    """
    px, py = point
    r2 = radius * radius
    for n in nodes:
        if n.position is None:
            continue
        dx = px - n.position[0]
        dy = py - n.position[1]
        if dx * dx + dy * dy < r2:
            return n
    return None


def classify_gesture(down: Point, up: Point, threshold: float = 5.0) -> str:
    """CLICK if the pointer travelled strictly less than ``threshold``, else DRAG."""
    dist = math.hypot(up[0] - down[0], up[1] - down[1])
    return CLICK if dist < threshold else DRAG


def resolve(
    down: Point,
    moves: Sequence[Point],
    up: Point,
    nodes: Iterable[GraphNode],
    config: Optional[InteractionConfig] = None,
) -> Gesture:
    """
    Classify a complete pointer gesture against a node collection.

    A drag's final position is the last move point (the pin it was left at),
    or the subject's own position when the pointer never moved in between.
    """
    cfg = config or InteractionConfig()
    subject = hit_test(down, nodes, cfg.hit_radius)
    if subject is None:
        return NoGesture()
    if classify_gesture(down, up, cfg.click_threshold) == CLICK:
        return ToggleGesture(subject.id)
    final = moves[-1] if moves else subject.position
    return DragGesture(subject.id, (float(final[0]), float(final[1])))


# =========================================================================== #
# Stateful resolver
# =========================================================================== #

class InteractionResolver:
    """
    Applies pointer start / move / end events to the live engine.

    start  pins the subject where it is and keeps the simulation warm
    move   re-pins the subject at every point, no debouncing
    end    toggles on a click, then always unpins and lets the layout cool
    """

    def __init__(
        self,
        graph: Graph,
        layout,
        disclosure,
        config: Optional[InteractionConfig] = None,
        *,
        emit: Optional[Emit] = None,
    ):
        self.graph = graph
        self.layout = layout
        self.disclosure = disclosure
        self.config = config or InteractionConfig()
        self.emit = emit

        self.subject_id: Optional[str] = None
        self.down_at: Optional[Point] = None
        self.last_pin: Optional[Point] = None

    @property
    def active(self) -> bool:
        return self.subject_id is not None

    # ------------------------------------------------------------------ #
    def start(self, point: Point) -> Optional[str]:
        """
        Begin a gesture; returns the subject id or None if nothing was hit.

        A gesture still open from a lost release is abandoned first.
        """
        if self.active:
            log_event(logger, logging.WARNING,
                      "[interaction] gesture on %s never ended; releasing it", self.emit,
                      self.subject_id)
            self._release(self.subject_id)

        subject = hit_test(point, self.graph.nodes.values(), self.config.hit_radius)
        if subject is None:
            self._reset()
            return None

        self.subject_id = subject.id
        self.down_at = (float(point[0]), float(point[1]))
        self.last_pin = subject.position
        self.layout.set_pinned(subject.id, subject.position)
        self.layout.boost_energy(self.config.drag_energy)
        return subject.id

    def move(self, point: Point) -> None:
        if not self.active:
            return
        if self.subject_id not in self.graph:
            log_event(logger, logging.WARNING, "[interaction] drag subject %s vanished mid-gesture",
                      self.emit, self.subject_id)
            self.layout.boost_energy(0.0)
            self._reset()
            return
        self.last_pin = (float(point[0]), float(point[1]))
        self.layout.set_pinned(self.subject_id, self.last_pin)
        self.layout.boost_energy(self.config.drag_energy)

    def end(self, point: Point, click_threshold: Optional[float] = None) -> Gesture:
        """
        Finish the gesture: act on its classification, then release the pin.

        ``click_threshold`` overrides the configured one; callers mapping from
        a zoomed screen pass it already divided by the zoom factor.
        """
        if not self.active:
            return NoGesture()

        node_id = self.subject_id
        threshold = self.config.click_threshold if click_threshold is None else click_threshold
        kind = classify_gesture(self.down_at, point, threshold)
        result: Gesture
        try:
            if kind == CLICK:
                result = ToggleGesture(node_id)
                self.disclosure.toggle(node_id)
            else:
                final = self.last_pin if self.last_pin is not None else (float(point[0]), float(point[1]))
                result = DragGesture(node_id, final)
        except TreeGraphError as exc:
            log_event(logger, logging.ERROR, "[interaction] gesture on %s failed: %s",
                      self.emit, node_id, exc)
            result = NoGesture()
        finally:
            self._release(node_id)

        emit_event(self.emit, "gesture", {"kind": type(result).__name__, "node": node_id})
        return result

    def _release(self, node_id: str) -> None:
        if node_id in self.graph:
            self.layout.set_pinned(node_id, None)
        else:
            log_event(logger, logging.WARNING,
                      "[interaction] %s left the graph before release; nothing to unpin",
                      self.emit, node_id)
        self.layout.boost_energy(0.0)
        self._reset()

    def _reset(self) -> None:
        self.subject_id = None
        self.down_at = None
        self.last_pin = None
