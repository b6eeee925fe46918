"""
Collapsible force-directed tree graphs.

Ingestion, expand/collapse disclosure, force layout, pointer interaction
and draw-primitive rendering for hierarchies shown as node-link graphs.
"""

# ---------------------------------------------------------------------------
# High-level hub
# ---------------------------------------------------------------------------
from .explorer import TreeExplorer

# ---------------------------------------------------------------------------
# Configuration and errors
# ---------------------------------------------------------------------------
from .presets import (
    EngineConfig,
    ForceConfig,
    InteractionConfig,
    RenderStyle,
    ExplorerConfig,
    DEFAULT_CONFIG,
    load_config,
)
from .errors import (
    TreeGraphError,
    ConfigError,
    IngestionError,
    DuplicateNodeError,
    UnknownNodeError,
)

# ---------------------------------------------------------------------------
# Graph model, loading and ingestion
# ---------------------------------------------------------------------------
from .graph_state import (
    HierarchyNode,
    DisclosureState,
    GraphNode,
    GraphLink,
    Graph,
    GraphStats,
)
from .loader import (
    to_hierarchy,
    load_hierarchy,
    load_hierarchy_json,
    load_hierarchy_table,
)
from .ingest import ingest

# ---------------------------------------------------------------------------
# Disclosure, layout, interaction
# ---------------------------------------------------------------------------
from .disclosure import DisclosureController
from .layout import ForceSimulation, LayoutEngine
from .interaction import (
    hit_test,
    classify_gesture,
    resolve,
    InteractionResolver,
    ToggleGesture,
    DragGesture,
    NoGesture,
)

# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------
from .render2d import (
    render_frame,
    CameraTransform,
    Line,
    Circle,
    Text,
)
from .surface import draw_primitives

__all__ = [
    # Hub
    "TreeExplorer",

    # Config / errors
    "EngineConfig",
    "ForceConfig",
    "InteractionConfig",
    "RenderStyle",
    "ExplorerConfig",
    "DEFAULT_CONFIG",
    "load_config",
    "TreeGraphError",
    "ConfigError",
    "IngestionError",
    "DuplicateNodeError",
    "UnknownNodeError",

    # Model / loading
    "HierarchyNode",
    "DisclosureState",
    "GraphNode",
    "GraphLink",
    "Graph",
    "GraphStats",
    "to_hierarchy",
    "load_hierarchy",
    "load_hierarchy_json",
    "load_hierarchy_table",
    "ingest",

    # Engine
    "DisclosureController",
    "ForceSimulation",
    "LayoutEngine",
    "hit_test",
    "classify_gesture",
    "resolve",
    "InteractionResolver",
    "ToggleGesture",
    "DragGesture",
    "NoGesture",

    # Rendering
    "render_frame",
    "CameraTransform",
    "Line",
    "Circle",
    "Text",
    "draw_primitives",
]
