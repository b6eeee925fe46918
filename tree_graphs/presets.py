"""
Preset configuration for the tree graph explorer.

Four groups of settings, one dataclass each:
  - EngineConfig       clustering and expand placement
  - ForceConfig        force-simulation constants
  - InteractionConfig  hit radius and click/drag threshold
  - RenderStyle        draw-primitive colours and sizes

ExplorerConfig bundles them. load_config() reads overrides from
TREE_GRAPHS_* environment variables.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Optional

from .errors import ConfigError


# --------------------------------------------------------------------------- #
# Disclosure / ingestion
# --------------------------------------------------------------------------- #

@dataclass
class EngineConfig:
    # Subtrees with more children than this start collapsed
    cluster_threshold: int = 3

    # Fresh children are placed on a circle of this radius around the parent
    expand_radius: float = 100.0
    expand_jitter: float = 0.1  # +/- fraction of expand_radius

    def validate(self) -> None:
        if self.cluster_threshold < 0:
            raise ConfigError(f"cluster_threshold must be >= 0, got {self.cluster_threshold}")
        if self.expand_radius <= 0:
            raise ConfigError(f"expand_radius must be > 0, got {self.expand_radius}")
        if not 0.0 <= self.expand_jitter < 1.0:
            raise ConfigError(f"expand_jitter must be in [0, 1), got {self.expand_jitter}")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --------------------------------------------------------------------------- #
# Force simulation
# --------------------------------------------------------------------------- #

@dataclass
class ForceConfig:
    link_distance: float = 100.0
    link_strength: float = 1.0

    charge_strength: float = -500.0
    charge_distance_max: float = 300.0

    collide_radius: float = 30.0
    collide_strength: float = 0.7

    # Canvas size; the centering force pulls toward its midpoint
    width: float = 960.0
    height: float = 600.0

    velocity_decay: float = 0.3
    alpha_min: float = 0.001
    alpha_decay: float = 0.0228
    alpha_reheat: float = 1.0

    @property
    def center(self) -> tuple:
        return (self.width / 2.0, self.height / 2.0)

    def validate(self) -> None:
        if not 0.0 < self.alpha_decay < 1.0:
            raise ConfigError(f"alpha_decay must be in (0, 1), got {self.alpha_decay}")
        if not 0.0 <= self.velocity_decay <= 1.0:
            raise ConfigError(f"velocity_decay must be in [0, 1], got {self.velocity_decay}")
        if self.charge_distance_max <= 0:
            raise ConfigError("charge_distance_max must be > 0")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --------------------------------------------------------------------------- #
# Pointer interaction
# --------------------------------------------------------------------------- #

@dataclass
class InteractionConfig:
    hit_radius: float = 20.0
    click_threshold: float = 5.0
    drag_energy: float = 0.3

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --------------------------------------------------------------------------- #
# Render style
# --------------------------------------------------------------------------- #

@dataclass
class RenderStyle:
    background_color: str = "#ffffff"

    node_radius: float = 10.0
    collapsed_color: str = "#ff7f0e"
    expanded_color: str = "#1f77b4"
    node_stroke_color: str = "#ffffff"

    link_color: str = "#999999"

    badge_color: str = "#ffffff"
    label_color: str = "#000000"
    label_offset: float = 15.0
    label_size: int = 9

    dpi: int = 120

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# --------------------------------------------------------------------------- #
# Bundle
# --------------------------------------------------------------------------- #

@dataclass
class ExplorerConfig:
    """
    Top-level configuration passed to TreeExplorer and the CLI.
    """

    engine: EngineConfig = field(default_factory=EngineConfig)
    forces: ForceConfig = field(default_factory=ForceConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    style: RenderStyle = field(default_factory=RenderStyle)

    seed: Optional[int] = None

    version: str = "tree_graphs.explorer.v1"

    def __post_init__(self):
        # Callers sometimes pass None for a group explicitly
        if self.engine is None:
            self.engine = EngineConfig()
        if self.forces is None:
            self.forces = ForceConfig()
        if self.interaction is None:
            self.interaction = InteractionConfig()
        if self.style is None:
            self.style = RenderStyle()

    def validate(self) -> None:
        self.engine.validate()
        self.forces.validate()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engine": self.engine.to_dict(),
            "forces": self.forces.to_dict(),
            "interaction": self.interaction.to_dict(),
            "style": self.style.to_dict(),
            "seed": self.seed,
            "version": self.version,
        }


def load_config() -> ExplorerConfig:
    """
    Build an ExplorerConfig from environment variables, falling back to defaults.

    Recognized variables:
        TREE_GRAPHS_CLUSTER_THRESHOLD   (int)
        TREE_GRAPHS_EXPAND_RADIUS       (float)
        TREE_GRAPHS_EXPAND_JITTER       (float)
        TREE_GRAPHS_HIT_RADIUS          (float)
        TREE_GRAPHS_CLICK_THRESHOLD     (float)
        TREE_GRAPHS_WIDTH               (float)
        TREE_GRAPHS_HEIGHT              (float)
        TREE_GRAPHS_SEED                (int)
    """

    def _env(name: str, cast, default):
        val = os.getenv(name)
        if val is None or not val.strip():
            return default
        try:
            return cast(val.strip())
        except ValueError as exc:
            raise ConfigError(f"{name}={val!r}: {exc}") from exc

    cfg = ExplorerConfig(
        engine=EngineConfig(
            cluster_threshold=_env("TREE_GRAPHS_CLUSTER_THRESHOLD", int, 3),
            expand_radius=_env("TREE_GRAPHS_EXPAND_RADIUS", float, 100.0),
            expand_jitter=_env("TREE_GRAPHS_EXPAND_JITTER", float, 0.1),
        ),
        forces=ForceConfig(
            width=_env("TREE_GRAPHS_WIDTH", float, 960.0),
            height=_env("TREE_GRAPHS_HEIGHT", float, 600.0),
        ),
        interaction=InteractionConfig(
            hit_radius=_env("TREE_GRAPHS_HIT_RADIUS", float, 20.0),
            click_threshold=_env("TREE_GRAPHS_CLICK_THRESHOLD", float, 5.0),
        ),
        seed=_env("TREE_GRAPHS_SEED", int, None),
    )
    cfg.validate()
    return cfg


DEFAULT_CONFIG = ExplorerConfig()
