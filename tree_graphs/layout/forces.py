"""
Force simulation on numpy arrays, integrated the way d3-force does it.

One ``tick()`` performs, in order:
  1. alpha += (alpha_target - alpha) * alpha_decay
  2. link spring, many-body repulsion and collision forces on velocities
  3. centering shift on positions
  4. v *= (1 - velocity_decay); x += v   (pinned rows are reset to their pin)

Forces are evaluated exactly over all pairs; graphs produced by interactive
disclosure stay small enough that an O(n^2) pass is cheaper than a tree.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np

from ..presets import ForceConfig

INITIAL_RADIUS = 10.0
INITIAL_ANGLE = math.pi * (3.0 - math.sqrt(5.0))

# Squared distances below this are treated as "too close" by many-body
DISTANCE_MIN2 = 1.0


class ForceSimulation:
    """
    Node positions and velocities as (n, 2) arrays plus link index pairs.

    Rows with ``pinned_mask`` set are held at ``pinned_pos`` and never
    integrated.
    """

    def __init__(self, config: Optional[ForceConfig] = None, rng: Optional[np.random.Generator] = None):
        self.config = config or ForceConfig()
        self.rng = rng if rng is not None else np.random.default_rng()

        self.pos = np.zeros((0, 2), float)
        self.vel = np.zeros((0, 2), float)
        self.pinned_mask = np.zeros(0, bool)
        self.pinned_pos = np.zeros((0, 2), float)

        self.src = np.zeros(0, int)
        self.dst = np.zeros(0, int)
        self._bias = np.zeros(0, float)

        self.alpha = 1.0
        self.alpha_target = 0.0

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #
    @property
    def n(self) -> int:
        return self.pos.shape[0]

    def set_nodes(
        self,
        positions: Sequence[Optional[Tuple[float, float]]],
        velocities: Optional[Sequence[Tuple[float, float]]] = None,
        pins: Optional[Sequence[Optional[Tuple[float, float]]]] = None,
    ) -> None:
        """
        Register nodes. Rows without a position are seeded on a phyllotaxis
        spiral around the canvas centre; pinned rows start on their pin.
        """
        n = len(positions)
        cx, cy = self.config.center
        pos = np.zeros((n, 2), float)
        for i, p in enumerate(positions):
            if p is None:
                r = INITIAL_RADIUS * math.sqrt(0.5 + i)
                a = i * INITIAL_ANGLE
                pos[i] = (cx + r * math.cos(a), cy + r * math.sin(a))
            else:
                pos[i] = p

        vel = np.zeros((n, 2), float)
        if velocities is not None:
            vel[:] = np.asarray(velocities, float).reshape(n, 2)

        mask = np.zeros(n, bool)
        ppos = np.zeros((n, 2), float)
        for i, p in enumerate(pins or ()):
            if p is not None:
                mask[i] = True
                ppos[i] = p
        pos[mask] = ppos[mask]
        vel[mask] = 0.0

        self.pos, self.vel = pos, vel
        self.pinned_mask, self.pinned_pos = mask, ppos
        self._recompute_bias()

    def set_links(self, pairs: Sequence[Tuple[int, int]]) -> None:
        arr = np.asarray(pairs, int).reshape(-1, 2)
        self.src, self.dst = arr[:, 0], arr[:, 1]
        self._recompute_bias()

    def _recompute_bias(self) -> None:
        if self.src.size == 0 or self.n == 0:
            self._bias = np.zeros(0, float)
            return
        count = np.bincount(np.concatenate([self.src, self.dst]), minlength=self.n).astype(float)
        self._bias = count[self.src] / (count[self.src] + count[self.dst])

    def pin(self, index: int, point: Optional[Tuple[float, float]]) -> None:
        if point is None:
            self.pinned_mask[index] = False
            return
        self.pinned_mask[index] = True
        self.pinned_pos[index] = point
        self.pos[index] = point
        self.vel[index] = 0.0

    # ------------------------------------------------------------------ #
    # Forces
    # ------------------------------------------------------------------ #
    def _jiggle(self, shape) -> np.ndarray:
        return (self.rng.random(shape) - 0.5) * 1e-6

    def _force_link(self, alpha: float) -> None:
        if self.src.size == 0:
            return
        cfg = self.config
        s, t = self.src, self.dst
        d = (self.pos[t] + self.vel[t]) - (self.pos[s] + self.vel[s])
        zero = ~np.any(d, axis=1)
        if zero.any():
            d[zero] = self._jiggle((int(zero.sum()), 2))
        l = np.sqrt((d * d).sum(axis=1))
        f = (l - cfg.link_distance) / l * alpha * cfg.link_strength
        d *= f[:, None]
        np.add.at(self.vel, t, -d * self._bias[:, None])
        np.add.at(self.vel, s, d * (1.0 - self._bias)[:, None])

    def _force_many_body(self, alpha: float) -> None:
        n = self.n
        if n < 2:
            return
        cfg = self.config
        diff = self.pos[None, :, :] - self.pos[:, None, :]  # [i, j] = x_j - x_i
        off = ~np.eye(n, dtype=bool)
        l = (diff * diff).sum(axis=2)
        coincident = (l == 0.0) & off
        if coincident.any():
            diff[coincident] = self._jiggle((int(coincident.sum()), 2))
            l = (diff * diff).sum(axis=2)
        mask = off & (l < cfg.charge_distance_max ** 2)
        l = np.where(l < DISTANCE_MIN2, np.sqrt(DISTANCE_MIN2 * l), l)
        l[~mask] = 1.0
        w = np.where(mask, cfg.charge_strength * alpha / l, 0.0)
        self.vel += (diff * w[:, :, None]).sum(axis=1)

    def _force_collide(self) -> None:
        n = self.n
        if n < 2:
            return
        cfg = self.config
        pred = self.pos + self.vel
        diff = pred[:, None, :] - pred[None, :, :]  # [i, j] = x_i - x_j
        off = ~np.eye(n, dtype=bool)
        d2 = (diff * diff).sum(axis=2)
        reach = 2.0 * cfg.collide_radius
        coincident = (d2 == 0.0) & off
        if coincident.any():
            diff[coincident] = self._jiggle((int(coincident.sum()), 2))
            d2 = (diff * diff).sum(axis=2)
        mask = off & (d2 < reach * reach)
        if not mask.any():
            return
        d = np.sqrt(np.where(mask, d2, 1.0))
        l = np.where(mask, (reach - d) / d * cfg.collide_strength, 0.0)
        # equal radii: each side of the pair takes half the correction
        self.vel += 0.5 * (diff * l[:, :, None]).sum(axis=1)

    def _force_center(self) -> None:
        if self.n == 0:
            return
        cx, cy = self.config.center
        shift = self.pos.mean(axis=0) - np.array([cx, cy])
        self.pos -= shift

    # ------------------------------------------------------------------ #
    # Step
    # ------------------------------------------------------------------ #
    def tick(self) -> None:
        cfg = self.config
        self.alpha += (self.alpha_target - self.alpha) * cfg.alpha_decay

        self._force_link(self.alpha)
        self._force_many_body(self.alpha)
        self._force_collide()
        self._force_center()

        free = ~self.pinned_mask
        self.vel[free] *= 1.0 - cfg.velocity_decay
        self.pos[free] += self.vel[free]
        self.pos[self.pinned_mask] = self.pinned_pos[self.pinned_mask]
        self.vel[self.pinned_mask] = 0.0

    def energy(self) -> float:
        """Mean squared speed, handy for convergence diagnostics."""
        if self.n == 0:
            return 0.0
        return float((self.vel * self.vel).sum(axis=1).mean())
