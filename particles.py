"""
Pointer-driven particle field.

State:
- base: Nx2 resting positions (px), laid out on a flattened sphere
- pos:  Nx2 current positions (px)
- size: N radii (px)
- color: N palette indices, -1 for the neutral colour

Forces (per frame, no velocity state):
- repulsion: every point within the interaction radius pushes the particle
  away with strength (R - d) / R * K, contributions summed
- spring: particle is pulled back toward its rest position by `spring`
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

NEUTRAL = -1


@dataclass
class FeedbackEvent:
    identity: int | None
    x: float
    y: float


@dataclass
class ParticleSet:
    base: np.ndarray
    pos: np.ndarray
    size: np.ndarray
    color: np.ndarray

    @classmethod
    def at_rest(cls, base, size=None) -> "ParticleSet":
        base = np.asarray(base, dtype=np.float64).reshape(-1, 2)
        n = len(base)
        if size is None:
            size = np.full(n, 1.0)
        return cls(
            base=base.copy(),
            pos=base.copy(),
            size=np.asarray(size, dtype=np.float64),
            color=np.full(n, NEUTRAL, dtype=np.int32),
        )

    def __len__(self):
        return len(self.base)


def sphere_layout(count: int, radius: float, cx: float, cy: float) -> np.ndarray:
    """Golden-spiral style sphere projected on the plane, centred on (cx, cy)."""
    i = np.arange(count, dtype=np.float64)
    phi = np.arccos(-1.0 + (2.0 * i) / count)
    theta = math.sqrt(count * math.pi) * phi
    xs = cx + radius * np.sin(phi) * np.cos(theta)
    ys = cy + radius * np.sin(phi) * np.sin(theta)
    return np.stack([xs, ys], axis=1)


class ForceField:
    def __init__(self, params, on_feedback=None, rng=None):
        self.params = params
        self.on_feedback = on_feedback
        self.rng = rng if rng is not None else np.random.default_rng(params.seed)
        self.particles = None
        self.width = 0
        self.height = 0

    def init_scene(self, width: int, height: int) -> ParticleSet:
        p = self.params
        self.width = int(width)
        self.height = int(height)

        base = sphere_layout(p.num_particles, p.sphere_radius, width / 2.0, height / 2.0)
        size = self.rng.uniform(p.particle_size_min, p.particle_size_max, size=len(base))

        self.particles = ParticleSet.at_rest(base, size)
        return self.particles

    def palette_index(self, identity) -> int:
        if identity is None:
            return NEUTRAL
        return identity % len(self.params.palette)

    def update(self, points) -> None:
        ps = self.particles
        if ps is None or len(ps) == 0:
            return

        p = self.params
        spring = (ps.base - ps.pos) * p.spring

        if not points:
            ps.color[:] = NEUTRAL
            ps.pos += spring
            return

        targets = np.array([(pt.x, pt.y) for pt in points], dtype=np.float64)

        # away[i, j] = particle i - point j
        away = ps.pos[:, None, :] - targets[None, :, :]
        dist = np.hypot(away[:, :, 0], away[:, :, 1])

        r = p.interaction_radius
        in_range = dist < r
        pushing = in_range & (dist > p.min_distance)

        # Only pushing pairs contribute; coincident or far (even inf) pairs add 0.
        away = np.where(pushing[:, :, None], away, 0.0)
        safe = np.where(pushing, dist, 1.0)
        weight = np.where(pushing, (r - dist) / r * p.repulsion, 0.0)
        push = (away / safe[:, :, None] * weight[:, :, None]).sum(axis=1)

        # Nearest in-range point wins the colour.
        colors = np.array([self.palette_index(pt.identity) for pt in points], dtype=np.int32)
        nearest = np.where(in_range, dist, np.inf).argmin(axis=1)
        ps.color[:] = np.where(in_range.any(axis=1), colors[nearest], NEUTRAL)

        ps.pos += push + spring

        if self.on_feedback is not None and p.feedback_probability > 0.0:
            self._roll_feedback(in_range, points)

    def _roll_feedback(self, in_range, points):
        rolls = self.rng.random(in_range.shape) < self.params.feedback_probability
        for _, j in np.argwhere(in_range & rolls):
            pt = points[j]
            self.on_feedback(FeedbackEvent(pt.identity, float(pt.x), float(pt.y)))
