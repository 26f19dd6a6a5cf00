"""Simulated bodies and the registry that owns them.

Physics runs in SI units; the registry converts to render space on demand by
dividing by a fixed distance scale and swapping the y/z axes so the ecliptic
lies in the render XZ plane with +Y up.
"""

import math
from typing import Iterator, NamedTuple

import numpy as np

from . import constants as C
from .analysis import orbit_path
from .integrators import OrbitState
from .presets import PRESETS

TWO_PI = 2.0 * math.pi


class Body:
    """A body orbiting the central mass, with its visual attributes."""

    def __init__(
        self,
        body_id,
        name,
        radius,
        color,
        rotation_period,
        pos,
        vel,
        description="",
    ):
        """
        Parameters
        ----------
        radius : float
            Visual radius in render units. Also the picking sphere radius.
        rotation_period : float
            Seconds per self-revolution. Negative values spin retrograde.
        pos, vel : array-like
            Heliocentric position [m] and velocity [m/s].
        """
        radius = float(radius)
        rotation_period = float(rotation_period)
        if not (math.isfinite(radius) and radius > 0):
            raise ValueError(f"{name}: radius must be positive, got {radius}")
        if not math.isfinite(rotation_period) or rotation_period == 0:
            raise ValueError(f"{name}: rotation period must be finite and non-zero")

        state = OrbitState(pos, vel)
        if not (state.radius > 0 and math.isfinite(state.radius)):
            raise ValueError(f"{name}: initial position must be away from the origin")

        self.id = body_id
        self.name = name
        self.radius = radius
        self.color = tuple(color)
        self.rotation_period = rotation_period
        self.description = description
        self.state = state
        self.rotation = 0.0

    @property
    def pos(self) -> np.ndarray:
        return self.state.pos

    @property
    def vel(self) -> np.ndarray:
        return self.state.vel

    @property
    def degenerate(self) -> bool:
        return self.state.degenerate

    @staticmethod
    def from_preset(cfg: dict) -> "Body":
        """Create a body from a :data:`~orrery.presets.PRESETS` entry."""
        state = cfg["state"]
        return Body(
            cfg["id"],
            cfg.get("name", cfg["id"]),
            cfg.get("size", 1.0),
            cfg.get("color", C.WHITE),
            cfg.get("rot", 1.0) * C.DAY_TO_S,
            state[:3],
            state[3:6],
            description=cfg.get("info", ""),
        )

    def __repr__(self):
        return (
            f"Body(id={self.id!r}, name={self.name!r}, pos={self.pos.tolist()}, "
            f"vel={self.vel.tolist()})"
        )


class BodyTransform(NamedTuple):
    body_id: str
    position: np.ndarray
    rotation: float


class PickTarget(NamedTuple):
    body_id: str
    center: np.ndarray
    radius: float


class BodyRegistry:
    """Insertion-ordered collection of bodies keyed by id."""

    def __init__(self, bodies=(), distance_scale: float = C.DISTANCE_SCALE):
        if not (math.isfinite(distance_scale) and distance_scale > 0):
            raise ValueError("distance_scale must be positive")
        self.distance_scale = float(distance_scale)
        self._bodies: dict[str, Body] = {}
        for body in bodies:
            self.add(body)

    @classmethod
    def from_preset(cls, preset_name: str, distance_scale: float = C.DISTANCE_SCALE):
        """Build a registry from a named preset."""
        if preset_name not in PRESETS:
            raise KeyError(f"Preset '{preset_name}' not found")
        return cls(
            (Body.from_preset(cfg) for cfg in PRESETS[preset_name]),
            distance_scale=distance_scale,
        )

    def add(self, body: Body) -> None:
        if body.id in self._bodies:
            raise ValueError(f"duplicate body id {body.id!r}")
        self._bodies[body.id] = body

    def get(self, body_id) -> Body:
        return self._bodies[body_id]

    def ids(self) -> list:
        return list(self._bodies)

    def __contains__(self, body_id) -> bool:
        return body_id in self._bodies

    def __iter__(self) -> Iterator[Body]:
        return iter(self._bodies.values())

    def __len__(self) -> int:
        return len(self._bodies)

    def set_state(self, body_id, state: OrbitState) -> None:
        self._bodies[body_id].state = state

    def advance_rotation(self, dt: float) -> None:
        """Spin every body by ``(2 pi / period) * dt``, wrapped to ``[0, 2 pi)``."""
        for body in self._bodies.values():
            angle = body.rotation + (TWO_PI / body.rotation_period) * dt
            body.rotation = angle % TWO_PI

    def to_render_space(self, pos_m) -> np.ndarray:
        x, y, z = np.asarray(pos_m, dtype=float)
        return np.array([x, z, y]) / self.distance_scale

    def render_position(self, body_id) -> np.ndarray:
        return self.to_render_space(self._bodies[body_id].pos)

    def orbit_path(self, body_id, mu: float = C.MU_SUN):
        """Render-space polyline of the body's current Kepler orbit, or ``None``."""
        path = orbit_path(self._bodies[body_id].state, mu)
        if path is None:
            return None
        return path[:, [0, 2, 1]] / self.distance_scale

    def transforms(self) -> list[BodyTransform]:
        return [
            BodyTransform(b.id, self.to_render_space(b.pos), b.rotation)
            for b in self._bodies.values()
        ]

    def pick_targets(self) -> list[PickTarget]:
        return [
            PickTarget(b.id, self.to_render_space(b.pos), b.radius)
            for b in self._bodies.values()
        ]
