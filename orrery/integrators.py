"""Single-body integrators for motion about a central mass.

Every stepper shares the contract ``step(state, dt, mu) -> OrbitState``: it
never mutates its input, and identical arguments always give identical
results. Positions closer to the centre than :data:`~orrery.constants.MIN_ORBIT_RADIUS`
are pushed back onto that sphere before the acceleration is evaluated and the
returned state is flagged ``degenerate``. A step that would produce non-finite
numbers returns the previous position and velocity, also flagged.
"""

import math

import numpy as np

from . import constants as C


def _as_vec3(values) -> np.ndarray:
    v = np.asarray(values, dtype=float).reshape(-1)
    if v.size < 3:
        v = np.pad(v, (0, 3 - v.size))
    v = v[:3].copy()
    v.flags.writeable = False
    return v


class OrbitState:
    """Immutable state vector: position [m] and velocity [m/s]."""

    __slots__ = ("pos", "vel", "degenerate")

    def __init__(self, pos, vel, degenerate: bool = False):
        self.pos = _as_vec3(pos)
        self.vel = _as_vec3(vel)
        self.degenerate = bool(degenerate)

    @property
    def radius(self) -> float:
        return float(np.linalg.norm(self.pos))

    def __repr__(self):
        return (
            f"OrbitState(pos={self.pos.tolist()}, vel={self.vel.tolist()}, "
            f"degenerate={self.degenerate})"
        )


def _check_dt(dt) -> float:
    dt = float(dt)
    if not math.isfinite(dt):
        raise ValueError(f"time step must be finite, got {dt!r}")
    return dt


def guard_radius(pos: np.ndarray, min_radius: float = C.MIN_ORBIT_RADIUS):
    """Return ``pos`` moved out to ``min_radius`` if it lies closer, and a clamp flag."""
    r = float(np.linalg.norm(pos))
    if r >= min_radius:
        return pos, False
    if r > 0.0 and math.isfinite(r):
        return pos * (min_radius / r), True
    return np.array([min_radius, 0.0, 0.0]), True


def central_acceleration(pos: np.ndarray, mu: float = C.MU_SUN) -> np.ndarray:
    """Inverse-square acceleration ``-(mu / |r|^3) r``."""
    r = np.linalg.norm(pos)
    return -(mu / r**3) * pos


def _finish(state: OrbitState, pos, vel, clamped: bool) -> OrbitState:
    if not (np.all(np.isfinite(pos)) and np.all(np.isfinite(vel))):
        return OrbitState(state.pos, state.vel, degenerate=True)
    return OrbitState(pos, vel, degenerate=clamped)


def _kick_drift_kick(pos, vel, dt, mu):
    pos, clamped = guard_radius(pos)
    acc = central_acceleration(pos, mu)
    vel_half = vel + 0.5 * acc * dt
    pos_new, clamped_new = guard_radius(pos + vel_half * dt)
    acc_new = central_acceleration(pos_new, mu)
    vel_new = vel_half + 0.5 * acc_new * dt
    return pos_new, vel_new, clamped or clamped_new


def leapfrog_step(state: OrbitState, dt: float, mu: float = C.MU_SUN) -> OrbitState:
    """Advance ``state`` by ``dt`` with the kick-drift-kick (velocity Verlet) scheme."""
    dt = _check_dt(dt)
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        pos, vel, clamped = _kick_drift_kick(state.pos, state.vel, dt, mu)
    return _finish(state, pos, vel, clamped)


def symplectic4_step(state: OrbitState, dt: float, mu: float = C.MU_SUN) -> OrbitState:
    """Fourth-order symplectic step (McLachlan-Atela coefficients)."""

    a1 = 0.5153528374311229
    a2 = -0.08578201941297365
    a3 = 0.4415830236164665
    a4 = 0.1288461583653842

    b1 = 0.1344961992774311
    b2 = -0.2248198030794208
    b3 = 0.7562300005156683
    b4 = 0.3340036032863214

    dt = _check_dt(dt)
    pos = state.pos
    vel = state.vel
    clamped = False
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        for a, b in ((a1, b1), (a2, b2), (a3, b3), (a4, b4)):
            pos, hit = guard_radius(pos)
            clamped = clamped or hit
            vel = vel + b * dt * central_acceleration(pos, mu)
            pos = pos + a * dt * vel
        pos, hit = guard_radius(pos)
    return _finish(state, pos, vel, clamped or hit)


def forest_ruth_step(state: OrbitState, dt: float, mu: float = C.MU_SUN) -> OrbitState:
    """Fourth-order symplectic step built from three leapfrog sub-steps."""

    w1 = 1.0 / (2.0 - 2.0 ** (1.0 / 3.0))
    w0 = -2.0 ** (1.0 / 3.0) / (2.0 - 2.0 ** (1.0 / 3.0))

    dt = _check_dt(dt)
    pos = state.pos
    vel = state.vel
    clamped = False
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        for w in (w1, w0, w1):
            pos, vel, hit = _kick_drift_kick(pos, vel, w * dt, mu)
            clamped = clamped or hit
    return _finish(state, pos, vel, clamped)


def rk4_step(state: OrbitState, dt: float, mu: float = C.MU_SUN) -> OrbitState:
    """Classic fourth-order Runge-Kutta step. Not symplectic."""
    dt = _check_dt(dt)
    clamped = False

    def deriv(pos):
        nonlocal clamped
        pos, hit = guard_radius(pos)
        clamped = clamped or hit
        return central_acceleration(pos, mu)

    p0, v0 = state.pos, state.vel
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        k1_v = deriv(p0)
        k1_p = v0

        k2_v = deriv(p0 + 0.5 * dt * k1_p)
        k2_p = v0 + 0.5 * dt * k1_v

        k3_v = deriv(p0 + 0.5 * dt * k2_p)
        k3_p = v0 + 0.5 * dt * k2_v

        k4_v = deriv(p0 + dt * k3_p)
        k4_p = v0 + dt * k3_v

        pos_new = p0 + (dt / 6.0) * (k1_p + 2 * k2_p + 2 * k3_p + k4_p)
        vel_new = v0 + (dt / 6.0) * (k1_v + 2 * k2_v + 2 * k3_v + k4_v)
        pos_new, hit = guard_radius(pos_new)
    return _finish(state, pos_new, vel_new, clamped or hit)


def euler_step(state: OrbitState, dt: float, mu: float = C.MU_SUN) -> OrbitState:
    """Explicit Euler step. Energy grows every orbit; kept as a reference."""
    dt = _check_dt(dt)
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        pos, clamped = guard_radius(state.pos)
        acc = central_acceleration(pos, mu)
        pos_new, hit = guard_radius(pos + state.vel * dt)
        vel_new = state.vel + acc * dt
    return _finish(state, pos_new, vel_new, clamped or hit)


INTEGRATORS = {
    "Symplectic": leapfrog_step,
    "Symplectic4": symplectic4_step,
    "ForestRuth": forest_ruth_step,
    "RK4": rk4_step,
    "Euler": euler_step,
}


def get_integrator(name: str):
    """Look up a stepper by the name used on the command line."""
    if name not in INTEGRATORS:
        raise KeyError(f"Integrator '{name}' not found")
    return INTEGRATORS[name]


def integrate(
    state: OrbitState,
    dt: float,
    mu: float = C.MU_SUN,
    method=leapfrog_step,
    max_step: float | None = None,
) -> OrbitState:
    """Advance ``state`` by ``dt``, optionally split into equal sub-steps.

    Parameters
    ----------
    method : callable, optional
        Any stepper with the ``(state, dt, mu)`` signature.
    max_step : float, optional
        Upper bound on each sub-step in seconds. ``None`` takes one step of
        size ``dt``. The number of sub-steps is capped at
        :data:`~orrery.constants.MAX_SUBSTEPS`.
    """
    dt = _check_dt(dt)
    if max_step is None or dt == 0.0:
        return method(state, dt, mu)
    if not (math.isfinite(max_step) and max_step > 0.0):
        raise ValueError(f"max_step must be a positive finite number, got {max_step!r}")

    n = min(C.MAX_SUBSTEPS, max(1, math.ceil(abs(dt) / max_step)))
    sub_dt = dt / n
    degenerate = False
    for _ in range(n):
        state = method(state, sub_dt, mu)
        degenerate = degenerate or state.degenerate
    return OrbitState(state.pos, state.vel, degenerate=degenerate)
