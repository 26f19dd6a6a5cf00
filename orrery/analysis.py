import csv
import math
import os
from collections import deque

import numpy as np

from . import constants as C


def specific_energy(state, mu=C.MU_SUN) -> float:
    """Specific orbital energy ``|v|^2 / 2 - mu / |r|`` [J/kg]."""
    r = np.linalg.norm(state.pos)
    v = np.linalg.norm(state.vel)
    return float(v**2 / 2 - mu / r)


def calculate_orbital_elements(state, mu=C.MU_SUN):
    """Return the osculating orbital elements of ``state`` about the central mass."""
    r_vec = np.asarray(state.pos, dtype=float)
    v_vec = np.asarray(state.vel, dtype=float)
    r = np.linalg.norm(r_vec)
    v = np.linalg.norm(v_vec)

    if r == 0:
        return {
            'semi_major_axis': 0, 'eccentricity': 0, 'period': 0,
            'periapsis': 0, 'apoapsis': 0, 'speed': v, 'distance': 0,
        }

    energy = v**2 / 2 - mu / r

    h_vec = np.cross(r_vec, v_vec)
    e_vec = (np.cross(v_vec, h_vec) / mu) - (r_vec / r)
    eccentricity = float(np.linalg.norm(e_vec))

    if abs(energy) < 1e-9:  # parabolic
        semi_major_axis = math.inf
        period = math.inf
    else:
        semi_major_axis = -mu / (2 * energy)
        if semi_major_axis > 0:
            period = 2 * math.pi * math.sqrt(semi_major_axis**3 / mu)
        else:  # hyperbolic
            period = math.inf

    periapsis = semi_major_axis * (1 - eccentricity) if 0 < semi_major_axis < math.inf else 0
    apoapsis = semi_major_axis * (1 + eccentricity) if 0 < semi_major_axis < math.inf else 0

    return {
        'semi_major_axis': semi_major_axis,
        'eccentricity': eccentricity,
        'period': period,
        'periapsis': periapsis,
        'apoapsis': apoapsis,
        'speed': float(v),
        'distance': float(r),
    }


def orbit_path(state, mu=C.MU_SUN, samples=C.ORBIT_SAMPLES):
    """Points [m] along the Kepler ellipse through ``state``, periapsis first.

    Returns a ``(samples, 3)`` array, or ``None`` for unbound or radial orbits.
    """
    r_vec = np.asarray(state.pos, dtype=float)
    v_vec = np.asarray(state.vel, dtype=float)
    r = np.linalg.norm(r_vec)
    h_vec = np.cross(r_vec, v_vec)
    h = np.linalg.norm(h_vec)
    if r == 0 or h == 0:
        return None

    e_vec = (np.cross(v_vec, h_vec) / mu) - (r_vec / r)
    e = np.linalg.norm(e_vec)
    if e >= 1:
        return None
    # Circular orbits have no periapsis; start from the current position
    p_axis = e_vec / e if e > 1e-10 else r_vec / r
    q_axis = np.cross(h_vec / h, p_axis)

    nu = np.linspace(0.0, 2 * math.pi, samples, endpoint=False)
    radius = (h * h / mu) / (1 + e * np.cos(nu))
    return radius[:, None] * (np.cos(nu)[:, None] * p_axis + np.sin(nu)[:, None] * q_axis)


class EnergyMonitor:
    """Track the worst relative drift of specific orbital energy across bodies."""

    def __init__(self, max_points=500, mu=C.MU_SUN):
        self.mu = mu
        self.history = deque(maxlen=max_points)
        self.initial_energy = {}

    def set_initial_energy(self, bodies):
        self.initial_energy = {b.id: specific_energy(b.state, self.mu) for b in bodies}
        self.history.clear()

    def drift(self, body) -> float:
        """Relative energy drift of one body in percent."""
        e0 = self.initial_energy.get(body.id)
        if e0 is None or abs(e0) < 1e-12:
            return 0.0
        return (specific_energy(body.state, self.mu) - e0) / abs(e0) * 100

    def update(self, bodies):
        if not self.initial_energy:
            return
        worst = max((self.drift(b) for b in bodies), key=abs, default=0.0)
        self.history.append(worst)

    @property
    def latest(self) -> float:
        return self.history[-1] if self.history else 0.0

    def export_csv(self, file, delimiter=","):
        """Export the recorded energy drift history to a CSV file.

        Parameters
        ----------
        file : str or file-like
            Destination filename or open file object.
        delimiter : str, optional
            Delimiter used between columns (default is ',').
        """
        close = False
        if isinstance(file, (str, bytes, os.PathLike)):
            f = open(file, "w", newline="")
            close = True
        else:
            f = file
        writer = csv.writer(f, delimiter=delimiter)
        writer.writerow(["frame", "energy_drift_percent"])
        for i, drift in enumerate(self.history):
            writer.writerow([i, drift])
        if close:
            f.close()
