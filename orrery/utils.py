"""Utility helpers for unit conversions and body fact sheets."""

import math

from . import constants as C
from .analysis import calculate_orbital_elements


def distance_to_display(dist_meters: float) -> str:
    if dist_meters == 0:
        return "0 m"
    if abs(dist_meters) >= 0.1 * C.AU:
        return f"{dist_meters/C.AU:.2f} AU"
    if abs(dist_meters) >= 1e6:
        return f"{dist_meters/1e6:.2f} Mm"
    if abs(dist_meters) >= 1e3:
        return f"{dist_meters/1e3:.2f} km"
    return f"{dist_meters:.1f} m"


def speed_to_display(speed_m_s: float) -> str:
    if abs(speed_m_s) >= 1e3:
        return f"{speed_m_s/1e3:.2f} km/s"
    return f"{speed_m_s:.1f} m/s"


def time_to_display(seconds: float) -> str:
    if seconds < 0 or math.isinf(seconds) or math.isnan(seconds):
        return "N/A"
    if seconds == 0:
        return "0 sec"
    years = seconds / 31536000
    if years >= 1:
        return f"{years:.1f} years"
    days = seconds / 86400
    if days >= 1:
        return f"{days:.1f} days"
    hours = seconds / 3600
    if hours >= 1:
        return f"{hours:.1f} hrs"
    minutes = seconds / 60
    if minutes >= 1:
        return f"{minutes:.1f} min"
    return f"{seconds:.1f} sec"


def body_facts(body, mu=C.MU_SUN) -> list[tuple[str, str]]:
    """Label/value pairs describing ``body`` for the side panel."""
    elems = calculate_orbital_elements(body.state, mu)
    spin = time_to_display(abs(body.rotation_period))
    if body.rotation_period < 0:
        spin += " (retrograde)"
    return [
        ("Distance from Sun", distance_to_display(elems["distance"])),
        ("Orbital speed", speed_to_display(elems["speed"])),
        ("Orbital period", time_to_display(elems["period"])),
        ("Eccentricity", f"{elems['eccentricity']:.3f}"),
        ("Rotation period", spin),
    ]


def describe_body(body, mu=C.MU_SUN) -> str:
    """Plain-text fact sheet, used as chat-assistant context."""
    lines = [body.name]
    if body.description:
        lines.append(body.description)
    lines.extend(f"{label}: {value}" for label, value in body_facts(body, mu))
    return "\n".join(lines)
