"""Pointer picking by ray / bounding-sphere intersection."""

import math
from typing import Iterable, Optional

import numpy as np

from .camera import CameraPose, Projection


def pointer_to_ndc(pointer, viewport) -> Optional[tuple[float, float]]:
    """Map a pixel coordinate (origin top-left) to normalised device coordinates."""
    width, height = viewport
    if width <= 0 or height <= 0:
        return None
    px, py = pointer
    return (px / width) * 2.0 - 1.0, 1.0 - (py / height) * 2.0


def pointer_ray(pointer, pose: CameraPose, projection: Projection):
    """Return ``(origin, direction)`` of the ray through ``pointer``, or ``None``."""
    ndc = pointer_to_ndc(pointer, projection.viewport)
    if ndc is None:
        return None
    forward, up, right = pose.basis()
    t = projection.tan_half_fov
    direction = forward + ndc[0] * t * projection.aspect * right + ndc[1] * t * up
    return pose.position.copy(), direction / np.linalg.norm(direction)


def ray_sphere_intersection(origin, direction, center, radius) -> Optional[float]:
    """Smallest non-negative ray parameter hitting the sphere, or ``None``.

    ``direction`` must be a unit vector. A ray starting inside the sphere hits
    the far side.
    """
    oc = origin - center
    b = float(np.dot(oc, direction))
    c = float(np.dot(oc, oc)) - radius * radius
    disc = b * b - c
    if disc < 0 or not math.isfinite(disc):
        return None
    root = math.sqrt(disc)
    t = -b - root
    if t < 0:
        t = -b + root
    if t < 0:
        return None
    return t


def pick(pointer, pose: CameraPose, projection: Projection, targets: Iterable) -> Optional[str]:
    """Return the id of the nearest target under ``pointer``.

    ``targets`` yields ``(body_id, center, radius)`` in render space. Among
    all hits the smallest ray parameter wins; on an exact tie the target seen
    first is kept, so callers should pass a stable order.
    """
    ray = pointer_ray(pointer, pose, projection)
    if ray is None:
        return None
    origin, direction = ray

    best_id = None
    best_t = math.inf
    for body_id, center, radius in targets:
        t = ray_sphere_intersection(origin, direction, np.asarray(center, dtype=float), radius)
        if t is not None and t < best_t:
            best_id, best_t = body_id, t
    return best_id
