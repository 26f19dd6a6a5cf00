"""Renderer interface and the pygame implementation.

The simulation core only ever pushes data into a :class:`RenderBackend`:
one primitive per body at start-up, then transforms, the camera pose and a
draw call every frame. Nothing flows back, so renderer details stay out of
the physics and camera code.
"""

import math

import numpy as np
import pygame
import pygame.gfxdraw

from . import constants as C
from .presets import SUN

_MAX_COORD = 30000  # gfxdraw takes 16-bit coordinates


class RenderBackend:
    """What the scheduler needs from a renderer."""

    def has_surface(self) -> bool:
        raise NotImplementedError

    def create_primitive(self, body_id, radius, color, name=None) -> None:
        raise NotImplementedError

    def set_transform(self, body_id, position, rotation) -> None:
        raise NotImplementedError

    def set_camera(self, pose, projection) -> None:
        raise NotImplementedError

    def set_selection(self, body_id) -> None:
        """Highlight ``body_id`` (``None`` clears). Optional."""

    def set_orbit(self, body_id, points) -> None:
        """Show the closed orbit path ``points`` (render space) of ``body_id``. Optional."""

    def resize(self, width, height) -> None:
        raise NotImplementedError

    def draw(self) -> None:
        raise NotImplementedError


class _Primitive:
    __slots__ = ("radius", "color", "position", "rotation")

    def __init__(self, radius, color):
        self.radius = float(radius)
        self.color = tuple(color)
        self.position = np.zeros(3)
        self.rotation = 0.0


class PygameRenderer(RenderBackend):
    """Draw the scene as perspective-projected discs on a pygame surface."""

    def __init__(self, screen, draw_labels=True):
        self.screen = screen
        self.draw_labels = draw_labels
        self.primitives = {}
        self.names = {}
        self.orbits = {}
        self.selection = None
        self.pose = None
        self.projection = None
        self.font = pygame.font.Font(None, 16) if pygame.font.get_init() else None

    def has_surface(self) -> bool:
        return self.screen is not None

    def create_primitive(self, body_id, radius, color, name=None):
        self.primitives[body_id] = _Primitive(radius, color)
        self.names[body_id] = name or str(body_id)

    def set_transform(self, body_id, position, rotation):
        prim = self.primitives[body_id]
        prim.position = np.asarray(position, dtype=float)
        prim.rotation = float(rotation)

    def set_camera(self, pose, projection):
        self.pose = pose
        self.projection = projection

    def set_selection(self, body_id):
        self.selection = body_id

    def set_orbit(self, body_id, points):
        self.orbits[body_id] = np.asarray(points, dtype=float)

    def resize(self, width, height):
        # The display surface is recreated by pygame on VIDEORESIZE; only
        # the projection (owned by the scheduler) depends on the new size.
        if self.screen is not None:
            self.screen = pygame.display.get_surface() or self.screen

    def project(self, point):
        """Return ``(x, y, depth, pixels_per_unit)`` or ``None`` if behind the camera."""
        forward, up, right = self.pose.basis()
        rel = np.asarray(point, dtype=float) - self.pose.position
        depth = float(np.dot(rel, forward))
        if depth <= self.projection.near:
            return None
        focal = 1.0 / self.projection.tan_half_fov
        width, height = self.projection.viewport
        ndc_x = float(np.dot(rel, right)) * focal / (self.projection.aspect * depth)
        ndc_y = float(np.dot(rel, up)) * focal / depth
        sx = (ndc_x + 1.0) * 0.5 * width
        sy = (1.0 - ndc_y) * 0.5 * height
        return sx, sy, depth, focal / depth * height * 0.5

    def _disc(self, sx, sy, radius_px, color):
        if abs(sx) > _MAX_COORD or abs(sy) > _MAX_COORD:
            return None
        x, y = int(sx), int(sy)
        r = int(max(1, min(radius_px, _MAX_COORD)))
        pygame.gfxdraw.filled_circle(self.screen, x, y, r, color)
        pygame.gfxdraw.aacircle(self.screen, x, y, r, color)
        return x, y, r

    def draw(self):
        if self.screen is None or self.pose is None:
            return
        self.screen.fill(C.BLACK)
        for points in self.orbits.values():
            self._draw_orbit(points)

        items = [("__sun__", np.zeros(3), SUN["size"], SUN["color"], None)]
        for body_id, prim in self.primitives.items():
            items.append((body_id, prim.position, prim.radius, prim.color, prim.rotation))

        projected = []
        for body_id, pos, radius, color, rotation in items:
            p = self.project(pos)
            if p is not None:
                projected.append((p, body_id, pos, radius, color, rotation))
        # Painter's order: far first
        projected.sort(key=lambda item: -item[0][2])

        for (sx, sy, depth, ppu), body_id, pos, radius, color, rotation in projected:
            disc = self._disc(sx, sy, radius * ppu, color)
            if disc is None:
                continue
            x, y, r = disc
            if rotation is not None:
                self._draw_spin_marker(pos, radius, rotation, (x, y))
            if body_id == self.selection:
                pygame.gfxdraw.aacircle(self.screen, x, y, r + 4, C.SELECTION_COLOR)
            if self.draw_labels and self.font is not None and body_id in self.names:
                label = self.font.render(self.names[body_id], True, C.WHITE)
                self.screen.blit(label, (x + r + 2, y - r - 2))

    def _draw_orbit(self, points):
        if len(points) == 0:
            return
        # Break the loop wherever a point is behind the camera or off the 16-bit range
        run = []
        for point in list(points) + [points[0]]:
            p = self.project(point)
            if p is None or abs(p[0]) > _MAX_COORD or abs(p[1]) > _MAX_COORD:
                if len(run) > 1:
                    pygame.draw.aalines(self.screen, C.ORBIT_COLOR, False, run)
                run = []
                continue
            run.append((p[0], p[1]))
        if len(run) > 1:
            pygame.draw.aalines(self.screen, C.ORBIT_COLOR, False, run)

    def _draw_spin_marker(self, pos, radius, rotation, center_px):
        edge = pos + radius * np.array([math.cos(rotation), 0.0, -math.sin(rotation)])
        p = self.project(edge)
        if p is None or abs(p[0]) > _MAX_COORD or abs(p[1]) > _MAX_COORD:
            return
        pygame.draw.aaline(self.screen, C.DARK_GRAY, center_px, (p[0], p[1]))
