"""Pointer input events and their per-frame accumulation.

An :class:`InputSurface` (window, test harness, ...) dispatches events to its
listeners. The :class:`InputPort` listens, folds events into a
:class:`PointerGesture` and hands that gesture over exactly once per frame via
:meth:`InputPort.drain`, so a frame never sees half of a drag.
"""

import logging
import math
from contextlib import contextmanager
from typing import NamedTuple

logger = logging.getLogger(__name__)


class DragStart(NamedTuple):
    x: float
    y: float


class DragMove(NamedTuple):
    dx: float
    dy: float


class DragEnd(NamedTuple):
    x: float
    y: float


class Wheel(NamedTuple):
    delta: float


class Click(NamedTuple):
    x: float
    y: float


class Resize(NamedTuple):
    width: int
    height: int


class PointerGesture:
    """Input gathered between two frame boundaries."""

    __slots__ = ("drag_dx", "drag_dy", "wheel", "drag_started", "click", "viewport")

    def __init__(self):
        self.drag_dx = 0.0
        self.drag_dy = 0.0
        self.wheel = 0.0
        self.drag_started = False
        self.click = None
        self.viewport = None

    @property
    def has_orbit_input(self) -> bool:
        return bool(self.drag_dx or self.drag_dy or self.wheel)

    def __repr__(self):
        return (
            f"PointerGesture(drag=({self.drag_dx}, {self.drag_dy}), wheel={self.wheel}, "
            f"drag_started={self.drag_started}, click={self.click}, viewport={self.viewport})"
        )


class InputSurface:
    """Source of input events. Subclasses call :meth:`dispatch`."""

    def __init__(self):
        self._listeners = []

    def add_listener(self, callback) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback) -> None:
        self._listeners.remove(callback)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def dispatch(self, event) -> None:
        for callback in list(self._listeners):
            callback(event)


def _finite(*values) -> bool:
    return all(math.isfinite(v) for v in values)


class InputPort:
    """Accumulate events into a gesture that is consumed once per frame."""

    def __init__(self):
        self._gesture = PointerGesture()
        self.dragging = False

    def handle(self, event) -> None:
        g = self._gesture
        if isinstance(event, DragStart):
            self.dragging = True
            g.drag_started = True
        elif isinstance(event, DragMove):
            if self.dragging and _finite(event.dx, event.dy):
                g.drag_dx += event.dx
                g.drag_dy += event.dy
        elif isinstance(event, DragEnd):
            self.dragging = False
        elif isinstance(event, Wheel):
            if _finite(event.delta):
                g.wheel += event.delta
        elif isinstance(event, Click):
            if _finite(event.x, event.y):
                g.click = (float(event.x), float(event.y))
        elif isinstance(event, Resize):
            g.viewport = (int(event.width), int(event.height))
        else:
            logger.debug("Ignoring unknown input event %r", event)

    def drain(self) -> PointerGesture:
        """Hand over everything gathered since the last call and start afresh."""
        gesture, self._gesture = self._gesture, PointerGesture()
        return gesture

    @contextmanager
    def attached(self, surface: InputSurface):
        """Listen to ``surface`` for the duration of the ``with`` block.

        Input still pending when the block ends is dropped.
        """
        surface.add_listener(self.handle)
        try:
            yield self
        finally:
            surface.remove_listener(self.handle)
            self.dragging = False
            self._gesture = PointerGesture()
