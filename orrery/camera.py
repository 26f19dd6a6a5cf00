import math

import numpy as np

from . import constants as C

WORLD_UP = np.array([0.0, 1.0, 0.0])
ORIGIN = np.zeros(3)


class CameraPose:
    """Camera position and look-at point in render space.

    ``right_hint`` is the screen-right direction to use when the view is
    vertical and the world up vector no longer defines one.
    """

    __slots__ = ("position", "look_at", "right_hint")

    def __init__(self, position, look_at=ORIGIN, right_hint=None):
        self.position = np.array(position, dtype=float)
        self.look_at = np.array(look_at, dtype=float)
        self.right_hint = None if right_hint is None else np.array(right_hint, dtype=float)

    def basis(self):
        """Return ``(forward, up, right)`` unit vectors."""
        forward = self.look_at - self.position
        norm = np.linalg.norm(forward)
        if norm == 0:
            forward = np.array([0.0, 0.0, -1.0])
        else:
            forward = forward / norm

        right = np.cross(forward, WORLD_UP)
        if np.linalg.norm(right) < 0.001:
            # Looking straight up or down
            right = self.right_hint if self.right_hint is not None else np.array([1.0, 0.0, 0.0])
        else:
            right = right / np.linalg.norm(right)

        up = np.cross(right, forward)
        up = up / np.linalg.norm(up)
        return forward, up, right

    def __repr__(self):
        return f"CameraPose(position={self.position.tolist()}, look_at={self.look_at.tolist()})"


class Projection:
    """Perspective parameters; the aspect ratio follows the viewport size."""

    def __init__(
        self,
        fov_deg=C.FOV_DEG,
        width=C.WIDTH,
        height=C.HEIGHT,
        near=C.NEAR_PLANE,
        far=C.FAR_PLANE,
    ):
        self.fov_deg = float(fov_deg)
        self.near = float(near)
        self.far = float(far)
        self.width = 0
        self.height = 0
        self.aspect = 1.0
        self.resize(width, height)

    def resize(self, width, height) -> None:
        self.width = max(0, int(width))
        self.height = max(0, int(height))
        self.aspect = self.width / self.height if self.height > 0 else 1.0

    @property
    def viewport(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def tan_half_fov(self) -> float:
        return math.tan(math.radians(self.fov_deg) / 2.0)


class FreeOrbit:
    """User-driven orbit about the world origin in spherical coordinates."""

    __slots__ = ("radius", "yaw", "pitch")

    def __init__(self, radius, yaw=0.0, pitch=0.0):
        self.radius = float(radius)
        self.yaw = float(yaw)
        self.pitch = float(pitch)

    @classmethod
    def from_position(cls, position) -> "FreeOrbit":
        """Recover spherical parameters from a Cartesian camera position."""
        x, y, z = np.asarray(position, dtype=float)
        radius = math.sqrt(x * x + y * y + z * z)
        if radius == 0 or not math.isfinite(radius):
            return cls(C.CAMERA_MIN_RADIUS)
        pitch = math.asin(max(-1.0, min(1.0, y / radius)))
        yaw = math.atan2(x, z)
        return cls(radius, yaw, pitch)

    def position(self) -> np.ndarray:
        cos_p = math.cos(self.pitch)
        return self.radius * np.array(
            [math.sin(self.yaw) * cos_p, math.sin(self.pitch), math.cos(self.yaw) * cos_p]
        )

    def right(self) -> np.ndarray:
        """Screen-right direction for this yaw, also valid at the poles."""
        return np.array([math.cos(self.yaw), 0.0, -math.sin(self.yaw)])

    def __repr__(self):
        return f"FreeOrbit(radius={self.radius:.3f}, yaw={self.yaw:.3f}, pitch={self.pitch:.3f})"


class Transitioning:
    """Fly-to in progress. Both targets are fixed when the transition starts."""

    __slots__ = ("position", "look_at", "target_position", "target_look_at", "smoothing")

    def __init__(self, position, look_at, target_position, target_look_at, smoothing=C.CAMERA_SMOOTHING):
        if not 0.0 < smoothing <= 1.0:
            raise ValueError(f"smoothing must be in (0, 1], got {smoothing}")
        self.position = np.array(position, dtype=float)
        self.look_at = np.array(look_at, dtype=float)
        self.target_position = np.array(target_position, dtype=float)
        self.target_look_at = np.array(target_look_at, dtype=float)
        self.smoothing = float(smoothing)

    def distance_to_target(self) -> float:
        return float(np.linalg.norm(self.target_position - self.position))

    def __repr__(self):
        return (
            f"Transitioning(position={self.position.tolist()}, "
            f"target={self.target_position.tolist()})"
        )


def _finite(value) -> float:
    value = float(value)
    return value if math.isfinite(value) else 0.0


class CameraController:
    """Produce the camera pose each frame from user input or a fly-to.

    The controller is always in exactly one of two states: :class:`FreeOrbit`
    or :class:`Transitioning`. Any drag or wheel input ends a running
    transition, seeding the free orbit from the camera's current position so
    the view never jumps.
    """

    def __init__(
        self,
        position=C.DEFAULT_CAMERA_POSITION,
        smoothing=C.CAMERA_SMOOTHING,
        epsilon=C.CAMERA_ARRIVAL_EPSILON,
        drag_sensitivity=C.DRAG_SENSITIVITY,
        wheel_sensitivity=C.WHEEL_SENSITIVITY,
        min_radius=C.CAMERA_MIN_RADIUS,
        max_radius=C.CAMERA_MAX_RADIUS,
    ):
        self.smoothing = float(smoothing)
        self.epsilon = float(epsilon)
        self.drag_sensitivity = float(drag_sensitivity)
        self.wheel_sensitivity = float(wheel_sensitivity)
        self.min_radius = float(min_radius)
        self.max_radius = float(max_radius)
        self.state = FreeOrbit.from_position(position)

    @property
    def transitioning(self) -> bool:
        return isinstance(self.state, Transitioning)

    @property
    def pose(self) -> CameraPose:
        if isinstance(self.state, Transitioning):
            return CameraPose(self.state.position, self.state.look_at)
        return CameraPose(self.state.position(), ORIGIN, right_hint=self.state.right())

    def interrupt(self) -> None:
        """Abort a running transition where it currently is."""
        if isinstance(self.state, Transitioning):
            self.state = FreeOrbit.from_position(self.state.position)

    def orbit(self, dx=0.0, dy=0.0, wheel=0.0) -> None:
        """Apply drag (pixels) and wheel deltas to the free orbit."""
        self.interrupt()
        orbit = self.state
        orbit.yaw += _finite(dx) * self.drag_sensitivity
        pitch = orbit.pitch + _finite(dy) * self.drag_sensitivity
        orbit.pitch = max(-C.PITCH_LIMIT, min(C.PITCH_LIMIT, pitch))
        wheel = _finite(wheel)
        if wheel:
            radius = orbit.radius + wheel * self.wheel_sensitivity
            orbit.radius = max(self.min_radius, min(self.max_radius, radius))

    def fly_to(self, center, body_radius: float) -> None:
        """Start smoothly approaching a body at ``center`` (render space)."""
        center = np.asarray(center, dtype=float)
        distance = float(body_radius) * C.FOCUS_DISTANCE_FACTOR
        target = center + distance * np.array([1.0, 0.5, 1.0])
        pose = self.pose
        self.state = Transitioning(pose.position, pose.look_at, target, center, self.smoothing)

    def update(self) -> CameraPose:
        """Advance one frame and return the resulting pose."""
        state = self.state
        if isinstance(state, Transitioning):
            state.position = state.position + (state.target_position - state.position) * state.smoothing
            state.look_at = state.look_at + (state.target_look_at - state.look_at) * state.smoothing
            if state.distance_to_target() < self.epsilon:
                self.state = FreeOrbit.from_position(state.position)
        return self.pose
