"""Interactive solar system explorer: orbits, camera and picking core."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("orrery")
except PackageNotFoundError:
    # Fallback when package metadata is unavailable (e.g. running from source)
    __version__ = "0.0.0"

from .constants import MU_SUN, AU, DAY_TO_S, DISTANCE_SCALE
from .integrators import OrbitState, leapfrog_step, integrate, get_integrator
from .bodies import Body, BodyRegistry
from .camera import CameraController, CameraPose, FreeOrbit, Projection, Transitioning
from .picking import pick
from .input import InputPort, InputSurface, PointerGesture
from .simulation import (
    FrameSnapshot,
    RenderSurfaceError,
    SimulationContext,
    SimulationScheduler,
)

__all__ = [
    "__version__",
    "MU_SUN",
    "AU",
    "DAY_TO_S",
    "DISTANCE_SCALE",
    "OrbitState",
    "leapfrog_step",
    "integrate",
    "get_integrator",
    "Body",
    "BodyRegistry",
    "CameraController",
    "CameraPose",
    "FreeOrbit",
    "Projection",
    "Transitioning",
    "pick",
    "InputPort",
    "InputSurface",
    "PointerGesture",
    "FrameSnapshot",
    "RenderSurfaceError",
    "SimulationContext",
    "SimulationScheduler",
]
