"""Frame loop driving physics, camera, picking and rendering.

A :class:`SimulationContext` holds all mutable simulation state. The
:class:`SimulationScheduler` is its only mutator: each call to
:meth:`SimulationScheduler.frame` steps the bodies (when playing), applies
the input gathered since the previous frame, updates the camera and pushes
the result to the renderer. Several contexts can live side by side.
"""

import logging
import math
import time
from contextlib import ExitStack
from typing import NamedTuple, Optional

from . import constants as C
from .analysis import EnergyMonitor
from .bodies import BodyRegistry
from .camera import CameraController, CameraPose, Projection
from .input import InputPort, PointerGesture
from .integrators import get_integrator, integrate
from .picking import pick
from .utils import describe_body

logger = logging.getLogger(__name__)


class RenderSurfaceError(RuntimeError):
    """The renderer has nothing to draw on; the frame loop cannot start."""


class FrameSnapshot(NamedTuple):
    simulation_time: float
    sim_dt: float
    transforms: list
    pose: CameraPose
    selection: Optional[str]
    degenerate: tuple


class SimulationContext:
    """Bodies, camera, selection and run controls of one simulation."""

    def __init__(
        self,
        registry: BodyRegistry,
        camera: CameraController | None = None,
        projection: Projection | None = None,
        *,
        mu: float = C.MU_SUN,
        time_scale: float = C.DEFAULT_TIME_SCALE,
        playing: bool = True,
        integrator: str = C.DEFAULT_INTEGRATOR,
        max_substep: float | None = None,
    ):
        self.registry = registry
        self.camera = camera if camera is not None else CameraController()
        self.projection = projection if projection is not None else Projection()
        self.mu = float(mu)
        self.time_scale = float(time_scale)
        self.playing = bool(playing)
        self.integrator_name = integrator
        self.step = get_integrator(integrator)
        self.max_substep = max_substep
        self.selection = None
        self.simulation_time = 0.0
        self.energy_monitor = EnergyMonitor(mu=self.mu)
        self.energy_monitor.set_initial_energy(registry)

    @classmethod
    def from_preset(cls, preset_name: str, **kwargs) -> "SimulationContext":
        return cls(BodyRegistry.from_preset(preset_name), **kwargs)

    def selected_body(self):
        if self.selection is None:
            return None
        return self.registry.get(self.selection)

    def selection_context(self) -> str:
        """Descriptive text of the selected body for the chat assistant."""
        body = self.selected_body()
        return describe_body(body, self.mu) if body is not None else ""


class SimulationScheduler:
    """Run the per-frame update of a :class:`SimulationContext`.

    Parameters
    ----------
    context : SimulationContext
        State owned and mutated by this scheduler.
    renderer : RenderBackend
        Receives primitives, transforms, camera pose and draw calls.
    input_port : InputPort, optional
        Source of per-frame gestures. A fresh port is created if omitted.
    input_surface : InputSurface, optional
        If given, ``input_port`` listens to it between :meth:`start` and
        :meth:`stop`.
    clock : callable, optional
        Monotonic wall clock in seconds.
    """

    def __init__(self, context, renderer, input_port=None, input_surface=None, clock=time.perf_counter):
        self.context = context
        self.renderer = renderer
        self.input_port = input_port if input_port is not None else InputPort()
        self.input_surface = input_surface
        self.clock = clock
        self.running = False
        self._last_time = None
        self._exit_stack = None
        self._degenerate = set()

    # ------------------------------------------------------------------
    def start(self) -> None:
        """Prepare the renderer and attach input. Fails without a surface."""
        if self.running:
            return
        if self.renderer is None or not self.renderer.has_surface():
            logger.error("No drawable surface available; frame loop not started")
            raise RenderSurfaceError("Simulation cannot run without a render surface")

        # Nothing gathered before this session may reach its first frame
        self.input_port.drain()
        stack = ExitStack()
        try:
            if self.input_surface is not None:
                stack.enter_context(self.input_port.attached(self.input_surface))
            for body in self.context.registry:
                self.renderer.create_primitive(body.id, body.radius, body.color, name=body.name)
                path = self.context.registry.orbit_path(body.id, self.context.mu)
                if path is not None:
                    self.renderer.set_orbit(body.id, path)
            self.renderer.resize(*self.context.projection.viewport)
        except BaseException:
            stack.close()
            raise

        self._exit_stack = stack
        self._last_time = None
        self.running = True
        logger.info("Simulation started with %d bodies", len(self.context.registry))

    def stop(self) -> None:
        """Stop producing frames and release every input listener."""
        if self._exit_stack is not None:
            self._exit_stack.close()
            self._exit_stack = None
        if self.running:
            logger.info("Simulation stopped at t=%.0f s", self.context.simulation_time)
        self.running = False

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    # ------------------------------------------------------------------
    def set_time_scale(self, value) -> bool:
        """Set the simulated seconds per wall-clock second. Invalid values are ignored."""
        value = float(value)
        if not math.isfinite(value) or value < 0:
            logger.warning("Ignoring invalid time scale %r", value)
            return False
        self.context.time_scale = value
        return True

    def set_playing(self, playing: bool) -> None:
        self.context.playing = bool(playing)

    def toggle_playing(self) -> bool:
        self.context.playing = not self.context.playing
        return self.context.playing

    def dismiss_selection(self) -> None:
        self.context.selection = None

    # ------------------------------------------------------------------
    def frame(self, now: float | None = None) -> FrameSnapshot:
        """Run one frame and return what was handed to the renderer."""
        if not self.running:
            raise RuntimeError("Simulation cannot run before start() succeeds")
        ctx = self.context

        wall_dt = self._wall_delta(self.clock() if now is None else now)
        sim_dt = self._advance_physics(wall_dt)
        self._apply_input(self.input_port.drain())
        pose = ctx.camera.update()

        transforms = ctx.registry.transforms()
        for t in transforms:
            self.renderer.set_transform(t.body_id, t.position, t.rotation)
        self.renderer.set_camera(pose, ctx.projection)
        self.renderer.set_selection(ctx.selection)
        self.renderer.draw()

        return FrameSnapshot(
            ctx.simulation_time,
            sim_dt,
            transforms,
            pose,
            ctx.selection,
            tuple(sorted(self._degenerate)),
        )

    def _wall_delta(self, now) -> float:
        now = float(now)
        if not math.isfinite(now):
            logger.warning("Ignoring non-finite frame time %r", now)
            return 0.0
        last, self._last_time = self._last_time, now
        if last is None:
            return 0.0
        delta = now - last
        if delta < 0:
            logger.warning("Clock went backwards by %.3f s; frame treated as empty", -delta)
            return 0.0
        return delta

    def _advance_physics(self, wall_dt: float) -> float:
        ctx = self.context
        if not ctx.playing or wall_dt == 0.0:
            return 0.0
        scale = ctx.time_scale
        sim_dt = wall_dt * scale
        if not math.isfinite(scale) or scale < 0 or not math.isfinite(sim_dt):
            logger.warning("Invalid time scale %r; physics skipped this frame", scale)
            return 0.0

        for body in ctx.registry:
            try:
                state = integrate(body.state, sim_dt, ctx.mu, ctx.step, ctx.max_substep)
            except (ArithmeticError, ValueError) as exc:
                logger.warning("Body %s not advanced this frame: %s", body.id, exc)
                continue
            ctx.registry.set_state(body.id, state)
            self._note_degenerate(body)

        ctx.registry.advance_rotation(sim_dt)
        ctx.simulation_time += sim_dt
        ctx.energy_monitor.update(ctx.registry)
        return sim_dt

    def _note_degenerate(self, body) -> None:
        if body.degenerate and body.id not in self._degenerate:
            self._degenerate.add(body.id)
            logger.warning("Body %s reached a degenerate state near the centre; clamped", body.id)
        elif not body.degenerate and body.id in self._degenerate:
            self._degenerate.discard(body.id)
            logger.info("Body %s left the degenerate region", body.id)

    def _apply_input(self, gesture: PointerGesture) -> None:
        ctx = self.context
        try:
            if gesture.viewport is not None:
                ctx.projection.resize(*gesture.viewport)
                self.renderer.resize(*gesture.viewport)
            if gesture.drag_started:
                ctx.camera.interrupt()
            if gesture.has_orbit_input:
                ctx.camera.orbit(gesture.drag_dx, gesture.drag_dy, gesture.wheel)
            if gesture.click is not None:
                hit = pick(gesture.click, ctx.camera.pose, ctx.projection, ctx.registry.pick_targets())
                ctx.selection = hit
                if hit is not None:
                    body = ctx.registry.get(hit)
                    ctx.camera.fly_to(ctx.registry.render_position(hit), body.radius)
                    logger.debug("Selected %s", hit)
        except (ArithmeticError, ValueError) as exc:
            logger.warning("Input ignored this frame: %s", exc)
