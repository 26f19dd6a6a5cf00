import math

import numpy as np
import pytest

import orrery.constants as C
from orrery.bodies import Body, BodyRegistry
from orrery.camera import FreeOrbit
from orrery.input import Click, DragEnd, DragMove, DragStart, InputSurface, Resize, Wheel
from orrery.integrators import leapfrog_step
from orrery.rendering import RenderBackend
from orrery.simulation import RenderSurfaceError, SimulationContext, SimulationScheduler


class RecordingRenderer(RenderBackend):
    """Renderer double that remembers what the scheduler pushed."""

    def __init__(self, surface=True):
        self.surface = surface
        self.primitives = {}
        self.transforms = {}
        self.pose = None
        self.projection = None
        self.selection = None
        self.sizes = []
        self.orbits = {}
        self.draws = 0

    def has_surface(self):
        return self.surface

    def create_primitive(self, body_id, radius, color, name=None):
        self.primitives[body_id] = (radius, color, name)

    def set_transform(self, body_id, position, rotation):
        self.transforms[body_id] = (np.array(position), rotation)

    def set_camera(self, pose, projection):
        self.pose = pose
        self.projection = projection

    def set_selection(self, body_id):
        self.selection = body_id

    def set_orbit(self, body_id, points):
        self.orbits[body_id] = points

    def resize(self, width, height):
        self.sizes.append((width, height))

    def draw(self):
        self.draws += 1


class FakeClock:
    def __init__(self, *times):
        self.times = list(times)

    def __call__(self):
        return self.times.pop(0)


def screen_point(point, pose, proj):
    forward, up, right = pose.basis()
    rel = np.asarray(point, dtype=float) - pose.position
    depth = np.dot(rel, forward)
    t = proj.tan_half_fov
    ndc_x = np.dot(rel, right) / (depth * t * proj.aspect)
    ndc_y = np.dot(rel, up) / (depth * t)
    return (ndc_x + 1) / 2 * proj.width, (1 - ndc_y) / 2 * proj.height


def make_scheduler(playing=True, clock=None, **kwargs):
    context = SimulationContext.from_preset("Inner Planets", playing=playing, **kwargs)
    surface = InputSurface()
    renderer = RecordingRenderer()
    scheduler = SimulationScheduler(
        context, renderer, input_surface=surface, clock=clock or FakeClock(0.0, 0.5, 1.0, 1.5)
    )
    return scheduler, surface, renderer


def test_start_without_surface_fails_cleanly():
    context = SimulationContext.from_preset("Inner Planets")
    surface = InputSurface()
    renderer = RecordingRenderer(surface=False)
    scheduler = SimulationScheduler(context, renderer, input_surface=surface)
    with pytest.raises(RenderSurfaceError):
        scheduler.start()
    assert surface.listener_count == 0
    assert renderer.primitives == {}
    with pytest.raises(RuntimeError):
        scheduler.frame()


def test_start_creates_one_primitive_per_body():
    scheduler, surface, renderer = make_scheduler()
    scheduler.start()
    assert list(renderer.primitives) == ["mercury", "venus", "earth", "mars"]
    assert renderer.primitives["earth"][2] == "Earth"
    assert renderer.sizes == [(C.WIDTH, C.HEIGHT)]
    assert surface.listener_count == 1
    scheduler.stop()
    assert surface.listener_count == 0


def test_repeated_start_stop_does_not_leak_listeners():
    scheduler, surface, _ = make_scheduler()
    for _ in range(3):
        with scheduler:
            assert surface.listener_count == 1
        assert surface.listener_count == 0


def test_listeners_released_when_loop_raises():
    scheduler, surface, _ = make_scheduler()
    with pytest.raises(KeyError):
        with scheduler:
            raise KeyError("crash")
    assert surface.listener_count == 0
    assert not scheduler.running


def test_frame_advances_by_wall_time_times_scale():
    scheduler, _, renderer = make_scheduler(time_scale=1e5)
    ctx = scheduler.context
    before = ctx.registry.get("earth").state
    with scheduler:
        first = scheduler.frame()
        second = scheduler.frame()

    assert first.sim_dt == 0.0
    assert second.sim_dt == 5e4
    assert ctx.simulation_time == 5e4
    expected = leapfrog_step(before, 5e4, C.MU_SUN)
    assert np.array_equal(ctx.registry.get("earth").pos, expected.pos)
    assert np.array_equal(ctx.registry.get("earth").vel, expected.vel)

    assert set(renderer.transforms) == set(ctx.registry.ids())
    assert np.allclose(renderer.transforms["earth"][0], ctx.registry.render_position("earth"))
    assert renderer.draws == 2
    assert len(ctx.energy_monitor.history) == 1


def test_paused_simulation_still_moves_camera():
    scheduler, surface, _ = make_scheduler(playing=False)
    ctx = scheduler.context
    before = ctx.registry.get("earth").pos.copy()
    with scheduler:
        scheduler.frame()
        start = ctx.camera.pose.position
        surface.dispatch(DragStart(10, 10))
        surface.dispatch(DragMove(40, 0))
        surface.dispatch(DragEnd(50, 10))
        snap = scheduler.frame()

    assert snap.sim_dt == 0.0
    assert np.array_equal(ctx.registry.get("earth").pos, before)
    assert not np.allclose(snap.pose.position, start)


def test_wheel_zooms_camera():
    scheduler, surface, _ = make_scheduler(playing=False)
    with scheduler:
        radius = scheduler.context.camera.state.radius
        surface.dispatch(Wheel(200))
        scheduler.frame()
    assert math.isclose(scheduler.context.camera.state.radius, radius + 200 * C.WHEEL_SENSITIVITY)


def test_click_selects_body_and_flies_there():
    scheduler, surface, renderer = make_scheduler(playing=False)
    ctx = scheduler.context
    with scheduler:
        scheduler.frame()
        point = screen_point(ctx.registry.render_position("earth"), ctx.camera.pose, ctx.projection)
        surface.dispatch(Click(*point))
        snap = scheduler.frame()
        assert snap.selection == "earth"
        assert renderer.selection == "earth"
        assert ctx.camera.transitioning
        assert np.allclose(ctx.camera.state.target_look_at, ctx.registry.render_position("earth"))
        assert "Earth" in ctx.selection_context()

        surface.dispatch(Click(2, 2))
        snap = scheduler.frame()
        assert snap.selection is None
        assert ctx.selection_context() == ""


def test_dismiss_selection():
    scheduler, _, _ = make_scheduler(playing=False)
    scheduler.context.selection = "mars"
    scheduler.dismiss_selection()
    assert scheduler.context.selected_body() is None


def test_resize_updates_projection_and_renderer():
    scheduler, surface, renderer = make_scheduler(playing=False)
    with scheduler:
        surface.dispatch(Resize(1600, 400))
        scheduler.frame()
    assert scheduler.context.projection.viewport == (1600, 400)
    assert scheduler.context.projection.aspect == 4.0
    assert renderer.sizes[-1] == (1600, 400)


@pytest.mark.parametrize("value", [math.nan, math.inf, -1.0])
def test_invalid_time_scale_is_ignored(value):
    scheduler, _, _ = make_scheduler(time_scale=1e5)
    assert not scheduler.set_time_scale(value)
    assert scheduler.context.time_scale == 1e5
    assert scheduler.set_time_scale(2e5)
    assert scheduler.context.time_scale == 2e5


def test_non_finite_scale_skips_physics():
    scheduler, _, _ = make_scheduler()
    ctx = scheduler.context
    ctx.time_scale = math.inf
    before = ctx.registry.get("mars").pos.copy()
    with scheduler:
        scheduler.frame()
        snap = scheduler.frame()
    assert snap.sim_dt == 0.0
    assert np.array_equal(ctx.registry.get("mars").pos, before)


@pytest.mark.parametrize("times", [(10.0, 9.0), (0.0, math.nan)])
def test_bad_clock_readings_give_empty_frames(times):
    scheduler, _, _ = make_scheduler(clock=FakeClock(*times))
    with scheduler:
        scheduler.frame()
        assert scheduler.frame().sim_dt == 0.0


def test_failing_body_does_not_stop_others():
    scheduler, _, _ = make_scheduler()
    ctx = scheduler.context
    venus = ctx.registry.get("venus").pos.copy()
    earth = ctx.registry.get("earth").pos.copy()

    def flaky(state, dt, mu):
        if np.array_equal(state.pos, venus):
            raise FloatingPointError("overflow")
        return leapfrog_step(state, dt, mu)

    ctx.step = flaky
    with scheduler:
        scheduler.frame()
        scheduler.frame()
    assert np.array_equal(ctx.registry.get("venus").pos, venus)
    assert not np.array_equal(ctx.registry.get("earth").pos, earth)


def test_degenerate_body_is_reported_and_stays_finite():
    registry = BodyRegistry(
        [Body("dust", "Dust", 0.5, (200, 200, 200), 3600.0, [1.0, 0.0, 0.0], [0.0, 0.0, 0.0])]
    )
    context = SimulationContext(registry)
    scheduler = SimulationScheduler(context, RecordingRenderer(), clock=FakeClock(0.0, 0.001))
    with scheduler:
        scheduler.frame()
        snap = scheduler.frame()
    assert snap.degenerate == ("dust",)
    assert np.all(np.isfinite(snap.transforms[0].position))


def test_contexts_are_independent():
    a, _, _ = make_scheduler()
    b, _, _ = make_scheduler()
    with a:
        a.frame()
        a.frame()
    assert a.context.simulation_time > 0
    assert b.context.simulation_time == 0
    assert not np.array_equal(
        a.context.registry.get("earth").pos, b.context.registry.get("earth").pos
    )


def test_start_hands_orbit_paths_to_renderer():
    scheduler, _, renderer = make_scheduler()
    with scheduler:
        pass
    assert list(renderer.orbits) == ["mercury", "venus", "earth", "mars"]
    earth = renderer.orbits["earth"]
    assert earth.shape == (C.ORBIT_SAMPLES, 3)
    # Ecliptic orbits stay close to the render XZ plane
    assert np.max(np.abs(earth[:, 1])) < 0.1 * np.max(np.abs(earth[:, 0]))


def test_input_left_at_stop_is_not_replayed_after_restart():
    scheduler, surface, _ = make_scheduler(playing=False)
    cam = scheduler.context.camera
    with scheduler:
        scheduler.frame()
        surface.dispatch(Wheel(400))
        surface.dispatch(DragStart(0, 0))
        surface.dispatch(DragMove(30, 0))
    radius, yaw = cam.state.radius, cam.state.yaw

    with scheduler:
        scheduler.frame()
    assert cam.state.radius == radius
    assert cam.state.yaw == yaw


def test_drag_during_fly_to_takes_over_without_jump():
    clock = FakeClock(*[0.1 * i for i in range(8)])
    scheduler, surface, _ = make_scheduler(playing=False, clock=clock)
    ctx = scheduler.context
    with scheduler:
        scheduler.frame()
        point = screen_point(ctx.registry.render_position("earth"), ctx.camera.pose, ctx.projection)
        surface.dispatch(Click(*point))
        scheduler.frame()
        prev = scheduler.frame().pose.position
        current = scheduler.frame().pose.position
        last_step = np.linalg.norm(current - prev)
        assert ctx.camera.transitioning

        surface.dispatch(DragStart(10, 10))
        surface.dispatch(DragMove(1, 0))
        snap = scheduler.frame()

    assert isinstance(ctx.camera.state, FreeOrbit)
    assert np.linalg.norm(snap.pose.position - current) <= last_step
    assert snap.selection == "earth"
