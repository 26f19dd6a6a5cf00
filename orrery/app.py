import argparse
import logging
from datetime import datetime

import pygame
import pygame_gui

from . import __version__
from . import constants as C
from .bodies import BodyRegistry
from .input import Click, DragEnd, DragMove, DragStart, InputSurface, Resize, Wheel
from .integrators import INTEGRATORS
from .nasa import create_registry, load_ephemeris
from .presets import PRESETS
from .rendering import PygameRenderer
from .simulation import SimulationContext, SimulationScheduler
from .ui_manager import ControlPanel

logger = logging.getLogger(__name__)


class PygameInputSurface(InputSurface):
    """Turn raw pygame mouse/window events into simulation input events.

    A left press becomes a drag once the pointer has travelled
    ``CLICK_SLOP_PIXELS``; a release before that is a click.
    """

    def __init__(self, ignore=None):
        super().__init__()
        self.ignore = ignore
        self._press = None
        self._travel = 0.0
        self._dragging = False

    def _ignored(self, pos) -> bool:
        return self.ignore is not None and self.ignore(pos)

    def feed(self, event):
        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self._ignored(event.pos):
                return
            self._press = event.pos
            self._travel = 0.0
            self._dragging = False
        elif event.type == pygame.MOUSEMOTION and self._press is not None:
            dx, dy = event.rel
            self._travel += abs(dx) + abs(dy)
            if not self._dragging and self._travel >= C.CLICK_SLOP_PIXELS:
                self._dragging = True
                self.dispatch(DragStart(*self._press))
                dx, dy = event.pos[0] - self._press[0], event.pos[1] - self._press[1]
            if self._dragging:
                self.dispatch(DragMove(dx, dy))
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1 and self._press is not None:
            if self._dragging:
                self.dispatch(DragEnd(*event.pos))
            else:
                self.dispatch(Click(*event.pos))
            self._press = None
            self._dragging = False
        elif event.type == pygame.MOUSEWHEEL:
            if self.ignore is None or not self.ignore(pygame.mouse.get_pos()):
                self.dispatch(Wheel(-event.y * C.WHEEL_PIXELS_PER_NOTCH))
        elif event.type == pygame.VIDEORESIZE:
            self.dispatch(Resize(event.w, event.h))


def _create_registry(preset_name: str, kernel=None, date=None) -> BodyRegistry:
    """Bodies from a preset, or from an SPK kernel when one is given."""
    if kernel:
        epoch = datetime.strptime(date or "2024-01-01", "%Y-%m-%d")
        return create_registry(load_ephemeris(kernel), epoch, preset_name)
    return BodyRegistry.from_preset(preset_name)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Solar System Explorer")
    parser.add_argument("--preset", default="Inner Planets", choices=list(PRESETS), help="Preset system")
    parser.add_argument("--integrator", choices=list(INTEGRATORS), default=C.DEFAULT_INTEGRATOR)
    parser.add_argument("--time-scale", type=float, default=C.DEFAULT_TIME_SCALE, help="Simulated seconds per second")
    parser.add_argument("--paused", action="store_true", help="Start paused")
    parser.add_argument("--max-substep", type=float, help="Split each frame into steps of at most this many seconds")
    parser.add_argument("--nasa-kernel", help="Load initial states from an SPK kernel")
    parser.add_argument("--nasa-date", help="Epoch YYYY-MM-DD for SPK data")
    parser.add_argument("--energy-log", help="Write the energy drift history to this CSV file on exit")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    context = SimulationContext(
        _create_registry(args.preset, args.nasa_kernel, args.nasa_date),
        time_scale=args.time_scale,
        playing=not args.paused,
        integrator=args.integrator,
        max_substep=args.max_substep,
    )

    pygame.init()
    try:
        screen = pygame.display.set_mode((C.WIDTH, C.HEIGHT), pygame.RESIZABLE)
        pygame.display.set_caption(f"Solar System Explorer v{__version__}")
        manager = pygame_gui.UIManager((C.WIDTH, C.HEIGHT))
        control = ControlPanel(manager, context.time_scale, context.playing)
        surface = PygameInputSurface(ignore=control.contains)
        renderer = PygameRenderer(screen)
        scheduler = SimulationScheduler(context, renderer, input_surface=surface)
        clock = pygame.time.Clock()

        with scheduler:
            running = True
            frame_no = 0
            while running:
                time_delta = clock.tick(C.FPS) / 1000.0
                for event in pygame.event.get():
                    if event.type == pygame.QUIT:
                        running = False
                    elif event.type == pygame.KEYDOWN:
                        if event.key == pygame.K_ESCAPE:
                            running = False
                        elif event.key == pygame.K_SPACE:
                            control.set_playing(scheduler.toggle_playing())
                    elif event.type == pygame.VIDEORESIZE:
                        control.resize(event.w, event.h)
                    control.process_event(event, scheduler)
                    surface.feed(event)
                    manager.process_events(event)

                manager.update(time_delta)
                scheduler.frame()
                if frame_no % 15 == 0:
                    control.update_body_info(context.selected_body(), context.mu)
                    control.update_energy(context.energy_monitor.latest)
                manager.draw_ui(renderer.screen)
                pygame.display.flip()
                frame_no += 1
    finally:
        pygame.quit()

    if args.energy_log:
        context.energy_monitor.export_csv(args.energy_log)
        logger.info("Energy drift history written to %s", args.energy_log)


if __name__ == "__main__":
    main()
