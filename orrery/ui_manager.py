import html

import pygame
import pygame_gui

from . import constants as C
from .utils import body_facts


class ControlPanel:
    """Side panel with playback controls and facts about the selected body."""

    def __init__(self, manager: pygame_gui.UIManager, time_scale: float, playing: bool, window_size=(C.WIDTH, C.HEIGHT)):
        width = C.UI_SIDEBAR_WIDTH
        self.manager = manager
        self.panel = pygame_gui.elements.UIPanel(
            pygame.Rect(window_size[0] - width, 0, width, window_size[1]),
            manager=manager,
            object_id="#control_panel",
        )
        y = 0
        pygame_gui.elements.UILabel(
            pygame.Rect(0, y, width, 30),
            text="Solar System Explorer",
            manager=manager,
            container=self.panel,
            object_id="#title_label",
        )
        y += 40
        self.play_button = pygame_gui.elements.UIButton(
            pygame.Rect(10, y, 80, 25),
            "Pause" if playing else "Play",
            manager,
            container=self.panel,
        )
        y += 35
        self.speed_label = pygame_gui.elements.UILabel(
            pygame.Rect(10, y, width - 20, 20),
            f"Speed: {time_scale:,.0f}x",
            manager,
            container=self.panel,
        )
        y += 20
        self.speed_slider = pygame_gui.elements.UIHorizontalSlider(
            pygame.Rect(10, y, width - 20, 20),
            start_value=time_scale,
            value_range=(C.MIN_TIME_SCALE, C.MAX_TIME_SCALE),
            manager=manager,
            container=self.panel,
        )
        y += 30
        self.energy_label = pygame_gui.elements.UILabel(
            pygame.Rect(10, y, width - 20, 20),
            "Energy drift: 0.000e+00 %",
            manager,
            container=self.panel,
        )
        y += 30
        self.info_box = pygame_gui.elements.UITextBox(
            "Click a planet to see its details.",
            pygame.Rect(10, y, width - 20, 220),
            manager,
            container=self.panel,
        )
        y += 225
        self.close_button = pygame_gui.elements.UIButton(
            pygame.Rect(10, y, 80, 25),
            "Close",
            manager,
            container=self.panel,
        )
        self._info_text = None

    def contains(self, pos) -> bool:
        """True if a window pixel lies on the panel."""
        return self.panel.rect.collidepoint(pos)

    def resize(self, width, height):
        self.manager.set_window_resolution((width, height))
        self.panel.set_position((width - C.UI_SIDEBAR_WIDTH, 0))

    def process_event(self, event, scheduler):
        """Route panel events to the scheduler's run controls."""
        if event.type == pygame_gui.UI_BUTTON_PRESSED:
            if event.ui_element == self.play_button:
                self.set_playing(scheduler.toggle_playing())
            elif event.ui_element == self.close_button:
                scheduler.dismiss_selection()
        elif event.type == pygame_gui.UI_HORIZONTAL_SLIDER_MOVED:
            if event.ui_element == self.speed_slider and scheduler.set_time_scale(event.value):
                self.speed_label.set_text(f"Speed: {event.value:,.0f}x")

    def set_playing(self, playing: bool):
        self.play_button.set_text("Pause" if playing else "Play")

    def update_energy(self, drift_percent: float):
        self.energy_label.set_text(f"Energy drift: {drift_percent:.3e} %")

    def update_body_info(self, body, mu=C.MU_SUN):
        if body is None:
            text = "Click a planet to see its details."
        else:
            rows = "".join(
                f"{label}: <b>{html.escape(value)}</b><br>" for label, value in body_facts(body, mu)
            )
            text = (
                f"<b>{html.escape(body.name)}</b><br>"
                f"<i>{html.escape(body.description)}</i><br><br>"
                f"{rows}"
            )
        if text != self._info_text:
            self._info_text = text
            self.info_box.set_text(text)
