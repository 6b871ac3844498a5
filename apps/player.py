"""Interactive replay window with transport buttons and a time slider."""
from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

import pygame
import pygame_gui

from replay_core import (
    PlaybackController,
    PlayerSettings,
    ReplaySession,
    Pause,
    Seek,
    Step,
    StepToEnd,
    StepToStart,
    Tick,
    TogglePause,
)
from scene_mechanics.rendering import SceneRenderer
from scene_mechanics.visualizer import PygameCanvas

logger = logging.getLogger(__name__)

BAR_HEIGHT = 96
BUTTON_W = 64
BUTTON_H = 30
MARGIN = 12

STEP_BUTTONS = (
    ("|<", None),
    ("-10", -10),
    ("-1", -1),
    ("+1", 1),
    ("+10", 10),
    (">|", None),
)


class ReplayPlayer:
    """Pygame front end that turns UI events into playback commands."""

    def __init__(self, session: ReplaySession, settings: Optional[PlayerSettings] = None) -> None:
        self.session = session
        self.settings = settings or PlayerSettings()
        self.controller = PlaybackController(
            session.scene,
            session.frames,
            session.input_map,
            start_paused=self.settings.start_paused,
        )
        self.renderer = SceneRenderer(session.scene)

        pygame.init()
        pygame.key.set_repeat(300, 35)
        pygame.display.set_caption(f"{self.settings.title} - {session.scene.name}")
        self.window_size = self.settings.window_size
        self.window_surface = pygame.display.set_mode(self.window_size, pygame.RESIZABLE)
        self.manager = pygame_gui.UIManager(self.window_size)
        self.clock = pygame.time.Clock()
        self.font = pygame.font.Font(pygame.font.get_default_font(), 15)
        self.running = True
        self._tick_accum = 0.0
        self._syncing_slider = False

        self.btn_play: Optional[pygame_gui.elements.UIButton] = None
        self.step_buttons: Dict[object, str] = {}
        self.time_slider: Optional[pygame_gui.elements.UIHorizontalSlider] = None
        self.viewport_rect = pygame.Rect(0, 0, 1, 1)
        self.canvas: Optional[PygameCanvas] = None
        self._build_ui()
        self._update_layout()

        self.controller.add_listener(self._on_frame_applied)
        # Show the first frame even when starting paused.
        self.controller.apply_frame(0)

    # --- Layout ---------------------------------------------------------------
    def _build_ui(self) -> None:
        frames = self.session.frames
        self.btn_play = pygame_gui.elements.UIButton(
            pygame.Rect((0, 0), (BUTTON_W + 16, BUTTON_H)),
            self._play_label(),
            manager=self.manager,
        )
        for label, _delta in STEP_BUTTONS:
            button = pygame_gui.elements.UIButton(
                pygame.Rect((0, 0), (BUTTON_W, BUTTON_H)), label, manager=self.manager
            )
            self.step_buttons[button] = label
        t_min, t_max = frames.t_min, frames.t_max
        self.time_slider = pygame_gui.elements.UIHorizontalSlider(
            relative_rect=pygame.Rect((0, 0), (200, 22)),
            start_value=t_min,
            value_range=(t_min, t_max if t_max > t_min else t_min + 1e-6),
            manager=self.manager,
            object_id="#time_slider",
        )

    def _update_layout(self) -> None:
        w, h = self.window_size
        self.viewport_rect = pygame.Rect(0, 0, w, max(1, h - BAR_HEIGHT))
        self.canvas = PygameCanvas(self.window_surface.subsurface(self.viewport_rect))
        bar_y = self.viewport_rect.bottom + MARGIN
        x = MARGIN
        self.btn_play.set_relative_position((x, bar_y))
        x += BUTTON_W + 16 + MARGIN
        for button in self.step_buttons:
            button.set_relative_position((x, bar_y))
            x += BUTTON_W + 6
        slider_x = x + MARGIN
        self.time_slider.set_relative_position((slider_x, bar_y + 4))
        self.time_slider.set_dimensions((max(80, w - slider_x - MARGIN), 22))

    # --- Main loop --------------------------------------------------------------
    def run(self) -> None:
        tick_period = 1.0 / max(self.settings.fps, 1e-3)
        logger.info(
            "Playing %s: %d frames at %.1f fps%s",
            self.session.scene.name,
            self.controller.frame_count,
            self.settings.fps,
            " (paused)" if self.controller.paused else "",
        )
        while self.running:
            dt = self.clock.tick(60) / 1000.0
            for event in pygame.event.get():
                self._handle_event(event)
                self.manager.process_events(event)
            self.manager.update(dt)
            if not self.controller.paused:
                # Cap the backlog so a stalled window does not fast-forward.
                self._tick_accum = min(self._tick_accum + dt, tick_period * 4)
                while self._tick_accum >= tick_period:
                    self.controller.submit(Tick())
                    self._tick_accum -= tick_period
            else:
                self._tick_accum = 0.0
            self.controller.process_pending()
            self._draw()
        pygame.quit()

    def _handle_event(self, event: pygame.event.Event) -> None:
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.VIDEORESIZE:
            self.window_size = (event.w, event.h)
            self.window_surface = pygame.display.set_mode(self.window_size, pygame.RESIZABLE)
            self.manager.set_window_resolution(self.window_size)
            self._update_layout()
        elif event.type == pygame.KEYDOWN:
            self._handle_key(event.key)
        elif event.type == pygame_gui.UI_BUTTON_PRESSED:
            if event.ui_element == self.btn_play:
                self.controller.submit(TogglePause())
            elif event.ui_element in self.step_buttons:
                self._request_step(self.step_buttons[event.ui_element])
        elif event.type == pygame_gui.UI_HORIZONTAL_SLIDER_MOVED:
            if event.ui_element == self.time_slider and not self._syncing_slider:
                self.controller.submit(Pause())
                self.controller.submit(Seek(float(event.value)))

    def _handle_key(self, key: int) -> None:
        if key in (pygame.K_ESCAPE, pygame.K_q):
            self.running = False
        elif key == pygame.K_SPACE:
            self.controller.submit(TogglePause())
        elif key == pygame.K_LEFT:
            self._request_step("-1")
        elif key == pygame.K_RIGHT:
            self._request_step("+1")
        elif key == pygame.K_PAGEUP:
            self._request_step("-10")
        elif key == pygame.K_PAGEDOWN:
            self._request_step("+10")
        elif key == pygame.K_HOME:
            self._request_step("|<")
        elif key == pygame.K_END:
            self._request_step(">|")

    def _request_step(self, label: str) -> None:
        # Stepping only makes sense on a paused replay.
        self.controller.submit(Pause())
        if label == "|<":
            self.controller.submit(StepToStart())
        elif label == ">|":
            self.controller.submit(StepToEnd())
        else:
            self.controller.submit(Step(dict(STEP_BUTTONS)[label]))

    # --- Feedback ---------------------------------------------------------------
    def _play_label(self) -> str:
        return "Play" if self.controller.paused else "Pause"

    def _on_frame_applied(self, index: int) -> None:
        if self.time_slider is None:
            return
        self._syncing_slider = True
        try:
            self.time_slider.set_current_value(self.controller.current_time)
        finally:
            self._syncing_slider = False

    def _status_line(self) -> Tuple[str, str]:
        controller = self.controller
        shown = controller.displayed_frame_index if controller.displayed_frame_index is not None else 0
        status = (
            f"t={controller.current_time:.3f}s  frame={shown + 1}/{controller.frame_count}  "
            f"mode={'PAUSED' if controller.paused else 'PLAYING'}"
        )
        hint = "SPACE play/pause  LEFT/RIGHT step  PGUP/PGDN x10  HOME/END  Q quit"
        return status, hint

    def _draw(self) -> None:
        self.window_surface.fill((30, 30, 34))
        self.renderer.draw(self.canvas)
        if self.btn_play.text != self._play_label():
            self.btn_play.set_text(self._play_label())
        self.manager.draw_ui(self.window_surface)
        status, hint = self._status_line()
        base_y = self.viewport_rect.bottom + MARGIN + BUTTON_H + 10
        self.window_surface.blit(self.font.render(status, True, (230, 230, 230)), (MARGIN, base_y))
        self.window_surface.blit(self.font.render(hint, True, (170, 190, 210)), (MARGIN, base_y + 20))
        pygame.display.flip()


__all__ = ["ReplayPlayer"]
