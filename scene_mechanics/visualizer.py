"""Pygame-backed canvas for the scene renderer."""
from __future__ import annotations

from typing import Optional, Sequence, Tuple

try:  # pragma: no cover - pygame import is environment specific
    import pygame
except ImportError as exc:  # pragma: no cover
    raise ImportError(
        "Pygame is required to use the scene_mechanics.visualizer module."
    ) from exc

from .rendering import (
    ANCHOR_BOTTOM_LEFT,
    ANCHOR_BOTTOM_MIDDLE,
    ANCHOR_BOTTOM_RIGHT,
    ANCHOR_MIDDLE_LEFT,
    ANCHOR_MIDDLE_MIDDLE,
    ANCHOR_MIDDLE_RIGHT,
    ANCHOR_TOP_LEFT,
    ANCHOR_TOP_MIDDLE,
    ANCHOR_TOP_RIGHT,
    LABEL_FONT_SIZE,
    Canvas,
)

RGB = Tuple[int, int, int]
Point = Tuple[float, float]


def color_float_to_u8(value: float) -> int:
    value = max(0.0, min(1.0, float(value)))
    return int(255 * value)


def to_rgb(r: float, g: float, b: float) -> RGB:
    return (color_float_to_u8(r), color_float_to_u8(g), color_float_to_u8(b))


def anchored_top_left(anchor: str, x: float, y: float, w: float, h: float) -> Point:
    """Top-left corner for a ``w`` x ``h`` text box anchored at ``(x, y)``."""
    if anchor in (ANCHOR_TOP_LEFT, ANCHOR_TOP_MIDDLE, ANCHOR_TOP_RIGHT):
        top = y
    elif anchor in (ANCHOR_MIDDLE_LEFT, ANCHOR_MIDDLE_MIDDLE, ANCHOR_MIDDLE_RIGHT):
        top = y - h / 2
    else:
        top = y - h
    if anchor in (ANCHOR_TOP_MIDDLE, ANCHOR_MIDDLE_MIDDLE, ANCHOR_BOTTOM_MIDDLE):
        left = x - w / 2
    elif anchor in (ANCHOR_TOP_RIGHT, ANCHOR_MIDDLE_RIGHT, ANCHOR_BOTTOM_RIGHT):
        left = x - w
    else:
        left = x
    return left, top


class PygameCanvas(Canvas):
    """Draws onto a pygame surface, usually a subsurface of the window."""

    def __init__(self, surface: "pygame.Surface", *, font_name: str = "Arial") -> None:
        self.surface = surface
        self.font_name = font_name
        self._color: RGB = (0, 0, 0)
        self._line_width: int = 1
        self._fonts: dict = {}

    def start_frame(self) -> None:
        self._color = (0, 0, 0)
        self._line_width = 1

    def finish_frame(self) -> None:
        pass

    def canvas_size(self) -> Tuple[float, float]:
        width, height = self.surface.get_size()
        return float(width), float(height)

    def set_color(self, r: float, g: float, b: float) -> None:
        self._color = to_rgb(r, g, b)

    def set_line_width(self, width: float) -> None:
        self._line_width = max(1, int(round(width)))

    def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        pygame.draw.line(self.surface, self._color, (x1, y1), (x2, y2), self._line_width)

    def draw_rectangle(self, x1: float, y1: float, x2: float, y2: float, *, filled: bool) -> None:
        rect = pygame.Rect(int(min(x1, x2)), int(min(y1, y2)), int(abs(x2 - x1)), int(abs(y2 - y1)))
        pygame.draw.rect(self.surface, self._color, rect, 0 if filled else self._line_width)

    def draw_circle(self, xc: float, yc: float, radius: float, *, filled: bool) -> None:
        radius_px = max(1, int(round(radius)))
        width = 0 if filled else min(self._line_width, radius_px)
        pygame.draw.circle(self.surface, self._color, (int(xc), int(yc)), radius_px, width)

    def draw_polygon(self, points: Sequence[Point], *, filled: bool) -> None:
        if len(points) < 2:
            return
        if filled:
            if len(points) >= 3:
                pygame.draw.polygon(self.surface, self._color, list(points), 0)
            return
        pygame.draw.lines(self.surface, self._color, False, list(points), self._line_width)

    def draw_text(
        self,
        text: str,
        x: float,
        y: float,
        *,
        anchor: str = ANCHOR_BOTTOM_LEFT,
        font_size: float = LABEL_FONT_SIZE,
    ) -> None:
        rendered = self._font(font_size).render(text, True, self._color)
        w, h = rendered.get_size()
        self.surface.blit(rendered, anchored_top_left(anchor, x, y, w, h))

    def _font(self, size: float) -> "pygame.font.Font":
        key = int(round(size))
        font: Optional["pygame.font.Font"] = self._fonts.get(key)
        if font is None:
            font = pygame.font.SysFont(self.font_name, key)
            self._fonts[key] = font
        return font


__all__ = ["PygameCanvas", "color_float_to_u8", "to_rgb", "anchored_top_left"]
