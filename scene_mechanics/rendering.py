"""Turn a resolved scene into pixel-space drawing primitives.

The scene renderer never touches a drawing library directly. It talks to a
:class:`Canvas`, which only ever receives final pixel coordinates.
"""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import List, Sequence, Tuple

from .entities import GROUND_ID, Attachment, Body, Color, Connector, DisplayStyle, Ground
from .geometry import BallShape, BlockShape, PolygonShape
from .resolver import body_to_ground
from .scene import Scene, SceneBounds

Point = Tuple[float, float]

ANCHOR_TOP_LEFT = "top_left"
ANCHOR_TOP_MIDDLE = "top_middle"
ANCHOR_TOP_RIGHT = "top_right"
ANCHOR_MIDDLE_LEFT = "middle_left"
ANCHOR_MIDDLE_MIDDLE = "middle_middle"
ANCHOR_MIDDLE_RIGHT = "middle_right"
ANCHOR_BOTTOM_LEFT = "bottom_left"
ANCHOR_BOTTOM_MIDDLE = "bottom_middle"
ANCHOR_BOTTOM_RIGHT = "bottom_right"

ANCHORS = (
    ANCHOR_TOP_LEFT,
    ANCHOR_TOP_MIDDLE,
    ANCHOR_TOP_RIGHT,
    ANCHOR_MIDDLE_LEFT,
    ANCHOR_MIDDLE_MIDDLE,
    ANCHOR_MIDDLE_RIGHT,
    ANCHOR_BOTTOM_LEFT,
    ANCHOR_BOTTOM_MIDDLE,
    ANCHOR_BOTTOM_RIGHT,
)

BACKGROUND_COLOR: Color = (1.0, 1.0, 1.0)
AXIS_X_COLOR: Color = (0.85, 0.1, 0.1)
AXIS_Y_COLOR: Color = (0.1, 0.6, 0.1)
SPRING_COILS = 8
SPRING_WIDTH_FRACTION = 0.01
HATCH_SPACING_FRACTION = 0.02
LABEL_FONT_SIZE = 12.0


class Canvas:
    """Drawing contract a backend must satisfy. Coordinates are pixels."""

    def start_frame(self) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def finish_frame(self) -> None:  # pragma: no cover - interface only
        raise NotImplementedError

    def canvas_size(self) -> Tuple[float, float]:  # pragma: no cover - interface only
        raise NotImplementedError

    def set_color(self, r: float, g: float, b: float) -> None:  # pragma: no cover
        raise NotImplementedError

    def set_line_width(self, width: float) -> None:  # pragma: no cover
        raise NotImplementedError

    def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> None:  # pragma: no cover
        raise NotImplementedError

    def draw_rectangle(
        self, x1: float, y1: float, x2: float, y2: float, *, filled: bool
    ) -> None:  # pragma: no cover
        raise NotImplementedError

    def draw_circle(self, xc: float, yc: float, radius: float, *, filled: bool) -> None:  # pragma: no cover
        raise NotImplementedError

    def draw_polygon(self, points: Sequence[Point], *, filled: bool) -> None:  # pragma: no cover
        raise NotImplementedError

    def draw_text(
        self, text: str, x: float, y: float, *, anchor: str = ANCHOR_BOTTOM_LEFT, font_size: float = LABEL_FONT_SIZE
    ) -> None:  # pragma: no cover
        raise NotImplementedError


@dataclass(frozen=True)
class ViewportMapping:
    """Affine map from user coordinates to canvas pixels.

    The axis needing the smaller scale sets a common factor so the whole
    viewport fits; the viewport centre lands on the canvas centre and the y
    axis is flipped.
    """

    scale: float
    center_user: Point
    center_pixels: Point

    @classmethod
    def fit(cls, bounds: SceneBounds, width: float, height: float) -> "ViewportMapping":
        scale = min(width / bounds.width, height / bounds.height)
        return cls(scale=scale, center_user=bounds.center, center_pixels=(0.5 * width, 0.5 * height))

    def to_pixels(self, point: Point) -> Point:
        ux, uy = self.center_user
        px, py = self.center_pixels
        return (px + (point[0] - ux) * self.scale, py - (point[1] - uy) * self.scale)

    def to_user(self, pixel: Point) -> Point:
        ux, uy = self.center_user
        px, py = self.center_pixels
        return (ux + (pixel[0] - px) / self.scale, uy - (pixel[1] - py) / self.scale)

    def length(self, user_length: float) -> float:
        return user_length * self.scale


class SceneRenderer:
    """Draws grounds, bodies, then connectors for the scene's current state."""

    def __init__(self, scene: Scene) -> None:
        self.scene = scene

    def draw(self, canvas: Canvas) -> ViewportMapping:
        width, height = canvas.canvas_size()
        mapping = ViewportMapping.fit(self.scene.bounds, width, height)
        canvas.start_frame()
        canvas.set_color(*BACKGROUND_COLOR)
        canvas.draw_rectangle(0.0, 0.0, width, height, filled=True)
        for ground in self.scene.grounds:
            self._draw_ground(canvas, mapping, ground)
        for body in self.scene.iter_bodies():
            self._draw_body(canvas, mapping, body)
        for connector in self.scene.connectors:
            self._draw_connector(canvas, mapping, connector)
        canvas.finish_frame()
        return mapping

    # --- Bodies -------------------------------------------------------------
    def _draw_body(self, canvas: Canvas, mapping: ViewportMapping, body: Body) -> None:
        style = body.style
        transform = body.shape_to_ground
        canvas.set_line_width(style.line_width)
        canvas.set_color(*style.color)
        shape = body.shape
        if isinstance(shape, BallShape):
            cx, cy = mapping.to_pixels(transform.apply_to_point((0.0, 0.0)))
            radius = mapping.length(shape.radius)
            if style.filled:
                canvas.draw_circle(cx, cy, radius, filled=True)
            canvas.draw_circle(cx, cy, radius, filled=False)
        elif isinstance(shape, (BlockShape, PolygonShape)):
            points = [mapping.to_pixels(p) for p in shape.world_points(transform)]
            if style.filled:
                canvas.draw_polygon(points, filled=True)
            if isinstance(shape, BlockShape):
                points = points + points[:1]
            canvas.draw_polygon(points, filled=False)
        if style.show_cs:
            self._draw_axes(canvas, mapping, body)
        self._draw_labels(canvas, mapping, style, transform.apply_to_point((0.0, 0.0)), body.name, body.id)

    def _draw_axes(self, canvas: Canvas, mapping: ViewportMapping, body: Body) -> None:
        frame = body_to_ground(self.scene, body)
        axis_length = 0.05 * min(self.scene.bounds.width, self.scene.bounds.height)
        ox, oy = mapping.to_pixels(frame.apply_to_point((0.0, 0.0)))
        xx, xy = mapping.to_pixels(frame.apply_to_point((axis_length, 0.0)))
        yx, yy = mapping.to_pixels(frame.apply_to_point((0.0, axis_length)))
        canvas.set_color(*AXIS_X_COLOR)
        canvas.draw_line(ox, oy, xx, xy)
        canvas.set_color(*AXIS_Y_COLOR)
        canvas.draw_line(ox, oy, yx, yy)
        canvas.set_color(*body.style.color)

    def _draw_labels(
        self,
        canvas: Canvas,
        mapping: ViewportMapping,
        style: DisplayStyle,
        anchor_point: Point,
        name: str,
        ident: int,
    ) -> None:
        if not (style.show_name or style.show_id):
            return
        px, py = mapping.to_pixels(anchor_point)
        if style.show_name and name:
            canvas.draw_text(name, px + 4.0, py - 4.0, anchor=ANCHOR_BOTTOM_LEFT)
        if style.show_id:
            canvas.draw_text(f"#{ident}", px + 4.0, py + 4.0, anchor=ANCHOR_TOP_LEFT)

    # --- Connectors ---------------------------------------------------------
    def _attachment_point(self, attach: Attachment) -> Point:
        if attach.body_id == GROUND_ID:
            return (attach.x, attach.y)
        body = self.scene.get_body(attach.body_id)
        return body.shape_to_ground.apply_to_point((attach.x, attach.y))

    def _draw_connector(self, canvas: Canvas, mapping: ViewportMapping, connector: Connector) -> None:
        start = mapping.to_pixels(self._attachment_point(connector.first))
        end = mapping.to_pixels(self._attachment_point(connector.second))
        canvas.set_line_width(connector.style.line_width)
        canvas.set_color(*connector.style.color)
        if connector.type == "spring":
            amplitude = mapping.length(SPRING_WIDTH_FRACTION * min(self.scene.bounds.width, self.scene.bounds.height))
            canvas.draw_polygon(spring_path(start, end, SPRING_COILS, amplitude), filled=False)
        else:
            canvas.draw_line(start[0], start[1], end[0], end[1])
        mid = mapping.to_user(((start[0] + end[0]) / 2.0, (start[1] + end[1]) / 2.0))
        self._draw_labels(canvas, mapping, connector.style, mid, connector.name, connector.id)

    # --- Grounds ------------------------------------------------------------
    def _draw_ground(self, canvas: Canvas, mapping: ViewportMapping, ground: Ground) -> None:
        canvas.set_line_width(ground.style.line_width)
        canvas.set_color(*ground.style.color)
        p1 = mapping.to_pixels((ground.x1, ground.y1))
        p2 = mapping.to_pixels((ground.x2, ground.y2))
        spacing = mapping.length(HATCH_SPACING_FRACTION * min(self.scene.bounds.width, self.scene.bounds.height))
        if ground.type == "line":
            canvas.draw_line(p1[0], p1[1], p2[0], p2[1])
        elif ground.type == "hash":
            canvas.draw_line(p1[0], p1[1], p2[0], p2[1])
            for a, b in hatch_marks(p1, p2, spacing):
                canvas.draw_line(a[0], a[1], b[0], b[1])
        elif ground.type == "pin":
            size = max(math.hypot(p2[0] - p1[0], p2[1] - p1[1]), 1.0)
            for a, b in pin_symbol(p1, size, spacing):
                canvas.draw_line(a[0], a[1], b[0], b[1])
            canvas.draw_circle(p1[0], p1[1], 0.15 * size, filled=False)


def spring_path(start: Point, end: Point, coils: int, amplitude: float) -> List[Point]:
    """Zig-zag polyline between two pixel points with straight lead-in and lead-out."""
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.hypot(dx, dy)
    if length == 0.0:
        return [start, end]
    ux, uy = dx / length, dy / length
    nx, ny = -uy, ux
    lead = 0.1 * length
    body = length - 2.0 * lead
    points = [start, (start[0] + ux * lead, start[1] + uy * lead)]
    segments = 2 * coils
    for i in range(1, segments):
        along = lead + body * i / segments
        side = amplitude if i % 2 else -amplitude
        points.append((start[0] + ux * along + nx * side, start[1] + uy * along + ny * side))
    points.append((end[0] - ux * lead, end[1] - uy * lead))
    points.append(end)
    return points


def hatch_marks(p1: Point, p2: Point, spacing: float) -> List[Tuple[Point, Point]]:
    """Short 45 degree ticks below the segment p1-p2, ``spacing`` pixels apart."""
    dx = p2[0] - p1[0]
    dy = p2[1] - p1[1]
    length = math.hypot(dx, dy)
    if length == 0.0 or spacing <= 0.0:
        return []
    ux, uy = dx / length, dy / length
    # Pixel y grows downward, so (-uy, ux) points below a left-to-right segment.
    nx, ny = -uy, ux
    tx = (nx - ux) * spacing / math.sqrt(2.0)
    ty = (ny - uy) * spacing / math.sqrt(2.0)
    count = int(length // spacing)
    marks = []
    for i in range(count + 1):
        ax = p1[0] + ux * spacing * i
        ay = p1[1] + uy * spacing * i
        marks.append(((ax, ay), (ax + tx, ay + ty)))
    return marks


def pin_symbol(center: Point, size: float, spacing: float) -> List[Tuple[Point, Point]]:
    """Triangle under a pin centre, resting on a hatched base."""
    cx, cy = center
    half = 0.5 * size
    left = (cx - half, cy + size)
    right = (cx + half, cy + size)
    lines = [(center, left), (center, right), ((left[0] - 0.25 * size, left[1]), (right[0] + 0.25 * size, right[1]))]
    lines.extend(hatch_marks((left[0] - 0.25 * size, left[1]), (right[0] + 0.25 * size, right[1]), spacing))
    return lines


__all__ = [
    "ANCHORS",
    "ANCHOR_TOP_LEFT",
    "ANCHOR_TOP_MIDDLE",
    "ANCHOR_TOP_RIGHT",
    "ANCHOR_MIDDLE_LEFT",
    "ANCHOR_MIDDLE_MIDDLE",
    "ANCHOR_MIDDLE_RIGHT",
    "ANCHOR_BOTTOM_LEFT",
    "ANCHOR_BOTTOM_MIDDLE",
    "ANCHOR_BOTTOM_RIGHT",
    "Canvas",
    "ViewportMapping",
    "SceneRenderer",
    "spring_path",
    "hatch_marks",
    "pin_symbol",
]
