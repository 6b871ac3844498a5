"""Shape primitives defined in a body's shape frame."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .transform import AffineTransform, Point


@dataclass(frozen=True)
class BoundingBox:
    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @classmethod
    def around(cls, points: Sequence[Point]) -> "BoundingBox":
        xs = [p[0] for p in points]
        ys = [p[1] for p in points]
        return cls(min(xs), min(ys), max(xs), max(ys))

    def as_dict(self) -> dict:
        return {"min_x": self.min_x, "min_y": self.min_y, "max_x": self.max_x, "max_y": self.max_y}


class Shape2D:
    """Base class for drawable body shapes."""

    kind = "shape"

    def local_points(self) -> List[Point]:  # pragma: no cover - interface only
        raise NotImplementedError

    def world_points(self, transform: Optional[AffineTransform] = None) -> List[Point]:
        points = self.local_points()
        if transform is None:
            return points
        return [transform.apply_to_point(p) for p in points]

    def bounding_box(self, transform: Optional[AffineTransform] = None) -> BoundingBox:
        return BoundingBox.around(self.world_points(transform))


@dataclass(frozen=True)
class BallShape(Shape2D):
    radius: float

    kind = "ball"

    def __post_init__(self) -> None:
        if self.radius < 0.0:
            raise ValueError("Ball radius must be non-negative")

    def local_points(self) -> List[Point]:
        return [(0.0, 0.0)]

    def bounding_box(self, transform: Optional[AffineTransform] = None) -> BoundingBox:
        cx, cy = transform.apply_to_point((0.0, 0.0)) if transform else (0.0, 0.0)
        r = self.radius
        return BoundingBox(cx - r, cy - r, cx + r, cy + r)


@dataclass(frozen=True)
class BlockShape(Shape2D):
    """Rectangle centred on the shape-frame origin."""

    width: float
    height: float

    kind = "block"

    def __post_init__(self) -> None:
        if self.width < 0.0 or self.height < 0.0:
            raise ValueError("Block dimensions must be non-negative")

    def local_points(self) -> List[Point]:
        hw = 0.5 * self.width
        hh = 0.5 * self.height
        return [(-hw, -hh), (hw, -hh), (hw, hh), (-hw, hh)]


@dataclass(frozen=True)
class PolygonShape(Shape2D):
    """Ordered node list; two nodes describe a bar, more an open or closed chain."""

    nodes: Tuple[Point, ...]

    kind = "polygon"

    def __post_init__(self) -> None:
        if len(self.nodes) < 2:
            raise ValueError("Polygon requires at least two nodes")

    def local_points(self) -> List[Point]:
        return [(float(x), float(y)) for x, y in self.nodes]


__all__ = ["BoundingBox", "Shape2D", "BallShape", "BlockShape", "PolygonShape"]
