"""Pose and affine-transform primitives for the 2D scene."""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Dict, Tuple

Point = Tuple[float, float]
Matrix2 = Tuple[Tuple[float, float], Tuple[float, float]]

IDENTITY_MATRIX: Matrix2 = ((1.0, 0.0), (0.0, 1.0))


@dataclass(frozen=True)
class Pose2D:
    """A 2D pose with translation and rotation (radians)."""

    x: float
    y: float
    theta: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.theta)

    def as_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "theta": self.theta}


@dataclass(frozen=True)
class AffineTransform:
    """Rotation followed by translation: ``p' = R p + offset``.

    Transforms compose with :meth:`append`, which is order sensitive:
    ``t.append(t_new)`` applies ``t`` first and ``t_new`` second.
    """

    offset: Point = (0.0, 0.0)
    rotation: Matrix2 = IDENTITY_MATRIX

    @classmethod
    def identity(cls) -> "AffineTransform":
        return cls()

    @classmethod
    def from_pose(cls, pose: Pose2D) -> "AffineTransform":
        return make_transform(pose.x, pose.y, pose.theta)

    def append(self, new: "AffineTransform") -> "AffineTransform":
        """Return the transform equal to ``new`` applied after ``self``."""
        (a, b), (c, d) = new.rotation
        (e, f), (g, h) = self.rotation
        rotation = (
            (a * e + b * g, a * f + b * h),
            (c * e + d * g, c * f + d * h),
        )
        ox, oy = self.offset
        nx, ny = new.offset
        offset = (a * ox + b * oy + nx, c * ox + d * oy + ny)
        return AffineTransform(offset=offset, rotation=rotation)

    def apply_to_point(self, point: Point) -> Point:
        (a, b), (c, d) = self.rotation
        px, py = point
        ox, oy = self.offset
        return (a * px + b * py + ox, c * px + d * py + oy)

    def apply_to_vector(self, vector: Point) -> Point:
        (a, b), (c, d) = self.rotation
        vx, vy = vector
        return (a * vx + b * vy, c * vx + d * vy)

    @property
    def angle(self) -> float:
        return math.atan2(self.rotation[1][0], self.rotation[0][0])

    def as_pose(self) -> Pose2D:
        return Pose2D(self.offset[0], self.offset[1], self.angle)

    def is_close(self, other: "AffineTransform", tol: float = 1e-9) -> bool:
        mine = (*self.offset, *self.rotation[0], *self.rotation[1])
        theirs = (*other.offset, *other.rotation[0], *other.rotation[1])
        return all(abs(m - t) <= tol for m, t in zip(mine, theirs))


def rotation_matrix(theta: float) -> Matrix2:
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    return ((cos_t, -sin_t), (sin_t, cos_t))


def make_transform(x: float, y: float, theta: float) -> AffineTransform:
    """Rotate by ``theta`` about the origin, then translate by ``(x, y)``."""
    return AffineTransform(offset=(float(x), float(y)), rotation=rotation_matrix(theta))


def append(current: AffineTransform, new: AffineTransform) -> AffineTransform:
    """Functional spelling of :meth:`AffineTransform.append`."""
    return current.append(new)


__all__ = [
    "Point",
    "Pose2D",
    "AffineTransform",
    "rotation_matrix",
    "make_transform",
    "append",
    "IDENTITY_MATRIX",
]
