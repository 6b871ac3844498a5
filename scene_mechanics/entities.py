"""Entities tie shapes, poses, and parent links together."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .geometry import BallShape, BlockShape, BoundingBox, PolygonShape, Shape2D
from .transform import AffineTransform, Pose2D, make_transform

Color = Tuple[float, float, float]

GROUND_ID = 0

CONNECTOR_TYPES = ("line", "spring")
GROUND_TYPES = ("line", "hash", "pin")
BODY_FIELDS = ("x", "y", "theta")

DEFAULT_COLOR: Color = (0.0, 0.0, 0.0)


@dataclass
class DisplayStyle:
    """How a body or connector is drawn; never affects kinematics."""

    color: Color = DEFAULT_COLOR
    line_width: float = 1.0
    filled: bool = False
    show_cs: bool = False
    show_name: bool = False
    show_id: bool = False


class Body:
    """Rigid body whose pose is expressed relative to its parents.

    ``xy_parent_id`` and ``theta_parent_id`` are ids into the owning scene's
    body table; ``GROUND_ID`` means the body hangs directly off the ground.
    """

    def __init__(
        self,
        *,
        body_id: int,
        shape: Shape2D,
        name: str = "",
        pose: Optional[Pose2D] = None,
        shape_offset: Optional[Pose2D] = None,
        xy_parent_id: int = GROUND_ID,
        theta_parent_id: int = GROUND_ID,
        style: Optional[DisplayStyle] = None,
    ) -> None:
        if body_id == GROUND_ID:
            raise ValueError("Body id 0 is reserved for the ground")
        self.id = body_id
        self.shape = shape
        self.name = name
        pose = pose or Pose2D(0.0, 0.0, 0.0)
        self.x = pose.x
        self.y = pose.y
        self.theta = pose.theta
        offset = shape_offset or Pose2D(0.0, 0.0, 0.0)
        self.x_offset = offset.x
        self.y_offset = offset.y
        self.phi = offset.theta
        self.xy_parent_id = xy_parent_id
        self.theta_parent_id = theta_parent_id
        self.style = style or DisplayStyle()
        # Derived every frame by the resolver.
        self.shape_to_ground: AffineTransform = AffineTransform.identity()

    @property
    def pose(self) -> Pose2D:
        return Pose2D(self.x, self.y, self.theta)

    def set_field(self, field_name: str, value: float) -> None:
        if field_name not in BODY_FIELDS:
            raise KeyError(f"Unknown body field '{field_name}'")
        setattr(self, field_name, value)

    @property
    def shape_offset(self) -> AffineTransform:
        return make_transform(self.x_offset, self.y_offset, self.phi)

    @property
    def kind(self) -> str:
        return self.shape.kind

    def bounding_box(self) -> BoundingBox:
        return self.shape.bounding_box(self.shape_to_ground)

    def as_dict(self) -> Dict[str, Any]:
        world = self.shape_to_ground.as_pose()
        return {
            "id": self.id,
            "name": self.name,
            "shape": self.kind,
            "pose": self.pose.as_dict(),
            "world": world.as_dict(),
            "xy_parent_id": self.xy_parent_id,
            "theta_parent_id": self.theta_parent_id,
            "bbox": self.bounding_box().as_dict(),
        }

    def __repr__(self) -> str:
        return f"Body(id={self.id}, kind={self.kind}, name={self.name!r})"


def make_ball(body_id: int, radius: float, **kwargs: Any) -> Body:
    return Body(body_id=body_id, shape=BallShape(radius), **kwargs)


def make_block(body_id: int, width: float, height: float, **kwargs: Any) -> Body:
    return Body(body_id=body_id, shape=BlockShape(width, height), **kwargs)


def make_polygon(body_id: int, nodes, **kwargs: Any) -> Body:
    return Body(body_id=body_id, shape=PolygonShape(tuple(tuple(n) for n in nodes)), **kwargs)


@dataclass(frozen=True)
class Attachment:
    """Point fixed in a body's shape frame (or the ground frame for id 0)."""

    body_id: int
    x: float = 0.0
    y: float = 0.0


@dataclass
class Connector:
    type: str
    first: Attachment
    second: Attachment
    name: str = ""
    id: int = 0
    style: DisplayStyle = field(default_factory=DisplayStyle)

    def __post_init__(self) -> None:
        if self.type not in CONNECTOR_TYPES:
            raise ValueError(f"Unknown connector type '{self.type}'")


@dataclass
class Ground:
    type: str
    x1: float
    y1: float
    x2: float
    y2: float
    id: int = 0
    style: DisplayStyle = field(default_factory=DisplayStyle)

    def __post_init__(self) -> None:
        if self.type not in GROUND_TYPES:
            raise ValueError(f"Unknown ground type '{self.type}'")


__all__ = [
    "Color",
    "GROUND_ID",
    "CONNECTOR_TYPES",
    "GROUND_TYPES",
    "BODY_FIELDS",
    "DisplayStyle",
    "Body",
    "Attachment",
    "Connector",
    "Ground",
    "make_ball",
    "make_block",
    "make_polygon",
]
