"""Scene model, transform resolution, and drawing for 2D kinematic replays."""

from .transform import Pose2D, AffineTransform, make_transform, append
from .geometry import BallShape, BlockShape, PolygonShape, Shape2D, BoundingBox
from .entities import Body, Connector, Ground, Attachment, DisplayStyle, GROUND_ID
from .scene import Scene, SceneBounds, SceneLimits
from .resolver import resolve, resolve_scene, shape_to_ground, body_to_ground, theta_to_ground
from .diagnostics import SnapshotLogger, Snapshot
from .rendering import Canvas, SceneRenderer, ViewportMapping
from .errors import (
    ReplayError,
    ConfigParseError,
    DataFormatError,
    ResourceLimitError,
    CycleError,
)

__all__ = [
    "Pose2D",
    "AffineTransform",
    "make_transform",
    "append",
    "BallShape",
    "BlockShape",
    "PolygonShape",
    "Shape2D",
    "BoundingBox",
    "Body",
    "Connector",
    "Ground",
    "Attachment",
    "DisplayStyle",
    "GROUND_ID",
    "Scene",
    "SceneBounds",
    "SceneLimits",
    "resolve",
    "resolve_scene",
    "shape_to_ground",
    "body_to_ground",
    "theta_to_ground",
    "SnapshotLogger",
    "Snapshot",
    "Canvas",
    "SceneRenderer",
    "ViewportMapping",
    "ReplayError",
    "ConfigParseError",
    "DataFormatError",
    "ResourceLimitError",
    "CycleError",
]
