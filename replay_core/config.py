"""Data models for scene documents and player settings."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from scene_mechanics.scene import SceneBounds, SceneLimits

Color = Tuple[float, float, float]
Point = Tuple[float, float]

DEFAULT_DT = 0.01


@dataclass
class ViewportBounds:
    x_min: float = -10.0
    x_max: float = 10.0
    y_min: float = -10.0
    y_max: float = 10.0

    def to_scene_bounds(self) -> SceneBounds:
        return SceneBounds(self.x_min, self.x_max, self.y_min, self.y_max)


@dataclass
class NodeConfig:
    x: float
    y: float


@dataclass
class BodyConfig:
    id: int
    kind: str  # "ball" | "block" | "polygon"
    name: str = ""
    radius: float = 0.0
    width: float = 0.0
    height: float = 0.0
    nodes: List[NodeConfig] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0
    x_offset: float = 0.0
    y_offset: float = 0.0
    theta_offset: float = 0.0
    xy_parent_id: int = 0
    theta_parent_id: int = 0
    color: Color = (0.0, 0.0, 0.0)
    line_width: float = 1.0
    filled: bool = False
    show_cs: bool = False
    show_name: bool = False
    show_id: bool = False


@dataclass
class AttachConfig:
    id: int = 0  # 0 pins the end to the ground frame
    x: float = 0.0
    y: float = 0.0


@dataclass
class ConnectorConfig:
    type: str  # "line" | "spring"
    first: AttachConfig
    second: AttachConfig
    id: int = 0
    name: str = ""
    color: Color = (0.0, 0.0, 0.0)
    line_width: float = 1.0
    show_name: bool = False
    show_id: bool = False


@dataclass
class GroundConfig:
    type: str  # "line" | "hash" | "pin"
    x1: float
    y1: float
    x2: float
    y2: float
    id: int = 0
    color: Color = (0.0, 0.0, 0.0)
    line_width: float = 1.0


@dataclass
class InputEntryConfig:
    column: int  # 1-based text column
    type: str  # "time" | "body"
    id: int = 0
    field: Optional[str] = None  # "x" | "y" | "theta" for body entries


@dataclass
class InputFormatConfig:
    entries: List[InputEntryConfig] = field(default_factory=list)
    dt: float = DEFAULT_DT  # frame spacing when no time column is mapped


@dataclass
class SceneConfig:
    name: str = "scene"
    bounds: ViewportBounds = field(default_factory=ViewportBounds)
    bodies: List[BodyConfig] = field(default_factory=list)
    connectors: List[ConnectorConfig] = field(default_factory=list)
    grounds: List[GroundConfig] = field(default_factory=list)
    input_format: InputFormatConfig = field(default_factory=InputFormatConfig)
    limits: SceneLimits = field(default_factory=SceneLimits)


@dataclass
class PlayerSettings:
    """Interactive player knobs, filled from the command line."""

    window_size: Tuple[int, int] = (900, 700)
    fps: float = 30.0
    start_paused: bool = False
    title: str = "Kinematic Replay"


__all__ = [
    "DEFAULT_DT",
    "ViewportBounds",
    "NodeConfig",
    "BodyConfig",
    "AttachConfig",
    "ConnectorConfig",
    "GroundConfig",
    "InputEntryConfig",
    "InputFormatConfig",
    "SceneConfig",
    "PlayerSettings",
]
