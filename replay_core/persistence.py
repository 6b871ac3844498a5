"""File I/O helpers: scene documents, data files, and assembled replay sessions."""
from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
import logging
from pathlib import Path
import sys
from typing import BinaryIO, Iterator, List, Set, Union
from xml.etree import ElementTree
from xml.etree.ElementTree import Element

from scene_mechanics.entities import (
    BODY_FIELDS,
    CONNECTOR_TYPES,
    GROUND_TYPES,
    Attachment,
    Body,
    Connector,
    DisplayStyle,
    Ground,
)
from scene_mechanics.errors import ConfigParseError, DataFormatError, ResourceLimitError
from scene_mechanics.geometry import BallShape, BlockShape, PolygonShape
from scene_mechanics.resolver import resolve_scene
from scene_mechanics.scene import Scene
from scene_mechanics.transform import Pose2D

from .attributes import AttributeReader
from .config import (
    DEFAULT_DT,
    AttachConfig,
    BodyConfig,
    ConnectorConfig,
    GroundConfig,
    InputEntryConfig,
    InputFormatConfig,
    NodeConfig,
    SceneConfig,
    ViewportBounds,
)
from .frames import ENTRY_BODY, ENTRY_TYPES, FrameStore, InputMap, InputMapEntry

logger = logging.getLogger(__name__)

BODY_KINDS = ("ball", "block", "polygon")
STDIN_TOKEN = "-"


# --- Scene documents ---------------------------------------------------------

def load_scene_config(path: Path) -> SceneConfig:
    """Read an XML scene document from disk."""
    try:
        tree = ElementTree.parse(str(path))
    except ElementTree.ParseError as exc:
        raise ConfigParseError(f"{path}: malformed XML: {exc}") from exc
    except OSError as exc:
        raise ConfigParseError(f"{path}: cannot read scene document: {exc}") from exc
    config = scene_config_from_element(tree.getroot())
    config.name = Path(path).stem
    logger.info(
        "Loaded scene %s: %d bodies, %d connectors, %d grounds, %d input columns",
        config.name,
        len(config.bodies),
        len(config.connectors),
        len(config.grounds),
        len(config.input_format.entries),
    )
    return config


def scene_config_from_string(text: str) -> SceneConfig:
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError as exc:
        raise ConfigParseError(f"malformed XML: {exc}") from exc
    return scene_config_from_element(root)


def scene_config_from_element(root: Element) -> SceneConfig:
    attrs = AttributeReader(root)
    config = SceneConfig(
        bounds=ViewportBounds(
            x_min=attrs.get_double("x_min", -10.0),
            x_max=attrs.get_double("x_max", 10.0),
            y_min=attrs.get_double("y_min", -10.0),
            y_max=attrs.get_double("y_max", 10.0),
        )
    )
    bounds = config.bounds
    if not (bounds.x_max > bounds.x_min and bounds.y_max > bounds.y_min):
        raise ConfigParseError(
            f"Viewport bounds are empty: x=[{bounds.x_min}, {bounds.x_max}] y=[{bounds.y_min}, {bounds.y_max}]"
        )
    declared: Set[int] = set()
    input_formats = 0
    for element in root:
        tag = element.tag
        if tag in BODY_KINDS:
            body = _parse_body(element, declared)
            declared.add(body.id)
            config.bodies.append(body)
        elif tag == "connector":
            config.connectors.append(_parse_connector(element))
        elif tag == "ground":
            config.grounds.append(_parse_ground(element))
        elif tag == "input_format":
            input_formats += 1
            if input_formats > 1:
                raise ConfigParseError("Scene document declares more than one <input_format>")
            config.input_format = _parse_input_format(element)
        else:
            raise ConfigParseError(f"Unknown element <{tag}> in scene document")
    _check_limits(config)
    return config


def _check_limits(config: SceneConfig) -> None:
    limits = config.limits
    if len(config.bodies) > limits.max_bodies:
        raise ResourceLimitError(f"Scene declares more than {limits.max_bodies} bodies")
    if len(config.connectors) > limits.max_connectors:
        raise ResourceLimitError(f"Scene declares more than {limits.max_connectors} connectors")
    if len(config.grounds) > limits.max_grounds:
        raise ResourceLimitError(f"Scene declares more than {limits.max_grounds} grounds")
    if len(config.input_format.entries) > limits.max_input_entries:
        raise ResourceLimitError(
            f"Input format maps more than {limits.max_input_entries} columns"
        )


def _parse_body(element: Element, declared: Set[int]) -> BodyConfig:
    attrs = AttributeReader(element)
    default_id = max(declared, default=0) + 1
    body_id = attrs.get_int("id", default_id)
    if body_id == 0:
        raise ConfigParseError(f"<{element.tag}> uses id 0, which is reserved for the ground")
    if body_id in declared:
        raise ConfigParseError(f"<{element.tag}> reuses body id {body_id}")
    body = BodyConfig(
        id=body_id,
        kind=element.tag,
        name=attrs.get_string("name", ""),
        x=attrs.get_double("x", 0.0),
        y=attrs.get_double("y", 0.0),
        theta=attrs.get_double("theta", 0.0),
        x_offset=attrs.get_double("x_offset", 0.0),
        y_offset=attrs.get_double("y_offset", 0.0),
        theta_offset=attrs.get_double("theta_offset", 0.0),
        xy_parent_id=attrs.get_int("xy_parent_id", 0),
        theta_parent_id=attrs.get_int("theta_parent_id", 0),
        color=attrs.get_color("color", (0.0, 0.0, 0.0)),
        line_width=attrs.get_double("line_width", 1.0),
        filled=attrs.get_bool("filled", False),
        show_cs=attrs.get_bool("show_cs", False),
        show_name=attrs.get_bool("show_name", False),
        show_id=attrs.get_bool("show_id", False),
    )
    for relation, parent_id in (("xy_parent_id", body.xy_parent_id), ("theta_parent_id", body.theta_parent_id)):
        # A self reference is left for Scene.validate to report as a cycle.
        if parent_id not in (0, body_id) and parent_id not in declared:
            raise ConfigParseError(
                f"<{element.tag} id={body_id}> {relation}={parent_id} does not name an earlier body"
            )
    if element.tag == "ball":
        body.radius = attrs.get_double("radius")
        if body.radius < 0.0:
            raise ConfigParseError(f"<ball id={body_id}> radius must be non-negative")
    elif element.tag == "block":
        body.width = attrs.get_double("width")
        body.height = attrs.get_double("height")
        if body.width < 0.0 or body.height < 0.0:
            raise ConfigParseError(f"<block id={body_id}> width and height must be non-negative")
    else:
        for child in element:
            if child.tag != "node":
                raise ConfigParseError(f"<polygon id={body_id}> may only contain <node> elements")
            node_attrs = AttributeReader(child)
            body.nodes.append(NodeConfig(node_attrs.get_double("x"), node_attrs.get_double("y")))
        if len(body.nodes) < 2:
            raise ConfigParseError(f"<polygon id={body_id}> needs at least two <node> elements")
    return body


def _parse_connector(element: Element) -> ConnectorConfig:
    attrs = AttributeReader(element)
    attaches: List[AttachConfig] = []
    for child in element:
        if child.tag != "attach":
            raise ConfigParseError("<connector> may only contain <attach> elements")
        child_attrs = AttributeReader(child)
        attaches.append(
            AttachConfig(
                id=child_attrs.get_int("id", 0),
                x=child_attrs.get_double("x", 0.0),
                y=child_attrs.get_double("y", 0.0),
            )
        )
    if len(attaches) != 2:
        raise ConfigParseError(f"<connector> needs exactly two <attach> elements, got {len(attaches)}")
    return ConnectorConfig(
        type=attrs.get_enum("type", CONNECTOR_TYPES, "line"),
        first=attaches[0],
        second=attaches[1],
        id=attrs.get_int("id", 0),
        name=attrs.get_string("name", ""),
        color=attrs.get_color("color", (0.0, 0.0, 0.0)),
        line_width=attrs.get_double("line_width", 1.0),
        show_name=attrs.get_bool("show_name", False),
        show_id=attrs.get_bool("show_id", False),
    )


def _parse_ground(element: Element) -> GroundConfig:
    attrs = AttributeReader(element)
    return GroundConfig(
        type=attrs.get_enum("type", GROUND_TYPES, "line"),
        x1=attrs.get_double("x1"),
        y1=attrs.get_double("y1"),
        x2=attrs.get_double("x2"),
        y2=attrs.get_double("y2"),
        id=attrs.get_int("id", 0),
        color=attrs.get_color("color", (0.0, 0.0, 0.0)),
        line_width=attrs.get_double("line_width", 1.0),
    )


def _parse_input_format(element: Element) -> InputFormatConfig:
    attrs = AttributeReader(element)
    fmt = InputFormatConfig(dt=attrs.get_double("dt", DEFAULT_DT))
    if fmt.dt <= 0.0:
        raise ConfigParseError("<input_format> dt must be positive")
    for child in element:
        if child.tag != "map":
            raise ConfigParseError("<input_format> may only contain <map> elements")
        child_attrs = AttributeReader(child)
        column = child_attrs.get_int("column")
        kind = child_attrs.get_enum("type", ENTRY_TYPES)
        entry = InputEntryConfig(column=column, type=kind)
        if kind == ENTRY_BODY:
            entry.id = child_attrs.get_int("id")
            entry.field = child_attrs.get_enum("field", BODY_FIELDS)
        fmt.entries.append(entry)
    return fmt


# --- Building runtime objects ------------------------------------------------

def _style(cfg) -> DisplayStyle:
    return DisplayStyle(
        color=tuple(cfg.color),
        line_width=cfg.line_width,
        filled=getattr(cfg, "filled", False),
        show_cs=getattr(cfg, "show_cs", False),
        show_name=getattr(cfg, "show_name", False),
        show_id=getattr(cfg, "show_id", False),
    )


def _body_from_config(cfg: BodyConfig) -> Body:
    if cfg.kind == "ball":
        shape = BallShape(cfg.radius)
    elif cfg.kind == "block":
        shape = BlockShape(cfg.width, cfg.height)
    else:
        shape = PolygonShape(tuple((n.x, n.y) for n in cfg.nodes))
    return Body(
        body_id=cfg.id,
        shape=shape,
        name=cfg.name,
        pose=Pose2D(cfg.x, cfg.y, cfg.theta),
        shape_offset=Pose2D(cfg.x_offset, cfg.y_offset, cfg.theta_offset),
        xy_parent_id=cfg.xy_parent_id,
        theta_parent_id=cfg.theta_parent_id,
        style=_style(cfg),
    )


def build_scene(config: SceneConfig) -> Scene:
    """Create, validate, and resolve the scene a config describes."""
    scene = Scene(name=config.name, bounds=config.bounds.to_scene_bounds(), limits=config.limits)
    for body_cfg in config.bodies:
        scene.add_body(_body_from_config(body_cfg))
    scene.validate()
    for conn in config.connectors:
        scene.add_connector(
            Connector(
                type=conn.type,
                first=Attachment(conn.first.id, conn.first.x, conn.first.y),
                second=Attachment(conn.second.id, conn.second.x, conn.second.y),
                name=conn.name,
                id=conn.id,
                style=_style(conn),
            )
        )
    for ground in config.grounds:
        scene.add_ground(
            Ground(
                type=ground.type,
                x1=ground.x1,
                y1=ground.y1,
                x2=ground.x2,
                y2=ground.y2,
                id=ground.id,
                style=_style(ground),
            )
        )
    resolve_scene(scene)
    logger.info("Built %s", scene.summary())
    return scene


def build_input_map(config: SceneConfig, scene: Scene) -> InputMap:
    entries = [
        InputMapEntry(column=e.column, kind=e.type, body_id=e.id, field=e.field)
        for e in config.input_format.entries
    ]
    input_map = InputMap(entries, limits=config.limits)
    input_map.bind(scene)
    return input_map


# --- Data files ----------------------------------------------------------------

@contextmanager
def open_data_stream(source: Union[str, Path]) -> Iterator[BinaryIO]:
    """Open a data file, or standard input for ``-``, as bytes."""
    if str(source) == STDIN_TOKEN:
        yield sys.stdin.buffer
        return
    try:
        handle = open(source, "rb")
    except OSError as exc:
        raise DataFormatError(f"{source}: cannot read data file: {exc}") from exc
    with handle:
        yield handle


def load_frames(source: Union[str, Path], input_map: InputMap, *, dt: float = DEFAULT_DT) -> FrameStore:
    """Ingest every line of ``source`` and return the frozen store."""
    store = FrameStore(input_map, dt=dt)
    with open_data_stream(source) as stream:
        for number, raw in enumerate(stream, start=1):
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise DataFormatError(
                    f"{source}: not valid UTF-8 at byte {exc.start}", line_number=number
                ) from exc
            store.ingest(line, number)
    return store.freeze()


@dataclass
class ReplaySession:
    """Everything needed to start playback, built and validated up front."""

    config: SceneConfig
    scene: Scene
    input_map: InputMap
    frames: FrameStore
    scene_path: Path


def load_replay(scene_path: Path, data_source: Union[str, Path]) -> ReplaySession:
    config = load_scene_config(scene_path)
    scene = build_scene(config)
    input_map = build_input_map(config, scene)
    frames = load_frames(data_source, input_map, dt=config.input_format.dt)
    return ReplaySession(
        config=config,
        scene=scene,
        input_map=input_map,
        frames=frames,
        scene_path=Path(scene_path),
    )


__all__ = [
    "BODY_KINDS",
    "STDIN_TOKEN",
    "load_scene_config",
    "scene_config_from_string",
    "scene_config_from_element",
    "build_scene",
    "build_input_map",
    "open_data_stream",
    "load_frames",
    "ReplaySession",
    "load_replay",
]
