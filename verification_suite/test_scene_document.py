"""Scene document parsing, validation, and replay assembly from files."""
from __future__ import annotations

import io
import sys
from pathlib import Path
from xml.etree.ElementTree import Element

REPLAY_ROOT = Path(__file__).resolve().parents[1]
if str(REPLAY_ROOT) not in sys.path:
    sys.path.insert(0, str(REPLAY_ROOT))

import pytest

from replay_core.attributes import AttributeReader, parse_color
from replay_core.persistence import (
    build_input_map,
    build_scene,
    load_frames,
    load_replay,
    load_scene_config,
    scene_config_from_string,
)
from scene_mechanics.errors import ConfigParseError, DataFormatError, ResourceLimitError

PENDULUM = """
<scene x_min="-4" x_max="4" y_min="-5" y_max="1">
  <ball radius="0.2" name="hub" show_cs="yes"/>
  <block id="5" width="2" height="0.2" x_offset="1" xy_parent_id="1" theta_parent_id="1"
         color="#FF0000" filled="TRUE" line_width="2.5"/>
  <polygon xy_parent_id="5">
    <node x="0" y="0"/>
    <node x="1" y="0.5"/>
    <node x="1" y="-0.5"/>
  </polygon>
  <connector type="Spring" color="0.5, 0.25, 1">
    <attach id="0" x="-3" y="-4"/>
    <attach id="6" x="1" y="0"/>
  </connector>
  <ground type="hash" x1="-4" y1="-4.5" x2="4" y2="-4.5"/>
  <input_format>
    <map column="1" type="time"/>
    <map column="2" type="body" id="1" field="theta"/>
  </input_format>
</scene>
"""


def _scene_xml(body: str) -> str:
    return f"<scene>{body}</scene>"


def test_document_fields_and_defaults() -> None:
    config = scene_config_from_string(PENDULUM)
    assert (config.bounds.x_min, config.bounds.x_max) == (-4.0, 4.0)
    hub, arm, tip = config.bodies
    assert (hub.id, arm.id, tip.id) == (1, 5, 6)
    assert hub.show_cs and not hub.filled
    assert hub.color == (0.0, 0.0, 0.0) and hub.line_width == 1.0
    assert arm.color == (1.0, 0.0, 0.0) and arm.filled and arm.line_width == 2.5
    assert [(n.x, n.y) for n in tip.nodes] == [(0.0, 0.0), (1.0, 0.5), (1.0, -0.5)]
    connector = config.connectors[0]
    assert connector.type == "spring"
    assert connector.color == (0.5, 0.25, 1.0)
    assert (connector.first.id, connector.second.id) == (0, 6)
    assert config.grounds[0].type == "hash"
    assert [(e.column, e.type, e.id, e.field) for e in config.input_format.entries] == [
        (1, "time", 0, None),
        (2, "body", 1, "theta"),
    ]
    assert config.input_format.dt == pytest.approx(0.01)


def test_bounds_default_to_ten_each_way() -> None:
    config = scene_config_from_string(_scene_xml('<ball radius="1"/>'))
    bounds = config.bounds
    assert (bounds.x_min, bounds.x_max, bounds.y_min, bounds.y_max) == (-10.0, 10.0, -10.0, 10.0)


def test_build_scene_resolves_initial_poses() -> None:
    config = scene_config_from_string(PENDULUM)
    scene = build_scene(config)
    assert len(scene) == 3
    assert len(scene.connectors) == 1 and len(scene.grounds) == 1
    arm = scene.get_body(5)
    assert arm.shape_to_ground.offset == pytest.approx((1.0, 0.0))
    input_map = build_input_map(config, scene)
    assert input_map.has_time_column


@pytest.mark.parametrize(
    "body, fragment",
    [
        ("<ball/>", "radius"),
        ('<ball radius="wide"/>', "radius"),
        ('<block width="1"/>', "height"),
        ('<ball id="0" radius="1"/>', "id 0"),
        ('<ball id="2" radius="1"/><ball id="2" radius="1"/>', "reuses"),
        ('<ball radius="1" xy_parent_id="2"/><ball id="2" radius="1"/>', "earlier body"),
        ('<polygon><node x="0" y="0"/></polygon>', "two"),
        ('<ball radius="1" filled="maybe"/>', "filled"),
        ('<ball radius="1" color="teal"/>', "color"),
        ('<sphere radius="1"/>', "sphere"),
        ('<ground type="hash" x1="0" y1="0" x2="1"/>', "y2"),
        ('<ground type="ramp" x1="0" y1="0" x2="1" y2="0"/>', "type"),
        ('<connector><attach id="0"/></connector>', "two <attach>"),
        ('<input_format dt="0"/>', "dt"),
        ('<input_format/><input_format/>', "more than one"),
        ('<input_format><map column="1" type="body" id="1"/></input_format>', "field"),
    ],
)
def test_malformed_documents_are_rejected(body: str, fragment: str) -> None:
    with pytest.raises(ConfigParseError) as info:
        scene_config_from_string(_scene_xml(body))
    assert fragment in str(info.value)


def test_empty_viewport_is_rejected() -> None:
    with pytest.raises(ConfigParseError):
        scene_config_from_string('<scene x_min="1" x_max="1"><ball radius="1"/></scene>')


def test_malformed_xml_is_a_config_error() -> None:
    with pytest.raises(ConfigParseError):
        scene_config_from_string("<scene><ball radius='1'></scene>")


def test_connector_to_unknown_body_fails_at_build() -> None:
    config = scene_config_from_string(
        _scene_xml('<ball radius="1"/><connector><attach id="1"/><attach id="3"/></connector>')
    )
    with pytest.raises(ConfigParseError):
        build_scene(config)


def test_input_map_to_unknown_body_fails_at_build() -> None:
    config = scene_config_from_string(
        _scene_xml('<ball radius="1"/><input_format><map column="1" type="body" id="4" field="x"/></input_format>')
    )
    scene = build_scene(config)
    with pytest.raises(ConfigParseError):
        build_input_map(config, scene)


def test_body_count_limit() -> None:
    balls = "".join('<ball radius="0.1"/>' for _ in range(1025))
    with pytest.raises(ResourceLimitError):
        scene_config_from_string(_scene_xml(balls))


def test_attribute_reader_types() -> None:
    element = Element("block", {"id": " 7 ", "width": "1.5", "show_id": "Off", "type": "LINE", "name": "arm"})
    attrs = AttributeReader(element)
    assert attrs.get_int("id") == 7
    assert attrs.get_double("width") == 1.5
    assert attrs.get_double("height", 2.0) == 2.0
    assert attrs.get_bool("show_id") is False
    assert attrs.get_enum("type", ("line", "spring")) == "line"
    assert attrs.get_string("name") == "arm"
    with pytest.raises(ConfigParseError):
        attrs.get_int("width")
    with pytest.raises(ConfigParseError):
        attrs.get_string("missing")


def test_parse_color_forms() -> None:
    assert parse_color("Aqua") == (0.0, 1.0, 1.0)
    assert parse_color("#00FF00") == (0.0, 1.0, 0.0)
    assert parse_color("1, 0.5, 0") == (1.0, 0.5, 0.0)
    with pytest.raises(ValueError):
        parse_color("1.5, 0, 0")


def test_load_replay_from_files(tmp_path: Path) -> None:
    scene_path = tmp_path / "pendulum.xml"
    scene_path.write_text(PENDULUM, encoding="utf-8")
    data_path = tmp_path / "pendulum.txt"
    data_path.write_text("0.0 0.0\n\n0.1 0.5\n0.2 1.0\n", encoding="utf-8")
    session = load_replay(scene_path, data_path)
    assert session.config.name == "pendulum"
    assert session.scene.name == "pendulum"
    assert session.frames.frame_count == 3
    assert session.frames.t_max == pytest.approx(0.2)


def test_missing_scene_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigParseError):
        load_scene_config(tmp_path / "absent.xml")


def test_missing_data_file(tmp_path: Path) -> None:
    config = scene_config_from_string(PENDULUM)
    scene = build_scene(config)
    with pytest.raises(DataFormatError):
        load_frames(tmp_path / "absent.txt", build_input_map(config, scene))


def test_undecodable_data_file_reports_its_line(tmp_path: Path) -> None:
    config = scene_config_from_string(PENDULUM)
    scene = build_scene(config)
    data_path = tmp_path / "latin1.txt"
    data_path.write_bytes(b"0.0 1.0\n1.0 \xff\n")
    with pytest.raises(DataFormatError) as info:
        load_frames(data_path, build_input_map(config, scene))
    assert info.value.line_number == 2
    assert "UTF-8" in str(info.value)


def test_dash_reads_standard_input(monkeypatch: pytest.MonkeyPatch) -> None:
    config = scene_config_from_string(PENDULUM)
    scene = build_scene(config)
    monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"0 0\n1 0.25\n")))
    store = load_frames("-", build_input_map(config, scene))
    assert store.frame_count == 2
    assert store.frozen
