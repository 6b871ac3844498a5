"""Frame ingestion: layout, round trips, and malformed data lines."""
from __future__ import annotations

import struct
import sys
from pathlib import Path

REPLAY_ROOT = Path(__file__).resolve().parents[1]
if str(REPLAY_ROOT) not in sys.path:
    sys.path.insert(0, str(REPLAY_ROOT))

import pytest

from replay_core.frames import FIELD_WIDTH, FrameStore, InputMap, InputMapEntry
from scene_mechanics.entities import make_ball
from scene_mechanics.errors import ConfigParseError, DataFormatError, ResourceLimitError
from scene_mechanics.scene import Scene, SceneLimits


def _scene() -> Scene:
    scene = Scene(name="frames")
    scene.add_body(make_ball(1, 0.5))
    return scene


def _timed_map() -> InputMap:
    return InputMap(
        [
            InputMapEntry(column=1, kind="time"),
            InputMapEntry(column=2, kind="body", body_id=1, field="x"),
            InputMapEntry(column=4, kind="body", body_id=1, field="theta"),
        ]
    )


def test_layout_is_fixed_by_first_line() -> None:
    input_map = _timed_map()
    assert input_map.layout is None
    store = FrameStore(input_map)
    store.ingest("0.0 1.0 ignored 2.0")
    assert input_map.offsets == [0, FIELD_WIDTH, 2 * FIELD_WIDTH]
    assert store.bytes_per_frame == 3 * FIELD_WIDTH
    layout = input_map.layout
    store.ingest("0.5 1.5 ignored 2.5")
    assert input_map.layout is layout
    assert input_map.offset_of(input_map.entries[2]) == 2 * FIELD_WIDTH


def test_values_round_trip_bit_for_bit() -> None:
    scene = _scene()
    input_map = _timed_map()
    input_map.bind(scene)
    store = FrameStore(input_map)
    texts = ("0.1", "3.141592653589793", "-1e-300")
    frame = store.ingest(f"{texts[0]} {texts[1]} skip {texts[2]}")
    input_map.apply(frame, scene)
    body = scene.get_body(1)
    for text, value in zip(texts, (scene.time, body.x, body.theta)):
        assert struct.pack("<d", value) == struct.pack("<d", float(text))
    packed = frame.to_bytes()
    offset = input_map.offset_of(input_map.entries[1])
    assert packed[offset : offset + FIELD_WIDTH] == struct.pack("<d", float(texts[1]))
    assert frame["body1.x"] == float(texts[1])


def test_non_monotonic_time_fails_on_that_line() -> None:
    store = FrameStore(_timed_map())
    with pytest.raises(DataFormatError) as info:
        store.ingest_lines(["1.0 0 0 0", "2.0 0 0 0", "1.5 0 0 0"])
    assert info.value.line_number == 3
    assert "non-monotonic" in str(info.value)
    assert store.frame_count == 2


def test_repeated_timestamps_are_accepted() -> None:
    store = FrameStore(_timed_map())
    store.ingest_lines(["1.0 0 0 0", "1.0 1 0 0", "2.0 2 0 0"])
    store.freeze()
    assert (store.t_min, store.t_max) == (1.0, 2.0)
    assert [store.time_at(i) for i in range(3)] == [1.0, 1.0, 2.0]


def test_short_line_reports_missing_column() -> None:
    store = FrameStore(_timed_map())
    with pytest.raises(DataFormatError) as info:
        store.ingest_lines(["0 1 2 3", "1 1 2"])
    assert info.value.line_number == 2
    assert "not enough fields" in str(info.value)


def test_unparseable_value_names_the_column() -> None:
    store = FrameStore(_timed_map())
    with pytest.raises(DataFormatError) as info:
        store.ingest("0.0 abc 1 1", line_number=7)
    assert info.value.line_number == 7
    assert "column 2" in str(info.value)


def test_blank_lines_are_skipped_but_counted() -> None:
    store = FrameStore(_timed_map())
    store.ingest_lines(["0 1 x 2", "", "   \t", "1 2 x 3"])
    assert store.frame_count == 2
    assert store[1].line_number == 4
    with pytest.raises(DataFormatError) as info:
        store.ingest_lines(["", "2 oops x 4"])
    assert info.value.line_number == 6


def test_empty_input_has_no_frames() -> None:
    store = FrameStore(_timed_map())
    store.ingest_lines(["", "  "])
    with pytest.raises(DataFormatError, match="no data frames"):
        store.freeze()


def test_frozen_store_refuses_more_lines() -> None:
    store = FrameStore(_timed_map())
    store.ingest("0 0 0 0")
    store.freeze()
    with pytest.raises(RuntimeError):
        store.ingest("1 0 0 0")


def test_implicit_time_spacing() -> None:
    input_map = InputMap([InputMapEntry(column=1, kind="body", body_id=1, field="y")])
    store = FrameStore(input_map, dt=0.5)
    store.ingest_lines(["0", "1", "2", "3"])
    store.freeze()
    assert not store.has_time_column
    assert store.t_min == 0.0
    assert store.t_max == pytest.approx(2.0)
    assert store.time_at(3) == pytest.approx(1.5)


def test_implicit_spacing_must_be_positive() -> None:
    with pytest.raises(ConfigParseError):
        FrameStore(_timed_map(), dt=0.0)


def test_input_map_rejects_two_time_columns() -> None:
    with pytest.raises(ConfigParseError):
        InputMap([InputMapEntry(column=1, kind="time"), InputMapEntry(column=2, kind="time")])


def test_input_map_rejects_two_columns_for_one_field() -> None:
    with pytest.raises(ConfigParseError):
        InputMap(
            [
                InputMapEntry(column=1, kind="body", body_id=1, field="x"),
                InputMapEntry(column=2, kind="body", body_id=1, field="x"),
            ]
        )


def test_input_map_entry_validation() -> None:
    with pytest.raises(ConfigParseError):
        InputMapEntry(column=0, kind="time")
    with pytest.raises(ConfigParseError):
        InputMapEntry(column=1, kind="body", body_id=1, field="z")
    with pytest.raises(ConfigParseError):
        InputMapEntry(column=1, kind="velocity")


def test_input_map_entry_limit() -> None:
    entries = [
        InputMapEntry(column=1, kind="time"),
        InputMapEntry(column=2, kind="body", body_id=1, field="x"),
    ]
    with pytest.raises(ResourceLimitError):
        InputMap(entries, limits=SceneLimits(max_input_entries=1))


def test_bind_rejects_unknown_body() -> None:
    input_map = InputMap([InputMapEntry(column=1, kind="body", body_id=42, field="x")])
    with pytest.raises(ConfigParseError):
        input_map.bind(_scene())


@pytest.mark.parametrize("text", ["nan", "NaN", "inf", "-Infinity", "1e999"])
def test_non_finite_values_are_rejected(text: str) -> None:
    store = FrameStore(_timed_map())
    with pytest.raises(DataFormatError) as info:
        store.ingest_lines(["1.0 0 x 0", f"{text} 0 x 0", "0.5 0 x 0"])
    assert info.value.line_number == 2
    assert store.frame_count == 1


@pytest.mark.parametrize("text", ["1_000", "0x10", "1,5", "--1", "\u0661"])
def test_non_decimal_forms_are_rejected(text: str) -> None:
    store = FrameStore(_timed_map())
    with pytest.raises(DataFormatError, match="column 2 is not a number"):
        store.ingest(f"0.0 {text} x 0")


def test_decimal_and_exponent_forms_are_accepted() -> None:
    store = FrameStore(_timed_map())
    frame = store.ingest("+1. -.5 x 2.5E-3")
    assert frame.values == (1.0, -0.5, 0.0025)
