"""Input map and frame store: text columns into fixed-width time-ordered frames.

Every data line becomes one :class:`Frame` holding one double per input-map
entry. Slots are laid out once, when the first line parses, at consecutive
byte offsets ``FIELD_WIDTH`` apart; every later frame reuses that layout.
"""
from __future__ import annotations

from dataclasses import dataclass
import logging
import math
import re
import struct
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from scene_mechanics.entities import BODY_FIELDS
from scene_mechanics.errors import ConfigParseError, DataFormatError, ResourceLimitError
from scene_mechanics.scene import Scene, SceneLimits

from .config import DEFAULT_DT

logger = logging.getLogger(__name__)

FIELD_WIDTH = struct.calcsize("<d")

# Plain decimal or exponent notation only; no nan, inf, or digit separators.
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)

ENTRY_TIME = "time"
ENTRY_BODY = "body"
ENTRY_TYPES = (ENTRY_TIME, ENTRY_BODY)


@dataclass(frozen=True)
class InputMapEntry:
    """Binds one 1-based text column to the clock or a body's x/y/theta."""

    column: int
    kind: str
    body_id: int = 0
    field: Optional[str] = None

    def __post_init__(self) -> None:
        if self.column < 1:
            raise ConfigParseError(f"Input column must be 1 or greater, got {self.column}")
        if self.kind not in ENTRY_TYPES:
            raise ConfigParseError(f"Unknown input entry type '{self.kind}'")
        if self.kind == ENTRY_BODY and self.field not in BODY_FIELDS:
            raise ConfigParseError(
                f"Body input entry for column {self.column} needs field x, y or theta, got {self.field!r}"
            )

    @property
    def field_id(self) -> str:
        if self.kind == ENTRY_TIME:
            return ENTRY_TIME
        return f"body{self.body_id}.{self.field}"

    def write(self, scene: Scene, value: float) -> None:
        if self.kind == ENTRY_TIME:
            scene.time = value
            return
        assert scene.has_body(self.body_id), f"input entry targets missing body {self.body_id}"
        scene.get_body(self.body_id).set_field(self.field, value)


@dataclass(frozen=True)
class FrameLayout:
    """Slot order shared by every frame of one store."""

    field_ids: Tuple[str, ...]
    field_width: int = FIELD_WIDTH

    @property
    def bytes_per_frame(self) -> int:
        return self.field_width * len(self.field_ids)

    def offset_of(self, slot: int) -> int:
        return slot * self.field_width

    def slot_at(self, offset: int) -> int:
        if offset % self.field_width or not 0 <= offset < self.bytes_per_frame:
            raise IndexError(f"Offset {offset} is not a slot boundary")
        return offset // self.field_width


class InputMap:
    """Ordered input-map entries plus the byte offsets fixed at first ingest."""

    def __init__(self, entries: Sequence[InputMapEntry], *, limits: Optional[SceneLimits] = None) -> None:
        limits = limits or SceneLimits()
        if len(entries) > limits.max_input_entries:
            raise ResourceLimitError(f"Input map exceeds {limits.max_input_entries} entries")
        time_entries = [e for e in entries if e.kind == ENTRY_TIME]
        if len(time_entries) > 1:
            raise ConfigParseError("Input format maps more than one time column")
        seen: Dict[str, int] = {}
        for entry in entries:
            if entry.field_id in seen:
                raise ConfigParseError(
                    f"Columns {seen[entry.field_id]} and {entry.column} both drive {entry.field_id}"
                )
            seen[entry.field_id] = entry.column
        self.entries: List[InputMapEntry] = list(entries)
        self.time_entry: Optional[InputMapEntry] = time_entries[0] if time_entries else None
        self.time_slot: Optional[int] = (
            self.entries.index(self.time_entry) if self.time_entry is not None else None
        )
        self.layout: Optional[FrameLayout] = None
        self.offsets: List[int] = []

    @property
    def has_time_column(self) -> bool:
        return self.time_entry is not None

    def bind(self, scene: Scene) -> None:
        """Confirm every body entry names a body that exists in ``scene``."""
        for entry in self.entries:
            if entry.kind == ENTRY_BODY and not scene.has_body(entry.body_id):
                raise ConfigParseError(
                    f"Input column {entry.column} targets unknown body id {entry.body_id}"
                )

    def assign_layout(self) -> FrameLayout:
        if self.layout is None:
            self.layout = FrameLayout(tuple(entry.field_id for entry in self.entries))
            self.offsets = [self.layout.offset_of(slot) for slot in range(len(self.entries))]
            logger.debug("Frame layout fixed: %d bytes per frame", self.layout.bytes_per_frame)
        return self.layout

    def offset_of(self, entry: InputMapEntry) -> int:
        if self.layout is None:
            raise RuntimeError("Offsets are assigned when the first data line is ingested")
        return self.layout.offset_of(self.entries.index(entry))

    def apply(self, frame: "Frame", scene: Scene) -> None:
        """Write every mapped value of ``frame`` into its destination."""
        for entry, offset in zip(self.entries, self.offsets):
            entry.write(scene, frame.read(offset))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[InputMapEntry]:
        return iter(self.entries)


@dataclass(frozen=True)
class Frame:
    """One data line: a value per slot, addressable by offset or field id."""

    values: Tuple[float, ...]
    layout: FrameLayout
    line_number: int = 0

    def read(self, offset: int) -> float:
        return self.values[self.layout.slot_at(offset)]

    def __getitem__(self, field_id: str) -> float:
        return self.values[self.layout.field_ids.index(field_id)]

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.layout.field_ids, self.values))

    def to_bytes(self) -> bytes:
        return struct.pack(f"<{len(self.values)}d", *self.values)


class FrameStore:
    """Append-only, then frozen, sequence of frames with a time index.

    With a time column, frame times must never decrease. Without one, frames
    are spaced ``dt`` apart starting at zero.
    """

    def __init__(self, input_map: InputMap, *, dt: float = DEFAULT_DT) -> None:
        if dt <= 0.0:
            raise ConfigParseError(f"Implicit frame spacing dt must be positive, got {dt}")
        self.input_map = input_map
        self.dt = dt
        self._frames: List[Frame] = []
        self._time_min: Optional[float] = None
        self._time_max: Optional[float] = None
        self._lines_seen = 0
        self.frozen = False

    # --- Ingestion --------------------------------------------------------
    def ingest(self, line: str, line_number: Optional[int] = None) -> Optional[Frame]:
        """Parse one text line into a frame; blank lines are skipped."""
        if self.frozen:
            raise RuntimeError("Frame store is frozen; ingestion has finished")
        self._lines_seen += 1
        number = line_number if line_number is not None else self._lines_seen
        fields = line.split()
        if not fields:
            return None
        values: List[float] = []
        for entry in self.input_map.entries:
            if entry.column > len(fields):
                raise DataFormatError(
                    f"not enough fields: column {entry.column} requested, {len(fields)} present",
                    line_number=number,
                )
            values.append(self._parse_value(fields[entry.column - 1], entry.column, number))
        layout = self.input_map.assign_layout()
        slot = self.input_map.time_slot
        if slot is not None:
            self._track_time(values[slot], number)
        frame = Frame(values=tuple(values), layout=layout, line_number=number)
        self._frames.append(frame)
        return frame

    @staticmethod
    def _parse_value(text: str, column: int, line_number: int) -> float:
        if NUMBER_PATTERN.fullmatch(text) is None:
            raise DataFormatError(f"column {column} is not a number: {text!r}", line_number=line_number)
        value = float(text)
        if not math.isfinite(value):
            raise DataFormatError(f"column {column} is out of range: {text!r}", line_number=line_number)
        return value

    def _track_time(self, value: float, line_number: int) -> None:
        if self._time_max is None:
            self._time_min = value
            self._time_max = value
            return
        if value < self._time_max:
            raise DataFormatError(
                f"non-monotonic timestamp: {value} after {self._time_max}", line_number=line_number
            )
        self._time_max = value

    def ingest_lines(self, lines: Iterable[str]) -> int:
        count_before = len(self._frames)
        for number, line in enumerate(lines, start=self._lines_seen + 1):
            self.ingest(line, number)
        return len(self._frames) - count_before

    def freeze(self) -> "FrameStore":
        if not self._frames:
            raise DataFormatError("no data frames")
        self.frozen = True
        logger.info(
            "Frame store ready: %d frames, t=[%.4g, %.4g] (%s time)",
            len(self._frames),
            self.t_min,
            self.t_max,
            "explicit" if self.has_time_column else "implicit",
        )
        return self

    # --- Queries ----------------------------------------------------------
    @property
    def has_time_column(self) -> bool:
        return self.input_map.has_time_column

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def bytes_per_frame(self) -> int:
        layout = self.input_map.layout
        return layout.bytes_per_frame if layout else 0

    @property
    def t_min(self) -> float:
        if self.has_time_column:
            return self._time_min if self._time_min is not None else 0.0
        return 0.0

    @property
    def t_max(self) -> float:
        if self.has_time_column:
            return self._time_max if self._time_max is not None else 0.0
        return self.frame_count * self.dt

    def time_at(self, index: int) -> float:
        if self.has_time_column:
            return self._frames[index].values[self.input_map.time_slot]
        return self.t_min + index * self.dt

    def __len__(self) -> int:
        return len(self._frames)

    def __getitem__(self, index: int) -> Frame:
        return self._frames[index]

    def __iter__(self) -> Iterator[Frame]:
        return iter(self._frames)


__all__ = [
    "FIELD_WIDTH",
    "ENTRY_TIME",
    "ENTRY_BODY",
    "InputMapEntry",
    "InputMap",
    "FrameLayout",
    "Frame",
    "FrameStore",
]
