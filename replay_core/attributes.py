"""Typed readers for XML element attributes.

Each reader either returns the parsed value, substitutes the declared default
when the attribute is absent, or raises :class:`ConfigParseError` when the
attribute is required-and-absent or present-but-malformed.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple
from xml.etree.ElementTree import Element

from scene_mechanics.errors import ConfigParseError

Color = Tuple[float, float, float]


class _Required:
    def __repr__(self) -> str:  # pragma: no cover - debugging aid
        return "REQUIRED"


REQUIRED = _Required()

NAMED_COLORS = {
    "black": 0x000000,
    "white": 0xFFFFFF,
    "red": 0xFF0000,
    "green": 0x00FF00,
    "blue": 0x0000FF,
    "yellow": 0xFFFF00,
    "aqua": 0x00FFFF,
    "pink": 0xFF00FF,
    "purple": 0x800080,
    "gray": 0x808080,
}

_TRUE = ("true", "yes", "1", "on")
_FALSE = ("false", "no", "0", "off")


def _hex_to_color(value: int) -> Color:
    return (
        ((value >> 16) & 0xFF) / 255.0,
        ((value >> 8) & 0xFF) / 255.0,
        (value & 0xFF) / 255.0,
    )


def parse_color(text: str) -> Color:
    """Parse a colour name, ``#RRGGBB``, or ``r,g,b`` with components in [0, 1]."""
    raw = text.strip().lower()
    if raw in NAMED_COLORS:
        return _hex_to_color(NAMED_COLORS[raw])
    if raw.startswith("#") and len(raw) == 7:
        return _hex_to_color(int(raw[1:], 16))
    parts = [p.strip() for p in raw.split(",")]
    if len(parts) != 3:
        raise ValueError(f"not a colour: {text!r}")
    components = tuple(float(p) for p in parts)
    if not all(0.0 <= c <= 1.0 for c in components):
        raise ValueError(f"colour components must lie in [0, 1]: {text!r}")
    return components  # type: ignore[return-value]


class AttributeReader:
    """Reads typed attributes off one element, naming the element in errors."""

    def __init__(self, element: Element) -> None:
        self.element = element
        self.tag = element.tag

    def _raw(self, name: str, default: object) -> Optional[str]:
        value = self.element.get(name)
        if value is None:
            if default is REQUIRED:
                raise ConfigParseError(f"<{self.tag}> is missing required attribute '{name}'")
            return None
        return value

    def _fail(self, name: str, kind: str, value: str) -> ConfigParseError:
        return ConfigParseError(f"<{self.tag}> attribute '{name}' expects {kind}, got {value!r}")

    def get_int(self, name: str, default=REQUIRED):
        raw = self._raw(name, default)
        if raw is None:
            return default
        try:
            return int(raw.strip())
        except ValueError:
            raise self._fail(name, "an integer", raw) from None

    def get_double(self, name: str, default=REQUIRED):
        raw = self._raw(name, default)
        if raw is None:
            return default
        try:
            value = float(raw.strip())
        except ValueError:
            raise self._fail(name, "a number", raw) from None
        if not math.isfinite(value):
            raise self._fail(name, "a finite number", raw)
        return value

    def get_bool(self, name: str, default=REQUIRED):
        raw = self._raw(name, default)
        if raw is None:
            return default
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise self._fail(name, "a boolean", raw)

    def get_color(self, name: str, default=REQUIRED):
        raw = self._raw(name, default)
        if raw is None:
            return default
        try:
            return parse_color(raw)
        except ValueError:
            raise self._fail(name, "a colour", raw) from None

    def get_enum(self, name: str, choices: Sequence[str], default=REQUIRED):
        raw = self._raw(name, default)
        if raw is None:
            return default
        lowered = raw.strip().lower()
        if lowered not in choices:
            raise self._fail(name, f"one of {', '.join(choices)}", raw)
        return lowered

    def get_string(self, name: str, default=REQUIRED):
        raw = self._raw(name, default)
        if raw is None:
            return default
        return raw


__all__ = ["AttributeReader", "REQUIRED", "NAMED_COLORS", "parse_color"]
