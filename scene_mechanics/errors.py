"""Error taxonomy shared by the scene model, loaders, and frame store."""
from __future__ import annotations

from typing import Optional, Sequence, Tuple


class ReplayError(Exception):
    """Base class for every fatal load-time error raised by the replay stack."""


class ConfigParseError(ReplayError):
    """Scene document is malformed or references things that do not exist."""


class DataFormatError(ReplayError):
    """A data line could not be turned into a frame."""

    def __init__(self, message: str, *, line_number: Optional[int] = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class ResourceLimitError(ReplayError):
    """A scene collection grew past its fixed ceiling."""


class CycleError(ReplayError):
    """A parent relation loops back onto itself."""

    def __init__(self, relation: str, cycle: Sequence[int]) -> None:
        self.relation = relation
        self.cycle: Tuple[int, ...] = tuple(cycle)
        path = " -> ".join(str(body_id) for body_id in self.cycle)
        super().__init__(f"{relation} chain contains a cycle: {path}")


__all__ = [
    "ReplayError",
    "ConfigParseError",
    "DataFormatError",
    "ResourceLimitError",
    "CycleError",
]
