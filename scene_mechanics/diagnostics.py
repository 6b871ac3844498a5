"""Diagnostics utilities for capturing resolved scene state."""
from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .scene import Scene


@dataclass
class Snapshot:
    """Serializable representation of the scene at one applied frame."""

    time: float
    frame_index: int
    bodies: List[Dict[str, Any]]
    metadata: Dict[str, Any] = field(default_factory=dict)
    tag: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        payload = {
            "time": self.time,
            "frame": self.frame_index,
            "bodies": self.bodies,
            "metadata": dict(self.metadata),
        }
        if self.tag is not None:
            payload["tag"] = self.tag
        return payload


class SnapshotLogger:
    """Collects snapshots for later inspection or export."""

    def __init__(self) -> None:
        self._snapshots: List[Snapshot] = []

    def record(
        self,
        scene: Scene,
        frame_index: int,
        *,
        tag: Optional[str] = None,
        extra_metadata: Optional[Dict[str, Any]] = None,
    ) -> Snapshot:
        data = scene.snapshot_dict()
        snapshot = Snapshot(
            time=float(data["time"]),
            frame_index=frame_index,
            bodies=list(data["bodies"]),
            metadata=dict(extra_metadata or {}),
            tag=tag,
        )
        self._snapshots.append(snapshot)
        return snapshot

    def export(self) -> List[Dict[str, Any]]:
        return [snap.as_dict() for snap in self._snapshots]

    def save(self, path: Path) -> None:
        """Persist every captured snapshot to disk as JSON."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            json.dump(self.export(), f, indent=2)

    def clear(self) -> None:
        self._snapshots.clear()

    def __len__(self) -> int:
        return len(self._snapshots)

    def __getitem__(self, index: int) -> Snapshot:
        return self._snapshots[index]

    def __iter__(self):  # pragma: no cover - trivial delegator
        return iter(self._snapshots)


__all__ = ["Snapshot", "SnapshotLogger"]
