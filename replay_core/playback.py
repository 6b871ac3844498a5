"""Playback controller: frame selection, seeking, and the command queue."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
import logging
import math
from pathlib import Path
from typing import Callable, Deque, List, Optional, Union

from scene_mechanics.diagnostics import SnapshotLogger
from scene_mechanics.resolver import resolve_scene
from scene_mechanics.scene import Scene

from .frames import FrameStore, InputMap

logger = logging.getLogger(__name__)

PLAYING = "playing"
PAUSED = "paused"

Listener = Callable[[int], None]


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Seek:
    time: float


@dataclass(frozen=True)
class Step:
    frames: int


@dataclass(frozen=True)
class StepToStart:
    pass


@dataclass(frozen=True)
class StepToEnd:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class TogglePause:
    pass


Command = Union[Tick, Seek, Step, StepToStart, StepToEnd, Pause, Resume, TogglePause]


class PlaybackController:
    """Owns the active frame index and pause state for one scene.

    Every command runs to completion before the next one starts. Applying a
    frame writes its values into the scene, resolves every body's transform,
    and then notifies listeners with the applied index.
    """

    def __init__(
        self,
        scene: Scene,
        frames: FrameStore,
        input_map: Optional[InputMap] = None,
        *,
        start_paused: bool = False,
    ) -> None:
        if not frames.frozen:
            raise RuntimeError("Frame store must be frozen before playback starts")
        self.scene = scene
        self.frames = frames
        self.input_map = input_map or frames.input_map
        self.state = PAUSED if start_paused else PLAYING
        self.active_frame_index = 0
        self.displayed_frame_index: Optional[int] = None
        self._queue: Deque[Command] = deque()
        self._listeners: List[Listener] = []
        self.trace_enabled = False
        self.trace_log = SnapshotLogger()

    # --- State --------------------------------------------------------------
    @property
    def paused(self) -> bool:
        return self.state == PAUSED

    @property
    def frame_count(self) -> int:
        return self.frames.frame_count

    @property
    def current_time(self) -> float:
        return self.scene.time

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # --- Command queue ------------------------------------------------------
    def submit(self, command: Command) -> None:
        self._queue.append(command)

    def process_pending(self) -> int:
        """Run queued commands in arrival order; returns how many ran."""
        processed = 0
        while self._queue:
            self.dispatch(self._queue.popleft())
            processed += 1
        return processed

    @property
    def pending(self) -> int:
        return len(self._queue)

    def dispatch(self, command: Command) -> bool:
        """Run one command now. Returns False when it was ignored or rejected."""
        if isinstance(command, Tick):
            return self.tick()
        if isinstance(command, Seek):
            return self.seek(command.time)
        if isinstance(command, Step):
            return self.step(command.frames)
        if isinstance(command, StepToStart):
            return self.step_to_start()
        if isinstance(command, StepToEnd):
            return self.step_to_end()
        if isinstance(command, Pause):
            return self.pause()
        if isinstance(command, Resume):
            return self.resume()
        if isinstance(command, TogglePause):
            return self.resume() if self.paused else self.pause()
        raise TypeError(f"Unknown playback command {command!r}")

    # --- Transport ----------------------------------------------------------
    def tick(self) -> bool:
        if self.paused:
            return False
        self.apply_frame(self.active_frame_index)
        self.active_frame_index += 1
        if self.active_frame_index >= self.frame_count:
            self.active_frame_index = 0
        return True

    def pause(self) -> bool:
        self.state = PAUSED
        return True

    def resume(self) -> bool:
        self.state = PLAYING
        return True

    def seek(self, target_time: float) -> bool:
        if not self._require_paused("seek"):
            return False
        index = self.nearest_frame_index(target_time)
        self.active_frame_index = index
        self.apply_frame(index)
        return True

    def step(self, delta_frames: int) -> bool:
        if not self._require_paused("step"):
            return False
        index = max(0, min(self.frame_count - 1, self.active_frame_index + delta_frames))
        self.active_frame_index = index
        self.apply_frame(index)
        return True

    def step_to_start(self) -> bool:
        return self.step(-self.frame_count)

    def step_to_end(self) -> bool:
        return self.step(self.frame_count)

    def _require_paused(self, action: str) -> bool:
        if self.paused:
            return True
        logger.warning("Ignoring %s while playing; pause first", action)
        return False

    # --- Frame selection ----------------------------------------------------
    def nearest_frame_index(self, target_time: float) -> int:
        if self.frames.has_time_column:
            return self._greedy_search(target_time)
        t_min, t_max = self.frames.t_min, self.frames.t_max
        count = self.frame_count
        index = int(math.floor((target_time - t_min) / (t_max - t_min) * count + 0.5))
        return max(0, min(count - 1, index))

    def _greedy_search(self, target_time: float) -> int:
        # Walks from the active frame while the time gap keeps shrinking.
        # Distant targets cost O(n); frame times are non-decreasing.
        index = self.active_frame_index
        t0 = self.frames.time_at(index)
        best_delta = abs(t0 - target_time)
        direction = 1 if target_time > t0 else -1
        while True:
            candidate = index + direction
            if candidate < 0 or candidate >= self.frame_count:
                break
            delta = abs(self.frames.time_at(candidate) - target_time)
            if delta >= best_delta:
                break
            index, best_delta = candidate, delta
        return index

    # --- Applying frames ----------------------------------------------------
    def apply_frame(self, index: int) -> None:
        frame = self.frames[index]
        self.input_map.apply(frame, self.scene)
        if not self.frames.has_time_column:
            self.scene.time = self.frames.time_at(index)
        resolve_scene(self.scene)
        self.displayed_frame_index = index
        logger.debug("Applied frame %d (t=%.4f)", index, self.scene.time)
        if self.trace_enabled:
            self.trace_log.record(self.scene, index)
        for listener in tuple(self._listeners):
            listener(index)

    # --- Trace capture ------------------------------------------------------
    def enable_trace_logging(self, enabled: bool = True, *, clear_existing: bool = True) -> None:
        """Toggle per-frame snapshot capture of resolved poses."""
        self.trace_enabled = enabled
        if clear_existing:
            self.trace_log.clear()

    def save_trace_log(self, path: Path) -> None:
        self.trace_log.save(path)

    def play_through(self) -> int:
        """Apply every frame once, in order, from the first; returns frames applied."""
        self.active_frame_index = 0
        previous_state = self.state
        self.state = PLAYING
        for _ in range(self.frame_count):
            self.tick()
        self.state = previous_state
        return self.frame_count


__all__ = [
    "PLAYING",
    "PAUSED",
    "Tick",
    "Seek",
    "Step",
    "StepToStart",
    "StepToEnd",
    "Pause",
    "Resume",
    "TogglePause",
    "Command",
    "PlaybackController",
]
