"""Replay framework: scene documents, frame store, and playback control."""

from .config import (  # noqa: F401
    SceneConfig,
    ViewportBounds,
    BodyConfig,
    NodeConfig,
    ConnectorConfig,
    AttachConfig,
    GroundConfig,
    InputEntryConfig,
    InputFormatConfig,
    PlayerSettings,
)
from .frames import Frame, FrameLayout, FrameStore, InputMap, InputMapEntry  # noqa: F401
from .playback import (  # noqa: F401
    PlaybackController,
    Tick,
    Seek,
    Step,
    StepToStart,
    StepToEnd,
    Pause,
    Resume,
    TogglePause,
    PLAYING,
    PAUSED,
)
from .persistence import (  # noqa: F401
    load_scene_config,
    scene_config_from_string,
    build_scene,
    build_input_map,
    load_frames,
    load_replay,
    open_data_stream,
    ReplaySession,
)
