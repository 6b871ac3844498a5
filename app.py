"""Command-line entry point: replay recorded kinematics from a scene and a data file."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
import sys
from typing import List, Optional, Tuple

from replay_core import PlaybackController, PlayerSettings, load_replay
from replay_core.logging_config import setup_logging
from scene_mechanics.errors import ReplayError

logger = logging.getLogger("apps.cli")

EXIT_OK = 0
EXIT_REPLAY_ERROR = 2


def _window_size(text: str) -> Tuple[int, int]:
    try:
        width, height = (int(part) for part in text.lower().split("x"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected WIDTHxHEIGHT, got {text!r}") from None
    if width < 100 or height < 100:
        raise argparse.ArgumentTypeError("window must be at least 100x100 pixels")
    return width, height


def _positive_float(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected a number, got {text!r}") from None
    if value <= 0.0:
        raise argparse.ArgumentTypeError("must be positive")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kinematic-replay",
        description="Animate 2D rigid bodies from a scene document and recorded frame data.",
    )
    parser.add_argument("scene", type=Path, help="XML scene document")
    parser.add_argument("data", help="whitespace-delimited data file, or '-' for standard input")
    parser.add_argument("--fps", type=_positive_float, default=PlayerSettings.fps, help="frames advanced per second")
    parser.add_argument(
        "--size",
        type=_window_size,
        default=PlayerSettings.window_size,
        metavar="WxH",
        help="window size in pixels (default: %(default)s)",
    )
    parser.add_argument("--paused", action="store_true", help="start with playback paused")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="console log level",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="also write logs to this file")
    parser.add_argument("--headless", action="store_true", help="play every frame once without a window")
    parser.add_argument(
        "--export-trace",
        type=Path,
        default=None,
        metavar="OUT.json",
        help="with --headless, write resolved poses per frame to this JSON file",
    )
    return parser


def run_headless(session, export_path: Optional[Path]) -> int:
    controller = PlaybackController(session.scene, session.frames, session.input_map)
    controller.enable_trace_logging(export_path is not None)
    applied = controller.play_through()
    logger.info("Played %d frames headless (t=%.4g..%.4g)", applied, session.frames.t_min, session.frames.t_max)
    if export_path is not None:
        controller.save_trace_log(export_path)
        logger.info("Wrote trace of %d frames to %s", len(controller.trace_log), export_path)
    return applied


def run_interactive(session, settings: PlayerSettings) -> None:
    # Imported here so headless runs never initialise a display.
    from apps.player import ReplayPlayer

    ReplayPlayer(session, settings).run()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.export_trace is not None and not args.headless:
        parser.error("--export-trace requires --headless")
    setup_logging(getattr(logging, args.log_level), args.log_file)

    try:
        session = load_replay(args.scene, args.data)
        if args.headless:
            run_headless(session, args.export_trace)
        else:
            settings = PlayerSettings(
                window_size=args.size,
                fps=args.fps,
                start_paused=args.paused,
            )
            run_interactive(session, settings)
    except ReplayError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_REPLAY_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
