"""Command line interface for timepoint-extractor.

Examples::

    timepoint-extractor list movie.mp4
    timepoint-extractor add movie.mp4 --at 00:01:02.500 --remark "goal"
    timepoint-extractor remark movie.mp4 1 "own goal"
    timepoint-extractor extract movie.mp4 1 --mode lossless --before 2 --after 3
    timepoint-extractor remove movie.mp4 1

Timepoint numbers on the command line are 1-based, as shown by ``list``.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from PySide6.QtCore import QCoreApplication, QUrl

from .actions import Action
from .config import APP_NAME, Settings
from .controller import TimepointController
from .exceptions import ConfigError
from .log import setup_logging
from .media.player import StaticHost
from .services.commands import ExtractionParams
from .utils.timefmt import parse_time_value

EXTRACT_MODES = {
    "frames": Action.EXTRACT_FRAMES,
    "lossless": Action.EXTRACT_LOSSLESS,
    "encoded": Action.EXTRACT_ENCODED,
}


def build_arg_parser() -> argparse.ArgumentParser:
    """Build command line argument parser."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Mark timepoints in a media file and extract frames or clips",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="Show timepoints of a media file")
    p_list.add_argument("media", help="Path or file:// URI of the media file")

    p_add = sub.add_parser("add", help="Add a timepoint")
    p_add.add_argument("media")
    p_add.add_argument(
        "--at",
        required=True,
        help="Position (e.g.: 00:01:02.500, 62.5s, 800ms, 62.5)",
    )
    p_add.add_argument("--remark", default="", help="Free text remark")

    p_remove = sub.add_parser("remove", help="Remove a timepoint")
    p_remove.add_argument("media")
    p_remove.add_argument("number", type=int, help="Timepoint number (1-based)")

    p_remark = sub.add_parser("remark", help="Change the remark of a timepoint")
    p_remark.add_argument("media")
    p_remark.add_argument("number", type=int)
    p_remark.add_argument("text")

    p_extract = sub.add_parser(
        "extract", help="Extract frames or a clip around a timepoint"
    )
    p_extract.add_argument("media")
    p_extract.add_argument("number", type=int)
    p_extract.add_argument("--mode", choices=sorted(EXTRACT_MODES), default="frames")
    p_extract.add_argument("--before", default=None, help="Seconds before the timepoint")
    p_extract.add_argument("--after", default=None, help="Seconds after the timepoint")
    p_extract.add_argument("--fps", default=None, help="Output frame rate")
    p_extract.add_argument("--width", default=None, help="Output width")
    p_extract.add_argument("--height", default=None, help="Output height")

    sub.add_parser("probe", help="Check that ffmpeg can be started")
    return parser


def media_location(value: str) -> str:
    """Turn a CLI media argument into the location identifier used for storage."""
    if "://" in value:
        return value
    return QUrl.fromLocalFile(str(Path(value).resolve())).toString()


def main(argv: Sequence[str] | None = None) -> int:
    """Main CLI function."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as exc:
        parser.error(str(exc))
    setup_logging(settings.log_level, settings.app_dir)

    QCoreApplication.instance() or QCoreApplication([])

    if args.command == "probe":
        controller = TimepointController(StaticHost(), settings)
        if controller.external_tool_available():
            print(f"{settings.ffmpeg}: OK")
            return 0
        print(f"{settings.ffmpeg}: not found", file=sys.stderr)
        return 1

    host = StaticHost(media_location=media_location(args.media))
    if args.command == "add":
        try:
            host.position_micros = parse_time_value(args.at)
        except ValueError as exc:
            parser.error(f"Error in --at: {exc}")

    controller = TimepointController(host, settings)
    controller.sync_with_host()

    if args.command == "list":
        rows = controller.store.display_rows()
        for row in rows:
            print(row)
        if not rows:
            print("No timepoints.")
        return 0

    selection: Optional[int] = None
    if getattr(args, "number", None) is not None:
        selection = args.number - 1

    if args.command == "add":
        result = controller.dispatch(Action.ADD, remark=args.remark)
    elif args.command == "remove":
        result = controller.dispatch(Action.REMOVE, selection)
    elif args.command == "remark":
        result = controller.dispatch(Action.UPDATE, selection, remark=args.text)
    else:
        params = ExtractionParams.from_raw(
            args.before, args.after, args.fps, args.width, args.height
        )
        result = controller.dispatch(EXTRACT_MODES[args.mode], selection, params=params)
        if result.ok:
            print(f"Log: {settings.extract_log_path}")

    print(result.status)
    return 0 if result.ok else 1
