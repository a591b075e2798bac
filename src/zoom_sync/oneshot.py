"""Apply a single command to the keyboard and exit."""

from __future__ import annotations

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Sequence

from .boards.base import Board
from .boards.registry import BoardKind, open_board
from .commands import (
    ClearAllMedia,
    ClearGif,
    ClearImage,
    Command,
    ScreenDown,
    ScreenSwitch,
    ScreenUp,
    SetScreen,
    SetSystemInfo,
    SetTheme,
    SetTime,
    SetWeather,
    UploadGif,
    UploadImage,
    apply_command,
)
from .config import SyncConfig
from .errors import BoardError
from .models.readings import SystemReading, WeatherReport
from .transport.hid_connection import HidBus

logger = logging.getLogger(__name__)


def run_command(
    command: Command,
    kind: BoardKind = BoardKind.AUTO,
    bus: HidBus | None = None,
    config: SyncConfig | None = None,
    opener: Callable[[HidBus, BoardKind], Board] = open_board,
    clock: Callable[[], datetime] = datetime.now,
) -> int:
    """Open the board, apply ``command`` and close the board.

    Returns:
        0 on success, 1 if the board could not be opened, lacks the
        capability, or the command failed.
    """
    bus = bus or HidBus()
    try:
        board = opener(bus, kind)
    except BoardError as e:
        logger.error("Could not open keyboard: %s", e)
        return 1

    try:
        if not apply_command(board, command, config, clock):
            return 1
    except (BoardError, ValueError) as e:
        logger.error("%s failed: %s", type(command).__name__, e)
        return 1
    finally:
        board.close()
    return 0


# ─── COMMAND LINE ────────────────────────────────────────────────────

_CLEAR = {"image": ClearImage, "gif": ClearGif, "all": ClearAllMedia}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zoom-sync-send",
        description="Send one command to a Meletrix Zoom keyboard screen.",
    )
    parser.add_argument(
        "--board", default=BoardKind.AUTO.value,
        help="Board to open: " + ", ".join(kind.value for kind in BoardKind),
    )
    parser.add_argument("--12hr", dest="use_12hr", action="store_true",
                        help="Send the time on a 12-hour clock")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("time", help="Sync the clock to now")

    weather = sub.add_parser("weather", help="Show the weather")
    weather.add_argument("wmo", type=int, help="WMO weather code")
    weather.add_argument("current", type=float)
    weather.add_argument("low", type=float)
    weather.add_argument("high", type=float)
    weather.add_argument("--night", action="store_true", help="Use night icons")

    system = sub.add_parser("system", help="Show CPU/GPU temperatures")
    system.add_argument("cpu", type=int)
    system.add_argument("gpu", type=int)
    system.add_argument("--download", type=float, default=0.0)

    screen = sub.add_parser("screen", help="Navigate to a screen page")
    screen.add_argument("screen_id")
    sub.add_parser("up", help="Move the screen up one group")
    sub.add_parser("down", help="Move the screen down one group")
    sub.add_parser("switch", help="Next page within the group")

    for name in ("image", "gif"):
        media = sub.add_parser(name, help=f"Upload a pre-encoded {name}")
        media.add_argument("path", type=Path)

    clear = sub.add_parser("clear", help="Delete uploaded media")
    clear.add_argument("target", choices=sorted(_CLEAR))

    theme = sub.add_parser("theme", help="Set the theme colors")
    theme.add_argument("bg_color", help="#RRGGBB")
    theme.add_argument("font_color", help="#RRGGBB")
    theme.add_argument("--id", dest="theme_id", type=int, default=0)
    return parser


def command_from_args(args: argparse.Namespace) -> Command:
    """Translate parsed arguments into a command.

    Raises:
        OSError: If a media file cannot be read.
    """
    name = args.command
    if name == "time":
        return SetTime()
    if name == "weather":
        return SetWeather(
            WeatherReport(args.wmo, not args.night, args.current, args.low, args.high)
        )
    if name == "system":
        return SetSystemInfo(SystemReading(args.cpu, args.gpu, args.download))
    if name == "screen":
        return SetScreen(args.screen_id)
    if name == "up":
        return ScreenUp()
    if name == "down":
        return ScreenDown()
    if name == "switch":
        return ScreenSwitch()
    if name == "image":
        return UploadImage(args.path.read_bytes())
    if name == "gif":
        return UploadGif(args.path.read_bytes())
    if name == "clear":
        return _CLEAR[args.target]()
    return SetTheme(args.bg_color, args.font_color, args.theme_id)


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for ``zoom-sync-send``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        kind = BoardKind.parse(args.board)
    except ValueError as e:
        parser.error(str(e))

    logging.basicConfig(level=logging.INFO)
    try:
        command = command_from_args(args)
    except OSError as e:
        logger.error("Could not read %s: %s", args.path, e)
        return 1

    config = SyncConfig()
    config.general.use_12hr_time = args.use_12hr
    return run_command(command, kind, config=config)


if __name__ == "__main__":
    raise SystemExit(main())
