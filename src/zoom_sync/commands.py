"""Commands accepted by the scheduler and the one-shot runner.

Each command is a small frozen dataclass; its class is its kind, so two
commands of the same class supersede each other when queued together.
:func:`apply_command` runs a device command against an opened board and is
shared by both front ends.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Callable, Protocol, Union

from .boards.base import Board, BoardDescriptor
from .config import SyncConfig
from .models.readings import SystemReading, WeatherReport
from .protocol.encoding import parse_hex_color, rgb565

logger = logging.getLogger(__name__)

MAX_DISPLAY_TEMP = 99


@dataclass(frozen=True)
class SetTime:
    when: datetime | None = None


@dataclass(frozen=True)
class SetWeather:
    report: WeatherReport | None = None


@dataclass(frozen=True)
class SetSystemInfo:
    reading: SystemReading | None = None


@dataclass(frozen=True)
class SetScreen:
    screen_id: str


@dataclass(frozen=True)
class ScreenUp:
    pass


@dataclass(frozen=True)
class ScreenDown:
    pass


@dataclass(frozen=True)
class ScreenSwitch:
    pass


@dataclass(frozen=True)
class UploadImage:
    data: bytes

    def __repr__(self) -> str:
        return f"UploadImage({len(self.data)} bytes)"


@dataclass(frozen=True)
class UploadGif:
    data: bytes

    def __repr__(self) -> str:
        return f"UploadGif({len(self.data)} bytes)"


@dataclass(frozen=True)
class ClearImage:
    pass


@dataclass(frozen=True)
class ClearGif:
    pass


@dataclass(frozen=True)
class ClearAllMedia:
    pass


@dataclass(frozen=True)
class SetTheme:
    """Theme colors as ``#RRGGBB`` strings."""

    bg_color: str
    font_color: str
    theme_id: int = 0


@dataclass(frozen=True)
class ToggleWeather:
    pass


@dataclass(frozen=True)
class ToggleSystemInfo:
    pass


@dataclass(frozen=True)
class Toggle12HourTime:
    pass


@dataclass(frozen=True)
class ToggleFahrenheit:
    pass


@dataclass(frozen=True)
class ToggleReactiveMode:
    """Takes effect on the next connection."""


@dataclass(frozen=True)
class Quit:
    pass


Command = Union[
    SetTime, SetWeather, SetSystemInfo, SetScreen, ScreenUp, ScreenDown,
    ScreenSwitch, UploadImage, UploadGif, ClearImage, ClearGif, ClearAllMedia,
    SetTheme, ToggleWeather, ToggleSystemInfo, Toggle12HourTime,
    ToggleFahrenheit, ToggleReactiveMode, Quit,
]

TOGGLES = (
    ToggleWeather, ToggleSystemInfo, Toggle12HourTime, ToggleFahrenheit, ToggleReactiveMode,
)


# --- Collaborators ----------------------------------------------------------


class WeatherProvider(Protocol):
    async def fetch(self, fahrenheit: bool) -> WeatherReport | None:
        """Current conditions, or None when unavailable."""


class SystemInfoProvider(Protocol):
    def read(self, fahrenheit: bool) -> SystemReading:
        """Sample the hardware sensors."""


InputEventSource = Callable[[BoardDescriptor], Union[AsyncIterator[object], None]]


# --- Dispatch ---------------------------------------------------------------


def clamp_temperature(value: int, label: str) -> int:
    """Clamp a hardware temperature to what the screen can show."""
    if value > MAX_DISPLAY_TEMP:
        logger.warning("%s temperature %d exceeds display limit, clamping", label, value)
        return MAX_DISPLAY_TEMP
    return value


def report_unsupported(board: Board, feature: str) -> bool:
    """Log that ``board`` lacks ``feature``. Always returns False."""
    logger.warning("%s does not support %s", board.descriptor().name, feature)
    return False


def apply_command(
    board: Board,
    command: Command,
    config: SyncConfig | None = None,
    now: Callable[[], datetime] = datetime.now,
) -> bool:
    """Run one device command against ``board``.

    Data-carrying commands must be resolved first: ``SetWeather`` needs a
    report and ``SetSystemInfo`` a reading.

    Returns:
        True if the command was applied, False if the board lacks the
        capability it needs.

    Raises:
        BoardError: From the board.
        ValueError: For an unresolved or malformed command.
    """
    config = config or SyncConfig()

    if isinstance(command, SetTime):
        target = board.as_time()
        if target is None:
            return report_unsupported(board, "time")
        target.set_time(command.when or now(), config.general.use_12hr_time)

    elif isinstance(command, SetWeather):
        target = board.as_weather()
        if target is None:
            return report_unsupported(board, "weather")
        report = command.report
        if report is None:
            raise ValueError("SetWeather needs a weather report")
        target.set_weather(
            report.wmo,
            report.is_day,
            round(report.current),
            round(report.low),
            round(report.high),
        )

    elif isinstance(command, SetSystemInfo):
        target = board.as_system_info()
        if target is None:
            return report_unsupported(board, "system info")
        reading = command.reading
        if reading is None:
            raise ValueError("SetSystemInfo needs a system reading")
        target.set_system_info(
            clamp_temperature(reading.cpu_temp, "CPU"),
            clamp_temperature(reading.gpu_temp, "GPU"),
            reading.download,
        )

    elif isinstance(command, (SetScreen, ScreenUp, ScreenDown, ScreenSwitch)):
        screen = board.as_screen()
        if screen is None:
            return report_unsupported(board, "screen navigation")
        if isinstance(command, SetScreen):
            screen.set_screen(command.screen_id)
        elif isinstance(command, ScreenUp):
            screen.screen_up()
        elif isinstance(command, ScreenDown):
            screen.screen_down()
        else:
            screen.screen_switch()

    elif isinstance(command, UploadImage):
        image = board.as_image()
        if image is None:
            return report_unsupported(board, "images")
        image.upload_image(command.data, _log_progress("image"))

    elif isinstance(command, UploadGif):
        gif = board.as_gif()
        if gif is None:
            return report_unsupported(board, "animations")
        gif.upload_gif(command.data, _log_progress("animation"))

    elif isinstance(command, ClearImage):
        image = board.as_image()
        if image is None:
            return report_unsupported(board, "images")
        image.clear_image()

    elif isinstance(command, ClearGif):
        gif = board.as_gif()
        if gif is None:
            return report_unsupported(board, "animations")
        gif.clear_gif()

    elif isinstance(command, ClearAllMedia):
        image, gif = board.as_image(), board.as_gif()
        if image is None and gif is None:
            return report_unsupported(board, "media")
        if image is not None:
            image.clear_image()
        if gif is not None:
            gif.clear_gif()

    elif isinstance(command, SetTheme):
        theme = board.as_theme()
        if theme is None:
            return report_unsupported(board, "themes")
        theme.set_theme(
            rgb565(*parse_hex_color(command.bg_color)),
            rgb565(*parse_hex_color(command.font_color)),
            command.theme_id,
        )

    else:
        raise ValueError(f"Not a device command: {command!r}")

    return True


def _log_progress(label: str) -> Callable[[int], None]:
    def progress(index: int) -> None:
        if index % 256 == 0:
            logger.debug("Uploading %s: chunk %d", label, index)

    return progress
