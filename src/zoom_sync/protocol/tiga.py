"""Tiga family command builders (Zoom TKL Dyna, Zoom75 Tiga).

Every command is a 32-byte packet in the :data:`~.framing.TIGA` format.
The boards do not acknowledge commands; a host writes a packet and drains
whatever report arrives within a short timeout.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum, IntEnum

from .encoding import encode_temperature
from .framing import TIGA, build_packet
from .upload import Chunk

SUBTYPE_DEFAULT = 0x02
SUBTYPE_DATETIME = 0x03

IMAGE_CHUNK_SIZE = 16
IMAGE_END_INDEX = 0xFFFF
SCREEN_WIDTH = 320
SCREEN_HEIGHT = 172
FRAME_SIZE = SCREEN_WIDTH * SCREEN_HEIGHT * 3


class Cmd(IntEnum):
    """Command identifiers."""

    DATETIME = 0x38
    SCREEN = 0x39
    IMAGE = 0xFC
    THEME = 0xFD
    WEATHER = 0xFE


class ScreenMode(Enum):
    """Screen menu control, each with its two-byte payload."""

    UP = b"\x02\xc2"
    DOWN = b"\x01\xc3"
    ENTER = b"\x03\xc1"
    RETURN = b"\x04\xc0"
    RESET = b"\x01\xc8"


class TigaIcon(IntEnum):
    """Weather icons understood by the Tiga screen."""

    UNKNOWN = 0
    SUNNY_DAY = 1
    PARTLY_CLOUDY_DAY = 2
    RAIN = 3
    SNOW = 4
    CLOUDY = 5
    CLEAR_NIGHT = 6
    PARTLY_CLOUDY_NIGHT = 7
    THUNDERSTORM = 8

    @classmethod
    def from_wmo(cls, wmo: int, is_day: bool) -> TigaIcon | None:
        """Map a WMO weather interpretation code to an icon, or None."""
        if wmo in (0, 1):
            return cls.SUNNY_DAY if is_day else cls.CLEAR_NIGHT
        if wmo == 2:
            return cls.PARTLY_CLOUDY_DAY if is_day else cls.PARTLY_CLOUDY_NIGHT
        if wmo in (3, 45, 48):
            return cls.CLOUDY
        if wmo in (51, 53, 55, 56, 57, 61, 63, 65, 66, 67, 80, 81, 82):
            return cls.RAIN
        if wmo in (71, 73, 75, 77, 85, 86):
            return cls.SNOW
        if wmo in (95, 96, 99):
            return cls.THUNDERSTORM
        return None


def build_command(cmd: Cmd, payload: bytes = b"", subtype: int = SUBTYPE_DEFAULT) -> bytes:
    """Build a single 32-byte command packet."""
    return build_packet(TIGA, cmd, payload, subtype=subtype)


def build_datetime(when: datetime) -> bytes:
    """Build the clock packet.

    Payload (10 bytes)::

        [0x00, 0x01, yearHi, yearLo, month, day, hour, minute, second, dow]

    ``dow`` counts from Sunday = 0. The hour is always sent on a 24-hour
    clock.
    """
    year = when.year.to_bytes(2, "big")
    day_of_week = when.isoweekday() % 7
    payload = bytes([
        0x00, 0x01, year[0], year[1],
        when.month, when.day, when.hour, when.minute, when.second,
        day_of_week,
    ])
    return build_command(Cmd.DATETIME, payload, subtype=SUBTYPE_DATETIME)


def build_screen_control(mode: ScreenMode) -> bytes:
    return build_command(Cmd.SCREEN, ScreenMode(mode).value)


def build_theme(bg_color: int, font_color: int, theme_id: int) -> bytes:
    """Build the theme packet.

    Args:
        bg_color: Background color as RGB565.
        font_color: Font color as RGB565.
        theme_id: Theme slot.
    """
    for color in (bg_color, font_color):
        if not 0 <= color <= 0xFFFF:
            raise ValueError(f"RGB565 color out of range: {color:#x}")
    if not 0 <= theme_id <= 0xFF:
        raise ValueError(f"Theme id out of range: {theme_id}")
    payload = (
        b"\x00"
        + bg_color.to_bytes(2, "big")
        + font_color.to_bytes(2, "big")
        + bytes([theme_id])
    )
    return build_command(Cmd.THEME, payload)


def build_weather(icon: TigaIcon, current: int, high: int, low: int) -> bytes:
    """Build the weather packet.

    Payload is ``[0x00, icon, current, high, low]`` with each temperature in
    the signed tenths encoding, big-endian.
    """
    payload = b"\x00" + bytes([TigaIcon(icon)])
    for temperature in (current, high, low):
        payload += encode_temperature(temperature).to_bytes(2, "big")
    return build_command(Cmd.WEATHER, payload)


def build_image_chunk(chunk: Chunk) -> bytes:
    """Build one image data packet: ``[0x00, idxHi, idxLo] + data``."""
    if not 0 <= chunk.index < IMAGE_END_INDEX:
        raise ValueError(f"Chunk index out of range: {chunk.index}")
    if len(chunk.data) + chunk.padding > IMAGE_CHUNK_SIZE:
        raise ValueError(
            f"Chunk is limited to {IMAGE_CHUNK_SIZE} bytes, got {len(chunk.data)}"
        )
    payload = b"\x00" + chunk.index.to_bytes(2, "big") + chunk.data + bytes(chunk.padding)
    return build_command(Cmd.IMAGE, payload)


def build_image_end() -> bytes:
    """Build the upload terminator, a chunk header with index 0xFFFF."""
    return build_command(Cmd.IMAGE, b"\x00" + IMAGE_END_INDEX.to_bytes(2, "big"))
