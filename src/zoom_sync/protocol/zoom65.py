"""Zoom65 V3 command builders, screen table and acknowledgement check.

Every command is a 33-byte packet in the :data:`~.framing.ZOOM65` format.
The keyboard answers each one with a report whose first byte echoes the
``0x58`` marker and whose next two bytes are ``1, 1`` on success.
"""

from __future__ import annotations

from datetime import datetime
from enum import IntEnum

from ..errors import CommandFailed, InvalidScreenPosition
from ..models.screen import ScreenGroup, ScreenPosition
from ..utils.crc import checksum32
from .encoding import encode_download_rate
from .framing import ZOOM65, ZOOM65_MARKER, ZOOM65_PACKET_SIZE, build_packet
from .upload import Chunk

MEDIA_CHUNK_SIZE = 24
IMAGE_SIZE = 110 * 110 * 3
GIF_SIZE_LIMIT = 1013808


class Group(IntEnum):
    """Command group, carried in the subtype byte."""

    SCREEN = 0x00
    SETTINGS = 0x01
    MEDIA = 0x02


class ScreenOp(IntEnum):
    SWITCH = 0x20
    DOWN = 0x21
    UP = 0x22


class SettingsOp(IntEnum):
    TIME = 0x10
    WEATHER = 0x20
    SYSTEM_INFO = 0x40
    RESET = 0xFF


class MediaOp(IntEnum):
    UPLOAD_LENGTH = 0xD0
    DELETE_IMAGE = 0xE0
    DELETE_GIF = 0xE1
    UPLOAD_START = 0xF0
    UPLOAD_END = 0xF1


class UploadChannel(IntEnum):
    IMAGE = 1
    GIF = 2


class ScreenTheme(IntEnum):
    BLUE = 1
    PINK = 2


class Zoom65Icon(IntEnum):
    """Weather icons understood by the Zoom65 screen."""

    DAY_CLEAR = 0
    DAY_PARTLY_CLOUDY = 1
    DAY_PARTLY_RAINY = 2
    NIGHT_PARTLY_CLOUDY = 3
    NIGHT_CLEAR = 4
    CLOUDY = 5
    RAINY = 6
    SNOWFALL = 7
    THUNDERSTORM = 8

    @classmethod
    def from_wmo(cls, wmo: int, is_day: bool) -> Zoom65Icon | None:
        """Map a WMO weather interpretation code to an icon.

        Returns:
            The icon, or None when the code has no mapping.
        """
        if wmo in (0, 1):
            return cls.DAY_CLEAR if is_day else cls.NIGHT_CLEAR
        if wmo == 2:
            return cls.DAY_PARTLY_CLOUDY if is_day else cls.NIGHT_PARTLY_CLOUDY
        if wmo in (3, 45, 48):
            return cls.CLOUDY
        if wmo in (51, 53, 55, 56, 57, 61, 63, 65, 66, 67):
            return cls.RAINY
        if wmo in (80, 81, 82):
            return cls.DAY_PARTLY_RAINY if is_day else cls.RAINY
        if wmo in (71, 73, 75, 77, 85, 86):
            return cls.SNOWFALL
        if wmo in (95, 96, 99):
            return cls.THUNDERSTORM
        return None


# --- Screen positions ---------------------------------------------------------

# Vertical offset of each group from the logo group
_GROUP_ROWS = {
    ScreenGroup.SYSTEM: -2,
    ScreenGroup.TIME: -1,
    ScreenGroup.LOGO: 0,
    ScreenGroup.BATTERY: 1,
}


def _position(
    screen_id: str,
    display_name: str,
    group: ScreenGroup,
    switches: int,
    alias: str | None = None,
) -> ScreenPosition:
    return ScreenPosition(screen_id, display_name, group, _GROUP_ROWS[group], switches, alias)


SCREEN_POSITIONS: tuple[ScreenPosition, ...] = (
    _position("cpu", "CPU Temp", ScreenGroup.SYSTEM, 0),
    _position("gpu", "GPU Temp", ScreenGroup.SYSTEM, 1),
    _position("download", "Download", ScreenGroup.SYSTEM, 2, "d"),
    _position("time", "Time", ScreenGroup.TIME, 0, "t"),
    _position("weather", "Weather", ScreenGroup.TIME, 1, "w"),
    _position("meletrix", "Meletrix", ScreenGroup.LOGO, 0, "m"),
    _position("zoom65", "Zoom65", ScreenGroup.LOGO, 1, "z"),
    _position("image", "Image", ScreenGroup.LOGO, 2, "i"),
    _position("gif", "GIF", ScreenGroup.LOGO, 3, "g"),
    _position("battery", "Battery", ScreenGroup.BATTERY, 0, "b"),
)


def find_screen(screen_id: str) -> ScreenPosition:
    """Look up a screen position by id or single-letter alias.

    Raises:
        InvalidScreenPosition: If no position matches.
    """
    for position in SCREEN_POSITIONS:
        if position.matches(screen_id):
            return position
    raise InvalidScreenPosition(screen_id)


# --- Command builders -------------------------------------------------------


def build_command(group: Group, op: int, payload: bytes = b"") -> bytes:
    """Build a single 33-byte command packet."""
    return build_packet(ZOOM65, op, payload, subtype=group)


def build_reset_screen() -> bytes:
    """Return to the Meletrix logo screen."""
    return build_command(Group.SETTINGS, SettingsOp.RESET)


def build_screen_theme(theme: ScreenTheme) -> bytes:
    """Set the screen theme, which also resets to the logo screen."""
    return build_command(Group.SETTINGS, SettingsOp.RESET, bytes([ScreenTheme(theme)]))


def build_screen_up() -> bytes:
    return build_command(Group.SCREEN, ScreenOp.UP)


def build_screen_down() -> bytes:
    return build_command(Group.SCREEN, ScreenOp.DOWN)


def build_screen_switch() -> bytes:
    return build_command(Group.SCREEN, ScreenOp.SWITCH)


def build_delete_image() -> bytes:
    return build_command(Group.MEDIA, MediaOp.DELETE_IMAGE)


def build_delete_gif() -> bytes:
    return build_command(Group.MEDIA, MediaOp.DELETE_GIF)


def build_upload_start(channel: UploadChannel) -> bytes:
    return build_command(Group.MEDIA, MediaOp.UPLOAD_START, bytes([UploadChannel(channel)]))


def build_upload_length(length: int) -> bytes:
    """Announce the unpadded byte length of the upcoming media."""
    if not 0 <= length <= 0xFFFFFFFF:
        raise ValueError(f"Upload length out of range: {length}")
    return build_command(Group.MEDIA, MediaOp.UPLOAD_LENGTH, length.to_bytes(4, "big"))


def build_upload_end() -> bytes:
    return build_command(Group.MEDIA, MediaOp.UPLOAD_END, b"\x01")


def build_set_time(when: datetime, use_12hr: bool = False) -> bytes:
    """Build the clock packet.

    Args:
        when: Local time to set.
        use_12hr: Send the hour on a 12-hour clock.

    Returns:
        33-byte packet with ``[year % 100, month, day, hour, minute, second]``.
    """
    hour = when.hour
    if use_12hr:
        hour = hour % 12 or 12
    payload = bytes([when.year % 100, when.month, when.day, hour, when.minute, when.second])
    return build_command(Group.SETTINGS, SettingsOp.TIME, payload)


def build_set_weather(icon: Zoom65Icon, current: int, low: int, high: int) -> bytes:
    """Build the weather packet.

    Raises:
        ValueError: If a temperature does not fit in one unsigned byte.
    """
    for value in (current, low, high):
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Temperature out of range: {value}")
    return build_command(
        Group.SETTINGS, SettingsOp.WEATHER, bytes([Zoom65Icon(icon), current, low, high])
    )


def build_set_system_info(cpu_temp: int, gpu_temp: int, download: float) -> bytes:
    """Build the system info packet with the download rate in its 16-bit encoding."""
    for value in (cpu_temp, gpu_temp):
        if not 0 <= value <= 0xFF:
            raise ValueError(f"Temperature out of range: {value}")
    rate = encode_download_rate(download).to_bytes(2, "big")
    payload = bytes([cpu_temp, gpu_temp]) + rate
    return build_command(Group.SETTINGS, SettingsOp.SYSTEM_INFO, payload)


def build_get_version() -> bytes:
    """Build the firmware version query, which has no marker or header."""
    packet = bytearray(ZOOM65_PACKET_SIZE)
    packet[1] = 0x01
    return bytes(packet)


def build_media_chunk(chunk: Chunk) -> bytes:
    """Build one media upload packet.

    Layout::

        [0x00, 0x58, len, idxHi, idxLo, data..., padding..., checksum(4)]

    ``len`` counts the index, data, padding and checksum bytes. The checksum
    covers the index, data and padding plus the two zero bytes that follow,
    which keeps the checksummed span a multiple of four bytes for aligned
    chunks.
    """
    if not 0 <= chunk.index <= 0xFFFF:
        raise ValueError(f"Chunk index out of range: {chunk.index}")
    length = len(chunk.data) + chunk.padding
    if length > MEDIA_CHUNK_SIZE:
        raise ValueError(f"Chunk is limited to {MEDIA_CHUNK_SIZE} bytes, got {length}")

    packet = bytearray(ZOOM65_PACKET_SIZE)
    packet[1] = ZOOM65_MARKER
    packet[2] = 2 + length + 4
    packet[3:5] = chunk.index.to_bytes(2, "big")
    packet[5:5 + len(chunk.data)] = chunk.data
    offset = 5 + length
    packet[offset:offset + 4] = checksum32(packet[3:offset + 2])
    return bytes(packet)


def check_ack(request: bytes, response: bytes) -> None:
    """Validate the keyboard's answer to ``request``.

    Raises:
        CommandFailed: If there was no answer, the echo byte does not match
            the request marker, or the device reported a failure.
    """
    if not response:
        raise CommandFailed("no response from device")
    if len(response) < 3 or response[0] != request[1]:
        raise CommandFailed(f"malformed response from device: {bytes(response[:8]).hex(' ')}")
    if response[1] != 1 or response[2] != 1:
        raise CommandFailed("device rejected command")
