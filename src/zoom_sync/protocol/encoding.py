"""Numeric field encodings shared by the screen protocols."""

from __future__ import annotations

import struct

DOWNLOAD_RATE_MAX = 655.33997
DOWNLOAD_RATE_TOLERANCE = 0.005
_DOWNLOAD_RATE_SPAN = 655.36
_DOWNLOAD_RATE_STEP = 0.01


def _f32(value: float) -> float:
    """Round a Python float to single precision."""
    return struct.unpack("<f", struct.pack("<f", value))[0]


def encode_temperature(celsius: int) -> int:
    """Encode a temperature as tenths of a degree with bit 15 as the sign.

    Raises:
        ValueError: If the magnitude does not fit in 15 bits.
    """
    magnitude = abs(int(celsius)) * 10
    if magnitude > 0x7FFF:
        raise ValueError(f"Temperature out of range: {celsius}")
    if celsius < 0:
        return magnitude | 0x8000
    return magnitude


def rgb565(r: int, g: int, b: int) -> int:
    """Pack 8-bit RGB channels into a 16-bit RGB565 value."""
    for channel in (r, g, b):
        if not 0 <= channel <= 0xFF:
            raise ValueError(f"Color channel out of range: {channel}")
    return ((r >> 3) << 11) | ((g >> 2) << 5) | (b >> 3)


def parse_hex_color(value: str) -> tuple[int, int, int]:
    """Parse ``#RRGGBB`` or ``#RGB`` into an RGB tuple."""
    text = value.strip().lstrip("#")
    if len(text) == 3:
        text = "".join(c * 2 for c in text)
    if len(text) != 6:
        raise ValueError(f"Invalid hex color: {value!r}")
    try:
        raw = int(text, 16)
    except ValueError:
        raise ValueError(f"Invalid hex color: {value!r}") from None
    return (raw >> 16) & 0xFF, (raw >> 8) & 0xFF, raw & 0xFF


def encode_download_rate(value: float) -> int:
    """Encode a download rate into the 16-bit fixed-point field.

    Each of the 16 bits is worth half the previous one, starting at 327.68
    and ending at 0.01. Bits are chosen greedily with a 0.005 tolerance, in
    single precision to match the keyboard firmware. Values at or below zero
    encode as 0 and values past the top of the range saturate at 0xFFFF.
    """
    remaining = _f32(value)
    if remaining <= 0.0:
        return 0
    if remaining >= _f32(DOWNLOAD_RATE_MAX):
        return 0xFFFF

    tolerance = _f32(DOWNLOAD_RATE_TOLERANCE)
    current = _f32(_DOWNLOAD_RATE_SPAN)
    encoded = 0
    for _ in range(16):
        encoded <<= 1
        current = _f32(current / 2.0)
        if remaining >= _f32(current - tolerance):
            remaining = _f32(remaining - current)
            encoded |= 1
    return encoded


def decode_download_rate(raw: int) -> float:
    """Decode the 16-bit download rate field back into a float."""
    total = 0.0
    current = _f32(_DOWNLOAD_RATE_STEP)
    for bit in range(16):
        if raw & (1 << bit):
            total = _f32(total + current)
        current = _f32(current * 2.0)
    return total


def celsius_to_fahrenheit(celsius: float) -> float:
    return celsius * 9.0 / 5.0 + 32.0
