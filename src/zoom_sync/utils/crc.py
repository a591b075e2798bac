"""Checksums used by the keyboard screen protocols.

- ``crc16``: CRC-16/CCITT-FALSE, carried little-endian in Tiga frames.
- ``checksum32``: MSB-first CRC over polynomial 0x04C11DB7 without a final
  XOR, appended big-endian to every Zoom65 media chunk.
- ``additive_checksum``: one-byte sum check trailing the Tiga payload.
"""

from __future__ import annotations

CRC16_POLY = 0x1021
CRC16_INIT = 0xFFFF

CHECKSUM32_POLY = 0x04C11DB7
CHECKSUM32_INIT = 0xFFFFFFFF


def _build_crc16_table() -> list[int]:
    table = []
    for byte in range(256):
        crc = byte << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = ((crc << 1) ^ CRC16_POLY) & 0xFFFF
            else:
                crc = (crc << 1) & 0xFFFF
        table.append(crc)
    return table


_CRC16_TABLE = _build_crc16_table()


def crc16(data: bytes | bytearray) -> int:
    """Compute CRC-16/CCITT-FALSE.

    Args:
        data: Bytes to checksum.

    Returns:
        16-bit CRC value (init 0xFFFF, no reflection, no final XOR).
    """
    crc = CRC16_INIT
    for byte in data:
        crc = ((crc << 8) & 0xFFFF) ^ _CRC16_TABLE[((crc >> 8) ^ byte) & 0xFF]
    return crc


def checksum32(data: bytes | bytearray) -> bytes:
    """Compute the 4-byte media chunk checksum.

    Args:
        data: The checksummed span of a media chunk.

    Returns:
        The checksum as 4 big-endian bytes.
    """
    value = CHECKSUM32_INIT
    for byte in data:
        value ^= byte << 24
        for _ in range(8):
            if value & 0x80000000:
                value = ((value << 1) ^ CHECKSUM32_POLY) & 0xFFFFFFFF
            else:
                value = (value << 1) & 0xFFFFFFFF
    return value.to_bytes(4, "big")


def additive_checksum(data: bytes | bytearray) -> int:
    """Sum of all bytes, inverted in the low byte and truncated to 8 bits."""
    return ((sum(data) & 0xFFFFFFFF) ^ 0xFF) & 0xFF
