"""Fixed-size HID packet builder shared by both protocol families.

A family is described by a :class:`PacketFormat`: its total size, where the
payload starts, how long the payload may be, and the functions that write the
header and trailer once the payload is in place. Packets are always exactly
``size`` bytes; an oversized payload is rejected, never truncated.

Zoom65 layout (33 bytes, no trailer)::

    +-----------+--------+--------+------+---------+---------+--------------+
    | Report ID | Marker | Length | 0xA5 | Subtype | Command |   Payload    |
    |  0x00     |  0x58  | 1 byte |      | 1 byte  | 1 byte  | up to 27 B   |
    +-----------+--------+--------+------+---------+---------+--------------+

- Length: number of bytes from 0xA5 to the end of the payload

Tiga layout (32 bytes)::

    +------+---------+--------+------+--------+------+-----+------+----+---------+----------+
    | 0x1C | Subtype | 3 x 00 | Size | CRC16  | 0xA5 | Cmd | 0x00 | N  | Payload | Checksum |
    |      | 1 byte  |        |      | LE 2 B |      |     |      |    | N bytes | 1 byte   |
    +------+---------+--------+------+--------+------+-----+------+----+---------+----------+

- Size: 4 + N + 1
- Checksum: sum of bytes 9.. XOR 0xFF, truncated to one byte
- CRC16: CRC-16/CCITT-FALSE of the whole packet with the CRC field zeroed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from ..utils.crc import additive_checksum, crc16

MAGIC = 0xA5

ZOOM65_PACKET_SIZE = 33
ZOOM65_MARKER = 0x58

TIGA_PACKET_SIZE = 32
TIGA_REPORT_TYPE = 0x1C
TIGA_CRC_OFFSET = 6


@dataclass(frozen=True)
class PacketFormat:
    """Layout of one protocol family's packets.

    ``write_header`` receives the zeroed packet with the payload already
    copied in, plus the command, subtype and payload length. ``write_trailer``
    runs afterwards and fills in any checksums.
    """

    name: str
    size: int
    payload_offset: int
    max_payload: int
    write_header: Callable[[bytearray, int, int, int], None]
    write_trailer: Callable[[bytearray, int, int], None] | None = None
    parse: Callable[[bytes], tuple[int, int, bytes] | None] | None = None


def build_packet(
    fmt: PacketFormat,
    command: int,
    payload: bytes = b"",
    subtype: int = 0,
) -> bytes:
    """Build one fixed-size packet.

    Args:
        fmt: Protocol family layout.
        command: Command byte.
        payload: Command-specific payload bytes.
        subtype: Family-specific subtype or command group byte.

    Returns:
        Exactly ``fmt.size`` bytes.

    Raises:
        ValueError: If the payload does not fit, or a byte is out of range.
    """
    if len(payload) > fmt.max_payload:
        raise ValueError(
            f"{fmt.name} payload is limited to {fmt.max_payload} bytes, "
            f"got {len(payload)}"
        )
    if not 0 <= command <= 0xFF:
        raise ValueError(f"Command out of range: {command}")
    if not 0 <= subtype <= 0xFF:
        raise ValueError(f"Subtype out of range: {subtype}")

    packet = bytearray(fmt.size)
    packet[fmt.payload_offset:fmt.payload_offset + len(payload)] = payload
    fmt.write_header(packet, command, subtype, len(payload))
    if fmt.write_trailer is not None:
        fmt.write_trailer(packet, subtype, len(payload))
    return bytes(packet)


def parse_packet(fmt: PacketFormat, data: bytes) -> tuple[int, int, bytes] | None:
    """Decode a packet into ``(subtype, command, payload)``.

    Returns:
        The decoded fields, or None if the size, markers or checksums do not
        match the family layout.
    """
    if len(data) != fmt.size or fmt.parse is None:
        return None
    return fmt.parse(bytes(data))


# --- Zoom65 -----------------------------------------------------------------


def _zoom65_header(packet: bytearray, command: int, subtype: int, length: int) -> None:
    packet[0] = 0x00
    packet[1] = ZOOM65_MARKER
    packet[2] = 3 + length
    packet[3] = MAGIC
    packet[4] = subtype
    packet[5] = command


def _zoom65_parse(data: bytes) -> tuple[int, int, bytes] | None:
    if data[1] != ZOOM65_MARKER or data[3] != MAGIC:
        return None
    length = data[2] - 3
    if not 0 <= length <= ZOOM65_PACKET_SIZE - 6:
        return None
    return data[4], data[5], data[6:6 + length]


ZOOM65 = PacketFormat(
    name="zoom65",
    size=ZOOM65_PACKET_SIZE,
    payload_offset=6,
    max_payload=ZOOM65_PACKET_SIZE - 6,
    write_header=_zoom65_header,
    parse=_zoom65_parse,
)


# --- Tiga -------------------------------------------------------------------


def _tiga_header(packet: bytearray, command: int, subtype: int, length: int) -> None:
    packet[8] = MAGIC
    packet[9] = command
    packet[10] = 0
    packet[11] = length


def _tiga_trailer(packet: bytearray, subtype: int, length: int) -> None:
    # Sum check is taken before the outer header bytes are written
    packet[12 + length] = additive_checksum(packet[9:])
    packet[0] = TIGA_REPORT_TYPE
    packet[1] = subtype
    packet[5] = 4 + length + 1
    crc = crc16(packet)
    packet[TIGA_CRC_OFFSET:TIGA_CRC_OFFSET + 2] = crc.to_bytes(2, "little")


def _tiga_parse(data: bytes) -> tuple[int, int, bytes] | None:
    if data[0] != TIGA_REPORT_TYPE or data[8] != MAGIC:
        return None
    length = data[11]
    if length > TIGA_PACKET_SIZE - 13 or data[5] != 4 + length + 1:
        return None

    zeroed = bytearray(data)
    zeroed[TIGA_CRC_OFFSET:TIGA_CRC_OFFSET + 2] = b"\x00\x00"
    if crc16(zeroed) != int.from_bytes(data[6:8], "little"):
        return None

    # Recompute the sum check over bytes 9.. with the check byte cleared
    body = bytearray(data[9:])
    body[3 + length] = 0
    if additive_checksum(body) != data[12 + length]:
        return None
    return data[1], data[9], data[12:12 + length]


TIGA = PacketFormat(
    name="tiga",
    size=TIGA_PACKET_SIZE,
    payload_offset=12,
    max_payload=TIGA_PACKET_SIZE - 13,
    write_header=_tiga_header,
    write_trailer=_tiga_trailer,
    parse=_tiga_parse,
)
