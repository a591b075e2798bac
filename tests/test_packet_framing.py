"""Tests for the fixed-size packet builder and parser."""

import pytest

from zoom_sync.protocol.framing import (
    TIGA,
    ZOOM65,
    build_packet,
    parse_packet,
)
from zoom_sync.utils.crc import additive_checksum, crc16


@pytest.mark.parametrize("fmt", [ZOOM65, TIGA], ids=["zoom65", "tiga"])
def test_packet_size_is_fixed_for_every_payload_length(fmt):
    """Packets are exactly the family size for every legal payload length."""
    for length in range(fmt.max_payload + 1):
        packet = build_packet(fmt, 0x10, bytes(range(length)), subtype=1)
        assert len(packet) == fmt.size


@pytest.mark.parametrize("fmt", [ZOOM65, TIGA], ids=["zoom65", "tiga"])
def test_oversized_payload_is_rejected(fmt):
    with pytest.raises(ValueError):
        build_packet(fmt, 0x10, bytes(fmt.max_payload + 1))


def test_family_limits():
    assert (ZOOM65.size, ZOOM65.max_payload) == (33, 27)
    assert (TIGA.size, TIGA.max_payload) == (32, 19)


def test_zoom65_layout():
    packet = build_packet(ZOOM65, 0x10, b"\x01\x02", subtype=0x01)
    assert packet[:8] == bytes([0x00, 0x58, 5, 0xA5, 0x01, 0x10, 0x01, 0x02])
    assert packet[8:] == bytes(25)


def test_tiga_layout():
    payload = bytes([0x00, 0x01, 0x02])
    packet = build_packet(TIGA, 0x39, payload, subtype=0x02)
    assert packet[0] == 0x1C
    assert packet[1] == 0x02
    assert packet[2:5] == b"\x00\x00\x00"
    assert packet[5] == 4 + 3 + 1
    assert packet[8] == 0xA5
    assert packet[9] == 0x39
    assert packet[10] == 0
    assert packet[11] == 3
    assert packet[12:15] == payload


def test_tiga_checksum_byte_follows_payload():
    payload = bytes([0x00, 0xFF, 0xFF])
    packet = build_packet(TIGA, 0xFC, payload, subtype=0x02)
    expected = additive_checksum(bytes([0xFC, 0x00, 3]) + payload)
    assert packet[15] == expected
    assert packet[16:] == bytes(16)


def test_tiga_crc_covers_whole_packet():
    packet = build_packet(TIGA, 0xFE, b"\x00\x05", subtype=0x02)
    zeroed = bytearray(packet)
    zeroed[6:8] = b"\x00\x00"
    assert int.from_bytes(packet[6:8], "little") == crc16(zeroed)


def test_tiga_full_payload_puts_checksum_in_last_byte():
    payload = bytes(range(1, 20))
    packet = build_packet(TIGA, 0xFC, payload, subtype=0x02)
    assert packet[12:31] == payload
    assert packet[31] == additive_checksum(packet[9:31])


@pytest.mark.parametrize("fmt", [ZOOM65, TIGA], ids=["zoom65", "tiga"])
def test_parse_recovers_fields(fmt):
    packet = build_packet(fmt, 0x38, b"\x00\x01\x07\xe8", subtype=0x03)
    assert parse_packet(fmt, packet) == (0x03, 0x38, b"\x00\x01\x07\xe8")


def test_parse_rejects_corrupted_tiga_payload():
    packet = bytearray(build_packet(TIGA, 0xFE, b"\x00\x05\x00\xfa", subtype=0x02))
    packet[13] ^= 0x01
    assert parse_packet(TIGA, bytes(packet)) is None


def test_parse_rejects_corrupted_tiga_crc():
    packet = bytearray(build_packet(TIGA, 0xFE, b"\x00\x05", subtype=0x02))
    packet[6] ^= 0xFF
    assert parse_packet(TIGA, bytes(packet)) is None


def test_parse_rejects_wrong_marker_and_size():
    packet = bytearray(build_packet(ZOOM65, 0x20, subtype=0x00))
    packet[1] = 0x00
    assert parse_packet(ZOOM65, bytes(packet)) is None
    assert parse_packet(ZOOM65, b"\x00\x58") is None
