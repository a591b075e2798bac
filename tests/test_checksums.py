"""Tests for the checksum helpers."""

from zoom_sync.utils.crc import additive_checksum, checksum32, crc16


def test_crc16_empty():
    """CRC of empty data is the initial value."""
    assert crc16(b"") == 0xFFFF


def test_crc16_check_value():
    """CRC-16/CCITT-FALSE check value for the standard test string."""
    assert crc16(b"123456789") == 0x29B1


def test_crc16_different_inputs():
    assert crc16(b"\x01") != crc16(b"\x02")


def test_checksum32_known_vector():
    """Checksum of a captured first GIF chunk span."""
    data = bytes([0, 0, 71, 73, 70, 56, 57, 97, 111, 0, 111, 0, 247] + [0] * 15)
    assert len(data) == 28
    assert checksum32(data) == bytes([94, 148, 189, 206])


def test_checksum32_is_four_bytes():
    assert len(checksum32(b"")) == 4
    assert checksum32(b"") == b"\xff\xff\xff\xff"


def test_additive_checksum():
    assert additive_checksum(bytes([1, 2, 3])) == 0xF9
    assert additive_checksum(b"") == 0xFF


def test_additive_checksum_wraps_to_one_byte():
    assert additive_checksum(bytes([0xFF, 0xFF])) == (0x1FE ^ 0xFF) & 0xFF
