"""Tests for the CRC-16 frame checksum."""

from sabr_sdr.utils.crc import crc16


def test_crc16_empty():
    """CRC of empty data is the initial value."""
    assert crc16(b"") == 0xFFFF


def test_crc16_check_value():
    """CRC-16/CCITT-FALSE check value for the standard test string."""
    assert crc16(b"123456789") == 0x29B1


def test_crc16_range():
    result = crc16(bytes(range(16)))
    assert 0 <= result <= 0xFFFF


def test_crc16_deterministic():
    """Same input should always produce same output."""
    data = b"\xA5\x01\x00\x62"
    assert crc16(data) == crc16(data)


def test_crc16_single_bit_sensitivity():
    """Flipping any one bit of the input changes the CRC."""
    data = bytearray(b"\xA5\x01\x00\x62\x00\x00\x00\x00\x00\x0f\x42\x40\x5a\x00")
    reference = crc16(bytes(data))
    for bit in range(len(data) * 8):
        flipped = bytearray(data)
        flipped[bit // 8] ^= 0x80 >> (bit % 8)
        assert crc16(bytes(flipped)) != reference
