"""Tests for the big-endian word codec."""

import pytest

from sabr_sdr.protocol.codec import decode_word, encode_word


def test_encode_is_big_endian():
    assert encode_word(0x12345678) == b"\x12\x34\x56\x78"


def test_decode_is_big_endian():
    assert decode_word(b"\xA5\x01\x00\x62") == 0xA5010062


@pytest.mark.parametrize(
    "word", [0, 1, 0xFF, 0x100, 0x7FFFFFFF, 0x80000000, 0xDEADBEEF, 0xFFFFFFFF]
)
def test_decode_inverts_encode(word):
    assert decode_word(encode_word(word)) == word


def test_encode_masks_negative_values():
    """Negative ints encode as their 32-bit two's complement pattern."""
    assert encode_word(-1) == b"\xff\xff\xff\xff"


def test_decode_wrong_length():
    with pytest.raises(ValueError):
        decode_word(b"\x00\x01\x02")
