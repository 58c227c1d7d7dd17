"""Tests for the two-word command payload."""

import pytest

from sabr_sdr.protocol.payload import PayloadValue


def test_default_is_zero():
    p = PayloadValue()
    assert (p.high, p.low) == (0, 0)
    assert p.as_uint64() == 0
    assert p.as_bool() is False


def test_from_bool():
    assert PayloadValue.from_bool(True) == PayloadValue(0, 1)
    assert PayloadValue.from_bool(False) == PayloadValue(0, 0)


def test_from_int32_negative():
    """Negative values are stored as two's complement in the low word."""
    p = PayloadValue.from_int32(-5)
    assert p.high == 0
    assert p.low == 0xFFFFFFFB
    assert p.as_int32() == -5
    assert p.as_uint32() == 0xFFFFFFFB


def test_from_uint64_splits_words():
    p = PayloadValue.from_uint64(6_000_000_000)
    assert p.high == 1
    assert p.low == 6_000_000_000 - (1 << 32)
    assert p.as_uint64() == 6_000_000_000


def test_32bit_views_read_low_word_only():
    p = PayloadValue(0xFFFFFFFF, 7)
    assert p.as_uint32() == 7
    assert p.as_int32() == 7
    assert p.as_bool() is True
    assert PayloadValue(1, 0).as_bool() is False


def test_words_are_masked():
    p = PayloadValue(1 << 32, -1)
    assert p.high == 0
    assert p.low == 0xFFFFFFFF


def test_serialized_layout():
    """High word first, then low word, each big-endian."""
    assert PayloadValue(0x01020304, 0x05060708).to_bytes() == bytes(range(1, 9))


@pytest.mark.parametrize(
    "payload",
    [PayloadValue(), PayloadValue(0xDEADBEEF, 0x00C0FFEE), PayloadValue.from_int32(-1)],
)
def test_from_bytes_reproduces_words(payload):
    restored = PayloadValue.from_bytes(payload.to_bytes())
    assert (restored.high, restored.low) == (payload.high, payload.low)


def test_from_bytes_wrong_length():
    with pytest.raises(ValueError):
        PayloadValue.from_bytes(b"\x00" * 7)


def test_payload_repr():
    assert "0x00000001" in repr(PayloadValue(0, 1))
