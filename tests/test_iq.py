"""Tests for IQ sample packing."""

from sabr_sdr.protocol.iq import BYTES_PER_SAMPLE, pack_iq, unpack_iq


def test_unpack_big_endian_pairs():
    raw = bytes.fromhex("0001FFFF" "8000 7FFF".replace(" ", ""))
    assert unpack_iq(raw) == [complex(1, -1), complex(-32768, 32767)]


def test_unpack_ignores_partial_sample():
    raw = bytes.fromhex("00020003") + b"\x01\x02"
    assert unpack_iq(raw) == [complex(2, 3)]


def test_unpack_empty():
    assert unpack_iq(b"") == []


def test_pack_layout():
    data = pack_iq([complex(1, -1)])
    assert len(data) == BYTES_PER_SAMPLE
    assert data == bytes.fromhex("0001FFFF")


def test_pack_clips_and_rounds():
    data = pack_iq([complex(40000.0, -40000.0), complex(2.6, -2.6)])
    assert unpack_iq(data) == [complex(32767, -32768), complex(3, -3)]
