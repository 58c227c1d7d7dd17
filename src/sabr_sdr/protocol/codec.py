"""Big-endian 32-bit word codec.

Every multi-byte field on the command pipe is a 32-bit word sent most
significant byte first.
"""

from __future__ import annotations

WORD_SIZE = 4
WORD_MASK = 0xFFFFFFFF


def encode_word(value: int) -> bytes:
    """Serialize a 32-bit word into 4 big-endian bytes.

    Values are masked to 32 bits, so negative Python ints encode as their
    two's complement bit pattern.
    """
    return (value & WORD_MASK).to_bytes(WORD_SIZE, "big")


def decode_word(data: bytes) -> int:
    """Deserialize 4 big-endian bytes into an unsigned 32-bit word."""
    if len(data) != WORD_SIZE:
        raise ValueError(f"Word must be {WORD_SIZE} bytes, got {len(data)}")
    return int.from_bytes(data, "big")
