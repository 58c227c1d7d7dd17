"""The 8-byte payload carried by every command frame.

The payload is a pair of 32-bit words. Depending on the command it is read
as one 64-bit quantity (LO frequency, sample rate, bandwidth), as a single
32-bit value in the low word (gain, temperature, flags), or as two
independent sub-fields (multiplex mode, ERM version word). The type itself
does not know which; the calling convention for each command does.
"""

from __future__ import annotations

from dataclasses import dataclass

from .codec import WORD_MASK, WORD_SIZE, decode_word, encode_word

PAYLOAD_SIZE = 2 * WORD_SIZE


@dataclass(frozen=True)
class PayloadValue:
    """A (high, low) pair of unsigned 32-bit words."""

    high: int = 0
    low: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "high", self.high & WORD_MASK)
        object.__setattr__(self, "low", self.low & WORD_MASK)

    @classmethod
    def from_bool(cls, value: bool) -> PayloadValue:
        return cls(0, 1 if value else 0)

    @classmethod
    def from_int32(cls, value: int) -> PayloadValue:
        """Store a signed 32-bit value in the low word (two's complement)."""
        return cls(0, value)

    @classmethod
    def from_uint64(cls, value: int) -> PayloadValue:
        """Split an unsigned 64-bit value across the high and low words."""
        return cls(value >> 32, value)

    @classmethod
    def from_bytes(cls, data: bytes) -> PayloadValue:
        """Deserialize 8 bytes (high word then low word, big-endian)."""
        if len(data) != PAYLOAD_SIZE:
            raise ValueError(
                f"Payload must be {PAYLOAD_SIZE} bytes, got {len(data)}"
            )
        return cls(decode_word(data[:WORD_SIZE]), decode_word(data[WORD_SIZE:]))

    def as_uint64(self) -> int:
        return (self.high << 32) | self.low

    def as_uint32(self) -> int:
        """Same as ``low``."""
        return self.low

    def as_int32(self) -> int:
        if self.low & 0x80000000:
            return self.low - (1 << 32)
        return self.low

    def as_bool(self) -> bool:
        return self.low != 0

    def to_bytes(self) -> bytes:
        """Serialize to 8 bytes: high word then low word, each big-endian."""
        return encode_word(self.high) + encode_word(self.low)

    def __repr__(self) -> str:
        return f"PayloadValue(high=0x{self.high:08X}, low=0x{self.low:08X})"
