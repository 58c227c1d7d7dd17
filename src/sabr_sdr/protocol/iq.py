"""Raw IQ sample unpacking for the sample pipe.

Each sample is 4 bytes: signed 16-bit I then signed 16-bit Q, both
big-endian.
"""

from __future__ import annotations

import struct

BYTES_PER_SAMPLE = 4

_SAMPLE = struct.Struct(">hh")


def unpack_iq(raw: bytes) -> list[complex]:
    """Convert raw sample pipe bytes into complex samples.

    Trailing bytes that do not form a whole sample are ignored.
    """
    usable = len(raw) - len(raw) % BYTES_PER_SAMPLE
    return [complex(i, q) for i, q in _SAMPLE.iter_unpack(raw[:usable])]


def pack_iq(samples: list[complex]) -> bytes:
    """Convert complex samples into sample pipe bytes for transmission.

    Components are rounded and clipped to the signed 16-bit range.
    """
    out = bytearray()
    for sample in samples:
        i = max(-32768, min(32767, round(sample.real)))
        q = max(-32768, min(32767, round(sample.imag)))
        out += _SAMPLE.pack(i, q)
    return bytes(out)
