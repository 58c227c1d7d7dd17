"""CRC-16/CCITT-FALSE used as the command frame checksum.

Polynomial 0x1021, initial value 0xFFFF, no input/output reflection and
no final xor. The lookup table is built once at import time.
"""

from __future__ import annotations

POLYNOMIAL = 0x1021
INITIAL_VALUE = 0xFFFF


def _build_table() -> tuple[int, ...]:
    table = []
    for byte_val in range(256):
        crc = byte_val << 8
        for _ in range(8):
            if crc & 0x8000:
                crc = (crc << 1) ^ POLYNOMIAL
            else:
                crc <<= 1
            crc &= 0xFFFF
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_table()


def crc16(data: bytes) -> int:
    """Calculate the CRC-16 of ``data``.

    Args:
        data: Bytes to checksum.

    Returns:
        The 16-bit checksum as an ``int``.
    """
    crc = INITIAL_VALUE
    for byte in data:
        crc = ((crc << 8) & 0xFFFF) ^ _CRC_TABLE[((crc >> 8) ^ byte) & 0xFF]
    return crc
