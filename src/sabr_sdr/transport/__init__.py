"""Transports: the byte pipes between the host and the radio.

A transport carries two independent channels over physically distinct
endpoints: the command pipe (16-byte frames, one request then one
response) and the sample pipe (raw IQ bytes). Read/write timeouts are
fixed when the transport is opened.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models.radio import ProductInfo


@runtime_checkable
class Transport(Protocol):
    """What the device session needs from a transport.

    ``write``/``read`` and the sample methods raise
    :class:`~sabr_sdr.errors.TransportError` on failure or timeout and
    ``ConnectionError`` when the transport is not open.
    """

    @property
    def connected(self) -> bool:
        ...

    def list_devices(self) -> list[ProductInfo]:
        ...

    def open(self, serial_number: str | None = None) -> ProductInfo:
        ...

    def close(self) -> None:
        ...

    # === Command pipe ===

    def write(self, data: bytes) -> int:
        ...

    def read(self, size: int) -> bytes:
        ...

    # === Sample pipe ===

    def write_samples(self, data: bytes) -> int:
        ...

    def read_samples(self, size: int) -> bytes:
        ...
