"""Shared fixtures: a scripted command-pipe transport and a ready radio session."""

from __future__ import annotations

import threading

import pytest

from sabr_sdr.device import RadioDevice
from sabr_sdr.errors import TransportError
from sabr_sdr.models.radio import ProductInfo
from sabr_sdr.protocol.framing import CommandPacket, acknowledge


class FakeTransport:
    """Records every command-pipe transfer and answers with ``responder``.

    ``responder`` receives the parsed request and returns the response as a
    ``CommandPacket`` or raw ``bytes``. By default the request is acknowledged
    with its own payload echoed back.
    """

    def __init__(self, responder=None) -> None:
        self.responder = responder or (lambda request: acknowledge(request))
        self.connected = False
        self.fail_open = False
        self.fail_write = False
        self.fail_read = False
        self.writes: list[bytes] = []
        self.reads = 0
        self.events: list[tuple[str, int]] = []
        self.overlap = False
        self.samples = b""
        self._pending: bytes | None = None
        self._guard = threading.Lock()

    @property
    def requests(self) -> list[CommandPacket]:
        return [CommandPacket.from_bytes(w) for w in self.writes]

    def list_devices(self) -> list[ProductInfo]:
        return [ProductInfo(serial_number="SM3000-TEST", description="SABR test")]

    def open(self, serial_number=None) -> ProductInfo:
        if self.fail_open:
            raise ConnectionError("no device")
        self.connected = True
        return ProductInfo(serial_number=serial_number or "SM3000-TEST")

    def close(self) -> None:
        self.connected = False

    def write(self, data: bytes) -> int:
        if self.fail_write:
            raise TransportError("write timeout")
        with self._guard:
            if self._pending is not None:
                self.overlap = True
            self.writes.append(bytes(data))
            self.events.append(("write", len(self.writes)))
            response = self.responder(CommandPacket.from_bytes(bytes(data)))
            if isinstance(response, CommandPacket):
                response = response.to_bytes()
            self._pending = response
        return len(data)

    def read(self, size: int) -> bytes:
        self.reads += 1
        if self.fail_read:
            raise TransportError("read timeout")
        with self._guard:
            if self._pending is None:
                self.overlap = True
                raise TransportError("nothing to read")
            data, self._pending = self._pending, None
            self.events.append(("read", len(self.writes)))
        return data

    def write_samples(self, data: bytes) -> int:
        self.samples += data
        return len(data)

    def read_samples(self, size: int) -> bytes:
        return bytes(size)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def radio(transport: FakeTransport) -> RadioDevice:
    device = RadioDevice(transport)
    device.setup()
    return device
