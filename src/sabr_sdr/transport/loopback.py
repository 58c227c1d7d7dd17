"""Software-only SABR radio emulation on the command and sample pipes.

Answers every command frame the way the radio firmware does: set commands
are stored per (command, channel) and echoed back, get commands return the
stored value. The sample pipe plays back the last transmitted block.
Useful for demos, the MCP server's offline mode and tests.
"""

from __future__ import annotations

import logging
from collections import deque

from ..errors import TransportError
from ..models.radio import DeviceStatus, ProductInfo
from ..protocol.commands import CommandType
from ..protocol.framing import CommandPacket, acknowledge
from ..protocol.payload import PayloadValue

logger = logging.getLogger(__name__)

LOOPBACK_SERIAL = "SM3000-LOOPBACK"

# Commands the emulated firmware refuses (NACK)
UNSUPPORTED_COMMANDS = frozenset({
    CommandType.REFERENCE_SOURCE,
    CommandType.AGC_PARAMS,
    CommandType.FIRMWARE_UPDATE,
    CommandType.NOP,
})


class LoopbackDevice:
    """Emulated radio implementing the transport interface.

    Args:
        temperature_mdeg: Reported die temperature in millidegrees Celsius.
        erm_version: (high, low) words returned by ERMVersion.
    """

    def __init__(
        self,
        temperature_mdeg: int = 41_250,
        erm_version: tuple[int, int] = (0x0002_0105, 0x0000_0003),
    ) -> None:
        self._connected = False
        self._temperature_mdeg = temperature_mdeg
        self._erm_version = PayloadValue(*erm_version)
        self._state: dict[tuple[CommandType, int], PayloadValue] = {}
        self._pending: deque[bytes] = deque()
        self._initialized = False
        self._capturing = False
        self._transmitting = False
        self.writes = 0
        self.reads = 0
        self.samples_written = 0
        self._waveform = b""

    @property
    def connected(self) -> bool:
        return self._connected

    def list_devices(self) -> list[ProductInfo]:
        return [ProductInfo(serial_number=LOOPBACK_SERIAL, description="SABR loopback")]

    def open(self, serial_number: str | None = None) -> ProductInfo:
        if serial_number not in (None, LOOPBACK_SERIAL):
            raise ConnectionError(f"No loopback device with serial {serial_number}")
        self._connected = True
        logger.info("Loopback device opened")
        return self.list_devices()[0]

    def close(self) -> None:
        self._connected = False
        self._pending.clear()
        self._waveform = b""

    # === Command pipe ===

    def write(self, data: bytes) -> int:
        if not self._connected:
            raise ConnectionError("Not connected to device")
        self.writes += 1
        request = CommandPacket.from_bytes(bytes(data))
        if not request.valid:
            logger.debug("Loopback dropped malformed request: %r", request)
            return len(data)
        self._pending.append(self._respond(request).to_bytes())
        return len(data)

    def read(self, size: int) -> bytes:
        if not self._connected:
            raise ConnectionError("Not connected to device")
        self.reads += 1
        if not self._pending:
            raise TransportError("Command read timed out")
        data = self._pending.popleft()
        return data[:size]

    def _respond(self, request: CommandPacket) -> CommandPacket:
        cmd = request.command_type
        if cmd is None or cmd in UNSUPPORTED_COMMANDS:
            return acknowledge(request, acknowledged=False)

        key = (cmd, request.channel)
        if request.is_set:
            self._apply(cmd, request)
            self._state[key] = request.payload
            return acknowledge(request)

        if cmd is CommandType.TEMPERATURE:
            payload = PayloadValue.from_int32(self._temperature_mdeg)
        elif cmd is CommandType.ERM_VERSION:
            payload = self._erm_version
        elif cmd is CommandType.DEVICE_STATUS:
            payload = PayloadValue.from_int32(self._status())
        else:
            payload = self._state.get(key, PayloadValue())
        return acknowledge(request, payload)

    def _apply(self, cmd: CommandType, request: CommandPacket) -> None:
        if cmd is CommandType.INIT_DEVICE:
            self._initialized = True
        elif cmd is CommandType.RESET:
            self._state.clear()
            self._initialized = False
            self._capturing = False
            self._transmitting = False
        elif cmd is CommandType.CAPTURE_ENABLE:
            self._capturing = request.payload.as_bool()
        elif cmd is CommandType.TRANSMIT_ENABLE:
            self._transmitting = request.payload.as_bool()

    def _status(self) -> DeviceStatus:
        if self._transmitting:
            return DeviceStatus.TRANSMITTING
        if self._capturing:
            return DeviceStatus.RECEIVING
        if self._initialized:
            return DeviceStatus.IDLE_INITIALIZED
        return DeviceStatus.IDLE_NOT_INITIALIZED

    # === Sample pipe ===

    def write_samples(self, data: bytes) -> int:
        if not self._connected:
            raise ConnectionError("Not connected to device")
        self.samples_written += len(data)
        self._waveform = bytes(data)
        return len(data)

    def read_samples(self, size: int) -> bytes:
        """Play back the last transmitted block, repeated to ``size`` bytes.

        Silence (all zero bytes) until something has been transmitted.
        """
        if not self._connected:
            raise ConnectionError("Not connected to device")
        if not self._waveform:
            return bytes(size)
        repeats = -(-size // len(self._waveform))
        return (self._waveform * repeats)[:size]
