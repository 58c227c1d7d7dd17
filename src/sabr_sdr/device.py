"""SABR radio session: the command transaction engine and typed operations.

Every control operation goes through :meth:`RadioDevice.process`, which
frames one request, performs exactly one write + read on the command pipe
while holding the session lock, validates the response and returns its
payload with an :class:`~sabr_sdr.errors.ErrorFlags` classification.

Typed operations layer the per-command conventions on top. Setters return
``ErrorFlags``; getters return ``(value, ErrorFlags)`` and the value is
only meaningful when the flags are ``NONE``.

The IQ sample pipe is separate: ``receive_samples``/``transmit_samples``
take no lock and are meant for a single streaming caller.
"""

from __future__ import annotations

import logging
import threading
from enum import IntEnum
from typing import TypeVar

from .errors import ErrorFlags, TransportError, map_response_error
from .models.radio import DeviceStatus, IQChannelConfig, ProductInfo, RadioGainMode
from .protocol.commands import (
    CommandType,
    RadioChannel,
    build_attenuation,
    build_enable,
    build_gain,
    build_gain_mode,
    build_lo_frequency,
    build_multiplex_mode,
    build_uint64,
)
from .protocol.framing import PACKET_SIZE, CommandPacket
from .protocol.parser import (
    TEMPERATURE_SENTINEL,
    ERMVersion,
    MultiplexMode,
    parse_attenuation,
    parse_erm_version,
    parse_multiplex_mode,
    parse_sample_rate,
    parse_temperature,
)
from .protocol.payload import PayloadValue
from .transport import Transport

logger = logging.getLogger(__name__)

# IQ stream chunk sizes, chosen from the configured sample rate
SLOW_RATE_STREAM_SIZE_BYTES = 65_536
MED_LOW_RATE_STREAM_SIZE_BYTES = 262_144
MED_RATE_STREAM_SIZE_BYTES = 1_048_576
FAST_RATE_STREAM_SIZE_BYTES = 4_194_304

SUPPORTED_SAMPLE_RATES = (
    640_000, 960_000, 1_000_000, 1_920_000, 2_000_000, 3_840_000, 4_000_000,
    6_000_000, 7_680_000, 8_000_000, 10_000_000, 14_000_000, 15_360_000,
    16_000_000, 20_000_000, 24_000_000, 28_000_000, 30_720_000, 32_000_000,
    36_000_000, 40_000_000, 44_000_000, 48_000_000, 52_000_000, 56_000_000,
    60_000_000, 61_440_000,
)

E = TypeVar("E", bound=IntEnum)


def stream_size_for_rate(sample_rate: int) -> int:
    """Bytes per default IQ read for a given sample rate."""
    if sample_rate <= 1_000_000:
        return SLOW_RATE_STREAM_SIZE_BYTES
    if sample_rate <= 2_000_000:
        return MED_LOW_RATE_STREAM_SIZE_BYTES
    if sample_rate < 30_000_000:
        return MED_RATE_STREAM_SIZE_BYTES
    return FAST_RATE_STREAM_SIZE_BYTES


def _enum_or_int(enum_cls: type[E], value: int) -> E | int:
    try:
        return enum_cls(value)
    except ValueError:
        return value


class RadioDevice:
    """A session with one SABR radio.

    Usage::

        radio = RadioDevice()
        if radio.setup() == ErrorFlags.NONE:
            radio.set_lo_frequency(0, 915_000_000)
            rate, flags = radio.get_sample_rate(0)
            radio.close()

    Args:
        transport: Command/sample pipe collaborator. Defaults to a
            :class:`~sabr_sdr.transport.usb_connection.USBConnection`.
    """

    def __init__(self, transport: Transport | None = None) -> None:
        if transport is None:
            from .transport.usb_connection import USBConnection

            transport = USBConnection()
        self._transport = transport
        # Guards the command pipe and the session state.
        self._lock = threading.Lock()
        self._ready = False
        self._product: ProductInfo | None = None
        self._capture_enabled = False
        self._transmit_enabled = False
        self._iq_stream_size = MED_RATE_STREAM_SIZE_BYTES

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def is_ready(self) -> bool:
        return self._ready

    @property
    def product_info(self) -> ProductInfo | None:
        return self._product

    @property
    def capture_enabled(self) -> bool:
        return self._capture_enabled

    @property
    def transmit_enabled(self) -> bool:
        return self._transmit_enabled

    @property
    def iq_stream_size(self) -> int:
        """Bytes returned by :meth:`receive_samples` when no size is given."""
        return self._iq_stream_size

    # ─── SESSION LIFECYCLE ───────────────────────────────────────────

    def list_devices(self) -> list[ProductInfo]:
        """Return the SABR radios currently attached."""
        return self._transport.list_devices()

    def setup(self, serial_number: str | None = None) -> ErrorFlags:
        """Open the radio and make the session ready for commands.

        Transactions attempted while setup runs wait for it to finish.

        Args:
            serial_number: Radio to open; the first one found if omitted.
        """
        with self._lock:
            if self._ready:
                return ErrorFlags.ALREADY_RUNNING
            try:
                self._product = self._transport.open(serial_number)
            except ConnectionError as e:
                logger.warning("Failed to open SABR device: %s", e)
                return ErrorFlags.UNSUCCESSFUL
            self._ready = True
            logger.info("SABR session ready (%s)", self._product.serial_number)
            return ErrorFlags.NONE

    def close(self) -> ErrorFlags:
        """Release the transport. Later commands return ``NOT_INITIALIZED``."""
        with self._lock:
            if not self._ready:
                return ErrorFlags.NONE
            self._ready = False
            self._capture_enabled = False
            self._transmit_enabled = False
            self._transport.close()
            logger.info("SABR session closed")
            return ErrorFlags.NONE

    # ─── TRANSACTION ENGINE ──────────────────────────────────────────

    def process(
        self,
        command: CommandType,
        channel: RadioChannel | int,
        is_set: bool,
        payload: PayloadValue | None = None,
    ) -> tuple[PayloadValue, ErrorFlags]:
        """Run one command transaction.

        Returns:
            The response payload and ``ErrorFlags.NONE``, or an empty
            payload and the failure classification:

            - ``NOT_INITIALIZED``: session not set up (no I/O).
            - ``INVALID_PARAMETER``: channel outside 0-3 (no I/O).
            - ``UNSUCCESSFUL``: command not in the catalog (no I/O).
            - ``NOT_RESPONDING``: write or read failed or timed out.
            - ``CHECKSUM_FAILURE`` / ``FRAMING_ERROR``: corrupt response.
            - ``INVALID_STATE``: the radio did not acknowledge.
            - ``PROTOCOL_ERROR``: any other rejected response.
        """
        empty = PayloadValue()
        try:
            channel = RadioChannel(channel)
        except ValueError:
            logger.warning("Invalid radio channel %r", channel)
            return empty, ErrorFlags.INVALID_PARAMETER

        request = CommandPacket.build(command, channel, is_set, payload)
        if not request.valid:
            logger.warning("Command %r not recognized", command)
            return empty, ErrorFlags.UNSUCCESSFUL

        with self._lock:
            if not self._ready:
                return empty, ErrorFlags.NOT_INITIALIZED
            response = self._transact(request)

        if not response.valid:
            flags = map_response_error(response.error)
            logger.warning(
                "SABR rejected %s response: %s", request.command_type.name, response.error.name
            )
            return empty, flags
        return response.payload, ErrorFlags.NONE

    def _transact(self, request: CommandPacket) -> CommandPacket:
        """One write then one read on the command pipe.

        A failed or short transfer yields the synthetic not-responding packet.
        """
        data = request.to_bytes()
        logger.debug("CMD TX %s", data.hex(" "))
        try:
            self._transport.write(data)
            raw = self._transport.read(PACKET_SIZE)
        except (TransportError, ConnectionError) as e:
            logger.warning("Didn't get a command response from the device: %s", e)
            return CommandPacket.not_responding(request)
        if len(raw) != PACKET_SIZE:
            logger.warning("Short command response: %d/%d bytes", len(raw), PACKET_SIZE)
            return CommandPacket.not_responding(request)
        logger.debug("CMD RX %s", raw.hex(" "))
        return CommandPacket.from_bytes(raw)

    def _set(
        self, command: CommandType, channel: int, payload: PayloadValue | None = None
    ) -> ErrorFlags:
        _, flags = self.process(command, channel, True, payload)
        return flags

    def _get(self, command: CommandType, channel: int = 0) -> tuple[PayloadValue, ErrorFlags]:
        return self.process(command, channel, False)

    # ─── DEVICE CONTROL ──────────────────────────────────────────────

    def init_device(self) -> ErrorFlags:
        """Initialize the radio. Must be the first command after setup."""
        return self._set(CommandType.INIT_DEVICE, 0)

    def reset_device(self) -> ErrorFlags:
        """Reset the radio, then re-initialize it.

        Settings may return to their defaults; the reset can take several
        seconds.
        """
        flags = self._set(CommandType.RESET, 0)
        if flags.ok:
            return self.init_device()
        return flags

    def get_device_status(self) -> tuple[DeviceStatus | int, ErrorFlags]:
        payload, flags = self._get(CommandType.DEVICE_STATUS)
        return _enum_or_int(DeviceStatus, payload.as_int32()), flags

    def get_multiplex_mode(self) -> tuple[MultiplexMode, ErrorFlags]:
        """Current TDM/FDM mode and active IQ channel configuration."""
        payload, flags = self._get(CommandType.MULTIPLEX_MODE)
        return parse_multiplex_mode(payload), flags

    def set_multiplex_mode(
        self, is_tdm: bool, channel_config: IQChannelConfig | int
    ) -> ErrorFlags:
        """Select TDM (TX and RX never active together) or FDM, and the channel mix."""
        try:
            payload = build_multiplex_mode(is_tdm, channel_config)
        except ValueError as e:
            logger.warning("%s", e)
            return ErrorFlags.INVALID_PARAMETER
        return self._set(CommandType.MULTIPLEX_MODE, 0, payload)

    # ─── TUNING ──────────────────────────────────────────────────────

    def get_lo_frequency(self, channel: int) -> tuple[int, ErrorFlags]:
        """LO frequency in Hz."""
        payload, flags = self._get(CommandType.LO_FREQUENCY, channel)
        return payload.as_uint64(), flags

    def set_lo_frequency(self, channel: int, frequency: int) -> ErrorFlags:
        """Set the LO frequency (70 MHz to 6 GHz)."""
        try:
            payload = build_lo_frequency(frequency)
        except ValueError as e:
            logger.warning("%s", e)
            return ErrorFlags.INVALID_PARAMETER
        return self._set(CommandType.LO_FREQUENCY, channel, payload)

    def get_complex_bandwidth(self, channel: int) -> tuple[int, ErrorFlags]:
        payload, flags = self._get(CommandType.BANDWIDTH, channel)
        return payload.as_uint64(), flags

    def set_complex_bandwidth(self, channel: int, bandwidth: int) -> ErrorFlags:
        try:
            payload = build_uint64(bandwidth)
        except ValueError as e:
            logger.warning("%s", e)
            return ErrorFlags.INVALID_PARAMETER
        return self._set(CommandType.BANDWIDTH, channel, payload)

    def get_sample_rate(self, channel: int) -> tuple[int, ErrorFlags]:
        """Sample rate in samples/s, corrected for the radio's odd-rate reporting."""
        payload, flags = self._get(CommandType.SAMPLE_RATE, channel)
        return parse_sample_rate(payload), flags

    def set_sample_rate(self, channel: int, sample_rate: int) -> ErrorFlags:
        """Set the sample rate and resize the default IQ read to suit it."""
        try:
            payload = build_uint64(sample_rate)
        except ValueError as e:
            logger.warning("%s", e)
            return ErrorFlags.INVALID_PARAMETER
        if sample_rate not in SUPPORTED_SAMPLE_RATES:
            logger.debug("Sample rate %d is not in the product rate table", sample_rate)
        flags = self._set(CommandType.SAMPLE_RATE, channel, payload)
        if flags.ok:
            self._iq_stream_size = stream_size_for_rate(sample_rate)
        return flags

    # ─── GAIN ────────────────────────────────────────────────────────

    def get_gain(self, channel: int) -> tuple[int, ErrorFlags]:
        """Manual gain in dB. Only meaningful in manual gain mode."""
        payload, flags = self._get(CommandType.GAIN, channel)
        return payload.as_int32(), flags

    def set_gain(self, channel: int, gain: int) -> ErrorFlags:
        # TODO: validate against the product gain table once the range per product is published
        return self._set(CommandType.GAIN, channel, build_gain(gain))

    def get_gain_mode(self, channel: int) -> tuple[RadioGainMode | int, ErrorFlags]:
        payload, flags = self._get(CommandType.GAIN_MODE, channel)
        return _enum_or_int(RadioGainMode, payload.as_int32()), flags

    def set_gain_mode(self, channel: int, mode: RadioGainMode | int) -> ErrorFlags:
        try:
            payload = build_gain_mode(mode)
        except ValueError as e:
            logger.warning("%s", e)
            return ErrorFlags.INVALID_PARAMETER
        return self._set(CommandType.GAIN_MODE, channel, payload)

    def get_transmit_attenuation(self, channel: int) -> tuple[float, ErrorFlags]:
        """Transmit attenuation in dB (sent as millidecibels on the Gain command)."""
        payload, flags = self._get(CommandType.GAIN, channel)
        return parse_attenuation(payload), flags

    def set_transmit_attenuation(self, channel: int, attenuation: float) -> ErrorFlags:
        """Set transmit attenuation, 0.0 to 89.75 dB."""
        try:
            payload = build_attenuation(attenuation)
        except ValueError as e:
            logger.warning("%s", e)
            return ErrorFlags.INVALID_PARAMETER
        return self._set(CommandType.GAIN, channel, payload)

    def get_additional_agc_parameter_defaults(self, channel: int) -> list[int] | None:
        return None

    def set_additional_agc_parameters(self, channel: int, params: list[int]) -> ErrorFlags:
        return ErrorFlags.OPERATION_UNSUPPORTED

    # ─── MONITORING ──────────────────────────────────────────────────

    def get_device_temperature(self) -> tuple[float, ErrorFlags]:
        """Die temperature in °C, or -99.0 if it could not be read."""
        payload, flags = self._get(CommandType.TEMPERATURE)
        if not flags.ok:
            return TEMPERATURE_SENTINEL, flags
        return parse_temperature(payload), flags

    def get_erm_version(self) -> tuple[ERMVersion, ErrorFlags]:
        """Software/hardware versions, FPGA type and recovery-mode flag.

        All fields come from a single ERMVersion transaction.
        """
        payload, flags = self._get(CommandType.ERM_VERSION)
        if not flags.ok:
            return ERMVersion(), flags
        return parse_erm_version(payload), flags

    def get_reference_source(self) -> tuple[bool, ErrorFlags]:
        """Always reports the internal reference; selection is not supported."""
        return True, ErrorFlags.OPERATION_UNSUPPORTED

    def set_reference_source(self, is_internal: bool) -> ErrorFlags:
        return ErrorFlags.OPERATION_UNSUPPORTED

    # ─── STREAMING ───────────────────────────────────────────────────

    def start_capture(self) -> ErrorFlags:
        flags = self._set(CommandType.CAPTURE_ENABLE, 0, build_enable(True))
        if flags.ok:
            self._capture_enabled = True
        return flags

    def stop_capture(self) -> ErrorFlags:
        flags = self._set(CommandType.CAPTURE_ENABLE, 0, build_enable(False))
        if flags.ok:
            self._capture_enabled = False
        return flags

    def start_transmit(self) -> ErrorFlags:
        flags = self._set(CommandType.TRANSMIT_ENABLE, 0, build_enable(True))
        if flags.ok:
            self._transmit_enabled = True
        return flags

    def stop_transmit(self) -> ErrorFlags:
        flags = self._set(CommandType.TRANSMIT_ENABLE, 0, build_enable(False))
        if flags.ok:
            self._transmit_enabled = False
        return flags

    def receive_samples(self, num_bytes: int | None = None) -> tuple[bytes, ErrorFlags]:
        """Read raw IQ bytes (4 per sample) from the sample pipe.

        Args:
            num_bytes: Bytes to read; defaults to :attr:`iq_stream_size`.
        """
        if not self._ready:
            return b"", ErrorFlags.NOT_INITIALIZED
        size = self._iq_stream_size if num_bytes is None else num_bytes
        try:
            return self._transport.read_samples(size), ErrorFlags.NONE
        except (TransportError, ConnectionError) as e:
            logger.warning("IQ receive failed: %s", e)
            return b"", ErrorFlags.UNSUCCESSFUL

    def transmit_samples(self, data: bytes) -> ErrorFlags:
        """Write raw IQ bytes to the sample pipe.

        Samples must be fed at the configured sample rate; chunks of a few
        KiB work best.
        """
        if not self._ready:
            return ErrorFlags.NOT_INITIALIZED
        try:
            self._transport.write_samples(data)
        except (TransportError, ConnectionError) as e:
            logger.warning("IQ transmit failed: %s", e)
            return ErrorFlags.UNSUCCESSFUL
        return ErrorFlags.NONE
