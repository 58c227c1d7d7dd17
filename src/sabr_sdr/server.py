"""MCP server entry point for SABR software-defined radios.

Exposes radio control as tools and resources via the Model Context
Protocol using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import cmath
import json
import logging
import math
from typing import Any

from mcp.server.fastmcp import FastMCP

from .device import RadioDevice
from .errors import ErrorFlags
from .models.radio import DeviceStatus, IQChannelConfig, RadioGainMode
from .protocol.commands import (
    COMMAND_IDS,
    MAX_ATTENUATION,
    MAX_LO_FREQUENCY,
    MIN_ATTENUATION,
    MIN_LO_FREQUENCY,
)
from .protocol.iq import BYTES_PER_SAMPLE, pack_iq, unpack_iq
from .transport.loopback import LoopbackDevice
from .transport.usb_connection import USBConnection

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "sabr-sdr",
    instructions="MCP server for controlling SABR software-defined radios",
)

# Global session state
_device: RadioDevice | None = None


def _get_device() -> RadioDevice:
    """Get the active radio session, raising if not connected."""
    if _device is None or not _device.is_ready:
        raise RuntimeError(
            "Not connected to a radio. Use the 'connect' tool first."
        )
    return _device


def _error(flags: ErrorFlags) -> dict[str, Any]:
    return {"error": flags.name, "code": int(flags)}


def _result(flags: ErrorFlags, **values: Any) -> dict[str, Any]:
    if not flags.ok:
        return _error(flags)
    return values


# ─── CONNECTION TOOLS ─────────────────────────────────────────────────

@mcp.tool()
def list_devices() -> dict[str, Any]:
    """List attached SABR radios by serial number."""
    devices = USBConnection().list_devices()
    return {"devices": [d.to_dict() for d in devices]}


@mcp.tool()
def connect(serial_number: str | None = None, loopback: bool = False) -> dict[str, Any]:
    """Open a SABR radio and initialize it.

    Args:
        serial_number: Serial of the radio to open (first found if omitted).
        loopback: Use the built-in emulated radio instead of USB hardware.
    """
    global _device
    if _device is not None and _device.is_ready:
        return {
            "connected": True,
            "message": "Already connected",
            "serial_number": _device.product_info.serial_number,
        }

    transport = LoopbackDevice() if loopback else USBConnection()
    device = RadioDevice(transport)
    flags = device.setup(serial_number)
    if not flags.ok:
        return _error(flags)

    flags = device.init_device()
    if not flags.ok:
        device.close()
        return _error(flags)

    _device = device
    result: dict[str, Any] = {
        "connected": True,
        "serial_number": device.product_info.serial_number,
        "description": device.product_info.description,
    }
    version, flags = device.get_erm_version()
    if flags.ok:
        result["version"] = version.to_dict()
    return result


@mcp.tool()
def disconnect() -> dict[str, bool]:
    """Stop streaming and close the radio session."""
    global _device
    if _device is None:
        return {"disconnected": True}
    if _device.capture_enabled:
        _device.stop_capture()
    if _device.transmit_enabled:
        _device.stop_transmit()
    _device.close()
    _device = None
    return {"disconnected": True}


@mcp.tool()
def get_status() -> dict[str, Any]:
    """Report the radio's operating state and die temperature."""
    device = _get_device()
    status, flags = device.get_device_status()
    if not flags.ok:
        return _error(flags)
    temperature, _ = device.get_device_temperature()
    return {
        "status": status.name if isinstance(status, DeviceStatus) else status,
        "temperature_c": temperature,
        "capture_enabled": device.capture_enabled,
        "transmit_enabled": device.transmit_enabled,
        "iq_stream_size": device.iq_stream_size,
    }


@mcp.tool()
def reset_device() -> dict[str, Any]:
    """Reset and re-initialize the radio. Settings may revert to defaults."""
    return _result(_get_device().reset_device(), reset=True)


@mcp.tool()
def get_version() -> dict[str, Any]:
    """Read ERM software/hardware versions, FPGA type and recovery-mode flag."""
    version, flags = _get_device().get_erm_version()
    return _result(flags, **version.to_dict())


@mcp.tool()
def get_temperature() -> dict[str, Any]:
    """Read the radio's die temperature in degrees Celsius."""
    temperature, flags = _get_device().get_device_temperature()
    return _result(flags, temperature_c=temperature)


# ─── TUNING TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def get_frequency(channel: int = 0) -> dict[str, Any]:
    """Read the LO (center) frequency of a channel in Hz.

    Args:
        channel: Radio channel 0-3.
    """
    frequency, flags = _get_device().get_lo_frequency(channel)
    return _result(flags, channel=channel, frequency_hz=frequency)


@mcp.tool()
def set_frequency(frequency_hz: int, channel: int = 0) -> dict[str, Any]:
    """Tune the LO (center) frequency of a channel.

    Args:
        frequency_hz: 70 MHz to 6 GHz.
        channel: Radio channel 0-3.
    """
    device = _get_device()
    flags = device.set_lo_frequency(channel, frequency_hz)
    if flags == ErrorFlags.INVALID_PARAMETER:
        return {
            **_error(flags),
            "message": f"Frequency must be {MIN_LO_FREQUENCY}-{MAX_LO_FREQUENCY} Hz",
        }
    if not flags.ok:
        return _error(flags)
    return get_frequency(channel)


@mcp.tool()
def get_sample_rate(channel: int = 0) -> dict[str, Any]:
    """Read the sample rate of a channel in samples per second."""
    rate, flags = _get_device().get_sample_rate(channel)
    return _result(flags, channel=channel, sample_rate=rate)


@mcp.tool()
def set_sample_rate(sample_rate: int, channel: int = 0) -> dict[str, Any]:
    """Set the sample rate of a channel.

    Args:
        sample_rate: Samples per second, e.g. 1920000 or 30720000.
        channel: Radio channel 0-3.
    """
    flags = _get_device().set_sample_rate(channel, sample_rate)
    if not flags.ok:
        return _error(flags)
    return get_sample_rate(channel)


@mcp.tool()
def get_bandwidth(channel: int = 0) -> dict[str, Any]:
    """Read the complex (IQ) bandwidth of a channel in Hz."""
    bandwidth, flags = _get_device().get_complex_bandwidth(channel)
    return _result(flags, channel=channel, bandwidth_hz=bandwidth)


@mcp.tool()
def set_bandwidth(bandwidth_hz: int, channel: int = 0) -> dict[str, Any]:
    """Set the complex (IQ) bandwidth of a channel in Hz."""
    flags = _get_device().set_complex_bandwidth(channel, bandwidth_hz)
    if not flags.ok:
        return _error(flags)
    return get_bandwidth(channel)


# ─── GAIN TOOLS ───────────────────────────────────────────────────────

@mcp.tool()
def get_gain(channel: int = 0) -> dict[str, Any]:
    """Read the gain mode and manual gain (dB) of a receive channel."""
    device = _get_device()
    mode, flags = device.get_gain_mode(channel)
    if not flags.ok:
        return _error(flags)
    gain, flags = device.get_gain(channel)
    return _result(
        flags,
        channel=channel,
        mode=mode.name.lower() if isinstance(mode, RadioGainMode) else mode,
        gain_db=gain,
    )


@mcp.tool()
def set_gain(gain_db: int, channel: int = 0) -> dict[str, Any]:
    """Set manual gain in dB. Only valid in manual gain mode."""
    flags = _get_device().set_gain(channel, gain_db)
    if not flags.ok:
        return _error(flags)
    return get_gain(channel)


@mcp.tool()
def set_gain_mode(mode: str, channel: int = 0) -> dict[str, Any]:
    """Select the gain control algorithm.

    Args:
        mode: One of 'manual', 'slow_agc', 'fast_agc'.
        channel: Radio channel 0-3.
    """
    try:
        gain_mode = RadioGainMode[mode.upper()]
    except KeyError:
        valid = [m.name.lower() for m in RadioGainMode]
        return {"error": f"Unknown gain mode '{mode}'. Valid: {valid}"}
    flags = _get_device().set_gain_mode(channel, gain_mode)
    if not flags.ok:
        return _error(flags)
    return get_gain(channel)


@mcp.tool()
def get_attenuation(channel: int = 1) -> dict[str, Any]:
    """Read the transmit attenuation of a transmit channel in dB."""
    attenuation, flags = _get_device().get_transmit_attenuation(channel)
    return _result(flags, channel=channel, attenuation_db=attenuation)


@mcp.tool()
def set_attenuation(attenuation_db: float, channel: int = 1) -> dict[str, Any]:
    """Set the transmit attenuation of a transmit channel.

    Args:
        attenuation_db: 0.0 to 89.75 dB.
        channel: Radio channel 0-3 (normally a transmit channel).
    """
    flags = _get_device().set_transmit_attenuation(channel, attenuation_db)
    if flags == ErrorFlags.INVALID_PARAMETER:
        return {
            **_error(flags),
            "message": f"Attenuation must be {MIN_ATTENUATION}-{MAX_ATTENUATION} dB",
        }
    if not flags.ok:
        return _error(flags)
    return get_attenuation(channel)


# ─── MULTIPLEX / STREAMING TOOLS ──────────────────────────────────────

@mcp.tool()
def get_multiplex_mode() -> dict[str, Any]:
    """Read TDM/FDM mode and the active IQ channel configuration."""
    mode, flags = _get_device().get_multiplex_mode()
    config = mode.channel_config
    return _result(
        flags,
        tdm=mode.is_tdm,
        channel_config=config.name if isinstance(config, IQChannelConfig) else config,
    )


@mcp.tool()
def set_multiplex_mode(tdm: bool, channel_config: str = "DEFAULT") -> dict[str, Any]:
    """Select TDM or FDM and how many IQ channels are active.

    Args:
        tdm: True for TDM (TX and RX never simultaneous), False for FDM.
        channel_config: e.g. 'DEFAULT' (R1T1), 'R2T0', 'R1T2'. Support varies by product.
    """
    try:
        config = IQChannelConfig[channel_config.upper()]
    except KeyError:
        valid = [c.name for c in IQChannelConfig]
        return {"error": f"Unknown channel config '{channel_config}'. Valid: {valid}"}
    flags = _get_device().set_multiplex_mode(tdm, config)
    if not flags.ok:
        return _error(flags)
    return get_multiplex_mode()


@mcp.tool()
def start_capture() -> dict[str, Any]:
    """Start streaming received IQ samples."""
    return _result(_get_device().start_capture(), capturing=True)


@mcp.tool()
def stop_capture() -> dict[str, Any]:
    """Stop streaming received IQ samples."""
    return _result(_get_device().stop_capture(), capturing=False)


@mcp.tool()
def start_transmit() -> dict[str, Any]:
    """Start transmitting IQ samples."""
    return _result(_get_device().start_transmit(), transmitting=True)


@mcp.tool()
def stop_transmit() -> dict[str, Any]:
    """Stop transmitting IQ samples."""
    return _result(_get_device().stop_transmit(), transmitting=False)


@mcp.tool()
def capture_samples(num_samples: int = 1024) -> dict[str, Any]:
    """Read a block of IQ samples and summarize it.

    Args:
        num_samples: Number of complex samples to read (4 bytes each).
    """
    if num_samples <= 0:
        return {"error": "num_samples must be positive"}
    raw, flags = _get_device().receive_samples(num_samples * BYTES_PER_SAMPLE)
    if not flags.ok:
        return _error(flags)
    samples = unpack_iq(raw)
    power = sum(abs(s) ** 2 for s in samples) / len(samples) if samples else 0.0
    return {
        "num_samples": len(samples),
        "mean_power": power,
        "peak": max((abs(s) for s in samples), default=0.0),
        "head": [[int(s.real), int(s.imag)] for s in samples[:8]],
    }


@mcp.tool()
def transmit_tone(
    cycles: int = 8, amplitude: int = 8192, num_samples: int = 1024
) -> dict[str, Any]:
    """Send one block of a complex sinusoid on the sample pipe.

    Args:
        cycles: Full periods of the tone within the block.
        amplitude: Peak I/Q amplitude, up to 32767.
        num_samples: Block length in samples.
    """
    if num_samples <= 0 or not 0 < amplitude <= 32767:
        return {"error": "num_samples must be positive and amplitude 1-32767"}
    tone = [
        amplitude * cmath.exp(2j * math.pi * cycles * n / num_samples)
        for n in range(num_samples)
    ]
    flags = _get_device().transmit_samples(pack_iq(tone))
    return _result(flags, num_samples=num_samples, bytes=num_samples * BYTES_PER_SAMPLE)


# ─── RESOURCES ────────────────────────────────────────────────────────

@mcp.resource("sabr://device/info")
def resource_device_info() -> str:
    """Serial number, description and connection state."""
    if _device is None or not _device.is_ready:
        return json.dumps({"connected": False})

    info = _device.product_info
    return json.dumps({
        "connected": True,
        "serial_number": info.serial_number,
        "description": info.description,
    })


@mcp.resource("sabr://device/status")
def resource_device_status() -> str:
    """Connection and streaming state."""
    connected = _device is not None and _device.is_ready
    if not connected:
        return json.dumps({"connected": False})
    return json.dumps({
        "connected": True,
        "capture_enabled": _device.capture_enabled,
        "transmit_enabled": _device.transmit_enabled,
        "iq_stream_size": _device.iq_stream_size,
    })


@mcp.resource("sabr://catalog/commands")
def resource_command_catalog() -> str:
    """Command types and their header ID bit patterns."""
    commands = [
        {"name": cmd.name, "id": f"0x{cmd_id:03X}"}
        for cmd, cmd_id in COMMAND_IDS.items()
    ]
    return json.dumps({"commands": commands, "count": len(commands)})


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
