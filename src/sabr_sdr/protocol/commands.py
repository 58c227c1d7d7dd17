"""Command catalog and per-command payload builders.

Each command type is bound to a fixed ID occupying bits 4..11 of the frame
header. The table below is the single source of truth in both directions;
the IDs are stable across host implementations.

Payload builders validate host-side values and raise ``ValueError`` before
anything is framed or sent.
"""

from __future__ import annotations

import math
from enum import IntEnum

from .payload import PayloadValue
from ..models.radio import IQChannelConfig, RadioGainMode


class CommandType(IntEnum):
    """Operations understood by the radio's command pipe."""

    INIT_DEVICE = 0
    CAPTURE_ENABLE = 1
    LO_FREQUENCY = 2
    GAIN = 3
    GAIN_MODE = 4
    BANDWIDTH = 5
    SAMPLE_RATE = 6
    IR_FILTER_CFG = 7
    TRANSMIT_ENABLE = 8
    DEVICE_STATUS = 9
    MULTIPLEX_MODE = 10
    RESET = 11
    REFERENCE_SOURCE = 12
    IR_FILTER_USE = 13
    AGC_PARAMS = 14
    CMD_COUNTER = 15
    CHIPSET_ID = 16
    FIRMWARE_UPDATE = 17
    TEMPERATURE = 18
    ERM_VERSION = 19
    DEBUG_B = 20
    DEBUG_A = 21
    NOP = 22


class RadioChannel(IntEnum):
    """Header channel field. RX/TX assignment is product specific."""

    ONE = 0    # RX1
    TWO = 1    # TX1
    THREE = 2  # RX2
    FOUR = 3   # TX2


COMMAND_IDS: dict[CommandType, int] = {
    CommandType.INIT_DEVICE: 0x000,
    CommandType.CAPTURE_ENABLE: 0x010,
    CommandType.LO_FREQUENCY: 0x020,
    CommandType.GAIN: 0x030,
    CommandType.GAIN_MODE: 0x040,
    CommandType.BANDWIDTH: 0x050,
    CommandType.SAMPLE_RATE: 0x060,
    CommandType.IR_FILTER_CFG: 0x070,
    CommandType.TRANSMIT_ENABLE: 0x080,
    CommandType.DEVICE_STATUS: 0x090,
    CommandType.MULTIPLEX_MODE: 0x0A0,
    CommandType.RESET: 0x0B0,
    CommandType.REFERENCE_SOURCE: 0x0C0,
    CommandType.IR_FILTER_USE: 0x0D0,
    CommandType.AGC_PARAMS: 0x0E0,
    CommandType.CMD_COUNTER: 0x0F0,
    CommandType.CHIPSET_ID: 0x100,
    CommandType.FIRMWARE_UPDATE: 0x110,
    CommandType.TEMPERATURE: 0x120,
    CommandType.ERM_VERSION: 0x130,
    CommandType.DEBUG_B: 0x140,
    CommandType.DEBUG_A: 0x150,
    CommandType.NOP: 0x160,
}

COMMAND_TYPES: dict[int, CommandType] = {
    cmd_id: cmd for cmd, cmd_id in COMMAND_IDS.items()
}

# Host-side parameter limits
MIN_LO_FREQUENCY = 70_000_000
MAX_LO_FREQUENCY = 6_000_000_000
MIN_ATTENUATION = 0.0
MAX_ATTENUATION = 89.75
UINT64_MAX = (1 << 64) - 1


def command_id(command: CommandType) -> int | None:
    """Header bit pattern for ``command``, or None if it is not in the catalog."""
    try:
        return COMMAND_IDS.get(command)
    except TypeError:
        return None


def command_type(cmd_id: int) -> CommandType | None:
    """Reverse lookup of a header command-ID field."""
    return COMMAND_TYPES.get(cmd_id)


def build_enable(enabled: bool) -> PayloadValue:
    """Payload for CaptureEnable / TransmitEnable."""
    return PayloadValue.from_bool(enabled)


def build_lo_frequency(frequency: int) -> PayloadValue:
    """Build an LO frequency payload.

    Args:
        frequency: Center frequency in Hz, 70 MHz to 6 GHz inclusive.
    """
    if not MIN_LO_FREQUENCY <= frequency <= MAX_LO_FREQUENCY:
        raise ValueError(
            f"LO frequency must be {MIN_LO_FREQUENCY}-{MAX_LO_FREQUENCY} Hz, "
            f"got {frequency}"
        )
    return PayloadValue.from_uint64(int(frequency))


def build_gain(gain: int) -> PayloadValue:
    """Build a manual gain payload (dB, signed)."""
    return PayloadValue.from_int32(int(gain))


def build_gain_mode(mode: RadioGainMode | int) -> PayloadValue:
    """Build a gain control mode payload."""
    return PayloadValue.from_int32(RadioGainMode(mode))


def build_attenuation(attenuation: float) -> PayloadValue:
    """Build a transmit attenuation payload.

    The wire carries millidecibels; the fractional part below 1 mdB is
    truncated.

    Args:
        attenuation: Attenuation in dB, 0.0 to 89.75 inclusive.
    """
    if math.isnan(attenuation) or not (
        MIN_ATTENUATION <= attenuation <= MAX_ATTENUATION
    ):
        raise ValueError(
            f"Attenuation must be {MIN_ATTENUATION}-{MAX_ATTENUATION} dB, "
            f"got {attenuation}"
        )
    return PayloadValue.from_int32(int(attenuation * 1000))


def build_uint64(value: int) -> PayloadValue:
    """Build a 64-bit payload for sample rate and bandwidth commands."""
    if not 0 <= value <= UINT64_MAX:
        raise ValueError(f"Value must fit in an unsigned 64-bit word, got {value}")
    return PayloadValue.from_uint64(int(value))


def build_multiplex_mode(
    is_tdm: bool, channel_config: IQChannelConfig | int
) -> PayloadValue:
    """Build a multiplex mode payload.

    High word holds the IQ channel configuration, low word the TDM flag
    (1 = TDM, 0 = FDM).
    """
    return PayloadValue(IQChannelConfig(channel_config), 1 if is_tdm else 0)
