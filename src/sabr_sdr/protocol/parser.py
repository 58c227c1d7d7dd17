"""Decoding of response payloads into host values.

Each function here captures the calling convention of one command: which
word holds what, and how the device's units map to the host's.
"""

from __future__ import annotations

from dataclasses import dataclass

from .payload import PayloadValue
from ..models.radio import IQChannelConfig

TEMPERATURE_SENTINEL = -99.0

ERM_SOFTWARE_VERSION_MASK = 0x00007FFF
ERM_RECOVERY_MODE_BIT = 0x00008000
ERM_FPGA_TYPE_SHIFT = 16
ERM_HARDWARE_VERSION_MASK = 0x0000FFFF


@dataclass(frozen=True)
class ERMVersion:
    """Embedded radio module version word from one ERMVersion response.

    High word: software version (bits 0-14), recovery-mode flag (bit 15),
    FPGA type (bits 16-31). Low word: hardware version (bits 0-15).
    """

    software_version: int = 0
    recovery_mode: bool = False
    fpga_type: int = 0
    hardware_version: int = 0

    def to_dict(self) -> dict:
        return {
            "software_version": self.software_version,
            "recovery_mode": self.recovery_mode,
            "fpga_type": self.fpga_type,
            "hardware_version": self.hardware_version,
        }


@dataclass(frozen=True)
class MultiplexMode:
    """Parsed MultiplexMode response."""

    is_tdm: bool = False
    channel_config: IQChannelConfig | int = IQChannelConfig.DEFAULT


def parse_erm_version(payload: PayloadValue) -> ERMVersion:
    high = payload.high
    return ERMVersion(
        software_version=high & ERM_SOFTWARE_VERSION_MASK,
        recovery_mode=bool(high & ERM_RECOVERY_MODE_BIT),
        fpga_type=high >> ERM_FPGA_TYPE_SHIFT,
        hardware_version=payload.low & ERM_HARDWARE_VERSION_MASK,
    )


def parse_multiplex_mode(payload: PayloadValue) -> MultiplexMode:
    """High word is the IQ channel configuration, low word the TDM flag.

    Unknown configuration codes are passed through as plain ints.
    """
    try:
        config: IQChannelConfig | int = IQChannelConfig(payload.high)
    except ValueError:
        config = payload.high
    return MultiplexMode(is_tdm=payload.as_bool(), channel_config=config)


def correct_sample_rate(raw: int) -> int:
    """Undo the radio's off-by-one in reported sample rates.

    Odd rates are nudged to the even neighbour: up when bit 1 is set,
    down otherwise.
    """
    if raw % 2 != 0:
        if raw & 0x02 == 0x02:
            return raw + 1
        return raw - 1
    return raw


def parse_sample_rate(payload: PayloadValue) -> int:
    return correct_sample_rate(payload.as_uint64())


def parse_attenuation(payload: PayloadValue) -> float:
    """Millidecibels on the wire to decibels."""
    return payload.as_int32() / 1000.0


def parse_temperature(payload: PayloadValue) -> float:
    """Millidegrees Celsius on the wire to degrees Celsius."""
    return payload.as_int32() / 1000.0
