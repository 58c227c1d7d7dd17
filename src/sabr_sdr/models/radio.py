"""Device-side enumerations and identification records."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class DeviceStatus(IntEnum):
    """Operating state reported by the DeviceStatus command."""

    IDLE_NOT_INITIALIZED = 0
    IDLE_INITIALIZED = 1
    RECEIVING = 2
    TRANSMITTING = 3


class IQChannelConfig(IntEnum):
    """Active receiver/transmitter counts, e.g. R2T1 = two RX, one TX.

    ``DEFAULT`` covers R1T0, R0T1 and R1T1. Not every product supports
    every member.
    """

    DEFAULT = 0
    R2T0 = 1
    R3T0 = 2
    R4T0 = 3
    R0T2 = 4
    R0T3 = 5
    R0T4 = 6
    R1T2 = 7
    R1T3 = 8
    R2T1 = 9
    R2T2 = 10
    R3T1 = 11


class RadioGainMode(IntEnum):
    """Gain control algorithm."""

    MANUAL = 0
    SLOW_AGC = 1  # slow-changing signals (WCDMA, FDD LTE)
    FAST_AGC = 2  # bursty signals (TDD, GSM/EDGE)


@dataclass
class ProductInfo:
    """An attached SABR device found during enumeration."""

    serial_number: str
    description: str = ""

    def to_dict(self) -> dict:
        return {
            "serial_number": self.serial_number,
            "description": self.description,
        }
