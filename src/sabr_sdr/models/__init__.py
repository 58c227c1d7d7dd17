"""Data models for device state and identification."""

from .radio import (
    DeviceStatus,
    IQChannelConfig,
    RadioGainMode,
    ProductInfo,
)
