"""Error classifications for the SABR command protocol.

Two layers:

- :class:`ResponseError` is produced while validating a single command
  packet (the protocol layer).
- :class:`ErrorFlags` is what every public device operation returns (the
  application layer). Values match the bit assignments used by the SABR
  firmware tooling so they can be logged and compared across hosts.
"""

from __future__ import annotations

from enum import IntEnum


class ResponseError(IntEnum):
    """Validity classification of a command packet."""

    NONE = 0
    CHECKSUM_FAILURE = 1
    FRAMING_ERROR = 2
    NOT_ACKNOWLEDGED = 3
    DEVICE_NOT_RESPONDING = 4
    COMMAND_NOT_RECOGNIZED = 5


class ErrorFlags(IntEnum):
    """Result of a device operation. ``NONE`` means success."""

    NONE = 0
    INVALID_PARAMETER = 1
    OPERATION_UNSUPPORTED = 2
    UNDERFLOW = 4
    OVERFLOW = 8
    RESOURCE_UNAVAILABLE = 16
    PERMISSION_DENIED = 32
    NOT_RESPONDING = 64
    NOT_INITIALIZED = 128
    UNSUCCESSFUL = 256
    ALREADY_RUNNING = 512
    DISPOSED = 1024
    FRAMING_ERROR = 2048
    CHECKSUM_FAILURE = 4096
    INVALID_STATE = 8192
    # Response was rejected for a reason outside the mapped kinds.
    PROTOCOL_ERROR = 16384

    @property
    def ok(self) -> bool:
        return self is ErrorFlags.NONE


# How a rejected response surfaces to the caller.
RESPONSE_ERROR_MAP: dict[ResponseError, ErrorFlags] = {
    ResponseError.CHECKSUM_FAILURE: ErrorFlags.CHECKSUM_FAILURE,
    ResponseError.FRAMING_ERROR: ErrorFlags.FRAMING_ERROR,
    ResponseError.NOT_ACKNOWLEDGED: ErrorFlags.INVALID_STATE,
    ResponseError.DEVICE_NOT_RESPONDING: ErrorFlags.NOT_RESPONDING,
}


def map_response_error(error: ResponseError) -> ErrorFlags:
    """Translate a packet classification into an application error."""
    return RESPONSE_ERROR_MAP.get(error, ErrorFlags.PROTOCOL_ERROR)


class TransportError(IOError):
    """A command or sample pipe transfer failed or timed out."""
