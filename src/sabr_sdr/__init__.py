"""Host-side control library for SABR software-defined radios."""

from .device import RadioDevice
from .errors import ErrorFlags, ResponseError, TransportError

__version__ = "0.1.0"
