"""Protocol layer: word codec, payloads, command catalog, framing, and response parsing."""

from .payload import PayloadValue
from .commands import CommandType, RadioChannel
from .framing import CommandPacket, PACKET_SIZE, acknowledge
