"""Command packet builder and parser for the 16-byte command pipe frame.

Frame layout (all words big-endian)::

    +---------+--------------+-------------+---------+
    | Header  | Payload high | Payload low | Footer  |
    | 4 bytes | 4 bytes      | 4 bytes     | 4 bytes |
    +---------+--------------+-------------+---------+

Header word::

    31..24 prefix 0xA5 | 20 nack | 16 set(1)/get(0) | 11..4 command ID | 1..0 channel

Footer word::

    31..24 suffix 0x5A | 15..0 checksum

- Checksum: CRC-16 over the whole frame with the footer checksum field
  zeroed.
- The ack/nack field is clear for an acknowledged frame; the radio answers
  with the request header echoed and sets the field to reject a command.
  A request built by the host therefore parses as valid.
"""

from __future__ import annotations

from dataclasses import dataclass

from .codec import WORD_SIZE, decode_word, encode_word
from .commands import COMMAND_IDS, CommandType, command_id, command_type
from .payload import PAYLOAD_SIZE, PayloadValue
from ..errors import ResponseError
from ..utils.crc import crc16

PACKET_SIZE = 2 * WORD_SIZE + PAYLOAD_SIZE  # 16

PACKET_DELIMITER_MASK = 0xFF000000
PACKET_PREFIX = 0xA5000000
PACKET_SUFFIX = 0x5A000000

ACK_NACK_FIELD_MASK = 0x00100000
DEV_ACK_RESP = 0x00000000
DEV_NACK_RESP = 0x00100000

SET_GET_CMD_FIELD_MASK = 0x00010000
SET_CMD_BIT = 0x00010000
GET_CMD_BIT = 0x00000000

CMD_ID_FIELD_MASK = 0x00000FF0
CHANNEL_FIELD_MASK = 0x00000003
CHECKSUM_FIELD_MASK = 0x0000FFFF


def calculate_checksum(header: int, payload: PayloadValue, footer: int) -> int:
    """Checksum over header, payload and the footer without its checksum field."""
    data = (
        encode_word(header)
        + payload.to_bytes()
        + encode_word(footer & ~CHECKSUM_FIELD_MASK)
    )
    return crc16(data) & CHECKSUM_FIELD_MASK


@dataclass(frozen=True)
class CommandPacket:
    """One command frame, either outgoing or received.

    Packets are never mutated; each transaction creates one request and
    one response.
    """

    header: int
    payload: PayloadValue
    footer: int
    valid: bool = True
    error: ResponseError = ResponseError.NONE

    @classmethod
    def build(
        cls,
        command: CommandType,
        channel: int,
        is_set: bool,
        payload: PayloadValue | None = None,
    ) -> CommandPacket:
        """Build an outgoing request from application intent.

        An unrecognized ``command`` is framed as a Nop and marked invalid
        with ``COMMAND_NOT_RECOGNIZED``; such a packet must not be sent.
        """
        payload = payload if payload is not None else PayloadValue()
        header = PACKET_PREFIX | (SET_CMD_BIT if is_set else GET_CMD_BIT)
        valid = True
        error = ResponseError.NONE

        cmd_id = command_id(command)
        if cmd_id is None:
            cmd_id = COMMAND_IDS[CommandType.NOP]
            valid = False
            error = ResponseError.COMMAND_NOT_RECOGNIZED
        header |= cmd_id
        header |= int(channel) & CHANNEL_FIELD_MASK

        footer = PACKET_SUFFIX
        footer |= calculate_checksum(header, payload, footer)
        return cls(header, payload, footer, valid, error)

    @classmethod
    def parse(cls, header: int, payload: PayloadValue, footer: int) -> CommandPacket:
        """Reconstruct a received packet and classify its validity.

        Checks run in a fixed order (checksum, prefix, suffix, ack) and stop
        at the first failure.
        """
        if calculate_checksum(header, payload, footer) != footer & CHECKSUM_FIELD_MASK:
            error = ResponseError.CHECKSUM_FAILURE
        elif header & PACKET_DELIMITER_MASK != PACKET_PREFIX:
            error = ResponseError.FRAMING_ERROR
        elif footer & PACKET_DELIMITER_MASK != PACKET_SUFFIX:
            error = ResponseError.FRAMING_ERROR
        elif header & ACK_NACK_FIELD_MASK != DEV_ACK_RESP:
            error = ResponseError.NOT_ACKNOWLEDGED
        else:
            error = ResponseError.NONE
        return cls(header, payload, footer, error is ResponseError.NONE, error)

    @classmethod
    def from_bytes(cls, data: bytes) -> CommandPacket:
        """Slice a 16-byte frame into header/payload/footer and parse it."""
        if len(data) != PACKET_SIZE:
            raise ValueError(f"Command frame must be {PACKET_SIZE} bytes, got {len(data)}")
        header = decode_word(data[0:4])
        payload = PayloadValue.from_bytes(data[4:12])
        footer = decode_word(data[12:16])
        return cls.parse(header, payload, footer)

    @classmethod
    def not_responding(cls, request: CommandPacket) -> CommandPacket:
        """Synthetic failed response standing in for one that never arrived."""
        return cls(
            request.header,
            request.payload,
            request.footer,
            valid=False,
            error=ResponseError.DEVICE_NOT_RESPONDING,
        )

    def to_bytes(self) -> bytes:
        """Serialize to the 16-byte wire frame."""
        return encode_word(self.header) + self.payload.to_bytes() + encode_word(self.footer)

    @property
    def is_set(self) -> bool:
        return self.header & SET_GET_CMD_FIELD_MASK == SET_CMD_BIT

    @property
    def command_type(self) -> CommandType | None:
        return command_type(self.header & CMD_ID_FIELD_MASK)

    @property
    def channel(self) -> int:
        return self.header & CHANNEL_FIELD_MASK

    @property
    def acknowledged(self) -> bool:
        return self.header & ACK_NACK_FIELD_MASK == DEV_ACK_RESP

    def __repr__(self) -> str:
        cmd = self.command_type
        return (
            f"CommandPacket(command={cmd.name if cmd is not None else '?'}, "
            f"channel={self.channel}, {'set' if self.is_set else 'get'}, "
            f"payload={self.payload!r}, valid={self.valid}, error={self.error.name})"
        )


def acknowledge(
    request: CommandPacket,
    payload: PayloadValue | None = None,
    acknowledged: bool = True,
) -> CommandPacket:
    """Build the response a radio sends for ``request``.

    The request header is echoed with the ack/nack field cleared (or set
    for a NACK), carrying ``payload`` (defaults to the request payload) and a
    freshly computed footer.
    """
    payload = payload if payload is not None else request.payload
    header = request.header & ~ACK_NACK_FIELD_MASK
    header |= DEV_ACK_RESP if acknowledged else DEV_NACK_RESP
    footer = PACKET_SUFFIX | calculate_checksum(header, payload, PACKET_SUFFIX)
    return CommandPacket.parse(header, payload, footer)
