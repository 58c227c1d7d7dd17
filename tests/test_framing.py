"""Tests for command packet building, parsing and serialization."""

import pytest

from sabr_sdr.errors import ResponseError
from sabr_sdr.protocol.commands import CommandType, RadioChannel
from sabr_sdr.protocol.framing import (
    ACK_NACK_FIELD_MASK,
    CHECKSUM_FIELD_MASK,
    PACKET_PREFIX,
    PACKET_SIZE,
    PACKET_SUFFIX,
    CommandPacket,
    acknowledge,
    calculate_checksum,
)
from sabr_sdr.protocol.payload import PayloadValue


def test_build_header_fields():
    """Prefix | set bit | command ID | channel."""
    packet = CommandPacket.build(CommandType.SAMPLE_RATE, RadioChannel.THREE, True)
    assert packet.header == 0xA5010062
    assert packet.is_set
    assert packet.command_type is CommandType.SAMPLE_RATE
    assert packet.channel == 2


def test_build_get_header():
    packet = CommandPacket.build(CommandType.TEMPERATURE, 0, False)
    assert packet.header == PACKET_PREFIX | 0x120
    assert not packet.is_set


def test_build_footer_carries_suffix_and_checksum():
    payload = PayloadValue.from_uint64(1_000_000)
    packet = CommandPacket.build(CommandType.SAMPLE_RATE, 0, True, payload)
    assert packet.footer & 0xFF000000 == PACKET_SUFFIX
    assert packet.footer & CHECKSUM_FIELD_MASK == calculate_checksum(
        packet.header, payload, PACKET_SUFFIX
    )
    assert packet.valid
    assert packet.error is ResponseError.NONE


def test_serialized_layout():
    payload = PayloadValue(0x11223344, 0x55667788)
    packet = CommandPacket.build(CommandType.LO_FREQUENCY, 1, True, payload)
    data = packet.to_bytes()
    assert len(data) == PACKET_SIZE
    assert data[0:4] == packet.header.to_bytes(4, "big")
    assert data[4:12] == bytes.fromhex("1122334455667788")
    assert data[12:16] == packet.footer.to_bytes(4, "big")


@pytest.mark.parametrize("cmd", list(CommandType))
@pytest.mark.parametrize("is_set", [True, False])
def test_built_packet_parses_valid(cmd, is_set):
    """A recognized request parses back from its own bytes as valid."""
    packet = CommandPacket.build(cmd, RadioChannel.TWO, is_set, PayloadValue(3, 4))
    parsed = CommandPacket.from_bytes(packet.to_bytes())
    assert parsed.valid
    assert parsed.error is ResponseError.NONE
    assert parsed.command_type is cmd
    assert parsed.payload == PayloadValue(3, 4)


def test_unrecognized_command_is_framed_as_nop():
    packet = CommandPacket.build(99, 0, False)
    assert not packet.valid
    assert packet.error is ResponseError.COMMAND_NOT_RECOGNIZED
    assert packet.command_type is CommandType.NOP


def test_single_bit_flip_is_never_valid():
    """Every single-bit corruption of a valid frame is rejected."""
    frame = CommandPacket.build(
        CommandType.LO_FREQUENCY, 1, True, PayloadValue.from_uint64(2_400_000_000)
    ).to_bytes()
    for bit in range(PACKET_SIZE * 8):
        corrupted = bytearray(frame)
        corrupted[bit // 8] ^= 0x80 >> (bit % 8)
        parsed = CommandPacket.from_bytes(bytes(corrupted))
        assert not parsed.valid, f"bit {bit} flip accepted"


def _framed(header: int, payload: PayloadValue, footer_delimiter: int) -> CommandPacket:
    """Parse a frame with a correct checksum for arbitrary delimiters."""
    footer = footer_delimiter | calculate_checksum(header, payload, footer_delimiter)
    return CommandPacket.parse(header, payload, footer)


def test_parse_bad_checksum():
    packet = CommandPacket.build(CommandType.GAIN, 0, False)
    footer = packet.footer ^ 0x0001
    parsed = CommandPacket.parse(packet.header, packet.payload, footer)
    assert parsed.error is ResponseError.CHECKSUM_FAILURE
    assert not parsed.valid


def test_parse_bad_prefix():
    header = 0x5A000030
    parsed = _framed(header, PayloadValue(), PACKET_SUFFIX)
    assert parsed.error is ResponseError.FRAMING_ERROR


def test_parse_bad_suffix():
    parsed = _framed(PACKET_PREFIX | 0x030, PayloadValue(), 0x12000000)
    assert parsed.error is ResponseError.FRAMING_ERROR


def test_parse_not_acknowledged():
    parsed = _framed(PACKET_PREFIX | ACK_NACK_FIELD_MASK | 0x030, PayloadValue(), PACKET_SUFFIX)
    assert parsed.error is ResponseError.NOT_ACKNOWLEDGED
    assert not parsed.acknowledged


def test_checksum_is_checked_before_framing():
    """A frame that is both misframed and corrupt reports the checksum."""
    header = 0x00000030
    footer = 0x00000000 | (calculate_checksum(header, PayloadValue(), 0) ^ 0xFFFF)
    parsed = CommandPacket.parse(header, PayloadValue(), footer)
    assert parsed.error is ResponseError.CHECKSUM_FAILURE


def test_prefix_is_checked_before_ack():
    header = ACK_NACK_FIELD_MASK | 0x030
    parsed = _framed(header, PayloadValue(), PACKET_SUFFIX)
    assert parsed.error is ResponseError.FRAMING_ERROR


def test_acknowledge_echoes_header():
    request = CommandPacket.build(CommandType.GAIN, 2, False)
    response = acknowledge(request, PayloadValue.from_int32(20))
    assert response.valid
    assert response.header == request.header
    assert response.payload.as_int32() == 20


def test_acknowledge_nack():
    request = CommandPacket.build(CommandType.GAIN, 2, True, PayloadValue.from_int32(20))
    response = acknowledge(request, acknowledged=False)
    assert response.error is ResponseError.NOT_ACKNOWLEDGED
    assert response.payload == request.payload
    # The NACK frame itself is well formed
    assert response.footer & CHECKSUM_FIELD_MASK == calculate_checksum(
        response.header, response.payload, response.footer
    )


def test_not_responding_packet():
    request = CommandPacket.build(CommandType.INIT_DEVICE, 0, True)
    failed = CommandPacket.not_responding(request)
    assert not failed.valid
    assert failed.error is ResponseError.DEVICE_NOT_RESPONDING
    assert failed.header == request.header


def test_from_bytes_wrong_length():
    with pytest.raises(ValueError):
        CommandPacket.from_bytes(b"\x00" * 15)


def test_packet_repr():
    r = repr(CommandPacket.build(CommandType.ERM_VERSION, 0, False))
    assert "ERM_VERSION" in r
    assert "get" in r
