"""Tests for the command catalog and payload builders."""

import pytest

from sabr_sdr.models.radio import IQChannelConfig, RadioGainMode
from sabr_sdr.protocol.commands import (
    COMMAND_IDS,
    COMMAND_TYPES,
    CommandType,
    RadioChannel,
    build_attenuation,
    build_enable,
    build_gain,
    build_gain_mode,
    build_lo_frequency,
    build_multiplex_mode,
    build_uint64,
    command_id,
    command_type,
)
from sabr_sdr.protocol.framing import CMD_ID_FIELD_MASK
from sabr_sdr.protocol.payload import PayloadValue


def test_catalog_is_complete():
    """Every command type has exactly one ID and IDs are unique."""
    assert set(COMMAND_IDS) == set(CommandType)
    assert len(set(COMMAND_IDS.values())) == len(CommandType) == 23


@pytest.mark.parametrize("cmd", list(CommandType))
def test_table_is_bidirectional(cmd):
    cmd_id = command_id(cmd)
    assert cmd_id is not None
    assert cmd_id & ~CMD_ID_FIELD_MASK == 0
    assert command_type(cmd_id) is cmd
    assert COMMAND_TYPES[cmd_id] is cmd


def test_ids_start_four_bits_in():
    assert command_id(CommandType.LO_FREQUENCY) == 0x020
    assert command_id(CommandType.SAMPLE_RATE) == 0x060
    assert command_id(CommandType.NOP) == 0x160


def test_unknown_command_lookup():
    assert command_id(99) is None
    assert command_id("gain") is None
    assert command_type(0xFF0) is None


def test_radio_channels():
    assert [c.value for c in RadioChannel] == [0, 1, 2, 3]


def test_build_lo_frequency_bounds():
    assert build_lo_frequency(70_000_000).as_uint64() == 70_000_000
    assert build_lo_frequency(6_000_000_000).as_uint64() == 6_000_000_000
    with pytest.raises(ValueError):
        build_lo_frequency(69_999_999)
    with pytest.raises(ValueError):
        build_lo_frequency(6_000_000_001)


def test_build_attenuation_millidecibels():
    assert build_attenuation(0.0).as_int32() == 0
    assert build_attenuation(89.75).as_int32() == 89_750
    assert build_attenuation(10.5).as_int32() == 10_500


def test_build_attenuation_truncates():
    """Sub-millidecibel fractions are dropped, not rounded."""
    assert build_attenuation(1.2345).as_int32() == 1234


@pytest.mark.parametrize("value", [-0.01, 89.76, 95.0, float("nan")])
def test_build_attenuation_out_of_range(value):
    with pytest.raises(ValueError):
        build_attenuation(value)


def test_build_gain_signed():
    assert build_gain(-3).as_int32() == -3
    assert build_gain(-3).high == 0


def test_build_gain_mode():
    assert build_gain_mode(RadioGainMode.FAST_AGC) == PayloadValue(0, 2)
    with pytest.raises(ValueError):
        build_gain_mode(7)


def test_build_uint64():
    assert build_uint64(61_440_000).as_uint64() == 61_440_000
    with pytest.raises(ValueError):
        build_uint64(-1)
    with pytest.raises(ValueError):
        build_uint64(1 << 64)


def test_build_multiplex_mode():
    """High word is the channel config, low word the TDM flag."""
    assert build_multiplex_mode(True, IQChannelConfig.R2T1) == PayloadValue(9, 1)
    assert build_multiplex_mode(False, 0) == PayloadValue(0, 0)
    with pytest.raises(ValueError):
        build_multiplex_mode(True, 42)


def test_build_enable():
    assert build_enable(True).as_bool() is True
    assert build_enable(False).as_bool() is False
