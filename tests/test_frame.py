#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

Test the decoding of transceiver lines into frames.
"""

import pytest

from maxcul_tx import Frame, FrameFlag, MsgType, decode_line
from maxcul_tx import exceptions as exc
from maxcul_tx.moritz import MSG_SCHEMA_VERSION, payload_is_valid

from .common import PAIR_PING_LINE, THERMOSTAT_STATE_LINE

SET_TEMP_LINE = "Z0b0000400102030a1b2c006b"


@pytest.mark.parametrize(
    "line", ["", "V 1.67 CUL868", "LOVF", "00", " * hello", "z0b0000400102030a1b2c006b"]
)
def test_decode_not_a_frame(line: str) -> None:
    assert decode_line(line) is None


def test_decode_set_temperature() -> None:
    frame = decode_line(SET_TEMP_LINE)

    assert frame is not None
    assert frame.len_ == 11
    assert frame.seqn == 0
    assert frame.flags == FrameFlag.NONE
    assert frame.msg_type == MsgType.SET_TEMPERATURE
    assert frame.type_code == "40"
    assert frame.src.id == "010203"
    assert frame.dst.id == "0A1B2C"
    assert frame.group_id == 0
    assert frame.payload == "6B"
    assert frame.schema_version == MSG_SCHEMA_VERSION


def test_decode_is_case_insensitive() -> None:
    assert decode_line(SET_TEMP_LINE) == decode_line(SET_TEMP_LINE.upper())
    assert repr(decode_line(SET_TEMP_LINE.upper())) == SET_TEMP_LINE


def test_decode_strips_line_endings() -> None:
    assert decode_line(f"{SET_TEMP_LINE}\r\n") == decode_line(SET_TEMP_LINE)


def test_decode_thermostat_state() -> None:
    frame = decode_line(THERMOSTAT_STATE_LINE)

    assert frame is not None
    assert frame.msg_type == MsgType.THERMOSTAT_STATE
    assert frame.src.id == "0A1B2C"
    assert frame.dst.id == "010203"
    assert frame.payload == "19002B00D7"


def test_decode_pair_ping() -> None:
    frame = decode_line(PAIR_PING_LINE)

    assert frame is not None
    assert frame.msg_type == MsgType.PAIR_PING
    assert frame.dst.is_null


def test_decode_flags() -> None:
    frame = decode_line("Z0E0202020A1B2C010203000119002B")  # an ack
    assert frame.is_reply and not frame.to_group

    frame = decode_line("Z0b0004400102030d0e0f017d")  # to a group
    assert frame.to_group and not frame.is_reply


def test_decode_unrecognised_type() -> None:
    frame = decode_line("Z0b0000990102030a1b2c006b")

    assert frame.msg_type == MsgType.UNRECOGNIZED
    assert frame.type_code == "99"  # the raw value is retained
    assert "unrecognized_99" in str(frame)


@pytest.mark.parametrize(
    "line",
    [
        "Z0b0000400102030a1b2c006",  # odd length
        "Z0b0000400102030a1b2c00XY",  # not hex
        "Z0a000040010203000000",  # too short (no group id)
        "Z",  # no header at all
        "Z0c0000400102030a1b2c006b",  # declared length > actual
        "Z0a0000400102030a1b2c006b",  # declared length < actual
    ],
)
def test_decode_malformed(line: str) -> None:
    with pytest.raises(exc.MalformedFrame):
        decode_line(line)


def test_decode_invalid_payload() -> None:
    # a set_temperature is 1 (or 4) bytes, never 2
    with pytest.raises(exc.FramePayloadInvalid):
        decode_line("Z0c0000400102030a1b2c006b00")

    # a pair_ping is always 13 bytes
    with pytest.raises(exc.FramePayloadInvalid):
        decode_line("Z0c000000112233000000001001")


def test_payload_is_valid() -> None:
    assert payload_is_valid(MsgType.SET_TEMPERATURE, "6B")
    assert payload_is_valid(MsgType.SET_TEMPERATURE, "AB8A1C2F")
    assert not payload_is_valid(MsgType.SET_TEMPERATURE, "")
    assert payload_is_valid(MsgType.RESET, "")
    assert not payload_is_valid(MsgType.RESET, "00")
    assert payload_is_valid(MsgType.UNRECOGNIZED, "0123")


def test_frame_equality_ignores_counter() -> None:
    assert Frame("0B0000400102030A1B2C006B") == Frame("0B0500400102030A1B2C006B")
    assert Frame("0B0000400102030A1B2C006B") != Frame("0B0000400102030A1B2C006C")
