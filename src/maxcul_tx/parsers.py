#!/usr/bin/env python3
"""MaxCul RF - payload processors.

Each parser is named after the hex of its message type, and returns a dict. Fields
common to many device states:

  :bits: | :field:
  0-1    | mode (auto, manual, temporary, boost)
  3      | dst_active
  4      | lan_gateway
  5      | locked
  6      | rf_error
  7      | battery_low
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from . import exceptions as exc
from .const import (
    SZ_BATTERY_LOW,
    SZ_DESIRED_TEMP,
    SZ_DEVICE_TYPE,
    SZ_DISPLAY_ACTUAL_TEMP,
    SZ_DST_ACTIVE,
    SZ_FIRMWARE_VERSION,
    SZ_IS_OPEN,
    SZ_IS_PRESSED,
    SZ_LAN_GATEWAY,
    SZ_LOCKED,
    SZ_MEASURED_TEMP,
    SZ_MODE,
    SZ_PAYLOAD,
    SZ_RF_ERROR,
    SZ_SERIAL,
    SZ_TEST_RESULT,
    SZ_UNTIL,
    SZ_VALVE_POS,
    DevRole,
    DevType,
    TempMode,
)
from .helpers import (
    hex_to_desired,
    hex_to_measured,
    hex_to_percent,
    hex_to_setpoint,
    hex_to_str,
    hex_to_until,
)

if TYPE_CHECKING:
    from .message import Message


_LOGGER = logging.getLogger(__name__)

SZ_ACKNOWLEDGED = "acknowledged"
SZ_DATETIME = "datetime"
SZ_REQUEST = "request"
SZ_STATE = "state"


def _parse_state_bits(bits: str) -> dict[str, Any]:
    value = int(bits, 16)
    return {
        SZ_MODE: TempMode(value & 0x03),
        SZ_DST_ACTIVE: bool(value & 0x08),
        SZ_LAN_GATEWAY: bool(value & 0x10),
        SZ_LOCKED: bool(value & 0x20),
        SZ_RF_ERROR: bool(value & 0x40),
        SZ_BATTERY_LOW: bool(value & 0x80),
    }


def parse_thermostat_state(payload: str) -> dict[str, Any]:
    """Parse the state of a radiator thermostat (also the tail of its Acks).

    The trailing bytes are the end of a temporary mode, else the measured temp.
    """

    result = _parse_state_bits(payload[:2])
    if len(payload) < 6:
        return result

    result[SZ_VALVE_POS] = hex_to_percent(payload[2:4])
    result[SZ_DESIRED_TEMP] = hex_to_desired(payload[4:6])

    if result[SZ_MODE] == TempMode.TEMPORARY:
        if len(payload) >= 12:
            result[SZ_UNTIL] = hex_to_until(payload[6:12])
    elif len(payload) >= 10:
        result[SZ_MEASURED_TEMP] = hex_to_measured(payload[6:10])

    return result


def parse_wall_thermostat_state(payload: str) -> dict[str, Any]:
    """Parse the state of a wall thermostat (also the tail of its Acks)."""

    result = _parse_state_bits(payload[:2])
    if len(payload) < 6:
        return result

    result[SZ_DISPLAY_ACTUAL_TEMP] = bool(int(payload[2:4], 16) & 0x04)
    result[SZ_DESIRED_TEMP] = hex_to_desired(payload[4:6])

    if len(payload) >= 14:  # null, heater temp, null, temp
        desired_raw, temp = int(payload[4:6], 16), int(payload[12:14], 16)
        measured = (((desired_raw & 0x80) << 1) + temp) / 10
        result[SZ_MEASURED_TEMP] = measured or None

    return result


def parse_ack_state(payload: str, role: DevRole) -> dict[str, Any]:
    """Parse the device state carried by an Ack, which depends upon the device role."""

    if role == DevRole.WALL_THERMOSTAT:
        return parse_wall_thermostat_state(payload)
    return parse_thermostat_state(payload)


# pair_ping
def parser_00(payload: str, msg: Message) -> dict[str, Any]:
    # firmware version, device type, test result, serial number (ASCII)

    firmware = int(payload[:2], 16)
    try:
        dev_type: DevType | int = DevType(int(payload[2:4], 16))
    except ValueError:
        dev_type = int(payload[2:4], 16)

    return {
        SZ_FIRMWARE_VERSION: f"{firmware >> 4}.{firmware & 0x0F}",
        SZ_DEVICE_TYPE: dev_type,
        SZ_TEST_RESULT: int(payload[4:6], 16),
        SZ_SERIAL: hex_to_str(payload[6:26]),
    }


# ack
def parser_02(payload: str, msg: Message) -> dict[str, Any]:
    # 01 is ok, 81 is invalid command; the remainder is the device state

    return {
        SZ_ACKNOWLEDGED: payload[:2] == "01",
        SZ_STATE: payload[2:],
    }


# time_information
def parser_03(payload: str, msg: Message) -> dict[str, Any]:
    if not payload:
        return {SZ_REQUEST: True}

    year, day, hour, mins, secs = (int(payload[i : i + 2], 16) for i in range(0, 10, 2))
    month = ((mins >> 6) << 2) | (secs >> 6)

    return {
        SZ_DATETIME: (
            f"{2000 + year:04d}-{month:02d}-{day:02d}T"
            f"{hour & 0x1F:02d}:{mins & 0x3F:02d}:{secs & 0x3F:02d}"
        )
    }


# shutter_contact_state
def parser_30(payload: str, msg: Message) -> dict[str, Any]:
    value = int(payload, 16)

    return {
        SZ_IS_OPEN: bool(value & 0x02),
        SZ_RF_ERROR: bool(value & 0x40),
        SZ_BATTERY_LOW: bool(value & 0x80),
    }


# set_temperature
def parser_40(payload: str, msg: Message) -> dict[str, Any]:
    mode, desired = hex_to_setpoint(payload[:2])
    result: dict[str, Any] = {SZ_MODE: mode, SZ_DESIRED_TEMP: desired}

    if mode == TempMode.TEMPORARY and len(payload) == 8:
        result[SZ_UNTIL] = hex_to_until(payload[2:8])
    return result


# wall_thermostat_control
def parser_42(payload: str, msg: Message) -> dict[str, Any]:
    desired_raw, measured_raw = int(payload[:2], 16), int(payload[2:4], 16)

    return {
        SZ_DESIRED_TEMP: (desired_raw & 0x7F) / 2,
        SZ_MEASURED_TEMP: (((desired_raw & 0x80) << 1) + measured_raw) / 10,
    }


# push_button_state
def parser_50(payload: str, msg: Message) -> dict[str, Any]:
    bits, onoff = int(payload[:2], 16), int(payload[2:4], 16)

    return {
        SZ_IS_PRESSED: bool(onoff & 0x01),
        SZ_RF_ERROR: bool(bits & 0x40),
        SZ_BATTERY_LOW: bool(bits & 0x80),
    }


# thermostat_state
def parser_60(payload: str, msg: Message) -> dict[str, Any]:
    return parse_thermostat_state(payload)


# wall_thermostat_state
def parser_70(payload: str, msg: Message) -> dict[str, Any]:
    return parse_wall_thermostat_state(payload)


def parser_unknown(payload: str, msg: Message) -> dict[str, Any]:
    # these are generic parsers (pair_pong, config_*, etc.)

    return {SZ_PAYLOAD: payload}


_PAYLOAD_PARSERS = {
    k[7:].upper(): v
    for k, v in locals().items()
    if callable(v) and k.startswith("parser_") and len(k) == 9
}


def parse_payload(msg: Message) -> dict[str, Any]:
    """Parse the payload of a message, using the parser for its message type.

    Will raise FramePayloadInvalid if the parser fails.
    """

    parser = _PAYLOAD_PARSERS.get(msg.type_code, parser_unknown)
    try:
        return parser(msg._pkt.payload, msg)
    except (IndexError, ValueError) as err:
        raise exc.FramePayloadInvalid(
            f"{msg!r} < Unable to parse payload: {err}"
        ) from err
