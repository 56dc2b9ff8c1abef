#!/usr/bin/env python3
"""MaxCul RF - the MAX! (Moritz) message type table."""

from __future__ import annotations

import re
from typing import Any, Final

from .const import MsgType

# The table is versioned: a frame is only valid against the version it was decoded with
MSG_SCHEMA_VERSION: Final[int] = 1

SZ_NAME: Final = "name"
SZ_PAYLOAD_REGEX: Final = "payload_regex"


#
########################################################################################
# MSG_TYPES_SCHEMA - all known message types, even if there's no corresponding parser

# Payload regexes are matched against the uppercase hex of the payload (after the
# group id), so ^$ means the message type has no payload.

#
MSG_TYPES_SCHEMA: dict[MsgType, dict[str, Any]] = {
    MsgType.PAIR_PING: {  # firmware, device type, test result, serial (10 chars)
        SZ_NAME: "pair_ping",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{26}$",
    },
    MsgType.PAIR_PONG: {
        SZ_NAME: "pair_pong",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{2}$",
    },
    MsgType.ACK: {  # 01 = ok (+ device state), 81 = invalid command
        SZ_NAME: "ack",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{2}([0-9A-F]{2}){0,8}$",
    },
    MsgType.TIME_INFORMATION: {  # an empty payload is a request
        SZ_NAME: "time_information",
        SZ_PAYLOAD_REGEX: r"^([0-9A-F]{10})?$",
    },
    MsgType.CONFIG_WEEK_PROFILE: {
        SZ_NAME: "config_week_profile",
        SZ_PAYLOAD_REGEX: r"^0[0-6]([0-9A-F]{4}){1,13}$",
    },
    MsgType.CONFIG_TEMPERATURES: {
        SZ_NAME: "config_temperatures",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{14}$",
    },
    MsgType.CONFIG_VALVE: {
        SZ_NAME: "config_valve",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{12}$",
    },
    MsgType.ADD_LINK_PARTNER: {  # address, device type
        SZ_NAME: "add_link_partner",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{6}0[0-5]$",
    },
    MsgType.REMOVE_LINK_PARTNER: {
        SZ_NAME: "remove_link_partner",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{6}0[0-5]$",
    },
    MsgType.SET_GROUP_ID: {
        SZ_NAME: "set_group_id",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{2}$",
    },
    MsgType.REMOVE_GROUP_ID: {
        SZ_NAME: "remove_group_id",
        SZ_PAYLOAD_REGEX: r"^([0-9A-F]{2})?$",
    },
    MsgType.SHUTTER_CONTACT_STATE: {
        SZ_NAME: "shutter_contact_state",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{2}$",
    },
    MsgType.SET_TEMPERATURE: {  # mode|temp (+ until, if temporary)
        SZ_NAME: "set_temperature",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{2}([0-9A-F]{6})?$",
    },
    MsgType.WALL_THERMOSTAT_CONTROL: {  # desired|msb of measured, measured
        SZ_NAME: "wall_thermostat_control",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{4}$",
    },
    MsgType.SET_COMFORT_TEMPERATURE: {
        SZ_NAME: "set_comfort_temperature",
        SZ_PAYLOAD_REGEX: r"^$",
    },
    MsgType.SET_ECO_TEMPERATURE: {
        SZ_NAME: "set_eco_temperature",
        SZ_PAYLOAD_REGEX: r"^$",
    },
    MsgType.PUSH_BUTTON_STATE: {
        SZ_NAME: "push_button_state",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{4}$",
    },
    MsgType.THERMOSTAT_STATE: {  # bits, valve, desired (+ measured, or until)
        SZ_NAME: "thermostat_state",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{6}([0-9A-F]{2}){0,3}$",
    },
    MsgType.WALL_THERMOSTAT_STATE: {  # bits, display, desired (+ null, heater, ...)
        SZ_NAME: "wall_thermostat_state",
        SZ_PAYLOAD_REGEX: r"^[0-9A-F]{6}([0-9A-F]{2}){0,5}$",
    },
    MsgType.SET_DISPLAY_ACTUAL_TEMPERATURE: {  # 00 = setpoint, 04 = actual
        SZ_NAME: "set_display_actual_temperature",
        SZ_PAYLOAD_REGEX: r"^0[04]$",
    },
    MsgType.RESET: {
        SZ_NAME: "reset",
        SZ_PAYLOAD_REGEX: r"^$",
    },
    MsgType.WAKE_UP: {
        SZ_NAME: "wake_up",
        SZ_PAYLOAD_REGEX: r"^([0-9A-F]{2})?$",
    },
}

MSG_TYPE_NAME_LOOKUP: dict[MsgType, str] = {
    k: v[SZ_NAME] for k, v in MSG_TYPES_SCHEMA.items()
}

_PAYLOAD_REGEXES: dict[MsgType, re.Pattern[str]] = {
    k: re.compile(v[SZ_PAYLOAD_REGEX]) for k, v in MSG_TYPES_SCHEMA.items()
}


def payload_is_valid(msg_type: MsgType, payload: str) -> bool:
    """Return True if the (uppercase hex) payload is valid for the message type.

    Unrecognised message types have no constraints.
    """
    if (regex := _PAYLOAD_REGEXES.get(msg_type)) is None:
        return True
    return bool(regex.match(payload))
