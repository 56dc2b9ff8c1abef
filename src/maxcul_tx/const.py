#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) protocol decoder & encoder for culfw transceivers."""

from __future__ import annotations

import re
from decimal import Decimal
from enum import EnumCheck, IntEnum, IntFlag, StrEnum, verify
from typing import Final

__dev_mode__ = False  # NOTE: this is const.py
DEV_MODE = __dev_mode__


# used by the frame codec...
MAX_MARKER: Final = "Z"  # culfw prefixes every MAX! frame with this

HEADER_LEN: Final[int] = 10  # bytes after the length byte, before the payload

FRAME_REGEX: Final = re.compile(r"^[0-9A-Fa-f]*$")

DEFAULT_CONTROLLER_ADDR: Final = "010203"  # our own address on the radio network
DEFAULT_GROUP_ID: Final[int] = 0x00

MIN_TEMPERATURE: Final = Decimal("4.5")  # aka OFF
MAX_TEMPERATURE: Final = Decimal("30.5")  # aka ON
OFF_TEMPERATURE: Final = MIN_TEMPERATURE
ON_TEMPERATURE: Final = MAX_TEMPERATURE


# used by the binding...
DEFAULT_PAIR_MODE_TIMEOUT: Final[float] = 60.0  # seconds

SZ_PAIR_MODE_TIMEOUT: Final = "pair_mode_timeout"


# used by transport...
MIN_INTER_WRITE_GAP: Final[float] = 0.05  # seconds

MAX_DUTY_CYCLE_RATE: Final[float] = 0.01  # 868MHz band, 1% per hour
DUTY_CYCLE_DURATION: Final[int] = 3600  # seconds, the sliding observation window

CUL_SEND: Final = "Zs"  # send with the (1s) wake-up preamble
CUL_SEND_FAST: Final = "Zf"  # send without a preamble, e.g. replies
CUL_RECV_ENABLE: Final = "Zr"  # enable MAX! receive mode
CUL_REPORT_RSSI: Final = "X21"  # append an RSSI byte to each received frame
CUL_NO_CREDIT: Final = "LOVF"  # no send credit (duty cycle)

DEFAULT_INIT_CMDS: Final[tuple[str, ...]] = (CUL_RECV_ENABLE,)


# used by parsers...
SZ_BATTERY_LOW: Final = "battery_low"
SZ_DESIRED_TEMP: Final = "desired_temp"
SZ_DEVICE_TYPE: Final = "device_type"
SZ_DISPLAY_ACTUAL_TEMP: Final = "display_actual_temp"
SZ_DST_ACTIVE: Final = "dst_active"
SZ_FIRMWARE_VERSION: Final = "firmware_version"
SZ_IS_OPEN: Final = "is_open"
SZ_IS_PRESSED: Final = "is_pressed"
SZ_LAN_GATEWAY: Final = "lan_gateway"
SZ_LOCKED: Final = "locked"
SZ_MEASURED_TEMP: Final = "measured_temp"
SZ_MODE: Final = "mode"
SZ_PAYLOAD: Final = "payload"
SZ_RF_ERROR: Final = "rf_error"
SZ_SERIAL: Final = "serial"
SZ_TEST_RESULT: Final = "test_result"
SZ_UNTIL: Final = "until"
SZ_VALVE_POS: Final = "valve_pos"


@verify(EnumCheck.UNIQUE)
class MsgType(StrEnum):
    """The MAX! message type discriminant (as the hex of the type byte)."""

    PAIR_PING = "00"
    PAIR_PONG = "01"
    ACK = "02"
    TIME_INFORMATION = "03"
    CONFIG_WEEK_PROFILE = "10"
    CONFIG_TEMPERATURES = "11"
    CONFIG_VALVE = "12"
    ADD_LINK_PARTNER = "20"
    REMOVE_LINK_PARTNER = "21"
    SET_GROUP_ID = "22"
    REMOVE_GROUP_ID = "23"
    SHUTTER_CONTACT_STATE = "30"
    SET_TEMPERATURE = "40"
    WALL_THERMOSTAT_CONTROL = "42"
    SET_COMFORT_TEMPERATURE = "43"
    SET_ECO_TEMPERATURE = "44"
    PUSH_BUTTON_STATE = "50"
    THERMOSTAT_STATE = "60"
    WALL_THERMOSTAT_STATE = "70"
    SET_DISPLAY_ACTUAL_TEMPERATURE = "82"
    RESET = "F0"
    WAKE_UP = "F1"
    UNRECOGNIZED = "--"  # any other value, the raw value is kept by the frame

    def __str__(self) -> str:
        return self.name


class FrameFlag(IntFlag):
    """The flags byte of a frame."""

    NONE = 0x00
    IS_REPLY = 0x02  # e.g. Ack, PairPong
    TO_GROUP = 0x04  # dst is the group, not a single device


@verify(EnumCheck.UNIQUE)
class TempMode(IntEnum):
    """The control mode of a thermostat (the two MSBs of a setpoint byte)."""

    AUTO = 0
    MANUAL = 1
    TEMPORARY = 2  # aka vacation, has an until
    BOOST = 3


@verify(EnumCheck.UNIQUE)
class DevRole(StrEnum):
    """The role of a logical device (item), as configured by the host."""

    PAIRING_CONTROL = "pair_mode"
    RADIATOR_THERMOSTAT = "radiator_thermostat"
    RADIATOR_THERMOSTAT_PLUS = "radiator_thermostat_plus"
    WALL_THERMOSTAT = "wall_thermostat"


@verify(EnumCheck.UNIQUE)
class DevFeature(StrEnum):
    """The feature of a logical device that an item is bound to."""

    THERMOSTAT = "thermostat"  # setpoint, read/write
    PAIRING = "pairing"
    TEMPERATURE = "temperature"  # measured temp, read only
    VALVE_POS = "valve_pos"  # read only
    BATTERY = "battery"  # low battery, read only


@verify(EnumCheck.UNIQUE)
class DevType(IntEnum):
    """The device type byte of a PairPing."""

    CUBE = 0
    RADIATOR_THERMOSTAT = 1
    RADIATOR_THERMOSTAT_PLUS = 2
    WALL_THERMOSTAT = 3
    SHUTTER_CONTACT = 4
    PUSH_BUTTON = 5


THERMOSTAT_ROLES: Final[tuple[DevRole, ...]] = (
    DevRole.RADIATOR_THERMOSTAT,
    DevRole.RADIATOR_THERMOSTAT_PLUS,
    DevRole.WALL_THERMOSTAT,
)

ROLE_FEATURES: Final[dict[DevRole, tuple[DevFeature, ...]]] = {
    DevRole.PAIRING_CONTROL: (DevFeature.PAIRING,),
    DevRole.RADIATOR_THERMOSTAT: (
        DevFeature.THERMOSTAT,
        DevFeature.TEMPERATURE,
        DevFeature.VALVE_POS,
        DevFeature.BATTERY,
    ),
    DevRole.RADIATOR_THERMOSTAT_PLUS: (
        DevFeature.THERMOSTAT,
        DevFeature.TEMPERATURE,
        DevFeature.VALVE_POS,
        DevFeature.BATTERY,
    ),
    DevRole.WALL_THERMOSTAT: (
        DevFeature.THERMOSTAT,
        DevFeature.TEMPERATURE,
        DevFeature.BATTERY,
    ),
}

DEV_TYPE_ROLE_MAP: Final[dict[DevType, DevRole]] = {
    DevType.RADIATOR_THERMOSTAT: DevRole.RADIATOR_THERMOSTAT,
    DevType.RADIATOR_THERMOSTAT_PLUS: DevRole.RADIATOR_THERMOSTAT_PLUS,
    DevType.WALL_THERMOSTAT: DevRole.WALL_THERMOSTAT,
}
