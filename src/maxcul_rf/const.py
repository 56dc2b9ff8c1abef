#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers."""

from __future__ import annotations

from typing import Final

from maxcul_tx.const import (  # noqa: F401
    DEFAULT_CONTROLLER_ADDR as DEFAULT_CONTROLLER_ADDR,
    DEFAULT_GROUP_ID as DEFAULT_GROUP_ID,
    DEFAULT_PAIR_MODE_TIMEOUT as DEFAULT_PAIR_MODE_TIMEOUT,
    DEV_TYPE_ROLE_MAP as DEV_TYPE_ROLE_MAP,
    ROLE_FEATURES as ROLE_FEATURES,
    SZ_BATTERY_LOW as SZ_BATTERY_LOW,
    SZ_DESIRED_TEMP as SZ_DESIRED_TEMP,
    SZ_DEVICE_TYPE as SZ_DEVICE_TYPE,
    SZ_MEASURED_TEMP as SZ_MEASURED_TEMP,
    SZ_PAIR_MODE_TIMEOUT as SZ_PAIR_MODE_TIMEOUT,
    SZ_SERIAL as SZ_SERIAL,
    SZ_VALVE_POS as SZ_VALVE_POS,
    THERMOSTAT_ROLES as THERMOSTAT_ROLES,
    DevFeature as DevFeature,
    DevRole as DevRole,
    MsgType as MsgType,
)

__dev_mode__ = False  # NOTE: this is const.py
DEV_MODE = __dev_mode__


# used by schemas & devices...
SZ_ADDRESS: Final = "address"
SZ_CONFIG: Final = "config"
SZ_FEATURE: Final = "feature"
SZ_GROUP_ID: Final = "group_id"
SZ_ITEMS: Final = "items"

ON: Final = "ON"
OFF: Final = "OFF"


# message types whose payloads carry a device state, and so can update items
STATE_MSG_TYPES: Final[tuple[MsgType, ...]] = (
    MsgType.ACK,
    MsgType.THERMOSTAT_STATE,
    MsgType.WALL_THERMOSTAT_STATE,
    MsgType.WALL_THERMOSTAT_CONTROL,
    MsgType.SET_TEMPERATURE,
)

# the payload key that carries the value of each (read) feature
FEATURE_KEYS: Final[dict[DevFeature, str]] = {
    DevFeature.THERMOSTAT: SZ_DESIRED_TEMP,
    DevFeature.TEMPERATURE: SZ_MEASURED_TEMP,
    DevFeature.VALVE_POS: SZ_VALVE_POS,
    DevFeature.BATTERY: SZ_BATTERY_LOW,
}
