#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

Constants (and helpers) shared by the test suite.
"""

import asyncio
from typing import Any

from maxcul_rf import Gateway

CONTROLLER_ADDR = "010203"
NEW_DEVICE_ADDR = "112233"
THERMO_ADDR = "0A1B2C"
WALL_ADDR = "0D0E0F"

# a thermostat_state from THERMO_ADDR: manual, valve 0%, desired 21.5, measured 21.5
THERMOSTAT_STATE_LINE = "Z0F0100600A1B2C0102030019002B00D7"

# a pair_ping (broadcast) from a new radiator thermostat, fw 1.0, serial KEQ0123456
PAIR_PING_LINE = "Z17000000112233000000001001004B455130313233343536"

ITEMS_CONFIG: dict[str, dict[str, Any]] = {
    "Kitchen_Pair": {"device_type": "pair_mode", "feature": "pairing"},
    "Living_Thermo": {
        "device_type": "radiator_thermostat",
        "feature": "thermostat",
        "address": THERMO_ADDR,
        "serial": "KEQ0123456",
    },
    "Living_Temp": {
        "device_type": "radiator_thermostat",
        "feature": "temperature",
        "address": THERMO_ADDR,
    },
    "Living_Valve": {
        "device_type": "radiator_thermostat",
        "feature": "valve_pos",
        "address": THERMO_ADDR,
    },
    "Hall_Wall": {
        "device_type": "wall_thermostat",
        "feature": "thermostat",
        "address": WALL_ADDR,
        "group_id": 1,
    },
}


async def flush(gwy: Gateway) -> None:
    """Wait until the gateway has processed everything queued, incl. any sends."""

    await asyncio.sleep(0)  # for call_soon_threadsafe()
    await gwy._queue.join()
    if gwy._tasks:
        await asyncio.gather(*list(gwy._tasks), return_exceptions=True)
    await asyncio.sleep(0)  # for the done callbacks
