#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

Schema processor for upper layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Final

import voluptuous as vol

from maxcul_tx.schemas import (  # noqa: F401
    SCH_ADDRESS,
    SCH_ENGINE_DICT,
    SZ_CONTROLLER_ADDR,
    SZ_DISABLE_SENDING,
    SZ_INIT_COMMANDS,
    SZ_PACKET_LOG,
    SZ_REPORT_RSSI,
    SZ_SERIAL_PORT,
    sch_packet_log_dict_factory,
    sch_serial_port_dict_factory,
)

from .const import (
    DEFAULT_GROUP_ID,
    DEFAULT_PAIR_MODE_TIMEOUT,
    ROLE_FEATURES,
    SZ_ADDRESS,
    SZ_CONFIG,
    SZ_DEVICE_TYPE,
    SZ_FEATURE,
    SZ_GROUP_ID,
    SZ_ITEMS,
    SZ_PAIR_MODE_TIMEOUT,
    SZ_SERIAL,
    DevFeature,
    DevRole,
)

_LOGGER = logging.getLogger(__name__)


#
# 1/3: Schemas for items (logical devices)
SCH_SERIAL = vol.All(str, vol.Length(min=1, max=10))
SCH_GROUP_ID = vol.All(vol.Coerce(int), vol.Range(min=0, max=0xFF))

SCH_ITEM_KEYS = vol.Schema(
    {
        vol.Required(SZ_DEVICE_TYPE): vol.All(str, vol.Lower, vol.Coerce(DevRole)),
        vol.Optional(SZ_FEATURE): vol.All(str, vol.Lower, vol.Coerce(DevFeature)),
        vol.Optional(SZ_ADDRESS, default=None): vol.Any(None, SCH_ADDRESS),
        vol.Optional(SZ_SERIAL, default=None): vol.Any(None, SCH_SERIAL),
        vol.Optional(SZ_GROUP_ID, default=DEFAULT_GROUP_ID): SCH_GROUP_ID,
    },
    extra=vol.PREVENT_EXTRA,
)


def ValidateItemRole() -> Callable[[dict[str, Any]], dict[str, Any]]:
    """Check that the item's feature (and address) is consistent with its role.

    Pairing-control items are virtual, so have no address; the feature of a real
    device defaults to its thermostat (setpoint).
    """

    def validate_item_role(node_value: dict[str, Any]) -> dict[str, Any]:
        role: DevRole = node_value[SZ_DEVICE_TYPE]
        allowed = ROLE_FEATURES[role]

        feature = node_value.setdefault(SZ_FEATURE, allowed[0])
        if feature not in allowed:
            raise vol.Invalid(
                f"feature '{feature}' is not valid for a {role} (valid: "
                f"{', '.join(allowed)})",
                path=[SZ_FEATURE],
            )

        if role == DevRole.PAIRING_CONTROL:
            if node_value[SZ_ADDRESS] is not None:
                raise vol.Invalid(
                    f"a {role} item must not have an address", path=[SZ_ADDRESS]
                )
        elif node_value[SZ_ADDRESS] is None:
            raise vol.Invalid(f"a {role} item must have an address", path=[SZ_ADDRESS])

        return node_value

    return validate_item_role


SCH_ITEM = vol.All(SCH_ITEM_KEYS, ValidateItemRole())
SCH_ITEMS = vol.Schema({vol.All(str, vol.Length(min=1)): SCH_ITEM})


#
# 2/3: Gateway (binding) configuration
SCH_GATEWAY_DICT = {
    vol.Optional(SZ_PAIR_MODE_TIMEOUT, default=DEFAULT_PAIR_MODE_TIMEOUT): vol.All(
        vol.Coerce(float), vol.Range(min=1, max=3600)
    ),
}
SCH_GATEWAY_CONFIG = vol.Schema(SCH_GATEWAY_DICT, extra=vol.REMOVE_EXTRA)


#
# 3/3: the Global (gateway) Schema
SCH_GLOBAL_CONFIG = (
    vol.Schema(
        {
            # Gateway/engine Configuraton, incl. packet_log, serial_port params...
            vol.Optional(SZ_CONFIG, default={}): SCH_GATEWAY_DICT | SCH_ENGINE_DICT,
            vol.Optional(SZ_ITEMS, default={}): SCH_ITEMS,
        },
        extra=vol.PREVENT_EXTRA,
    )
    .extend(sch_packet_log_dict_factory(default_backups=0))
)
