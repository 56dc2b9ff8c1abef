#!/usr/bin/env python3
"""MaxCul RF - the logical devices (items), as configured by the host.

A logical device binds a host item to a feature of a physical MAX! device (e.g. the
setpoint, or the measured temperature of a radiator thermostat), or to the virtual
pairing-mode control of the gateway itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

import voluptuous as vol

from maxcul_tx import Address, SetOnOff, SetTemperature
from maxcul_tx.command import OutboundCommandT

from . import exceptions as exc
from .const import (
    DEFAULT_GROUP_ID,
    OFF,
    ON,
    ROLE_FEATURES,
    SZ_ADDRESS,
    SZ_DEVICE_TYPE,
    SZ_FEATURE,
    SZ_GROUP_ID,
    SZ_SERIAL,
    THERMOSTAT_ROLES,
    DevFeature,
    DevRole,
)
from .schemas import SCH_ITEM

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogicalDevice:
    """An item bound to a feature of a (physical or virtual) device."""

    item_name: str
    role: DevRole
    feature: DevFeature
    address: Address | None = None
    serial: str | None = None
    group_id: int = DEFAULT_GROUP_ID

    def __post_init__(self) -> None:
        if self.feature not in ROLE_FEATURES[self.role]:
            raise exc.ConfigurationInvalid(
                f"{self.item_name}: feature {self.feature} is not valid for {self.role}"
            )
        if (self.address is None) != (self.role == DevRole.PAIRING_CONTROL):
            must = "must not" if self.role == DevRole.PAIRING_CONTROL else "must"
            raise exc.ConfigurationInvalid(
                f"{self.item_name}: a {self.role} {must} have an address"
            )

    def __str__(self) -> str:
        if self.address is None:
            return f"{self.item_name} ({self.role})"
        return f"{self.item_name} ({self.role}:{self.address.id}/{self.feature})"

    @classmethod
    def from_config(cls, item_name: str, config: dict[str, Any]) -> LogicalDevice:
        """Create a logical device from an item's config (it is validated first).

        Will raise ConfigurationInvalid if the config is invalid.
        """

        try:
            config = SCH_ITEM(dict(config))
        except vol.Invalid as err:
            raise exc.ConfigurationInvalid(f"{item_name}: {err}") from err

        return cls(
            item_name,
            config[SZ_DEVICE_TYPE],
            config[SZ_FEATURE],
            address=None if config[SZ_ADDRESS] is None else Address(config[SZ_ADDRESS]),
            serial=config[SZ_SERIAL],
            group_id=config[SZ_GROUP_ID],
        )

    @property
    def is_pairing_control(self) -> bool:
        return self.role == DevRole.PAIRING_CONTROL

    @property
    def is_thermostat(self) -> bool:
        """Return True if the item accepts on/off & setpoint commands."""
        return self.role in THERMOSTAT_ROLES and self.feature == DevFeature.THERMOSTAT


def to_on_off(value: Any) -> bool | None:
    """Return the value as a bool, if it is an on/off command, else None."""

    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().upper() in (ON, OFF):
        return value.strip().upper() == ON
    return None


def to_command(value: Any) -> OutboundCommandT | None:
    """Convert a host command into a typed outbound command, if possible.

    Booleans (or "ON"/"OFF") become SetOnOff, numbers (or numeric strings) become
    SetTemperature. Anything else returns None.
    """

    if (on_off := to_on_off(value)) is not None:
        return SetOnOff(on_off)

    if isinstance(value, Decimal | int | float):
        return SetTemperature(Decimal(str(value)))

    if isinstance(value, str):
        try:
            return SetTemperature(Decimal(value.strip()))
        except InvalidOperation:
            return None

    return None
