#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

Works with (amongst others):
- radiator thermostats (basic & plus)
- wall thermostats
- a virtual pairing-mode control (of the gateway itself)
"""

from __future__ import annotations

import logging

from maxcul_tx import (  # noqa: F401
    Address,
    Command,
    DevFeature,
    DevRole,
    Message,
    Packet,
    SetOnOff,
    SetTemperature,
)

from .device import LogicalDevice  # noqa: F401
from .dispatcher import CommandDispatcher  # noqa: F401
from .gateway import Gateway  # noqa: F401
from .pairing_fsm import PairingController, PairingState  # noqa: F401
from .timers import TimerRegistry  # noqa: F401
from .version import VERSION  # noqa: F401

_LOGGER = logging.getLogger(__name__)
