#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

Test the dispatch of host commands (to the radio) and of lines (to the host).
"""

from collections import defaultdict
from datetime import datetime as dt
from typing import Any
from unittest.mock import MagicMock

import pytest

from maxcul_rf import (
    Address,
    Command,
    CommandDispatcher,
    LogicalDevice,
    PairingController,
    TimerRegistry,
)
from maxcul_rf.const import MsgType

from .common import (
    CONTROLLER_ADDR,
    ITEMS_CONFIG,
    NEW_DEVICE_ADDR,
    PAIR_PING_LINE,
    THERMO_ADDR,
    THERMOSTAT_STATE_LINE,
)

# an ack (ok) from THERMO_ADDR, with its state: manual, valve 0%, desired 21.5
ACK_LINE = "Z0E0202020A1B2C010203000119002B"

# a (rejected) ack from THERMO_ADDR, without any state
NACK_LINE = "Z0B0202020A1B2C0102030081"


class _Harness:
    """A dispatcher with its collaborators (the items, pairing & sends are real)."""

    def __init__(self, items: dict[str, dict[str, Any]] = ITEMS_CONFIG) -> None:
        self.devices = {k: LogicalDevice.from_config(k, v) for k, v in items.items()}
        self.by_addr: dict[Address, list[LogicalDevice]] = defaultdict(list)
        for dev in self.devices.values():
            if dev.address is not None:
                self.by_addr[dev.address].append(dev)

        self.sent: list[Command] = []
        self.published: list[tuple[str, Any]] = []

        self.pairing = PairingController(
            TimerRegistry(), self._publish, timeout=60
        )
        self.dispatcher = CommandDispatcher(
            self.devices.get,
            lambda a: self.by_addr.get(a, []),
            self.pairing,
            self.sent.append,
            self._publish,
            controller_addr=CONTROLLER_ADDR,
        )

    def _publish(self, item: str, value: Any) -> None:
        self.published.append((item, value))

    def line(self, line: str) -> None:
        self.dispatcher.handle_line(dt.now(), line)


@pytest.mark.asyncio
async def test_command_setpoint() -> None:
    h = _Harness()

    h.dispatcher.handle_command("Living_Thermo", "21.5")

    assert [repr(c) for c in h.sent] == ["Z0b0000400102030a1b2c006b"]
    assert h.published == []  # there is no optimistic update


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "value,payload",
    [("ON", "7D"), ("off", "49"), (True, "7D"), (False, "49"), (18, "64")],
)
async def test_command_values(value: Any, payload: str) -> None:
    h = _Harness()

    h.dispatcher.handle_command("Living_Thermo", value)

    assert len(h.sent) == 1
    assert h.sent[0].payload == payload


@pytest.mark.asyncio
async def test_command_to_group() -> None:
    h = _Harness()

    h.dispatcher.handle_command("Hall_Wall", "OFF")

    assert [repr(c) for c in h.sent] == ["Z0b0004400102030d0e0f0149"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "item,value",
    [
        ("Unknown_Item", "ON"),  # no config
        ("Living_Thermo", "WARM"),  # not a setpoint, nor on/off
        ("Living_Thermo", None),
        ("Living_Temp", "21.5"),  # a read-only feature
        ("Living_Valve", "ON"),
        ("Kitchen_Pair", "21.5"),  # pairing is only on/off
    ],
)
async def test_command_dropped(item: str, value: Any) -> None:
    h = _Harness()

    h.dispatcher.handle_command(item, value)  # never raises

    assert h.sent == []
    assert h.published == []


@pytest.mark.asyncio
async def test_command_pairing() -> None:
    h = _Harness()

    h.dispatcher.handle_command("Kitchen_Pair", "ON")

    assert h.pairing.is_pairing
    assert h.published == [("Kitchen_Pair", True)]
    assert h.sent == []  # nothing is sent to the radio

    h.dispatcher.handle_command("Kitchen_Pair", "OFF")

    assert not h.pairing.is_pairing
    assert h.published == [("Kitchen_Pair", True), ("Kitchen_Pair", False)]


@pytest.mark.asyncio
async def test_line_thermostat_state() -> None:
    h = _Harness()

    h.line(THERMOSTAT_STATE_LINE)

    assert sorted(h.published) == [
        ("Living_Temp", 21.5),
        ("Living_Thermo", 21.5),
        ("Living_Valve", 0.0),
    ]


@pytest.mark.asyncio
async def test_line_ack_with_state() -> None:
    h = _Harness()

    h.line(ACK_LINE)

    assert sorted(h.published) == [("Living_Thermo", 21.5), ("Living_Valve", 0.0)]


@pytest.mark.asyncio
async def test_line_nack() -> None:
    h = _Harness()

    h.line(NACK_LINE)

    assert h.published == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "line",
    [
        "V 1.67 CUL868",  # not a frame
        "LOVF",
        "Z0F0100600A1B2C0102030019002B00",  # truncated
        "Z0F0100600A1B2C0102030019002B00XY",  # not hex
        "Z0C0100600A1B2C0102030019002B00D7",  # length mismatch
        "Z0A0100600A1B2C01020300",  # invalid (empty) payload
        "Z0F0100600A1B2C0102030019002B00D7 * some error",
    ],
)
async def test_line_dropped(line: str) -> None:
    h = _Harness()

    h.line(line)  # never raises

    assert h.published == []
    assert h.sent == []


@pytest.mark.asyncio
async def test_line_unknown_device() -> None:
    h = _Harness()

    h.line(THERMOSTAT_STATE_LINE.replace(THERMO_ADDR, "ABCDEF"))

    assert h.published == []


@pytest.mark.asyncio
async def test_line_no_state() -> None:
    h = _Harness()

    h.line("Z0A0300030A1B2C01020300")  # a time_information request

    assert h.published == []


@pytest.mark.asyncio
async def test_pair_ping_when_pairing() -> None:
    h = _Harness()

    h.dispatcher.handle_command("Kitchen_Pair", "ON")
    h.line(PAIR_PING_LINE)

    assert len(h.sent) == 1
    pong = h.sent[0]

    assert pong.msg_type == MsgType.PAIR_PONG
    assert pong.src.id == CONTROLLER_ADDR
    assert pong.dst.id == NEW_DEVICE_ADDR
    assert pong.fast is True


@pytest.mark.asyncio
async def test_pair_ping_to_us_when_pairing() -> None:
    h = _Harness()

    h.dispatcher.handle_command("Kitchen_Pair", "ON")
    h.line(PAIR_PING_LINE.replace("112233000000", f"112233{CONTROLLER_ADDR}"))

    assert [c.dst.id for c in h.sent] == [NEW_DEVICE_ADDR]


@pytest.mark.asyncio
async def test_pair_ping_when_not_pairing() -> None:
    h = _Harness()

    h.line(PAIR_PING_LINE)

    assert h.sent == []


@pytest.mark.asyncio
async def test_pair_ping_to_another_controller() -> None:
    h = _Harness()

    h.dispatcher.handle_command("Kitchen_Pair", "ON")
    h.line(PAIR_PING_LINE.replace("112233000000", "112233445566"))

    assert h.sent == []


@pytest.mark.asyncio
async def test_line_updates_each_bound_item() -> None:
    h = _Harness()

    h.dispatcher._publish = MagicMock()
    h.line(THERMOSTAT_STATE_LINE)

    assert h.dispatcher._publish.call_count == 3
