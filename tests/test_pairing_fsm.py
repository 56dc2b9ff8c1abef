#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

Test the pairing-mode state machine.
"""

import asyncio

import pytest

from maxcul_rf import PairingController, PairingState, TimerRegistry
from maxcul_rf import exceptions as exc

ITEM = "Kitchen_Pair"


def _controller(timeout: float = 0.05) -> tuple[PairingController, list]:
    published: list[tuple[str, bool]] = []
    pairing = PairingController(
        TimerRegistry(), lambda i, v: published.append((i, v)), timeout=timeout
    )
    return pairing, published


@pytest.mark.asyncio
async def test_pairing_times_out() -> None:
    pairing, published = _controller()

    assert pairing.state(ITEM) == PairingState.IDLE

    pairing.handle_command(ITEM, "ON")
    assert pairing.state(ITEM) == PairingState.PAIRING
    assert pairing.is_pairing
    assert published == [(ITEM, True)]

    await asyncio.sleep(0.1)

    assert pairing.state(ITEM) == PairingState.IDLE
    assert not pairing.is_pairing
    assert published == [(ITEM, True), (ITEM, False)]


@pytest.mark.asyncio
async def test_pairing_explicit_off() -> None:
    pairing, published = _controller()

    pairing.handle_command(ITEM, True)
    pairing.handle_command(ITEM, False)
    assert pairing.state(ITEM) == PairingState.IDLE

    await asyncio.sleep(0.1)  # the timer was cancelled, so no second OFF

    assert published == [(ITEM, True), (ITEM, False)]


@pytest.mark.asyncio
async def test_pairing_off_when_idle() -> None:
    pairing, published = _controller()

    pairing.handle_command(ITEM, "OFF")

    assert pairing.state(ITEM) == PairingState.IDLE
    assert published == []


@pytest.mark.asyncio
async def test_pairing_re_armed() -> None:
    pairing, published = _controller(timeout=0.1)

    pairing.enter_pairing(ITEM)
    await asyncio.sleep(0.06)

    pairing.enter_pairing(ITEM)  # restarts the window
    await asyncio.sleep(0.06)

    assert pairing.state(ITEM) == PairingState.PAIRING
    assert published == [(ITEM, True), (ITEM, True)]

    await asyncio.sleep(0.1)

    assert pairing.state(ITEM) == PairingState.IDLE
    assert published == [(ITEM, True), (ITEM, True), (ITEM, False)]


@pytest.mark.asyncio
async def test_pairing_items_independent() -> None:
    pairing, published = _controller()

    pairing.enter_pairing("a")
    pairing.enter_pairing("b")
    pairing.exit_pairing("a")

    assert pairing.state("a") == PairingState.IDLE
    assert pairing.state("b") == PairingState.PAIRING

    await asyncio.sleep(0.1)

    assert published == [("a", True), ("b", True), ("a", False), ("b", False)]


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["21.5", 21.5, None, "PAIR", 1])
async def test_pairing_invalid_command(value: object) -> None:
    pairing, published = _controller()

    with pytest.raises(exc.PairingError):
        pairing.handle_command(ITEM, value)

    assert pairing.state(ITEM) == PairingState.IDLE
    assert published == []


@pytest.mark.asyncio
async def test_pairing_stop_is_silent() -> None:
    pairing, published = _controller()

    pairing.enter_pairing(ITEM)
    pairing.stop()

    await asyncio.sleep(0.1)

    assert pairing.state(ITEM) == PairingState.IDLE
    assert published == [(ITEM, True)]


@pytest.mark.asyncio
async def test_pairing_timeout_property() -> None:
    pairing, _ = _controller(timeout=30)
    assert pairing.timeout == 30
