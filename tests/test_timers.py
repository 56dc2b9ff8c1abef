#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

Test the timer registry.
"""

import asyncio

import pytest

from maxcul_rf import TimerRegistry


@pytest.mark.asyncio
async def test_timer_fires_once() -> None:
    timers = TimerRegistry()
    fired: list[str] = []

    timers.schedule("item", 0.01, fired.append, "a")
    assert timers.is_pending("item")
    assert "item" in timers and len(timers) == 1

    await asyncio.sleep(0.05)

    assert fired == ["a"]
    assert not timers.is_pending("item")
    assert timers.when("item") is None


@pytest.mark.asyncio
async def test_timer_replaced() -> None:
    timers = TimerRegistry()
    fired: list[str] = []

    timers.schedule("item", 0.01, fired.append, "old")
    timers.schedule("item", 0.02, fired.append, "new")
    assert len(timers) == 1

    await asyncio.sleep(0.05)

    assert fired == ["new"]  # the superseded action never fires


@pytest.mark.asyncio
async def test_timer_cancel() -> None:
    timers = TimerRegistry()
    fired: list[str] = []

    timers.schedule("item", 0.01, fired.append, "a")

    assert timers.cancel("item") is True
    assert timers.cancel("item") is False  # a no-op
    assert timers.cancel("other") is False

    await asyncio.sleep(0.03)
    assert fired == []


@pytest.mark.asyncio
async def test_timer_cancel_all() -> None:
    timers = TimerRegistry()
    fired: list[str] = []

    for key in ("a", "b", "c"):
        timers.schedule(key, 0.01, fired.append, key)
    assert len(timers) == 3

    timers.cancel_all()
    assert len(timers) == 0

    await asyncio.sleep(0.03)
    assert fired == []


@pytest.mark.asyncio
async def test_timer_keys_independent() -> None:
    timers = TimerRegistry()
    fired: list[str] = []

    timers.schedule(("pair_mode", "a"), 0.01, fired.append, "a")
    timers.schedule(("pair_mode", "b"), 0.01, fired.append, "b")
    timers.cancel(("pair_mode", "a"))

    await asyncio.sleep(0.03)
    assert fired == ["b"]


@pytest.mark.asyncio
@pytest.mark.parametrize("delay", [0, -1])
async def test_timer_non_positive_delay(delay: float) -> None:
    timers = TimerRegistry()
    fired: list[str] = []

    timers.schedule("item", delay, fired.append, "a")
    assert fired == []  # never fires synchronously
    assert timers.is_pending("item")

    await asyncio.sleep(0)
    assert fired == ["a"]
    assert not timers.is_pending("item")


@pytest.mark.asyncio
async def test_timer_not_pending_when_fired() -> None:
    timers = TimerRegistry()
    seen: list[bool] = []

    timers.schedule("item", 0, lambda: seen.append(timers.is_pending("item")))
    await asyncio.sleep(0)

    assert seen == [False]


@pytest.mark.asyncio
async def test_timer_reschedule_from_action() -> None:
    timers = TimerRegistry()
    fired: list[int] = []

    def action(count: int) -> None:
        fired.append(count)
        if count < 3:
            timers.schedule("item", 0, action, count + 1)

    timers.schedule("item", 0, action, 1)
    for _ in range(4):
        await asyncio.sleep(0)

    assert fired == [1, 2, 3]
    assert not timers.is_pending("item")


@pytest.mark.asyncio
async def test_timer_when() -> None:
    loop = asyncio.get_running_loop()
    timers = TimerRegistry(loop=loop)

    now = loop.time()
    timers.schedule("item", 10, lambda: None)

    assert timers.when("item") == pytest.approx(now + 10, abs=0.5)
    timers.cancel_all()
