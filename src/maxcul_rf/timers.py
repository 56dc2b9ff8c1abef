#!/usr/bin/env python3
"""MaxCul RF - a registry of named, cancellable, one-shot deferred actions.

Each key (usually the name of an item) has at most one pending action. Scheduling an
action for a key first cancels any pending action for that key, so an action that
has been superseded (or cancelled) will never fire.

All methods are to be called from within the event loop (they are not thread-safe).
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Callable, Hashable
from typing import Any, NamedTuple

_LOGGER = logging.getLogger(__name__)


class _TimerEntry(NamedTuple):
    token: int
    handle: asyncio.TimerHandle | asyncio.Handle
    when: float


class TimerRegistry:
    """Named one-shot timers, keyed by (say) a logical device identifier."""

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop or asyncio.get_running_loop()

        self._timers: dict[Hashable, _TimerEntry] = {}
        self._tokens = itertools.count(1)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(pending={list(self._timers)})"

    def __len__(self) -> int:
        return len(self._timers)

    def __contains__(self, key: object) -> bool:
        return key in self._timers

    def schedule(
        self, key: Hashable, delay: float, action: Callable[..., Any], *args: Any
    ) -> None:
        """Install a one-shot action for key, to fire after delay seconds.

        Any pending action for the same key is cancelled first. A non-positive delay
        will fire the action on the next iteration of the loop.
        """

        self.cancel(key)

        token = next(self._tokens)
        if delay <= 0:
            handle: asyncio.TimerHandle | asyncio.Handle = self._loop.call_soon(
                self._fire, key, token, action, *args
            )
            when = self._loop.time()
        else:
            handle = self._loop.call_later(delay, self._fire, key, token, action, *args)
            when = handle.when()  # type: ignore[union-attr]

        self._timers[key] = _TimerEntry(token, handle, when)
        _LOGGER.debug("Timer for %s scheduled in %.3f secs", key, max(delay, 0))

    def _fire(
        self, key: Hashable, token: int, action: Callable[..., Any], *args: Any
    ) -> None:
        entry = self._timers.get(key)
        if entry is None or entry.token != token:  # superseded, or cancelled
            return

        del self._timers[key]  # the action never sees itself as pending
        _LOGGER.debug("Timer for %s has fired", key)
        action(*args)

    def cancel(self, key: Hashable) -> bool:
        """Cancel any pending action for key (a no-op for unknown keys).

        Return True if there was a pending action.
        """

        if (entry := self._timers.pop(key, None)) is None:
            return False

        entry.handle.cancel()
        _LOGGER.debug("Timer for %s cancelled", key)
        return True

    def cancel_all(self) -> None:
        """Cancel all pending actions."""

        for key in list(self._timers):
            self.cancel(key)

    def is_pending(self, key: Hashable) -> bool:
        """Return True if key has a pending (not yet fired) action."""
        return key in self._timers

    def when(self, key: Hashable) -> float | None:
        """Return the (loop) time at which the action for key will fire, if any."""

        if (entry := self._timers.get(key)) is None:
            return None
        return entry.when
