#!/usr/bin/env python3
"""MaxCul RF - the pairing-mode state machine.

Each pairing-control item has its own context, which is either Idle or Pairing. An
item is Pairing if and only if it holds a live (auto-exit) timer:

  Idle    -- enter -->  Pairing  (schedule auto-exit, publish ON)
  Pairing -- enter -->  Pairing  (re-arm auto-exit, publish ON)
  Pairing -- exit  -->  Idle     (cancel auto-exit, publish OFF)
  Pairing -- timer -->  Idle     (publish OFF)
  Idle    -- exit  -->  Idle     (nothing is published)

Every transition is a synchronous 'cancel, mutate, schedule' sequence on the event
loop, so it cannot interleave with the firing of a timer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import EnumCheck, StrEnum, verify
from typing import Any, Final

from . import exceptions as exc
from .const import DEFAULT_PAIR_MODE_TIMEOUT
from .device import to_on_off
from .timers import TimerRegistry

_LOGGER = logging.getLogger(__name__)

_TIMER_KEY_PREFIX: Final = "pair_mode"

PublishT = Callable[[str, bool], None]


@verify(EnumCheck.UNIQUE)
class PairingState(StrEnum):
    IDLE = "idle"
    PAIRING = "pairing"


class PairingController:
    """The pairing-mode state machine, one context per pairing-control item."""

    def __init__(
        self,
        timers: TimerRegistry,
        publish: PublishT,
        timeout: float = DEFAULT_PAIR_MODE_TIMEOUT,
    ) -> None:
        self._timers = timers
        self._publish = publish
        self._timeout = timeout

        self._states: dict[str, PairingState] = {}  # created lazily

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._states})"

    @property
    def timeout(self) -> float:
        """Return the duration of the pairing window (seconds)."""
        return self._timeout

    @staticmethod
    def _timer_key(item: str) -> tuple[str, str]:
        return (_TIMER_KEY_PREFIX, item)

    def state(self, item: str) -> PairingState:
        """Return the state of an item (Idle if it has never been used).

        Will raise PairingFsmError if the state and its timer are inconsistent.
        """

        state = self._states.get(item, PairingState.IDLE)
        if (state == PairingState.PAIRING) != self._timers.is_pending(
            self._timer_key(item)
        ):
            raise exc.PairingFsmError(f"{item}: {state} is inconsistent with its timer")
        return state

    @property
    def is_pairing(self) -> bool:
        """Return True if any item is Pairing."""
        return any(s == PairingState.PAIRING for s in self._states.values())

    def enter_pairing(self, item: str) -> None:
        """Enter (or re-arm) pairing mode for an item, and publish ON."""

        prev_state = self._states.get(item, PairingState.IDLE)

        self._states[item] = PairingState.PAIRING
        self._timers.schedule(
            self._timer_key(item), self._timeout, self._timeout_fired, item
        )

        if prev_state == PairingState.PAIRING:
            _LOGGER.info("%s: Pairing mode re-armed (%s secs)", item, self._timeout)
        else:
            _LOGGER.info("%s: Pairing mode enabled (%s secs)", item, self._timeout)
        self._publish(item, True)

    def exit_pairing(self, item: str) -> None:
        """Leave pairing mode for an item, and publish OFF if it was Pairing."""

        self._timers.cancel(self._timer_key(item))

        if self._states.get(item) != PairingState.PAIRING:
            _LOGGER.debug("%s: Pairing mode already disabled", item)
            self._states[item] = PairingState.IDLE
            return

        self._states[item] = PairingState.IDLE
        _LOGGER.info("%s: Pairing mode disabled", item)
        self._publish(item, False)

    def _timeout_fired(self, item: str) -> None:
        if self._states.get(item) != PairingState.PAIRING:
            raise exc.PairingFsmError(f"{item}: Timer fired, but was not pairing")

        self._states[item] = PairingState.IDLE
        _LOGGER.info("%s: Pairing mode timed out", item)
        self._publish(item, False)

    def handle_command(self, item: str, value: Any) -> None:
        """Process a host command for a pairing-control item: only on/off is valid.

        Will raise PairingError if the command is not on/off.
        """

        if (on := to_on_off(value)) is None:
            raise exc.PairingError(f"{item}: Invalid pairing command: {value!r}")

        if on:
            self.enter_pairing(item)
        else:
            self.exit_pairing(item)

    def stop(self) -> None:
        """Cancel all auto-exit timers, and return every item to Idle (silently)."""

        for item in self._states:
            self._timers.cancel(self._timer_key(item))
            self._states[item] = PairingState.IDLE
