#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

A mocked transport (in lieu of a CUL) used for testing.

Will record the frames written to it, and can inject lines as if they were received.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from datetime import datetime as dt
from typing import Any

from maxcul_tx import exceptions as exc
from maxcul_tx.protocol import CulProtocolT, create_stack

MOCKED_PORT = "/dev/ttyMOCK"


_LOGGER = logging.getLogger(__name__)


class MockTransport:
    """A pseudo-mocked CUL transport used for testing."""

    def __init__(
        self,
        protocol: CulProtocolT,
        loop: asyncio.AbstractEventLoop | None = None,
        fail_writes: bool = False,
    ) -> None:
        self._protocol = protocol
        self._loop = loop or asyncio.get_running_loop()

        self._closing = False
        self._fail_writes = fail_writes

        self.written: list[tuple[str, bool]] = []  # (frame, fast)

        self._loop.call_soon(self._protocol.connection_made, self)

    def _dt_now(self) -> dt:
        return dt.now()

    def get_extra_info(self, name: str, default: Any = None) -> Any:
        return default

    def is_closing(self) -> bool:
        return self._closing

    def close(self) -> None:
        if self._closing:
            return
        self._closing = True
        self._loop.call_soon(self._protocol.connection_lost, None)

    async def write_frame(self, frame: str, *, fast: bool = False) -> None:
        if self._fail_writes:
            raise exc.TransportSerialError("Mocked write failure")
        self.written.append((frame, fast))

    def inject(self, line: str) -> None:
        """Deliver a line to the protocol, as if it was received from the CUL."""
        self._protocol.line_received(self._dt_now(), line)


async def mock_transport_factory(
    protocol: CulProtocolT, /, *, fail_writes: bool = False, **kwargs: Any
) -> MockTransport:
    transport = MockTransport(
        protocol, loop=kwargs.get("loop"), fail_writes=fail_writes
    )
    await protocol.wait_for_connection_made()
    return transport


def mock_create_stack(fail_writes: bool = False) -> Any:
    """Return a create_stack() that uses a mocked transport (for patching)."""

    return functools.partial(
        create_stack,
        transport_factory_=functools.partial(
            mock_transport_factory, fail_writes=fail_writes
        ),
    )
