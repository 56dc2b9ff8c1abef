#!/usr/bin/env python3
"""MaxCul RF - culfw compatible (MAX! mode) line protocol.

Operates between the transport (lines) and the binding (frames/commands): every line
is passed up, whether or not it is a frame, and commands are written fire-and-forget.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime as dt
from typing import TYPE_CHECKING, Any, Final, TypeAlias

from . import exceptions as exc
from .command import Command
from .logger import set_logger_timesource
from .schemas import SZ_PORT_NAME
from .transport import transport_factory
from .typing import ErrorHandlerT, LineHandlerT

if TYPE_CHECKING:
    from .transport import CulTransportT


#
# NOTE: All debug flags should be False for deployment to end-users
_DBG_FORCE_LOG_LINES: Final[bool] = False

_LOGGER = logging.getLogger(__name__)


class _BaseProtocol(asyncio.Protocol):
    """Base class for culfw protocols."""

    def __init__(
        self, line_handler: LineHandlerT, error_handler: ErrorHandlerT | None = None
    ) -> None:
        self._line_handler = line_handler
        self._error_handler = error_handler

        self._transport: CulTransportT = None  # type: ignore[assignment]
        self._loop = asyncio.get_running_loop()

        self._pause_writing = False
        self._wait_connection_lost: asyncio.Future[None] | None = None
        self._wait_connection_made: asyncio.Future[CulTransportT] = (
            self._loop.create_future()
        )

    def connection_made(self, transport: CulTransportT) -> None:  # type: ignore[override]
        """Called when the connection to the Transport is established."""

        if self._wait_connection_made.done():
            return

        self._wait_connection_lost = self._loop.create_future()
        self._wait_connection_made.set_result(transport)
        self._transport = transport

    async def wait_for_connection_made(self, timeout: float = 1) -> CulTransportT:
        """A courtesy function to wait until connection_made() has been invoked.

        Will raise TransportError if isn't connected within timeout seconds.
        """

        try:
            return await asyncio.wait_for(self._wait_connection_made, timeout)
        except TimeoutError as err:
            raise exc.TransportError(
                f"Transport did not bind to Protocol within {timeout} secs"
            ) from err

    def connection_lost(self, err: Exception | None) -> None:  # type: ignore[override]
        """Called when the connection to the Transport is lost or closed.

        The argument is an exception object or None (the latter meaning a regular EOF is
        received or the connection was aborted or closed).
        """

        if self._wait_connection_lost is None or self._wait_connection_lost.done():
            return

        self._wait_connection_made = self._loop.create_future()
        if err:
            self._wait_connection_lost.set_exception(err)
        else:
            self._wait_connection_lost.set_result(None)

        if self._error_handler and err:
            self._error_handler(err)

    async def wait_for_connection_lost(
        self, timeout: float | None = 1
    ) -> Exception | None:
        """A courtesy function to wait until connection_lost() has been invoked.

        Will raise TransportError if isn't disconnect within timeout seconds.
        """

        if not self._wait_connection_lost:
            return None

        try:
            return await asyncio.wait_for(self._wait_connection_lost, timeout)
        except TimeoutError as err:
            raise exc.TransportError(
                f"Transport did not unbind from Protocol within {timeout} secs"
            ) from err

    def pause_writing(self) -> None:
        """Called when the transport's buffer goes over the high-water mark."""
        self._pause_writing = True

    def resume_writing(self) -> None:
        """Called when the transport's buffer drains below the low-water mark."""
        self._pause_writing = False

    async def send_cmd(self, cmd: Command, /) -> None:
        """Write a command to the transport (there is no confirmation of delivery).

        Will raise ProtocolError if the protocol is read-only, and TransportError if the
        transport fails.
        """

        if _DBG_FORCE_LOG_LINES:
            _LOGGER.warning("QUEUED:     %r", cmd)
        else:
            _LOGGER.debug("QUEUED:     %r", cmd)

        if self._pause_writing:
            raise exc.ProtocolError("The Protocol is currently read-only/paused")

        await self._send_cmd(cmd)

    async def _send_cmd(self, cmd: Command, /) -> None:
        raise NotImplementedError(f"{self}: Unexpected error")

    def line_received(self, dtm: dt, line: str) -> None:
        """Called by the Transport for every line received (not only frames)."""

        if _DBG_FORCE_LOG_LINES:
            _LOGGER.warning("Recv'd: %s", line)
        else:
            _LOGGER.debug("Recv'd: %s", line)

        self._line_handler(dtm, line)


class ReadProtocol(_BaseProtocol):
    """A protocol that can only receive lines."""

    async def _send_cmd(self, cmd: Command, /) -> None:
        raise exc.ProtocolError(f"{cmd!r} < Sending is disabled (read-only protocol)")


class CulProtocol(_BaseProtocol):
    """A protocol that can receive lines and send commands."""

    async def _send_cmd(self, cmd: Command, /) -> None:
        if not self._transport:
            raise exc.ProtocolError(f"{cmd!r} < There is no connected Transport")
        await self._transport.write_frame(repr(cmd), fast=cmd.fast)


CulProtocolT: TypeAlias = CulProtocol | ReadProtocol


def protocol_factory(
    line_handler: LineHandlerT,
    /,
    *,
    disable_sending: bool | None = False,
    error_handler: ErrorHandlerT | None = None,
) -> CulProtocolT:
    """Create and return a culfw-specific async line Protocol."""

    if disable_sending:
        _LOGGER.debug("ReadProtocol: Sending has been disabled")
        return ReadProtocol(line_handler, error_handler=error_handler)

    return CulProtocol(line_handler, error_handler=error_handler)


async def create_stack(
    line_handler: LineHandlerT,
    /,
    *,
    protocol_factory_: Callable[..., CulProtocolT] | None = None,
    transport_factory_: Callable[..., Any] | None = None,
    disable_sending: bool | None = False,
    error_handler: ErrorHandlerT | None = None,
    **kwargs: Any,  # these are for the transport_factory
) -> tuple[CulProtocolT, CulTransportT]:
    """Utility function to provide a Protocol / Transport pair.

    Architecture: gwy (client) -> frame (Protocol) -> line (Transport) -> CUL/log
    - send Commands via awaitable Protocol.send_cmd(cmd)
    - receive lines via the line_handler(dtm, line) callback
    """

    read_only = kwargs.get("packet_dict") or kwargs.get("packet_log")
    disable_sending = disable_sending or bool(read_only)

    protocol: CulProtocolT = (protocol_factory_ or protocol_factory)(
        line_handler, disable_sending=disable_sending, error_handler=error_handler
    )

    transport: CulTransportT = await (transport_factory_ or transport_factory)(
        protocol, disable_sending=disable_sending, **kwargs
    )

    if not kwargs.get(SZ_PORT_NAME):
        set_logger_timesource(transport._dt_now)
        _LOGGER.warning("Logger datetimes maintained as most recent frame timestamp")

    return protocol, transport
