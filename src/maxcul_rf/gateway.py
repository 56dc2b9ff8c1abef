#!/usr/bin/env python3
"""MaxCul RF - the gateway (i.e. a CUL running culfw, in MAX! mode).

The gateway is the host-facing API: commands are delivered to it (from any thread),
and it publishes status updates via any number of update handlers.

Host commands and transceiver lines are both queued, and are processed in order by a
single consumer task (i.e. one logical processing sequence), as are timer actions.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime as dt
from io import TextIOWrapper
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any, Final, Never

from maxcul_tx import (
    Address,
    Command,
    create_stack,
    set_pkt_logging_config,
)
from maxcul_tx.schemas import (
    SCH_ENGINE_CONFIG,
    SCH_PACKET_LOG,
    SZ_GAP_BETWEEN_WRITES,
    SZ_PACKET_LOG,
    SZ_PORT_NAME,
    PortConfigT,
)

from . import exceptions as exc
from .const import SZ_CONFIG
from .device import LogicalDevice
from .dispatcher import CommandDispatcher, ResolverT
from .pairing_fsm import PairingController
from .schemas import SCH_GATEWAY_CONFIG
from .timers import TimerRegistry

if TYPE_CHECKING:
    from maxcul_tx import CulProtocolT, CulTransportT

_LOGGER = logging.getLogger(__name__)

_SZ_CMD: Final = "cmd"
_SZ_LINE: Final = "line"

SZ_PACKET_DICT: Final = "packet_dict"
SZ_PORT_CONFIG: Final = "port_config"

UpdateHandlerT = Callable[[str, Any], None]


class Gateway:
    """The gateway class."""

    def __init__(
        self,
        port_name: str | None,
        input_file: TextIOWrapper | dict[str, str] | None = None,
        port_config: PortConfigT | None = None,
        packet_log: str | dict[str, Any] | None = None,
        items: dict[str, dict[str, Any]] | None = None,
        resolver: ResolverT | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
        **kwargs: Any,
    ) -> None:
        if port_name and input_file:
            _LOGGER.warning(
                "Port (%s) specified, so file (%s) ignored", port_name, input_file
            )
            input_file = None
        elif not port_name and input_file is None:
            raise TypeError("Either a port_name or a input_file must be specified")

        config: dict[str, Any] = kwargs.pop(SZ_CONFIG, {})
        if kwargs:
            _LOGGER.warning("Ignoring unexpected kwargs: %s", list(kwargs))

        self.ser_name = port_name
        self._input_file = input_file
        self._port_config: PortConfigT | dict[Never, Never] = port_config or {}
        self._packet_log: dict[str, Any] = (
            SCH_PACKET_LOG({SZ_PACKET_LOG: packet_log})[SZ_PACKET_LOG] or {}
        )
        self._loop = loop or asyncio.get_running_loop()

        self._engine = SimpleNamespace(**SCH_ENGINE_CONFIG(config))
        self.config = SimpleNamespace(**SCH_GATEWAY_CONFIG(config))
        self._disable_sending: bool = (
            self._engine.disable_sending or input_file is not None
        )

        self._devices: dict[str, LogicalDevice] = {}
        self._device_by_addr: dict[Address, list[LogicalDevice]] = defaultdict(list)
        self._load_items(items or {})
        self._resolver = resolver

        self._update_handlers: list[UpdateHandlerT] = []

        self._queue: asyncio.Queue[tuple[Any, ...]] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[None]] = set()

        self._protocol: CulProtocolT = None  # type: ignore[assignment]
        self._transport: CulTransportT | None = None  # None until self.start()

        self.timers = TimerRegistry(loop=self._loop)
        self.pairing = PairingController(
            self.timers,
            self._publish,
            timeout=self.config.pair_mode_timeout,
        )
        self._dispatcher = CommandDispatcher(
            self.resolve_config,
            self.devices_by_address,
            self.pairing,
            self._send_cmd,
            self._publish,
            controller_addr=self._engine.controller_address,
            has_rssi=self._engine.report_rssi,
        )

    def __repr__(self) -> str:
        if not self.ser_name:
            return f"Gateway(input_file={self._input_file})"
        return f"Gateway(port_name={self.ser_name}, port_config={self._port_config})"

    def _load_items(self, items: dict[str, dict[str, Any]]) -> None:
        """Create the logical devices from the items config (validating each)."""

        for item_name, item_config in items.items():
            dev = LogicalDevice.from_config(item_name, item_config)
            self._devices[item_name] = dev
            if dev.address is not None:
                self._device_by_addr[dev.address].append(dev)

        _LOGGER.debug("Loaded %s items", len(self._devices))

    @property
    def is_pairing(self) -> bool:
        return self.pairing.is_pairing

    async def start(self) -> None:
        """Create a suitable transport for the packet source, and start processing.

        If the packet source is a file (or dict), return only once it is exhausted.
        """

        await set_pkt_logging_config(**self._packet_log)

        self._consumer = self._loop.create_task(
            self._consume(), name="Gateway._consume()"
        )

        pkt_source: dict[str, Any] = {}
        if self.ser_name:
            pkt_source[SZ_PORT_NAME] = self.ser_name
            pkt_source[SZ_PORT_CONFIG] = self._port_config
        elif isinstance(self._input_file, dict):
            pkt_source[SZ_PACKET_DICT] = self._input_file
        else:
            pkt_source[SZ_PACKET_LOG] = self._input_file  # io.TextIOWrapper

        # incl. await protocol.wait_for_connection_made()
        self._protocol, self._transport = await create_stack(
            self._line_handler,
            disable_sending=self._disable_sending,
            error_handler=self._error_handler,
            loop=self._loop,
            init_commands=self._engine.init_commands,
            report_rssi=self._engine.report_rssi,
            gap_between_writes=self._engine.comms_params[SZ_GAP_BETWEEN_WRITES],
            **pkt_source,
        )

        if self._input_file is not None:
            await self._protocol.wait_for_connection_lost(timeout=None)
            await self._queue.join()

    async def stop(self) -> None:
        """Cancel all timers & tasks, and close the transport (and so the protocol)."""

        self.pairing.stop()
        self.timers.cancel_all()

        tasks = [t for t in (self._consumer, *self._tasks) if t and not t.done()]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        if self._transport:
            self._transport.close()
            await self._protocol.wait_for_connection_lost()

    # host-facing API

    def deliver_command(self, item_name: str, command: Any) -> None:
        """Queue a command from the host for an item (may be called from any thread)."""
        self._loop.call_soon_threadsafe(
            self._queue.put_nowait, (_SZ_CMD, item_name, command)
        )

    def add_update_handler(self, fnc: UpdateHandlerT, /) -> Callable[[], None]:
        """Add a handler of status updates, to be called as fnc(item_name, value).

        Returns a callback that can be used to subsequently remove the handler.
        """

        def del_handler() -> None:
            if fnc in self._update_handlers:
                self._update_handlers.remove(fnc)

        if fnc not in self._update_handlers:
            self._update_handlers.append(fnc)

        return del_handler

    def resolve_config(self, item_name: str) -> LogicalDevice | None:
        """Return the logical device bound to an item, if any."""

        if self._resolver is not None:
            return self._resolver(item_name)
        return self._devices.get(item_name)

    def devices_by_address(self, address: Address | str) -> list[LogicalDevice]:
        """Return the (configured) logical devices bound to a radio address."""

        if isinstance(address, str):
            address = Address(address)
        return list(self._device_by_addr.get(address, []))

    # internals

    def _line_handler(self, dtm: dt, line: str) -> None:
        self._queue.put_nowait((_SZ_LINE, dtm, line))

    async def _consume(self) -> None:
        """Process the queued commands & lines, in order."""

        while True:
            kind, *args = await self._queue.get()
            try:
                if kind == _SZ_CMD:
                    self._dispatcher.handle_command(*args)
                else:
                    self._dispatcher.handle_line(*args)
            except Exception as err:  # an item must never stop the consumer
                _LOGGER.exception("%s < %s(%s)", args, err.__class__.__name__, err)
            finally:
                self._queue.task_done()

    def _publish(self, item_name: str, value: Any) -> None:
        for fnc in list(self._update_handlers):
            try:
                fnc(item_name, value)
            except Exception as err:
                _LOGGER.exception(
                    "%s < Update handler %r failed: %s(%s)",
                    item_name,
                    fnc,
                    err.__class__.__name__,
                    err,
                )

    def _send_cmd(self, cmd: Command) -> None:
        """Write a command to the transport (fire-and-forget)."""

        if self._disable_sending or self._protocol is None:
            _LOGGER.warning("%r < Sending is disabled, command dropped", cmd)
            return

        task = self._loop.create_task(self._protocol.send_cmd(cmd))
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._send_done(cmd, t))

    def _send_done(self, cmd: Command, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled() or (err := task.exception()) is None:
            return
        if isinstance(err, exc.MaxCulException):  # ProtocolError, TransportError
            _LOGGER.warning("%r < %s(%s)", cmd, err.__class__.__name__, err)
        else:
            _LOGGER.error("%r < %s(%s)", cmd, err.__class__.__name__, err)

    def _error_handler(self, err: Exception | None) -> None:
        if err:
            _LOGGER.warning("Transport error: %s(%s)", err.__class__.__name__, err)
