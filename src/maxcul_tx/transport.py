#!/usr/bin/env python3
"""MaxCul RF - culfw compatible (MAX! mode) line transport.

Operates at the line layer of: app - frame - line - h/w

A CUL (or compatible, e.g. a CUNO/COC) running culfw is put into MAX! (Moritz) mode by
sending `Zr`, after which every MAX! frame received is reported as a line beginning
with `Z`. Other lines (e.g. `LOVF`, or the replies to `V`) are transceiver chatter.

Frames are sent via `Zs` (with the one second wake-up preamble that a sleeping device
needs) or `Zf` (fast, for devices that are known to be listening).

For socat, see:
  socat -dd pty,raw,echo=0 pty,raw,echo=0
  cat packet.log | cut -d ' ' -f 3- | unix2dos > /dev/pts/1
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
import os
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime as dt
from functools import wraps
from io import TextIOWrapper
from string import printable
from time import perf_counter
from typing import TYPE_CHECKING, Any, Final, TypeAlias

import serial_asyncio  # type: ignore[import-untyped]
from serial import (  # type: ignore[import-untyped]
    Serial,
    SerialException,
    serial_for_url,
)

from . import exceptions as exc
from .const import (
    CUL_NO_CREDIT,
    CUL_REPORT_RSSI,
    CUL_SEND,
    CUL_SEND_FAST,
    DEFAULT_INIT_CMDS,
    DUTY_CYCLE_DURATION,
    MAX_DUTY_CYCLE_RATE,
    MAX_MARKER,
    MIN_INTER_WRITE_GAP,
)
from .helpers import dt_now
from .schemas import SCH_SERIAL_PORT_CONFIG, SZ_REPORT_RSSI, PortConfigT
from .typing import SerPortNameT

if TYPE_CHECKING:
    from .protocol import CulProtocolT


_DEFAULT_TIMEOUT_PORT: Final[float] = 3

SZ_READER_TASK: Final = "reader_task"


_LOGGER = logging.getLogger(__name__)


def _decode_line(raw_line: bytes) -> str:
    """Return the printable chars of a raw line, without any leading/trailing space."""

    try:
        line = raw_line.decode("ascii", errors="strict")
    except UnicodeDecodeError:
        _LOGGER.warning("%s < Cant decode bytestream (ignoring)", raw_line)
        return ""
    return "".join(c for c in line if c in printable).strip()


def _tx_line(frame: str, fast: bool = False) -> str:
    """Convert a frame line (e.g. 'Z0b...') into the culfw command that sends it."""

    if not frame.startswith(MAX_MARKER):
        raise exc.TransportError(f"Not a frame: >>>{frame}<<<")
    return f"{CUL_SEND_FAST if fast else CUL_SEND}{frame[len(MAX_MARKER) :]}"


def limit_duty_cycle(
    max_duty_cycle: float, time_window: int = DUTY_CYCLE_DURATION
) -> Callable[..., Any]:
    """Limit the Tx rate to the RF duty cycle regulations (e.g. 1% per hour).

    max_duty_cycle: bandwidth available per observation window (%)
    time_window: duration of the sliding observation window (default 1 hour)
    """

    TX_RATE_AVAIL: int = 10000  # bits per second (deemed, MAX! is ~10 kbit/s)
    PREAMBLE_BITS: int = TX_RATE_AVAIL * 1  # a one second preamble, unless fast
    FILL_RATE: float = TX_RATE_AVAIL * max_duty_cycle  # bits per second
    BUCKET_CAPACITY: float = FILL_RATE * time_window

    def decorator(
        fnc: Callable[..., Awaitable[None]],
    ) -> Callable[..., Awaitable[None]]:
        # start with a full bit bucket
        bits_in_bucket: float = BUCKET_CAPACITY
        last_time_bit_added = perf_counter()

        @wraps(fnc)
        async def wrapper(
            self: PortTransport, frame: str, *args: Any, fast: bool = False
        ) -> None:
            nonlocal bits_in_bucket
            nonlocal last_time_bit_added

            rf_frame_size = len(frame[len(MAX_MARKER) :]) * 4 + (
                0 if fast else PREAMBLE_BITS
            )

            # top-up the bit bucket
            elapsed_time = perf_counter() - last_time_bit_added
            bits_in_bucket = min(
                bits_in_bucket + elapsed_time * FILL_RATE, BUCKET_CAPACITY
            )
            last_time_bit_added = perf_counter()

            # if required, wait for the bit bucket to refill
            if bits_in_bucket < rf_frame_size:
                await asyncio.sleep((rf_frame_size - bits_in_bucket) / FILL_RATE)

            # consume the bits from the bit bucket
            try:
                await fnc(self, frame, *args, fast=fast)
            finally:
                bits_in_bucket -= rf_frame_size

        @wraps(fnc)
        async def null_wrapper(
            self: PortTransport, frame: str, *args: Any, fast: bool = False
        ) -> None:
            await fnc(self, frame, *args, fast=fast)

        if 0 < max_duty_cycle <= 1:
            return wrapper

        return null_wrapper

    return decorator


# ### Abstractors #####################################################################
# ### Do the bare minimum to abstract each transport from its underlying class


class _FileTransportAbstractor:
    """Do the bare minimum to abstract a transport from its underlying class."""

    def __init__(
        self,
        pkt_source: dict[str, str] | TextIOWrapper,
        protocol: CulProtocolT,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._pkt_source = pkt_source

        self._protocol = protocol
        self._loop = loop or asyncio.get_event_loop()


class _PortTransportAbstractor(serial_asyncio.SerialTransport):  # type: ignore[misc, no-any-unimported]
    """Do the bare minimum to abstract a transport from its underlying class."""

    serial: Serial  # type: ignore[no-any-unimported]

    def __init__(  # type: ignore[no-any-unimported]
        self,
        serial_instance: Serial,
        protocol: CulProtocolT,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        super().__init__(loop or asyncio.get_event_loop(), protocol, serial_instance)


# ### Base classes (common to all Transports) #########################################
# ### Code shared by all R/O, R/W transport types (File/dict, Serial)


class _ReadTransport:
    """Interface for read-only transports."""

    _protocol: CulProtocolT = None  # type: ignore[assignment]
    _loop: asyncio.AbstractEventLoop

    def __init__(
        self, *args: Any, extra: dict[str, Any] | None = None, **kwargs: Any
    ) -> None:
        super().__init__(*args, loop=kwargs.pop("loop", None))

        self._extra: dict[str, Any] = {} if extra is None else extra

        self._closing: bool = False
        self._reading: bool = False

        self._this_dtm: dt | None = None

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._protocol})"

    def _dt_now(self) -> dt:
        """Return a precise datetime, using last line's dtm."""

        return self._this_dtm or dt(1970, 1, 1, 1, 0)

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        """The asyncio event loop as declared by SerialTransport."""
        return self._loop

    def get_extra_info(self, name: str, default: Any = None) -> Any:
        return self._extra.get(name, default)

    def is_closing(self) -> bool:
        """Return True if the transport is closing or has closed."""
        return self._closing

    def _close(self, exc: Exception | None = None) -> None:
        """Inform the protocol that this transport has closed."""

        if self._closing:
            return
        self._closing = True

        self.loop.call_soon_threadsafe(
            functools.partial(self._protocol.connection_lost, exc)
        )

    def close(self) -> None:
        """Close the transport gracefully."""
        self._close()

    def is_reading(self) -> bool:
        """Return True if the transport is receiving."""
        return self._reading

    def pause_reading(self) -> None:
        """Pause the receiving end (no data to protocol.line_received())."""
        self._reading = False

    def resume_reading(self) -> None:
        """Resume the receiving end."""
        self._reading = True

    def _make_connection(self) -> None:
        self.loop.call_soon_threadsafe(
            functools.partial(self._protocol.connection_made, self)
        )

    # NOTE: all protocol callbacks should be invoked from here
    def _line_read(self, dtm: dt, line: str) -> None:
        """Pass every (non-blank) line to the protocol's callback."""

        if not line:
            return

        self._this_dtm = dtm

        if self._closing is True:
            raise exc.TransportError("Transport is closing or has closed")

        self.loop.call_soon_threadsafe(self._protocol.line_received, dtm, line)

    async def write_frame(self, frame: str, *, fast: bool = False) -> None:
        """Transmit the frame via the underlying handler."""
        raise exc.TransportSerialError("This transport is read only")


class _FullTransport(_ReadTransport):  # asyncio.Transport
    """Interface representing a bidirectional transport."""

    def __init__(
        self, *args: Any, disable_sending: bool = False, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)

        self._disable_sending = disable_sending

    def _dt_now(self) -> dt:
        """Return a precise datetime, using the current dtm."""
        return dt_now()

    # NOTE: Protocols call write_frame(), not write()
    def write(self, data: bytes) -> None:
        """Write the data to the underlying handler."""
        raise exc.TransportError("write() not implemented, use write_frame() instead")

    async def write_frame(self, frame: str, *, fast: bool = False) -> None:
        """Transmit the frame via the underlying handler."""

        if self._disable_sending is True:
            raise exc.TransportError("Sending has been disabled")
        if self._closing is True:
            raise exc.TransportError("Transport is closing or has closed")

        await self._write_frame(frame, fast=fast)

    async def _write_frame(self, frame: str, *, fast: bool = False) -> None:
        """Write some data bytes to the underlying transport."""
        raise NotImplementedError("_write_frame() not implemented here")


# ### Implement the transports for File/dict (R/O), Serial


class FileTransport(_ReadTransport, _FileTransportAbstractor):
    """Receive lines from a read-only source such as packet log or a dict."""

    def __init__(self, *args: Any, disable_sending: bool = True, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        if bool(disable_sending) is False:
            raise exc.TransportSourceInvalid("This Transport cannot send frames")

        self._extra[SZ_READER_TASK] = self._reader_task = self._loop.create_task(
            self._start_reader(), name="FileTransport._start_reader()"
        )

        self._make_connection()

    async def _start_reader(self) -> None:
        self._reading = True
        try:
            await self._reader()
        except Exception as err:
            self.loop.call_soon_threadsafe(
                functools.partial(self._protocol.connection_lost, err)
            )
        else:
            self.loop.call_soon_threadsafe(
                functools.partial(self._protocol.connection_lost, None)
            )

    def _frame_read(self, dtm_str: str, pkt_line: str) -> None:
        """Strip any RSSI field from a packet log line, and pass it on."""

        try:
            dtm = dt.fromisoformat(dtm_str)
        except ValueError as err:
            _LOGGER.debug("%s < Invalid timestamp (%s)", pkt_line, err)
            return

        rssi, _, line = pkt_line.strip().partition(" ")
        if rssi.startswith(MAX_MARKER) or not line:  # there is no RSSI field
            line = pkt_line.strip()

        self._line_read(dtm, line)

    # NOTE: self._frame_read() invoked from here
    async def _reader(self) -> None:
        """Loop through the packet source for lines and process them."""

        if isinstance(self._pkt_source, dict):
            for dtm_str, pkt_line in self._pkt_source.items():  # assume dtm_str is OK
                while not self._reading:
                    await asyncio.sleep(0.001)
                self._frame_read(dtm_str, pkt_line)
                await asyncio.sleep(0)  # NOTE: big performance penalty if delay >0

        elif isinstance(self._pkt_source, TextIOWrapper):
            for dtm_pkt_line in self._pkt_source:  # should check dtm_str is OK
                while not self._reading:
                    await asyncio.sleep(0.001)
                # can be blank lines in annotated log files
                if (dtm_pkt_line := dtm_pkt_line.strip()) and dtm_pkt_line[:1] != "#":
                    self._frame_read(dtm_pkt_line[:26], dtm_pkt_line[27:])
                await asyncio.sleep(0)  # NOTE: big performance penalty if delay >0

        else:
            raise exc.TransportSourceInvalid(
                f"Packet source is not dict or file: {self._pkt_source!r}"
            )

    def _close(self, exc: Exception | None = None) -> None:
        """Close the transport (cancel any outstanding tasks)."""

        super()._close(exc)

        if self._reader_task:
            self._reader_task.cancel()


class PortTransport(_FullTransport, _PortTransportAbstractor):
    """Send/receive lines async to/from a CUL (culfw) via a serial port.

    See: http://culfw.de/commandref.html
    """

    _init_task: asyncio.Task[None]

    _recv_buffer: bytes = b""

    def __init__(
        self,
        *args: Any,
        init_commands: Iterable[str] = DEFAULT_INIT_CMDS,
        report_rssi: bool = False,
        gap_between_writes: float = MIN_INTER_WRITE_GAP,
        **kwargs: Any,
    ) -> None:
        super().__init__(*args, **kwargs)

        self._init_commands = list(init_commands)
        if report_rssi and CUL_REPORT_RSSI not in self._init_commands:
            self._init_commands.append(CUL_REPORT_RSSI)
        self._extra[SZ_REPORT_RSSI] = report_rssi

        self._gap_between_writes = gap_between_writes
        self._leaker_sem = asyncio.BoundedSemaphore()
        self._leaker_task = self._loop.create_task(
            self._leak_sem(), name="PortTransport._leak_sem()"
        )

        self._init_task = self._loop.create_task(
            self._create_connection(), name="PortTransport._create_connection()"
        )

    async def _create_connection(self) -> None:
        """Put the CUL into MAX! mode, then invoke the Protocol's connection_made()."""

        for cmd in self._init_commands:
            await self._leaker_sem.acquire()
            self._write_line(cmd)

        self._make_connection()

    async def _leak_sem(self) -> None:
        """Used to enforce a minimum time between calls to self.write()."""
        while True:
            await asyncio.sleep(self._gap_between_writes)
            with contextlib.suppress(ValueError):
                self._leaker_sem.release()

    # NOTE: self._line_read() invoked from here
    def _read_ready(self) -> None:
        """Make lines from the read data and process them."""

        def bytes_read(data: bytes) -> Iterable[tuple[dt, bytes]]:
            self._recv_buffer += data
            if b"\r\n" in self._recv_buffer:
                lines = self._recv_buffer.split(b"\r\n")
                self._recv_buffer = lines[-1]
                for line in lines[:-1]:
                    yield self._dt_now(), line + b"\r\n"

        try:
            data: bytes = self.serial.read(self._max_read_size)
        except SerialException as err:
            if not self._closing:
                self._close(exc=exc.TransportSerialError(str(err)))
            return

        if not data:
            return

        for dtm, raw_line in bytes_read(data):
            _LOGGER.debug("Rx: %s", raw_line)

            line = _decode_line(raw_line)
            if line == CUL_NO_CREDIT:
                _LOGGER.warning("%s < The CUL has no send credit (duty cycle)", line)

            self._line_read(dtm, line)

    @limit_duty_cycle(MAX_DUTY_CYCLE_RATE)
    async def write_frame(self, frame: str, *, fast: bool = False) -> None:
        """Transmit the frame via the underlying handler (Protocols call this)."""

        await self._leaker_sem.acquire()  # MIN_INTER_WRITE_GAP
        await super().write_frame(frame, fast=fast)

    # NOTE: The order should be: minimum gap between writes, then duty cycle limits

    async def _write_frame(self, frame: str, *, fast: bool = False) -> None:
        """Write the frame (as a culfw send command) to the underlying transport."""
        self._write_line(_tx_line(frame, fast=fast))

    def _write_line(self, line: str) -> None:
        data = bytes(line, "ascii") + b"\r\n"

        _LOGGER.debug("Tx:     %s", data)

        try:
            self.serial.write(data)
        except SerialException as err:
            self._abort(exc.TransportSerialError(str(err)))

    def _cancel_tasks(self) -> None:
        for task in (self._init_task, self._leaker_task):
            if task and not task.done():
                task.cancel()

    def _abort(self, exc: Exception) -> None:  # used by serial_asyncio.SerialTransport
        super()._abort(exc)
        self._cancel_tasks()

    def _close(self, exc: Exception | None = None) -> None:
        """Close the transport (cancel any outstanding tasks)."""

        super()._close(exc)
        self._cancel_tasks()


CulTransportT: TypeAlias = FileTransport | PortTransport


async def transport_factory(
    protocol: CulProtocolT,
    /,
    *,
    port_name: SerPortNameT | None = None,
    port_config: PortConfigT | None = None,
    packet_log: TextIOWrapper | None = None,
    packet_dict: dict[str, str] | None = None,
    disable_sending: bool | None = False,
    extra: dict[str, Any] | None = None,
    loop: asyncio.AbstractEventLoop | None = None,
    **kwargs: Any,  # init_commands, report_rssi, gap_between_writes
) -> CulTransportT:
    """Create and return a culfw-specific async line Transport."""

    def get_serial_instance(  # type: ignore[no-any-unimported]
        ser_name: SerPortNameT, ser_config: PortConfigT | None
    ) -> Serial:
        """Return a Serial instance for the given port name and config.

        May: raise TransportSourceInvalid("Unable to open serial port...")
        """
        # For example:
        # - 'rfc2217://localhost:5001'
        # - '/dev/serial/by-id/usb-busware.de_CUL868-if00'

        ser_config = SCH_SERIAL_PORT_CONFIG(ser_config or {})

        try:
            ser_obj = serial_for_url(ser_name, **ser_config)
        except SerialException as err:
            _LOGGER.error(
                "Failed to open %s (config: %s): %s", ser_name, ser_config, err
            )
            raise exc.TransportSourceInvalid(
                f"Unable to open the serial port: {ser_name}"
            ) from err

        # FTDI on Posix/Linux would be a common environment for this library...
        with contextlib.suppress(AttributeError, NotImplementedError, ValueError):
            ser_obj.set_low_latency_mode(True)

        return ser_obj

    if len([x for x in (packet_dict, packet_log, port_name) if x is not None]) != 1:
        raise exc.TransportSourceInvalid(
            "Packet source must be exactly one of: packet_dict, packet_log, port_name"
        )

    if (pkt_source := packet_log or packet_dict) is not None:
        file_transport = FileTransport(pkt_source, protocol, extra=extra, loop=loop)
        await protocol.wait_for_connection_made()
        return file_transport

    assert port_name is not None  # mypy check

    ser_instance = get_serial_instance(port_name, port_config)

    if os.name == "nt" or ser_instance.portstr[:7] in ("rfc2217", "socket:"):
        _LOGGER.warning(
            "This type of serial interface is not fully supported by this library"
        )

    transport = PortTransport(
        ser_instance,
        protocol,
        disable_sending=bool(disable_sending),
        extra=extra,
        loop=loop,
        **kwargs,
    )

    await protocol.wait_for_connection_made(timeout=_DEFAULT_TIMEOUT_PORT)
    return transport
