#!/usr/bin/env python3
# -*- coding: utf-8 -*-
#
"""MaxCul RF - a MAX! (Moritz) binding for culfw transceivers.

Test the transports (the serial port itself is not tested).
"""

import asyncio
from datetime import datetime as dt
from pathlib import Path
from time import perf_counter
from typing import Any

import pytest

from maxcul_rf import Gateway
from maxcul_tx import FileTransport, create_stack
from maxcul_tx import exceptions as exc
from maxcul_tx.transport import _tx_line, limit_duty_cycle

from .common import THERMOSTAT_STATE_LINE

FRAME = "Z0b0000400102030a1b2c006b"


def test_tx_line() -> None:
    assert _tx_line(FRAME) == "Zs0b0000400102030a1b2c006b"
    assert _tx_line(FRAME, fast=True) == "Zf0b0000400102030a1b2c006b"

    with pytest.raises(exc.TransportError):
        _tx_line("X21")


class _Writer:
    def __init__(self) -> None:
        self.written: list[tuple[str, bool]] = []

    async def _write(self, frame: str, *, fast: bool = False) -> None:
        self.written.append((frame, fast))

    # 100 bits per 0.1 sec, and 96 bits per fast frame (no preamble)
    write_limited = limit_duty_cycle(0.1, time_window=0.1)(_write)
    write_unlimited = limit_duty_cycle(0)(_write)


@pytest.mark.asyncio
async def test_duty_cycle_limit() -> None:
    writer = _Writer()

    t0 = perf_counter()
    await writer.write_limited(FRAME, fast=True)  # the bucket starts full
    t1 = perf_counter()
    await writer.write_limited(FRAME, fast=True)  # must wait for the bucket to refill
    t2 = perf_counter()

    assert writer.written == [(FRAME, True), (FRAME, True)]
    assert t1 - t0 < 0.05
    assert t2 - t1 > 0.07


@pytest.mark.asyncio
async def test_duty_cycle_no_limit() -> None:
    writer = _Writer()

    t0 = perf_counter()
    for _ in range(10):
        await writer.write_unlimited(FRAME)

    assert perf_counter() - t0 < 0.05
    assert len(writer.written) == 10


@pytest.mark.asyncio
async def test_file_transport_dict() -> None:
    lines: list[tuple[dt, str]] = []

    protocol, transport = await create_stack(
        lambda d, l: lines.append((d, l)),
        packet_dict={
            "2026-10-01T12:00:00.000000": THERMOSTAT_STATE_LINE,
            "2026-10-01T12:00:01.000000": "-56 " + THERMOSTAT_STATE_LINE,  # has RSSI
            "2026-10-01T12:00:02.000000": "",  # blank lines are ignored
            "not a timestamp": THERMOSTAT_STATE_LINE,
        },
    )
    assert isinstance(transport, FileTransport)

    await protocol.wait_for_connection_lost(timeout=None)

    assert lines == [
        (dt(2026, 10, 1, 12, 0, 0), THERMOSTAT_STATE_LINE),
        (dt(2026, 10, 1, 12, 0, 1), THERMOSTAT_STATE_LINE),
    ]
    assert transport._dt_now() == dt(2026, 10, 1, 12, 0, 1)  # the last line's

    with pytest.raises(exc.ProtocolError):  # a file is read only
        await protocol.send_cmd(None)  # type: ignore[arg-type]

    transport.close()


@pytest.mark.asyncio
async def test_file_transport_log(tmp_path: Path) -> None:
    next_line = THERMOSTAT_STATE_LINE.replace("2B00D7", "2C00D8")  # 22.0, 21.6

    log_file = tmp_path / "packet.log"
    log_file.write_text(
        "# a comment\n"
        "\n"
        f"2026-10-01T12:00:00.000000 -56 {THERMOSTAT_STATE_LINE}\n"
        f"2026-10-01T12:00:01.000000 --- {next_line}\n"
    )

    published: list[tuple[str, Any]] = []

    with open(log_file) as fh:
        gwy = Gateway(
            None,
            input_file=fh,
            items={
                "Living_Thermo": {
                    "device_type": "radiator_thermostat",
                    "address": "0A1B2C",
                }
            },
        )
        gwy.add_update_handler(lambda i, v: published.append((i, v)))

        await gwy.start()
        await gwy.stop()

    assert published == [("Living_Thermo", 21.5), ("Living_Thermo", 22.0)]


@pytest.mark.asyncio
async def test_file_transport_invalid_source() -> None:
    loop = asyncio.get_running_loop()

    with pytest.raises(exc.TransportSourceInvalid):
        await create_stack(lambda d, l: None, port_name="/dev/null", packet_dict={})

    protocol, transport = await create_stack(lambda d, l: None, packet_dict={})
    await protocol.wait_for_connection_lost(timeout=None)

    with pytest.raises(exc.TransportSourceInvalid):
        FileTransport({}, protocol, disable_sending=False, loop=loop)

    transport.close()
