#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) protocol decoder & encoder for culfw transceivers."""

from __future__ import annotations

import asyncio
from functools import partial
from typing import TYPE_CHECKING, Any

from .address import NULL_ADDR, NULL_ADDRESS, Address, id_to_address
from .command import (
    MSG_COUNTER,
    Command,
    MessageCounter,
    OutboundCommandT,
    SetOnOff,
    SetTemperature,
    encode,
)
from .const import (
    DEFAULT_CONTROLLER_ADDR,
    MAX_MARKER,
    MAX_TEMPERATURE,
    MIN_TEMPERATURE,
    ROLE_FEATURES,
    THERMOSTAT_ROLES,
    DevFeature,
    DevRole,
    DevType,
    FrameFlag,
    MsgType,
    TempMode,
)
from .frame import Frame, decode_line
from .logger import set_pkt_logging
from .message import Message
from .moritz import MSG_SCHEMA_VERSION, MSG_TYPES_SCHEMA
from .packet import PKT_LOGGER, Packet
from .protocol import (
    CulProtocol,
    CulProtocolT,
    ReadProtocol,
    create_stack,
    protocol_factory,
)
from .schemas import SZ_PACKET_LOG, SZ_SERIAL_PORT
from .transport import (
    CulTransportT,
    FileTransport,
    PortTransport,
    transport_factory,
)
from .version import VERSION

__all__ = [
    "VERSION",
    #
    "SZ_PACKET_LOG",
    "SZ_SERIAL_PORT",
    #
    "DEFAULT_CONTROLLER_ADDR",
    "MAX_MARKER",
    "MAX_TEMPERATURE",
    "MIN_TEMPERATURE",
    "MSG_COUNTER",
    "MSG_SCHEMA_VERSION",
    "MSG_TYPES_SCHEMA",
    "NULL_ADDR",
    "NULL_ADDRESS",
    "ROLE_FEATURES",
    "THERMOSTAT_ROLES",
    #
    "DevFeature",
    "DevRole",
    "DevType",
    "FrameFlag",
    "MsgType",
    "TempMode",
    #
    "Address",
    "Command",
    "Frame",
    "Message",
    "MessageCounter",
    "OutboundCommandT",
    "Packet",
    "SetOnOff",
    "SetTemperature",
    #
    "CulProtocol",
    "CulProtocolT",
    "ReadProtocol",
    "create_stack",
    "protocol_factory",
    #
    "CulTransportT",
    "FileTransport",
    "PortTransport",
    "transport_factory",
    #
    "decode_line",
    "encode",
    "id_to_address",
    "set_pkt_logging_config",
]


if TYPE_CHECKING:
    from logging import Logger


async def set_pkt_logging_config(**config: Any) -> Logger:
    """Set up MAX! packet logging to a file and/or the console.

    Runs in an executor, as opening the packet log file is a blocking call.

    :param config: if file_name is included, opens packet_log file
    :return: a logging.Logger
    """
    loop = asyncio.get_running_loop()
    await loop.run_in_executor(None, partial(set_pkt_logging, PKT_LOGGER, **config))
    return PKT_LOGGER
