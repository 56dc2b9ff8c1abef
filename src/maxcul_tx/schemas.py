#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) protocol decoder & encoder for culfw transceivers.

Schema processor for protocol (lower) layer.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Final, TypedDict

import voluptuous as vol

from .address import ADDRESS_REGEX
from .const import (
    CUL_RECV_ENABLE,
    DEFAULT_CONTROLLER_ADDR,
    MIN_INTER_WRITE_GAP,
)

_LOGGER = logging.getLogger(__name__)


#
# 0/4: Transceiver comms configuration
SZ_COMMS_PARAMS: Final = "comms_params"
SZ_GAP_BETWEEN_WRITES: Final = "gap_between_writes"

SCH_COMMS_PARAMS = vol.Schema(
    {
        vol.Required(SZ_GAP_BETWEEN_WRITES, default=MIN_INTER_WRITE_GAP): vol.All(
            vol.Coerce(float), vol.Range(min=0.0, max=1.0)
        ),
    },
    extra=vol.PREVENT_EXTRA,
)

SCH_ADDRESS = vol.All(str, vol.Upper, vol.Match(ADDRESS_REGEX))


#
# 1/4: Packet log configuration
SZ_FILE_NAME: Final = "file_name"
SZ_PACKET_LOG: Final = "packet_log"
SZ_ROTATE_BACKUPS: Final = "rotate_backups"
SZ_ROTATE_BYTES: Final = "rotate_bytes"


class PktLogConfigT(TypedDict):
    file_name: str
    rotate_backups: int
    rotate_bytes: int | None


def sch_packet_log_dict_factory(
    default_backups: int = 0,
) -> dict[vol.Required, vol.Any]:
    """Return a packet log dict with a configurable default rotation policy.

    usage:

    SCH_PACKET_LOG_7 = vol.Schema(
        packet_log_dict_factory(default_backups=7), extra=vol.PREVENT_EXTRA
    )
    """

    SCH_PACKET_LOG_CONFIG = vol.Schema(
        {
            vol.Optional(SZ_ROTATE_BACKUPS, default=default_backups): vol.Any(
                None, int
            ),
            vol.Optional(SZ_ROTATE_BYTES, default=None): vol.Any(None, int),
        },
        extra=vol.PREVENT_EXTRA,
    )

    def NormalisePacketLog(rotate_backups: int = 0) -> Callable[..., Any]:
        def normalise_packet_log(node_value: str | PktLogConfigT) -> PktLogConfigT:
            if isinstance(node_value, str):
                return {
                    SZ_FILE_NAME: node_value,
                    SZ_ROTATE_BACKUPS: rotate_backups,
                    SZ_ROTATE_BYTES: None,
                }
            return node_value

        return normalise_packet_log

    return {  # SCH_PACKET_LOG_DICT
        vol.Optional(SZ_PACKET_LOG, default=None): vol.Any(
            None,
            vol.All(str, NormalisePacketLog(rotate_backups=default_backups)),
            SCH_PACKET_LOG_CONFIG.extend({vol.Required(SZ_FILE_NAME): str}),
        )
    }


SCH_PACKET_LOG = vol.Schema(
    sch_packet_log_dict_factory(default_backups=7), extra=vol.PREVENT_EXTRA
)


#
# 2/4: Serial port configuration
SZ_PORT_NAME: Final = "port_name"
SZ_SERIAL_PORT: Final = "serial_port"

SZ_BAUDRATE: Final = "baudrate"
SZ_DSRDTR: Final = "dsrdtr"
SZ_RTSCTS: Final = "rtscts"
SZ_TIMEOUT: Final = "timeout"
SZ_XONXOFF: Final = "xonxoff"

SCH_SERIAL_PORT_CONFIG = vol.Schema(
    {
        vol.Optional(SZ_BAUDRATE, default=38400): vol.All(
            vol.Coerce(int), vol.Any(9600, 38400, 57600, 115200)
        ),  # NB: culfw defaults to 38400
        vol.Optional(SZ_DSRDTR, default=False): bool,
        vol.Optional(SZ_RTSCTS, default=False): bool,
        vol.Optional(SZ_TIMEOUT, default=0): vol.Any(None, int),
        vol.Optional(SZ_XONXOFF, default=False): bool,
    },
    extra=vol.PREVENT_EXTRA,
)


class PortConfigT(TypedDict):
    baudrate: int  # 9600, 38400, 57600, 115200
    dsrdtr: bool
    rtscts: bool
    timeout: int
    xonxoff: bool


def sch_serial_port_dict_factory() -> dict[vol.Required, vol.Any]:
    """Return a serial port dict.

    usage:

    SCH_SERIAL_PORT = vol.Schema(
        sch_serial_port_dict_factory(), extra=vol.PREVENT_EXTRA
    )
    """

    def NormaliseSerialPort() -> Callable[[str | PortConfigT], PortConfigT]:
        def normalise_serial_port(node_value: str | PortConfigT) -> PortConfigT:
            if isinstance(node_value, str):
                return {SZ_PORT_NAME: node_value} | SCH_SERIAL_PORT_CONFIG({})  # type: ignore[no-any-return]
            return node_value

        return normalise_serial_port

    return {  # SCH_SERIAL_PORT_DICT
        vol.Required(SZ_SERIAL_PORT): vol.Any(
            vol.All(str, NormaliseSerialPort()),
            SCH_SERIAL_PORT_CONFIG.extend({vol.Required(SZ_PORT_NAME): str}),
        )
    }


SCH_SERIAL_PORT = vol.Schema(sch_serial_port_dict_factory(), extra=vol.PREVENT_EXTRA)


#
# 3/4: Transceiver (engine) configuration
SZ_CONTROLLER_ADDR: Final = "controller_address"
SZ_DISABLE_SENDING: Final = "disable_sending"
SZ_INIT_COMMANDS: Final = "init_commands"
SZ_REPORT_RSSI: Final = "report_rssi"

SCH_ENGINE_DICT = {
    vol.Optional(SZ_CONTROLLER_ADDR, default=DEFAULT_CONTROLLER_ADDR): SCH_ADDRESS,
    vol.Optional(SZ_DISABLE_SENDING, default=False): bool,
    vol.Optional(SZ_REPORT_RSSI, default=False): bool,
    vol.Optional(SZ_INIT_COMMANDS, default=[CUL_RECV_ENABLE]): [
        vol.All(str, vol.Length(min=1))
    ],
    vol.Optional(SZ_COMMS_PARAMS, default={}): SCH_COMMS_PARAMS,
}
SCH_ENGINE_CONFIG = vol.Schema(SCH_ENGINE_DICT, extra=vol.REMOVE_EXTRA)
