#!/usr/bin/env python3
"""MaxCul RF - dispatch host commands (to the radio) and frames (to the host).

Commands for an item are routed by the item's role: to the pairing controller for a
pairing-control item, or to the frame codec (then the transport) for a thermostat.

Lines from the transceiver are decoded into messages, and the payload of each message
is translated into status updates for every item bound to the source address.

Nothing is raised to the host: every failure is isolated to one command (or frame),
is logged, and is never retried.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime as dt
from typing import Any, Final

from maxcul_tx import (
    MAX_MARKER,
    Address,
    Command,
    Message,
    Packet,
    encode,
)
from maxcul_tx.parsers import SZ_ACKNOWLEDGED, SZ_STATE, parse_ack_state

from . import exceptions as exc
from .const import (
    DEFAULT_CONTROLLER_ADDR,
    DEV_TYPE_ROLE_MAP,
    FEATURE_KEYS,
    STATE_MSG_TYPES,
    SZ_DEVICE_TYPE,
    SZ_SERIAL,
    MsgType,
)
from .device import LogicalDevice, to_command
from .pairing_fsm import PairingController

#
# NOTE: All debug flags should be False for deployment to end-users
_DBG_FORCE_LOG_MESSAGES: Final[bool] = False  # useful for dev/test
_DBG_INCREASE_LOG_LEVELS: Final[bool] = False  # set True for developer-friendly log spam

_LOGGER = logging.getLogger(__name__)


__all__ = ["CommandDispatcher"]


ResolverT = Callable[[str], LogicalDevice | None]
AddrLookupT = Callable[[Address], list[LogicalDevice]]
SendCmdT = Callable[[Command], None]
PublishT = Callable[[str, Any], None]


class CommandDispatcher:
    """Route host commands to the radio, and received frames to the host."""

    def __init__(
        self,
        resolve_config: ResolverT,
        devices_by_address: AddrLookupT,
        pairing: PairingController,
        send_cmd: SendCmdT,
        publish: PublishT,
        *,
        controller_addr: str = DEFAULT_CONTROLLER_ADDR,
        has_rssi: bool = False,
    ) -> None:
        self._resolve_config = resolve_config
        self._devices_by_address = devices_by_address
        self._pairing = pairing
        self._send_cmd = send_cmd
        self._publish = publish

        self._controller = Address(controller_addr)
        self._has_rssi = has_rssi

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(controller={self._controller.id})"

    def _log_error(self, ctx: object, err: Exception) -> None:
        (_LOGGER.error if _DBG_INCREASE_LOG_LEVELS else _LOGGER.warning)(
            "%s < %s(%s)", ctx, err.__class__.__name__, err
        )

    # host -> radio

    def handle_command(self, item: str, value: Any) -> None:
        """Process a command from the host for an item (never raises)."""

        _LOGGER.debug("%s < Received command: %r", item, value)

        if (dev := self._resolve_config(item)) is None:
            self._log_error(
                item, exc.ConfigurationMissing(f"No config for item: {item}")
            )
            return

        try:
            if dev.is_pairing_control:
                self._pairing.handle_command(item, value)
            elif dev.is_thermostat:
                self._handle_thermostat_cmd(dev, value)
            else:
                _LOGGER.warning(
                    "%s < Command ignored as it doesn't make sense: %r", dev, value
                )

        except exc.MaxCulException as err:  # PairingError, CommandInvalid, etc.
            self._log_error(dev, err)

    def _handle_thermostat_cmd(self, dev: LogicalDevice, value: Any) -> None:
        """Encode an on/off or setpoint command and pass it to the transport.

        Will raise CommandInvalid (or UnsupportedCommand) if the command is invalid.
        """

        if (cmd := to_command(value)) is None:
            raise exc.CommandInvalid(f"Invalid thermostat command: {value!r}")

        assert dev.address is not None  # mypy check

        frame = encode(
            cmd,
            dev.address,
            dev.role,
            dev.feature,
            src=self._controller,
            group_id=dev.group_id,
        )

        _LOGGER.info("%s < Sending %s as %r", dev, cmd, frame)
        self._send_cmd(frame)

    # radio -> host

    def handle_line(self, dtm: dt, line: str) -> None:
        """Process a line from the transceiver (never raises).

        Lines that are not frames are ignored, and malformed frames are dropped.
        """

        if not line.startswith(MAX_MARKER):  # e.g. culfw chatter, such as a version
            _LOGGER.debug("%s < Ignoring a non-frame line", line)
            return

        try:
            msg = Message(Packet.from_port(dtm, line, has_rssi=self._has_rssi))
        except exc.MalformedFrame as err:  # incl. FramePayloadInvalid
            self._log_error(line, err)
            return

        self.handle_msg(msg)

    def handle_msg(self, msg: Message) -> None:
        """Translate a (valid) message into status updates."""

        if _DBG_FORCE_LOG_MESSAGES:
            _LOGGER.warning(msg)
        else:
            _LOGGER.info(msg)

        try:
            if msg.msg_type == MsgType.PAIR_PING:
                self._handle_pair_ping(msg)
                return

            if not (devices := self._devices_by_address(msg.src)):
                raise exc.UnknownDevice(f"No item is bound to: {msg.src.id}")

            if msg.msg_type not in STATE_MSG_TYPES:
                _LOGGER.debug("%s < No state to update (%s)", msg.src, msg.msg_type)
                return

            for dev in devices:
                self._update_item(dev, msg)

        except exc.MaxCulException as err:  # UnknownDevice, FramePayloadInvalid, etc.
            self._log_error(repr(msg), err)

    def _handle_pair_ping(self, msg: Message) -> None:
        """Answer a PairPing with a (fast) PairPong, but only when pairing."""

        if not self._pairing.is_pairing:
            _LOGGER.info("%s < Ignoring a PairPing (not in pairing mode)", msg.src)
            return

        if msg.dst != self._controller and not msg.dst.is_null:
            _LOGGER.info("%s < Ignoring a PairPing (for %s)", msg.src, msg.dst)
            return

        dev_type = msg.payload[SZ_DEVICE_TYPE]
        _LOGGER.info(
            "%s < Pairing with the device: %s (%s)",
            msg.src,
            msg.payload[SZ_SERIAL],
            DEV_TYPE_ROLE_MAP.get(dev_type, dev_type),
        )
        self._send_cmd(Command.pair_pong(msg.src, src=self._controller))

    def _update_item(self, dev: LogicalDevice, msg: Message) -> None:
        """Publish the item's value, if the message's payload has one for its feature.

        Will raise FramePayloadInvalid if an Ack's state cannot be parsed.
        """

        payload = msg.payload
        if msg.msg_type == MsgType.ACK:
            if not payload[SZ_ACKNOWLEDGED]:
                _LOGGER.warning("%s < The device rejected the last command", dev)
            if not payload[SZ_STATE]:
                return
            try:
                payload = parse_ack_state(payload[SZ_STATE], dev.role)
            except (IndexError, ValueError) as err:
                raise exc.FramePayloadInvalid(
                    f"Unable to parse the ack state: {err}"
                ) from err

        key = FEATURE_KEYS.get(dev.feature)
        if key is None or payload.get(key) is None:
            return

        _LOGGER.debug("%s < Updating with: %s", dev, payload[key])
        self._publish(dev.item_name, payload[key])
