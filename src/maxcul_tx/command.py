#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) protocol decoder & encoder for culfw transceivers.

Construct a command (a frame that is to be sent).
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from decimal import Decimal
from typing import Final, TypeAlias, assert_never

from . import exceptions as exc
from .address import Address
from .const import (
    DEFAULT_CONTROLLER_ADDR,
    DEFAULT_GROUP_ID,
    MAX_TEMPERATURE,
    MIN_TEMPERATURE,
    OFF_TEMPERATURE,
    ON_TEMPERATURE,
    THERMOSTAT_ROLES,
    DevFeature,
    DevRole,
    FrameFlag,
    MsgType,
    TempMode,
)
from .frame import Frame
from .helpers import clamp_temp, hex_from_setpoint, round_temp

_LOGGER = logging.getLogger(__name__)


class MessageCounter:
    """The message counter of outbound frames, wraps from 0xFF to 0x00.

    It is shared by all senders in the process, so is guarded by a lock.
    """

    def __init__(self, value: int = 0) -> None:
        self._lock = threading.Lock()
        self._value = value & 0xFF

    def __next__(self) -> int:
        with self._lock:
            value = self._value
            self._value = (value + 1) & 0xFF
        return value

    def reset(self, value: int = 0) -> None:
        with self._lock:
            self._value = value & 0xFF


MSG_COUNTER: Final = MessageCounter()


@dataclass(frozen=True)
class SetOnOff:
    """Turn a thermostat on (fully open) or off (fully closed)."""

    on: bool


@dataclass(frozen=True)
class SetTemperature:
    """Set the (manual) setpoint of a thermostat."""

    temperature: Decimal


OutboundCommandT: TypeAlias = SetOnOff | SetTemperature


# the valid setpoint range, by role
ROLE_TEMP_RANGE: Final[dict[DevRole, tuple[Decimal, Decimal]]] = {
    r: (MIN_TEMPERATURE, MAX_TEMPERATURE) for r in THERMOSTAT_ROLES
}

# the message type to use, by (command kind, role)
CMD_MSG_TYPES: Final[dict[tuple[type, DevRole], MsgType]] = {
    (SetOnOff, DevRole.RADIATOR_THERMOSTAT): MsgType.SET_TEMPERATURE,
    (SetOnOff, DevRole.RADIATOR_THERMOSTAT_PLUS): MsgType.SET_TEMPERATURE,
    (SetOnOff, DevRole.WALL_THERMOSTAT): MsgType.SET_TEMPERATURE,
    (SetTemperature, DevRole.RADIATOR_THERMOSTAT): MsgType.SET_TEMPERATURE,
    (SetTemperature, DevRole.RADIATOR_THERMOSTAT_PLUS): MsgType.SET_TEMPERATURE,
    (SetTemperature, DevRole.WALL_THERMOSTAT): MsgType.SET_TEMPERATURE,
}


class Command(Frame):
    """The Command class (frames to be transmitted).

    They may be sent fast (without the wake-up preamble), e.g. replies to a device
    that is known to be listening.
    """

    def __init__(self, frame: str, *, fast: bool = False) -> None:
        """Create a command from a hex string (and its meta-attrs)."""

        try:
            super().__init__(frame)
        except exc.MalformedFrame as err:
            raise exc.CommandInvalid(err.message) from err

        self.fast = fast

    @classmethod  # generic constructor
    def from_attrs(
        cls,
        msg_type: MsgType,
        dst: Address | str,
        payload: str,
        *,
        src: Address | str = DEFAULT_CONTROLLER_ADDR,
        group_id: int = DEFAULT_GROUP_ID,
        flags: FrameFlag | None = None,
        seqn: int | None = None,
        fast: bool = False,
    ) -> Command:
        """Create a command from its attrs, using the next message counter."""

        if flags is None:
            flags = FrameFlag.TO_GROUP if group_id else FrameFlag.NONE

        try:
            frame = Frame._from_attrs(
                next(MSG_COUNTER) if seqn is None else seqn,
                flags,
                msg_type,
                src,
                dst,
                group_id,
                payload,
            )
        except exc.MalformedFrame as err:
            raise exc.CommandInvalid(err.message) from err

        return cls(frame._frame, fast=fast)

    @classmethod  # constructor for 40
    def set_temperature(
        cls,
        dst: Address | str,
        temperature: Decimal,
        *,
        mode: TempMode = TempMode.MANUAL,
        src: Address | str = DEFAULT_CONTROLLER_ADDR,
        group_id: int = DEFAULT_GROUP_ID,
        seqn: int | None = None,
    ) -> Command:
        """Constructor to set the setpoint of a thermostat (c.f. parser_40)."""

        try:
            payload = hex_from_setpoint(temperature, mode)
        except ValueError as err:
            raise exc.CommandInvalid(str(err)) from err

        return cls.from_attrs(
            MsgType.SET_TEMPERATURE,
            dst,
            payload,
            src=src,
            group_id=group_id,
            seqn=seqn,
        )

    @classmethod  # constructor for 01
    def pair_pong(
        cls,
        dst: Address | str,
        *,
        src: Address | str = DEFAULT_CONTROLLER_ADDR,
        seqn: int | None = None,
    ) -> Command:
        """Constructor to reply to a pair_ping (c.f. parser_00).

        The device is listening for the reply, so it is sent fast.
        """

        return cls.from_attrs(
            MsgType.PAIR_PONG,
            dst,
            "00",
            src=src,
            flags=FrameFlag.NONE,
            seqn=seqn,
            fast=True,
        )


def encode(
    cmd: OutboundCommandT,
    dst: Address | str,
    role: DevRole,
    feature: DevFeature,
    *,
    src: Address | str = DEFAULT_CONTROLLER_ADDR,
    group_id: int = DEFAULT_GROUP_ID,
    seqn: int | None = None,
) -> Command:
    """Encode a (typed) command for a device into a frame.

    Will raise UnsupportedCommand if the command is not valid for the device's role or
    feature, and no message counter is consumed.
    """

    if feature != DevFeature.THERMOSTAT or (type(cmd), role) not in CMD_MSG_TYPES:
        raise exc.UnsupportedCommand(
            f"{type(cmd).__name__} is not supported by {role}/{feature}"
        )

    msg_type = CMD_MSG_TYPES[(type(cmd), role)]
    min_temp, max_temp = ROLE_TEMP_RANGE[role]

    match cmd:
        case SetOnOff():
            temperature = ON_TEMPERATURE if cmd.on else OFF_TEMPERATURE
        case SetTemperature():
            try:
                temperature = round_temp(cmd.temperature)
            except (TypeError, ValueError) as err:
                raise exc.CommandInvalid(str(err)) from err
            if temperature != (clamped := clamp_temp(temperature, min_temp, max_temp)):
                _LOGGER.info(
                    "%s < Setpoint clamped from %s to %s", dst, temperature, clamped
                )
            temperature = clamped
        case _:
            assert_never(cmd)

    assert msg_type == MsgType.SET_TEMPERATURE  # the only kind, for now
    return Command.set_temperature(
        dst,
        temperature,
        mode=TempMode.MANUAL,
        src=src,
        group_id=group_id,
        seqn=seqn,
    )
