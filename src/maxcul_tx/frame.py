#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) protocol decoder & encoder for culfw transceivers.

Provide the base class for commands (constructed/sent frames) and packets.

A frame is the hex after the marker, all fields are one byte unless stated:

    length, msg_count, flags, msg_type, src (3), dst (3), group_id, payload (0+)

The length is the number of bytes after the length byte, so is HEADER_LEN + payload.
"""

from __future__ import annotations

import logging

from . import exceptions as exc
from .address import Address, frame_addrs
from .const import FRAME_REGEX, HEADER_LEN, MAX_MARKER, FrameFlag, MsgType
from .moritz import MSG_SCHEMA_VERSION, MSG_TYPE_NAME_LOOKUP, payload_is_valid

_LOGGER = logging.getLogger(__name__)


PayloadT = str

_MSG_TYPES = {m.value: m for m in MsgType if m is not MsgType.UNRECOGNIZED}


class Frame:
    """The Frame class - used as a base by the Command and Packet classes.

    `0B0100400102030A1B2C006B` (i.e. a line without its leading marker, `Z`)
    """

    src: Address
    dst: Address

    def __init__(self, frame: str) -> None:
        """Create a frame from a hex string (case insensitive).

        Will raise MalformedFrame if it is invalid.
        """

        if len(frame) % 2:
            raise exc.MalformedFrame(f"Bad frame: odd length: >>>{frame}<<<")
        if not FRAME_REGEX.match(frame):
            raise exc.MalformedFrame(f"Bad frame: not hex: >>>{frame}<<<")
        if len(frame) < (HEADER_LEN + 1) * 2:
            raise exc.MalformedFrame(f"Bad frame: too short: >>>{frame}<<<")

        self._frame: str = frame.upper()

        self.len_: int = int(self._frame[:2], 16)
        if self.len_ != len(self._frame) // 2 - 1:
            raise exc.MalformedFrame(
                f"Bad frame: length mismatch: {self.len_} is not "
                f"{len(self._frame) // 2 - 1}: >>>{frame}<<<"
            )

        self.seqn: int = int(self._frame[2:4], 16)
        self.flags: FrameFlag = FrameFlag(int(self._frame[4:6], 16))

        self.type_code: str = self._frame[6:8]  # the raw value, even if unrecognised
        self.msg_type: MsgType = _MSG_TYPES.get(self.type_code, MsgType.UNRECOGNIZED)

        self.src, self.dst = frame_addrs(self._frame[8:20])
        self.group_id: int = int(self._frame[20:22], 16)
        self.payload: PayloadT = self._frame[22:]

        self.schema_version: int = MSG_SCHEMA_VERSION

        if not payload_is_valid(self.msg_type, self.payload):
            raise exc.FramePayloadInvalid(
                f"Bad frame: invalid payload for {self.msg_type!s}: >>>{frame}<<<"
            )

        self._repr: str = None  # type: ignore[assignment]

    @classmethod
    def _from_attrs(
        cls,
        seqn: int,
        flags: FrameFlag | int,
        msg_type: MsgType,
        src: Address | str,
        dst: Address | str,
        group_id: int,
        payload: PayloadT,
    ) -> Frame:
        """Create a frame from its constituent parts (the length is derived)."""

        if msg_type is MsgType.UNRECOGNIZED:
            raise exc.CommandInvalid(f"Invalid msg_type: {msg_type}")
        if not 0 <= seqn <= 0xFF or not 0 <= group_id <= 0xFF:
            raise exc.CommandInvalid(f"Invalid msg_count/group_id: {seqn}/{group_id}")

        body = (
            f"{seqn:02X}{int(flags):02X}{msg_type.value}"
            f"{str(src).upper()}{str(dst).upper()}{group_id:02X}{payload.upper()}"
        )
        return cls(f"{len(body) // 2:02X}{body}")

    def __repr__(self) -> str:
        """Return an unambiguous string representation of this object."""
        if self._repr is None:
            self._repr = f"{MAX_MARKER}{self._frame.lower()}"
        return self._repr

    def __str__(self) -> str:
        """Return a brief readable string representation of this object."""
        return (
            f"{self.seqn:03d} {self.flags:02X} {self.src!r} {self.dst!r} "
            f"{self.group_id:02X} {self._name} {self.payload}"
        )

    def __eq__(self, other: object) -> bool:
        if not hasattr(other, "_frame"):
            return NotImplemented
        return self._frame[4:] == other._frame[4:]  # type: ignore[no-any-return]

    @property
    def _name(self) -> str:
        return MSG_TYPE_NAME_LOOKUP.get(self.msg_type, f"unrecognized_{self.type_code}")

    @property
    def line(self) -> str:
        """Return the frame as a (lowercase) transceiver line, incl. the marker."""
        return repr(self)

    @property
    def is_reply(self) -> bool:
        return bool(self.flags & FrameFlag.IS_REPLY)

    @property
    def to_group(self) -> bool:
        return bool(self.flags & FrameFlag.TO_GROUP)


def decode_line(line: str) -> Frame | None:
    """Decode a raw transceiver line into a frame.

    Return None if the line is not a MAX! frame (e.g. other transceiver chatter), and
    raise MalformedFrame if it is but is invalid.
    """

    line = line.strip()
    if not line.startswith(MAX_MARKER):
        return None
    return Frame(line[len(MAX_MARKER) :])
