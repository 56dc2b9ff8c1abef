#!/usr/bin/env python3
"""MaxCul RF - Decode/process a message (payload into a dict)."""

from __future__ import annotations

import logging
from datetime import datetime as dt
from typing import Any

from .address import Address
from .const import MsgType
from .moritz import MSG_TYPE_NAME_LOOKUP
from .packet import Packet
from .parsers import parse_payload

__all__ = ["Message"]


MSG_FORMAT_10 = "|| {:6s} | {:6s} | {:02X} | {:24s} || {}"


_LOGGER = logging.getLogger(__name__)


class Message:
    """The Message class; will trap/log invalid msgs."""

    def __init__(self, pkt: Packet) -> None:
        """Create a message from a valid packet.

        Will raise FramePayloadInvalid if the payload cannot be parsed.
        """

        self._pkt = pkt

        self.src: Address = pkt.src
        self.dst: Address = pkt.dst
        self.dtm: dt = pkt.dtm

        self.seqn: int = pkt.seqn
        self.msg_type: MsgType = pkt.msg_type
        self.type_code: str = pkt.type_code
        self.group_id: int = pkt.group_id
        self.len: int = pkt.len_

        self._payload = parse_payload(self)

        self._str: str = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Return an unambiguous string representation of this object."""
        return repr(self._pkt)

    def __str__(self) -> str:
        """Return a brief readable string representation of this object."""

        if self._str is None:
            name = MSG_TYPE_NAME_LOOKUP.get(
                self.msg_type, f"unrecognized_{self.type_code}"
            )
            self._str = MSG_FORMAT_10.format(
                self.src.id, self.dst.id, self.group_id, name, self.payload
            )
        return self._str

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return (self.src, self.dst, self.type_code, self._pkt.payload) == (
            other.src,
            other.dst,
            other.type_code,
            other._pkt.payload,
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Message):
            return NotImplemented
        return self.dtm < other.dtm

    @property
    def payload(self) -> dict[str, Any]:
        """Return the (parsed) payload."""
        return self._payload

    @property
    def rssi(self) -> int | None:
        return self._pkt.rssi
