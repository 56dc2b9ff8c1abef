#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) protocol decoder & encoder for culfw transceivers.

Decode/process a packet (a frame that was received).
"""

from __future__ import annotations

from datetime import datetime as dt
from typing import Any

from . import exceptions as exc
from .const import MAX_MARKER
from .frame import Frame
from .logger import getLogger  # overridden logger.getLogger

PKT_LOGGER = getLogger(f"{__name__}_log", pkt_log=True)


def _rssi_from_hex(value: str) -> int:
    """Convert the culfw RSSI byte into dBm."""
    raw = int(value, 16)
    return (raw - 256) // 2 - 74 if raw >= 128 else raw // 2 - 74


class Packet(Frame):
    """The Packet class (frames that were received); will trap/log invalid pkts.

    They have a datetime (when received), an optional RSSI, and other meta-fields.
    """

    _dtm: dt
    _rssi: int | None

    def __init__(self, dtm: dt, frame: str, **kwargs: Any) -> None:
        """Create a packet from a hex string (i.e. a line without its marker).

        Will raise MalformedFrame if it is invalid (after logging it).
        """

        self._dtm = dtm
        self._rssi = kwargs.get("rssi")

        self.comment: str = kwargs.get("comment", "")
        self.error_text: str = kwargs.get("err_msg", "")

        try:
            if self.error_text:
                raise exc.MalformedFrame(self.error_text)
            super().__init__(frame)

        except exc.MalformedFrame as err:
            PKT_LOGGER.warning(
                "%s", err, extra=self._log_extra(f"{MAX_MARKER}{frame.lower()}")
            )
            raise

        PKT_LOGGER.info("", extra=self._log_extra(repr(self)))  # the packet.log line

    def _log_extra(self, line: str) -> dict[str, Any]:
        return {
            "_frame": line,
            "_rssi": "---" if self._rssi is None else f"{self._rssi:03d}",
            "dtm": self._dtm,
            "comment": self.comment,
            "error_text": self.error_text,
        }

    @property
    def dtm(self) -> dt:
        return self._dtm

    @property
    def rssi(self) -> int | None:
        """Return the signal strength (dBm) if the transceiver reported it."""
        return self._rssi

    @staticmethod
    def _partition(pkt_line: str) -> tuple[str, str, str]:
        """Partition a packet line into its three parts.

        Format: line[ * err_msg][ # comment]
        """

        fragment, _, comment = pkt_line.partition("#")
        line, _, err_msg = fragment.partition("*")
        return line.strip(), err_msg.strip(), comment.strip()

    @classmethod
    def from_port(cls, dtm: dt, pkt_line: str, *, has_rssi: bool = False) -> Packet:
        """Create a packet from a transceiver line (incl. the marker).

        If has_rssi, the last byte is the RSSI appended by the transceiver.
        """

        line, err_msg, comment = cls._partition(pkt_line)
        if not line.startswith(MAX_MARKER):
            raise ValueError(f"not a frame: >>>{pkt_line}<<<")

        frame, rssi = line[len(MAX_MARKER) :], None
        if has_rssi and len(frame) >= 2:
            try:
                frame, rssi = frame[:-2], _rssi_from_hex(frame[-2:])
            except ValueError:
                err_msg = err_msg or f"Bad frame: invalid RSSI: >>>{line}<<<"

        return cls(dtm, frame, rssi=rssi, err_msg=err_msg, comment=comment)
