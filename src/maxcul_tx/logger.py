#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) protocol decoder & encoder for culfw transceivers.

This module wraps logger to provide a packet log: one line per received frame, each
timestamped with the frame's own datetime (rather than the time it was logged).

Packet log lines look like (the RSSI is '---' if the transceiver didn't report it):
  2026-10-01T12:00:00.123456 -56 Z0c0202420a1b2c0102030019002b00d7 < thermostat_state
"""

from __future__ import annotations

import logging
import shutil
import sys
import threading
from collections.abc import Callable, Mapping
from datetime import datetime as dt
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Any, Final

import colorlog

from .version import VERSION

_LOGGER = logging.getLogger(__name__)


_CONSOLE_WIDTH = shutil.get_terminal_size(fallback=(2000, 24)).columns - 1

# records have these (bespoke) attrs: frame, error_text & comment
PKT_LOG_FMT: Final = "%(asctime)s%(frame)s%(message)s%(error_text)s%(comment)s"
CONSOLE_FMT: Final = (
    f"%(log_color)s%(asctime)s%(frame).{_CONSOLE_WIDTH - 13}s"
    "%(yellow)s%(message)s%(red)s%(error_text)s%(cyan)s%(comment)s"
)

LOG_COLOURS: Final = {
    "DEBUG": "white",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "bold_red",
    "CRITICAL": "bold_red",
}

_LOGGER_CLASS_LOCK = threading.Lock()


class _PktLogger(logging.Logger):
    """A Logger whose records carry a frame (and its dtm), rather than a message."""

    def makeRecord(
        self,
        name: str,
        level: int,
        fn: str,
        lno: int,
        msg: object,
        args: Any,
        exc_info: Any,
        func: str | None = None,
        extra: Mapping[str, object] | None = None,
        sinfo: str | None = None,
    ) -> logging.LogRecord:
        """Create a LogRecord timestamped with its frame's dtm (if it has one)."""

        extra = dict(extra or {})
        frame = extra.pop("_frame", "")
        rssi = extra.pop("_rssi", None) or "---"

        extra["frame"] = f" {rssi} {frame}" if frame else ""
        extra["error_text"] = f" * {err}" if (err := extra.get("error_text")) else ""
        extra["comment"] = f" # {note}" if (note := extra.get("comment")) else ""

        record = super().makeRecord(
            name, level, fn, lno, msg, args, exc_info, func, extra, sinfo
        )

        if isinstance(dtm := getattr(record, "dtm", None), dt):
            _set_created(record, dtm)

        if record.msg:
            record.msg = f" < {record.msg}"
        return record


def _set_created(record: logging.LogRecord, dtm: dt) -> None:
    ts = dtm.timestamp()
    record.created = ts
    record.msecs = (ts - int(ts)) * 1000


class _IsoTimeMixin:
    """Format asctime as an isoformat datetime, to the microsecond."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        dtm = dt.fromtimestamp(record.created)
        if datefmt:
            return dtm.strftime(datefmt)
        return dtm.isoformat(timespec="microseconds")


class ColoredFormatter(_IsoTimeMixin, colorlog.ColoredFormatter):  # type: ignore[misc]
    pass


class Formatter(_IsoTimeMixin, logging.Formatter):  # type: ignore[misc]
    pass


class _LevelFilter(logging.Filter):
    """Process only those records with lo <= levelno < hi."""

    def __init__(self, lo: int = logging.NOTSET, hi: int = logging.CRITICAL + 1):
        super().__init__()
        self._lo, self._hi = lo, hi

    def filter(self, record: logging.LogRecord) -> bool:
        return self._lo <= record.levelno < self._hi


def getLogger(name: str, pkt_log: bool = False) -> logging.Logger:
    """Return the named logger, which will be a packet logger if pkt_log is True.

    The logger class is only swapped while the logger is being created.
    """
    if not pkt_log:
        return logging.getLogger(name)

    with _LOGGER_CLASS_LOCK:
        klass = logging.getLoggerClass()
        logging.setLoggerClass(_PktLogger)
        try:
            return logging.getLogger(name)
        finally:
            logging.setLoggerClass(klass)


def set_logger_timesource(dtm_now: Callable[[], dt]) -> None:
    """Have all (new) log records timestamped by dtm_now(), instead of the clock.

    Used when replaying a packet log, so that the records of the application (and
    not just those of the packet log) have the datetime of the most recent frame.
    """

    old_factory = logging.getLogRecordFactory()

    def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
        record = old_factory(*args, **kwargs)
        _set_created(record, dtm_now())
        return record

    logging.setLogRecordFactory(record_factory)


def set_pkt_logging(
    logger: logging.Logger,
    cc_console: bool = False,
    file_name: str | None = None,
    rotate_backups: int = 0,
    rotate_bytes: int | None = None,
) -> None:
    """Configure the packet logger's handlers (there are none by default).

    The log file gets valid frames (INFO) and invalid frames (WARNING). If rotating,
    keep rotate_backups files, and rotate at midnight unless rotate_bytes is set.
    """

    logger.propagate = False  # not part of any app/debug logging
    logger.setLevel(logging.DEBUG)

    for hdlr in list(logger.handlers):  # may be called more than once
        logger.removeHandler(hdlr)

    if not file_name and not cc_console:
        logger.setLevel(logging.CRITICAL)
        return

    handler: logging.Handler
    if file_name:
        if rotate_bytes:
            handler = RotatingFileHandler(
                file_name, maxBytes=rotate_bytes, backupCount=rotate_backups or 2
            )
        elif rotate_backups:
            handler = TimedRotatingFileHandler(
                file_name, when="midnight", backupCount=rotate_backups
            )
        else:
            handler = logging.FileHandler(file_name)

        handler.setFormatter(Formatter(fmt=PKT_LOG_FMT))
        handler.addFilter(_LevelFilter(logging.INFO, logging.ERROR))
        logger.addHandler(handler)

    if cc_console:  # warnings & worse to stderr, the remainder to stdout
        formatter = ColoredFormatter(
            fmt=CONSOLE_FMT, reset=True, log_colors=LOG_COLOURS
        )
        for stream, level_filter in (
            (sys.stderr, _LevelFilter(lo=logging.WARNING)),
            (sys.stdout, _LevelFilter(hi=logging.WARNING)),
        ):
            handler = logging.StreamHandler(stream=stream)
            handler.setFormatter(formatter)
            handler.addFilter(level_filter)
            logger.addHandler(handler)

    _LOGGER.debug("Packet logging to: %s", file_name or "console")
    logger.warning("", extra={"comment": f"maxcul_tx {VERSION}"})  # a header line
