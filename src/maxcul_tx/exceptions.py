#!/usr/bin/env python3
"""MaxCul RF - exceptions within the frame/protocol/transport layer."""

from __future__ import annotations


class _MaxCulBaseException(Exception):
    """Base class for all maxcul_tx exceptions."""

    pass


class MaxCulException(_MaxCulBaseException):
    """Base class for all maxcul_tx exceptions."""

    HINT: None | str = None

    def __init__(self, *args: object):
        super().__init__(*args)
        self.message: str | None = args[0] if args else None  # type: ignore[assignment]

    def __str__(self) -> str:
        if self.message and self.HINT:
            return f"{self.message} (hint: {self.HINT})"
        if self.message:
            return self.message
        if self.HINT:
            return f"Hint: {self.HINT}"
        return ""


class _MaxCulLowerError(MaxCulException):
    """A failure in the lower layer (codec, protocol, transport, serial)."""


########################################################################################
# Errors at/below the protocol/transport layer


class ProtocolError(_MaxCulLowerError):
    """An error occurred when sending or receiving frames."""


class TransportError(ProtocolError):
    """An error when sending or receiving lines (bytes) via the transceiver."""


class TransportSerialError(TransportError):
    """The transport's serial port has thrown an error."""


class TransportSourceInvalid(TransportError):
    """The source of frames is not a valid type/configuration."""


########################################################################################
# Errors in the frame codec


class ParserBaseError(_MaxCulLowerError):
    """The frame is corrupt/not internally consistent, or cannot be parsed."""


class MalformedFrame(ParserBaseError):
    """The frame is corrupt/not internally consistent."""


class FramePayloadInvalid(MalformedFrame):
    """The frame's payload is inconsistent with its message type."""

    HINT = "check the message type table"


class CommandInvalid(ParserBaseError):
    """The command is corrupt/not internally consistent."""


class UnsupportedCommand(CommandInvalid):
    """The command is not valid for the device's role/feature."""
