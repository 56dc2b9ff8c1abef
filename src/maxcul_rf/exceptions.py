#!/usr/bin/env python3
"""MaxCul RF - exceptions above the frame/protocol/transport layer."""

from __future__ import annotations

from maxcul_tx.exceptions import (
    CommandInvalid as CommandInvalid,
    FramePayloadInvalid as FramePayloadInvalid,
    MalformedFrame as MalformedFrame,
    MaxCulException as MaxCulException,
    ProtocolError as ProtocolError,
    TransportError as TransportError,
    UnsupportedCommand as UnsupportedCommand,
)


class _MaxCulUpperError(MaxCulException):
    """A failure in the upper layer (pairing, dispatch, configuration, gateway)."""


########################################################################################
# Errors above the protocol/transport layer, incl. pairing


class PairingError(_MaxCulUpperError):
    """An error occurred when entering/leaving pairing mode."""


class PairingFsmError(PairingError):
    """The pairing FSM was/became inconsistent (this shouldn't happen)."""


########################################################################################
# Errors above the protocol/transport layer, incl. command/frame dispatch


class DispatchError(_MaxCulUpperError):
    """An error occurred when dispatching a command or a frame."""


class UnknownDevice(DispatchError):
    """A frame was received from an address that is not bound to any item."""

    HINT = "configure an item with this address"


########################################################################################
# Errors in the configuration


class ConfigurationMissing(_MaxCulUpperError):
    """A command was delivered for an item that has no configuration."""

    HINT = "check the items configuration"


class ConfigurationInvalid(_MaxCulUpperError):
    """The configuration of the gateway/items is invalid."""
