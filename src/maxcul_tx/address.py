#!/usr/bin/env python3
"""MaxCul RF - a MAX! (Moritz) protocol decoder & encoder for culfw transceivers."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Final

from . import exceptions as exc

ADDRESS_REGEX: Final = re.compile(r"^[0-9A-F]{6}$")

NULL_ADDRESS: Final = "000000"  # broadcast, e.g. a PairPing from a new device


class Address:
    """The radio Address class (3 bytes, held as 6 uppercase hex digits)."""

    def __init__(self, hex_id: str) -> None:
        """Create an address from a valid hex id (case insensitive)."""

        if not self.is_valid(hex_id):
            raise ValueError(f"Invalid address: {hex_id}")

        self.id: str = hex_id.upper()

    def __repr__(self) -> str:
        return self.id

    def __str__(self) -> str:
        return self.id

    def __eq__(self, other: object) -> bool:
        if not hasattr(other, "id"):
            return NotImplemented
        return self.id == other.id  # type: ignore[no-any-return]

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def is_null(self) -> bool:
        return self.id == NULL_ADDRESS

    @staticmethod
    def is_valid(value: str) -> bool:
        return isinstance(value, str) and bool(ADDRESS_REGEX.match(value.upper()))


@lru_cache(maxsize=256)
def id_to_address(hex_id: str) -> Address:
    """Factory method to cache & return an Address from a hex id."""
    return Address(hex_id)


NULL_ADDR = Address(NULL_ADDRESS)


@lru_cache(maxsize=256)  # there is definite benefit in caching this
def frame_addrs(addr_fragment: str) -> tuple[Address, Address]:
    """Return the src & dst addresses from (e.g.) '0102030A1B2C'.

    Will raise MalformedFrame if the address fields are not valid.
    """

    try:
        return id_to_address(addr_fragment[:6]), id_to_address(addr_fragment[6:12])
    except ValueError as err:
        raise exc.MalformedFrame(
            f"Invalid address set: {addr_fragment}: {err}"
        ) from None
