#!/usr/bin/env python3
"""MaxCul RF - Protocol/Transport layer - Helper functions."""

from __future__ import annotations

from datetime import datetime as dt
from decimal import ROUND_HALF_UP, Decimal, DecimalException
from typing import TypeAlias

from .const import MAX_TEMPERATURE, MIN_TEMPERATURE, TempMode

HexStr2: TypeAlias = str  # two characters, one byte
HexStr4: TypeAlias = str
HexStr6: TypeAlias = str


def dt_now() -> dt:
    """Return the current datetime as a local/naive datetime object.

    Used mainly for frame timestamps.
    """
    return dt.now()


####################################################################################################


def round_temp(value: Decimal | float | int) -> Decimal:
    """Round a temperature to the nearest 0.5 degree (halves round up).

    The radio protocol has a resolution of 0.5 degree.
    """
    if isinstance(value, bool) or not isinstance(value, Decimal | float | int):
        raise TypeError(f"Invalid temp: {value} is not a number")
    if not (value := Decimal(str(value))).is_finite():
        raise ValueError(f"Invalid temp: {value} is not finite")
    try:  # NOTE: quantize() would raise InvalidOperation for (say) 1e30
        return (value * 2).to_integral_value(rounding=ROUND_HALF_UP) / 2
    except DecimalException as err:  # e.g. Overflow, for (say) 1e9999999
        raise ValueError(f"Invalid temp: {value} is out of range") from err


def clamp_temp(
    value: Decimal,
    min_temp: Decimal = MIN_TEMPERATURE,
    max_temp: Decimal = MAX_TEMPERATURE,
) -> Decimal:
    """Clamp a temperature to the valid range of a device."""
    return max(min_temp, min(max_temp, value))


def hex_from_setpoint(value: Decimal, mode: TempMode = TempMode.MANUAL) -> HexStr2:
    """Convert a setpoint (and its mode) into a 2-char hex string.

    The two MSBs are the mode, the remaining six bits are the temperature x2.
    """
    if not MIN_TEMPERATURE <= value <= MAX_TEMPERATURE:
        raise ValueError(f"Invalid value: {value}, is out of range")
    return f"{(mode << 6) | int(value * 2):02X}"


def hex_to_setpoint(value: HexStr2) -> tuple[TempMode, float]:
    """Convert a 2-char hex string into a mode and a setpoint."""
    if not isinstance(value, str) or len(value) != 2:
        raise ValueError(f"Invalid value: {value}, is not a 2-char hex string")
    raw = int(value, 16)
    return TempMode(raw >> 6), (raw & 0x3F) / 2


def hex_to_desired(value: HexStr2) -> float:
    """Convert a 2-char hex string (the 7 LSBs) into a desired temperature."""
    return (int(value, 16) & 0x7F) / 2


def hex_to_measured(value: HexStr4) -> float | None:
    """Convert a 4-char hex string (9 bits, in 0.1 degree) into a temperature.

    A value of zero means the device has not (yet) measured a temperature.
    """
    if not isinstance(value, str) or len(value) != 4:
        raise ValueError(f"Invalid value: {value}, is not a 4-char hex string")
    raw = ((int(value[:2], 16) & 0x01) << 8) + int(value[2:], 16)
    return raw / 10 if raw else None


def hex_to_percent(value: HexStr2) -> float | None:
    """Convert a 2-char hex string (00-64) into a percentage (0.0-1.0)."""
    if not isinstance(value, str) or len(value) != 2:
        raise ValueError(f"Invalid value: {value}, is not a 2-char hex string")
    if (result := int(value, 16)) > 100:
        return None
    return result / 100


def hex_to_str(value: str) -> str:  # printable ASCII characters
    """Return a string of printable ASCII characters."""
    if not isinstance(value, str):
        raise ValueError(f"Invalid value: {value}, is not a string")
    result = bytearray([x for x in bytearray.fromhex(value) if 31 < x < 127])
    return result.decode("ascii").strip() if result else ""


def hex_to_until(value: HexStr6) -> str | None:
    """Convert a 6-char hex string (the end of a temporary mode) into a datetime.

    Day (5 bits), month (split over two bytes), year (since 2000), and the time of
    day in half hours.
    """
    if not isinstance(value, str) or len(value) != 6:
        raise ValueError(f"Invalid value: {value}, is not a 6-char hex string")

    byte1, byte2, byte3 = (int(value[i : i + 2], 16) for i in range(0, 6, 2))
    try:
        result = dt(
            year=2000 + (byte2 & 0x1F),
            month=((byte2 & 0xE0) >> 4) | (byte1 >> 7),
            day=byte1 & 0x1F,
            hour=(byte3 & 0x3F) // 2,
            minute=30 if byte3 & 0x01 else 0,
        )
    except ValueError:  # e.g. day == 0
        return None
    return result.isoformat(timespec="minutes")
