# fleet_trips/Services/ingest_core/normalizers.py
"""
Wire Value Normalizers Module
=============================
Turns the loosely typed values tracking hardware puts on the wire into the
typed values of TelemetryEvent.

Vendors send the same field as a JSON number on one firmware and as a
string on the next ("33.9", "33,9", "", "null"). Every numeric field goes
through ``coerce_number`` before it reaches the event, for JSON and
protobuf payloads alike.

Functions:
- coerce_number(): WireValue (number or text) -> Optional[float]
- coerce_int(): WireValue -> Optional[int]
- parse_gps_datetime(): vendor GPS_DATETIME text -> datetime UTC
- normalize_epoch(): UNIX seconds/ms -> datetime UTC
- parse_event_id(): payload uuid -> (UUID, idempotent)
"""

import math
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Tuple, Union


# ==========================================================
# TYPES AND CONSTANTS
# ==========================================================

WireValue = Union[int, float, str, None]
"""A field value as received: a number, a text, or nothing."""

GPS_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S",
)
"""Formats of GPS_DATETIME seen in the field; always UTC."""

_NULL_TEXT = {"", "null", "none", "nan"}

# Range of the int4 raw_code columns
INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

# Epochs above this are milliseconds (seconds crossed 10^10 never, ms did in 1970)
_MILLISECONDS_THRESHOLD = 10_000_000_000


# ==========================================================
# NUMBERS
# ==========================================================

def coerce_number(value: Any) -> Optional[float]:
    """
    Resolve a wire value to a float.

    Rules:
    - None, "", "null" -> None
    - int/float -> float (bool and non-finite values -> None)
    - "3,14" -> 3.14 (comma decimal separator)
    - "+20.652494" -> 20.652494
    - any other text -> None

    Examples:
        >>> coerce_number("33.9")
        33.9
        >>> coerce_number("")
        >>> coerce_number(128)
        128.0
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None

    if isinstance(value, str):
        text = value.strip()
        if text.lower() in _NULL_TEXT:
            return None
        try:
            number = float(text.replace(",", "."))
        except ValueError:
            return None
        return number if math.isfinite(number) else None

    return None


def coerce_int(value: Any) -> Optional[int]:
    """
    Like coerce_number, for integral values ("12" -> 12, "12.0" -> 12).

    Fractions and anything outside the signed 32-bit range become None.
    """
    number = coerce_number(value)
    if number is None or not number.is_integer():
        return None
    if not INT32_MIN <= number <= INT32_MAX:
        return None
    return int(number)


def coerce_text(value: Any) -> Optional[str]:
    """Text field: None and blank become None, numbers become their text."""
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


# ==========================================================
# TIMESTAMPS
# ==========================================================

def parse_gps_datetime(value: Any) -> datetime:
    """
    Parse the vendor's GPS_DATETIME field.

    Args:
        value: Text in one of GPS_DATETIME_FORMATS

    Returns:
        datetime: UTC-aware datetime

    Raises:
        ValueError: If the value matches no known format

    Examples:
        >>> parse_gps_datetime("2025-12-03 19:58:16")
        datetime.datetime(2025, 12, 3, 19, 58, 16, tzinfo=datetime.timezone.utc)
    """
    if not isinstance(value, str):
        raise ValueError(f"GPS datetime must be text, got {type(value).__name__}")

    text = value.strip()
    for fmt in GPS_DATETIME_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized GPS datetime: {value!r}")


def normalize_epoch(value: Any) -> datetime:
    """
    Convert a UNIX epoch in seconds or milliseconds to a UTC datetime.

    Raises:
        ValueError: If the value is not a positive number
    """
    number = coerce_number(value)
    if number is None or number <= 0:
        raise ValueError(f"Invalid epoch: {value!r}")

    if number > _MILLISECONDS_THRESHOLD:
        number = number / 1000.0

    try:
        return datetime.fromtimestamp(number, tz=timezone.utc)
    except (OverflowError, OSError) as e:
        raise ValueError(f"Epoch out of range: {value!r}") from e


# ==========================================================
# EVENT IDENTITY
# ==========================================================

def parse_event_id(value: Any) -> Tuple[uuid.UUID, bool]:
    """
    Resolve the payload's uuid.

    Returns:
        (UUID, True) for a valid uuid; (random uuid4, False) otherwise, in
        which case redelivery of the event cannot be detected
    """
    if isinstance(value, uuid.UUID):
        return value, True
    if isinstance(value, str) and value.strip():
        try:
            return uuid.UUID(value.strip()), True
        except ValueError:
            pass
    return uuid.uuid4(), False
