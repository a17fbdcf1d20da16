# fleet_trips/Services/ingest_core/field_map.py
"""
Field Map Module
================
One read-only view over the vendor ``data`` record, shared by the JSON and
protobuf decoders, plus the step that turns it into a TelemetryEvent.

Vendors disagree on key names (LATITUD vs LATITUDE vs lat); FIELD_ALIASES
maps every known spelling to one canonical name, and the typed accessors
(``number``, ``integer``, ``text``) are the only way values leave the map.
"""

from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional
from uuid import UUID

from pydantic import ValidationError

from fleet_trips.Core.exceptions import DecodeError
from fleet_trips.Schemas.telemetry_event import TelemetryEvent
from fleet_trips.Services.ingest_core.normalizers import (
    WireValue,
    coerce_int,
    coerce_number,
    coerce_text,
    normalize_epoch,
    parse_gps_datetime,
)


# ==========================================================
# KEY ALIASES
# ==========================================================

FIELD_ALIASES: Dict[str, str] = {
    # Device ID variants
    "device_id": "DEVICE_ID",
    "deviceid": "DEVICE_ID",
    "imei": "DEVICE_ID",

    # Alert variants
    "alert": "ALERT",
    "event": "ALERT",

    # Position variants
    "latitud": "LATITUD",
    "latitude": "LATITUD",
    "lat": "LATITUD",
    "longitud": "LONGITUD",
    "longitude": "LONGITUD",
    "lon": "LONGITUD",
    "lng": "LONGITUD",

    # Motion variants
    "speed": "SPEED",
    "velocidad": "SPEED",
    "course": "COURSE",
    "heading": "COURSE",
    "rumbo": "COURSE",
    "odometer": "ODOMETER",
    "odometro": "ODOMETER",

    # Time variants
    "gps_datetime": "GPS_DATETIME",
    "gps_epoch": "GPS_EPOCH",

    # Diagnostics
    "raw_code": "RAW_CODE",
    "msg_class": "MSG_CLASS",
}
"""Lower-cased vendor key -> canonical key."""


def canonical_key(key: str) -> str:
    return FIELD_ALIASES.get(key.strip().lower(), key)


# ==========================================================
# FIELD MAP
# ==========================================================

class FieldMap(Mapping[str, WireValue]):
    """
    Immutable mapping of canonical field name -> wire value.

    When two vendor spellings of the same field are present the first one
    wins.
    """

    __slots__ = ("_fields",)

    def __init__(self, raw: Optional[Mapping[str, Any]] = None):
        fields: Dict[str, WireValue] = {}
        for key, value in (raw or {}).items():
            if not isinstance(key, str):
                continue
            fields.setdefault(canonical_key(key), value)
        self._fields = MappingProxyType(fields)

    def __getitem__(self, key: str) -> WireValue:
        return self._fields[canonical_key(key)]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and canonical_key(key) in self._fields

    def __repr__(self) -> str:
        return f"FieldMap({dict(self._fields)!r})"

    # ========================================
    # TYPED ACCESSORS
    # ========================================
    def number(self, key: str) -> Optional[float]:
        return coerce_number(self.get(key))

    def integer(self, key: str) -> Optional[int]:
        return coerce_int(self.get(key))

    def text(self, key: str) -> Optional[str]:
        return coerce_text(self.get(key))


# ==========================================================
# EVENT CONSTRUCTION
# ==========================================================

def resolve_gps_timestamp(fields: FieldMap) -> Optional[datetime]:
    """
    GPS time of the record: GPS_DATETIME, else GPS_EPOCH, else None.

    Raises:
        DecodeError: If a GPS time field is present but unparseable
    """
    if fields.text("GPS_DATETIME") is not None:
        try:
            return parse_gps_datetime(fields["GPS_DATETIME"])
        except ValueError as e:
            raise DecodeError(str(e), reason="invalid_timestamp") from e

    if fields.get("GPS_EPOCH") not in (None, ""):
        try:
            return normalize_epoch(fields["GPS_EPOCH"])
        except ValueError as e:
            raise DecodeError(str(e), reason="invalid_timestamp") from e

    return None


def build_event(
    fields: FieldMap,
    *,
    event_id: UUID,
    idempotent: bool,
    timestamp: datetime,
    metadata: Optional[Dict[str, Any]] = None,
    device_id: Optional[str] = None,
) -> TelemetryEvent:
    """
    Turn a FieldMap into a TelemetryEvent.

    Args:
        fields: Vendor data record
        event_id: Resolved event id (see parse_event_id)
        idempotent: Whether event_id came from the payload
        timestamp: Resolved GPS time
        metadata: Receipt metadata carried into idle-activity records
        device_id: Fallback device id (e.g. from receipt metadata)

    Raises:
        DecodeError: If no device id can be found
    """
    resolved_device = (fields.text("DEVICE_ID") or "").strip() or (device_id or "").strip()
    if not resolved_device:
        raise DecodeError("Payload has no DEVICE_ID", reason="missing_device_id")

    try:
        return TelemetryEvent(
            device_id=resolved_device,
            event_id=event_id,
            idempotent=idempotent,
            alert=fields.text("ALERT"),
            timestamp=timestamp,
            latitude=fields.number("LATITUD") or 0.0,
            longitude=fields.number("LONGITUD") or 0.0,
            speed=fields.number("SPEED") or 0.0,
            heading=fields.number("COURSE") or 0.0,
            odometer=fields.number("ODOMETER") or 0.0,
            raw_code=fields.integer("RAW_CODE"),
            msg_class=fields.text("MSG_CLASS"),
            metadata=dict(metadata or {}),
        )
    except ValidationError as e:
        raise DecodeError(f"Invalid event: {e.errors()[0]['msg']}", reason="invalid_event") from e
