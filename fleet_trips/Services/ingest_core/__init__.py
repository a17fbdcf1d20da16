# fleet_trips/Services/ingest_core/__init__.py
"""
Ingest Core Module
==================
Everything between raw transport bytes and a TelemetryEvent.

Components:
- normalizers: wire value coercion, GPS time and epoch parsing, event ids
- field_map: vendor key aliases, typed accessors, event construction
- wire_schema: protobuf TelemetryEnvelope (binary encoding)
- packet_parser: JSON / protobuf payload decoding
"""

from .normalizers import (
    GPS_DATETIME_FORMATS,
    WireValue,
    coerce_int,
    coerce_number,
    normalize_epoch,
    parse_event_id,
    parse_gps_datetime,
)
from .field_map import FIELD_ALIASES, FieldMap, build_event
from .wire_schema import ReceiptMetadata, TelemetryEnvelope
from .packet_parser import (
    PAYLOAD_FORMATS,
    decode_binary_payload,
    decode_json_payload,
    decode_payload,
)

__all__ = [
    # Normalizers
    'GPS_DATETIME_FORMATS',
    'WireValue',
    'coerce_int',
    'coerce_number',
    'normalize_epoch',
    'parse_event_id',
    'parse_gps_datetime',

    # Field map
    'FIELD_ALIASES',
    'FieldMap',
    'build_event',

    # Wire schema
    'ReceiptMetadata',
    'TelemetryEnvelope',

    # Packet parser
    'PAYLOAD_FORMATS',
    'decode_binary_payload',
    'decode_json_payload',
    'decode_payload',
]
