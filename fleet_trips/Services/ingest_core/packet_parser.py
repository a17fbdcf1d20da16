# fleet_trips/Services/ingest_core/packet_parser.py
"""
Telemetry Packet Parser Module
==============================
Decodes raw transport payloads (Kafka record values, MQTT message bodies)
into TelemetryEvent.

Two encodings are accepted:
1. JSON envelope {"data": {...}, "metadata": {...}, "uuid": "..."}
2. Protobuf TelemetryEnvelope (see wire_schema)

"auto" picks JSON when the payload starts with '{' and protobuf otherwise.

JSON text fallbacks, progressively more permissive:
1. UTF-8 decode (invalid bytes replaced)
2. BOM stripping
3. Extraction of the outermost JSON object
4. Single quotes replaced by double quotes

Timestamp rules:
- JSON: GPS_DATETIME, else GPS_EPOCH; neither -> DecodeError
- Protobuf: GPS_DATETIME, else GPS_EPOCH, else metadata.received_epoch,
  else processing time
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Union

from google.protobuf.message import DecodeError as ProtobufDecodeError

from fleet_trips.Core.exceptions import DecodeError
from fleet_trips.Core.log_setup import get_logger
from fleet_trips.Schemas.telemetry_event import TelemetryEvent
from fleet_trips.Services.ingest_core.field_map import FieldMap, build_event, resolve_gps_timestamp
from fleet_trips.Services.ingest_core.normalizers import normalize_epoch, parse_event_id
from fleet_trips.Services.ingest_core.wire_schema import METADATA_KEYS, TelemetryEnvelope

logger = get_logger(__name__)

PAYLOAD_FORMATS = ("auto", "json", "protobuf")


# ==========================================================
# JSON TEXT HANDLING
# ==========================================================

def _extract_json_candidate(s: str) -> str:
    """
    Substring from the first '{' to the last '}'.

    Examples:
        >>> _extract_json_candidate('garbage{"key":"value"}more garbage')
        '{"key":"value"}'
    """
    start = s.find("{")
    end = s.rfind("}")
    if start != -1 and end != -1 and end > start:
        return s[start:end + 1]
    return s


def _load_json(payload: bytes) -> Any:
    """
    Parse JSON text with the fallbacks listed in the module docstring.

    Raises:
        DecodeError: If no fallback produces valid JSON
    """
    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError:
        text = payload.decode("utf-8", errors="replace")
        logger.warning("payload_invalid_utf8_replaced", size=len(payload))

    text = text.lstrip("\ufeff").strip()

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    candidate = _extract_json_candidate(text)
    try:
        parsed = json.loads(candidate)
        logger.warning("payload_json_extraction_fallback", size=len(payload))
        return parsed
    except json.JSONDecodeError:
        pass

    try:
        parsed = json.loads(text.replace("'", '"'))
        logger.warning("payload_quote_replacement_fallback", size=len(payload))
        return parsed
    except json.JSONDecodeError as jde:
        raise DecodeError(f"JSON decode failed after all fallbacks: {jde}") from jde


# ==========================================================
# DECODERS
# ==========================================================

def decode_json_payload(payload: bytes) -> TelemetryEvent:
    """
    Decode a JSON envelope.

    Args:
        payload: Raw bytes of {"data": {...}, "metadata": {...}, "uuid": "..."}

    Returns:
        TelemetryEvent

    Raises:
        DecodeError: Malformed JSON, no data object, no device id, or a
            missing/unparseable GPS time

    Examples:
        >>> event = decode_json_payload(b'{"data": {"DEVICE_ID": "867564050638581", '
        ...     b'"GPS_DATETIME": "2025-12-03 19:58:16"}, "metadata": {}, "uuid": ""}')
        >>> event.device_id
        '867564050638581'
    """
    document = _load_json(payload)
    if not isinstance(document, dict):
        raise DecodeError("JSON payload is not an object")

    data = document.get("data")
    if not isinstance(data, dict):
        raise DecodeError("JSON payload has no data object")

    metadata = document.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}

    fields = FieldMap(data)
    timestamp = resolve_gps_timestamp(fields)
    if timestamp is None:
        raise DecodeError("JSON payload has no GPS time", reason="missing_timestamp")

    event_id, idempotent = parse_event_id(document.get("uuid"))
    metadata_device = metadata.get("DEVICE_ID")

    return build_event(
        fields,
        event_id=event_id,
        idempotent=idempotent,
        timestamp=timestamp,
        metadata=metadata,
        device_id=str(metadata_device) if metadata_device is not None else None,
    )


def _metadata_to_dict(envelope: Any) -> Dict[str, Any]:
    if not envelope.HasField("metadata"):
        return {}
    return {
        key: getattr(envelope.metadata, name)
        for name, key in METADATA_KEYS.items()
    }


def decode_binary_payload(payload: bytes) -> TelemetryEvent:
    """
    Decode a protobuf TelemetryEnvelope.

    Raises:
        DecodeError: Bytes are not a TelemetryEnvelope, or no device id
    """
    try:
        envelope = TelemetryEnvelope.FromString(payload)
    except ProtobufDecodeError as e:
        raise DecodeError(f"Protobuf decode failed: {e}") from e

    fields = FieldMap(dict(envelope.data))
    metadata = _metadata_to_dict(envelope)

    try:
        timestamp = resolve_gps_timestamp(fields)
    except DecodeError:
        logger.warning("binary_payload_bad_gps_time", uuid=envelope.uuid)
        timestamp = None

    if timestamp is None and metadata.get("RECEIVED_EPOCH"):
        try:
            timestamp = normalize_epoch(metadata["RECEIVED_EPOCH"])
        except ValueError:
            timestamp = None

    if timestamp is None:
        timestamp = datetime.now(timezone.utc)

    event_id, idempotent = parse_event_id(envelope.uuid)

    return build_event(
        fields,
        event_id=event_id,
        idempotent=idempotent,
        timestamp=timestamp,
        metadata=metadata,
    )


def decode_payload(payload: Union[bytes, str], payload_format: str = "auto") -> TelemetryEvent:
    """
    Decode a transport payload in ``payload_format`` ("auto", "json", "protobuf").

    Raises:
        DecodeError: The payload cannot be turned into a TelemetryEvent
    """
    if isinstance(payload, str):
        payload = payload.encode("utf-8")
    if not payload:
        raise DecodeError("Empty payload", reason="empty_payload")

    fmt = (payload_format or "auto").lower()
    if fmt not in PAYLOAD_FORMATS:
        raise DecodeError(f"Unsupported payload format: {payload_format!r}", reason="unsupported_format")

    if fmt == "auto":
        head = payload.lstrip(b"\xef\xbb\xbf \t\r\n")
        fmt = "json" if head.startswith(b"{") else "protobuf"

    if fmt == "json":
        return decode_json_payload(payload)
    return decode_binary_payload(payload)
