"""Tests for JSON and protobuf payload decoding."""

import json
import uuid
from datetime import datetime, timezone

import pytest

from fleet_trips.Core.exceptions import DecodeError
from fleet_trips.Services.ingest_core import (
    ReceiptMetadata,
    TelemetryEnvelope,
    decode_binary_payload,
    decode_json_payload,
    decode_payload,
)

STATUS_SAMPLE = b"""
{
    "data": {
        "BACKUP_BATTERY_VOLTAGE": "12.34",
        "COURSE": "0.00",
        "DELIVERY_TYPE": "REAL TIME",
        "DEVICE_ID": "0848086072",
        "ENGINE_STATUS": "OFF",
        "GPS_DATETIME": "2025-11-29 06:15:15",
        "GPS_EPOCH": "1764396915",
        "LATITUD": "+20.652494",
        "LONGITUD": "-100.391404",
        "MSG_CLASS": "STATUS",
        "ODOMETER": "0",
        "SPEED": "0.00"
    },
    "decoded": {},
    "metadata": {
        "BYTES": 188,
        "CLIENT_IP": "44.204.32.23",
        "CLIENT_PORT": 47884,
        "DECODED_EPOCH": 1764398681921,
        "RECEIVED_EPOCH": 1764398681920,
        "WORKER_ID": 3
    },
    "raw": "...",
    "uuid": "d52b1454-d43d-50fa-99ca-79515c904162"
}
"""

IGNITION_ON_SAMPLE = b"""
{
    "data": {
        "ALERT": "Turn On",
        "ALTITUDE": "1820.7",
        "COURSE": "128",
        "DEVICE_ID": "867564050638581",
        "GPS_DATETIME": "2025-12-03 19:58:16",
        "GPS_EPOCH": "1764791896",
        "LATITUD": "20.605243",
        "LONGITUD": "-100.384140",
        "MSG_CLASS": "ALERT",
        "ODOMETER": "121.8",
        "SPEED": "33.9"
    },
    "metadata": {
        "BYTES": 158,
        "CLIENT_IP": "44.204.32.23",
        "CLIENT_PORT": 14362,
        "DECODED_EPOCH": 1764791898674,
        "RECEIVED_EPOCH": 1764791898673,
        "WORKER_ID": 3
    },
    "uuid": "40f8ef36-4d01-50cd-88da-06fad8a19bac"
}
"""


# ============================================
# JSON
# ============================================
def test_status_sample():
    event = decode_json_payload(STATUS_SAMPLE)

    assert event.device_id == "0848086072"
    assert event.latitude == pytest.approx(20.652494)
    assert event.longitude == pytest.approx(-100.391404)
    assert event.speed == 0.0
    assert event.odometer == 0.0
    assert not event.has_odometer
    assert event.alert is None
    assert event.msg_class == "STATUS"
    assert event.idempotent is True
    assert event.metadata["WORKER_ID"] == 3


def test_ignition_on_sample():
    event = decode_payload(IGNITION_ON_SAMPLE)

    assert event.device_id == "867564050638581"
    assert event.alert == "Turn On"
    assert event.event_id == uuid.UUID("40f8ef36-4d01-50cd-88da-06fad8a19bac")
    assert event.timestamp == datetime(2025, 12, 3, 19, 58, 16, tzinfo=timezone.utc)
    assert event.heading == pytest.approx(128.0)
    assert event.odometer == pytest.approx(121.8)
    assert event.speed == pytest.approx(33.9)


def test_numbers_may_be_json_numbers(make_payload):
    event = decode_json_payload(make_payload(LATITUD=10.5, LONGITUD=-74.8, SPEED=12))
    assert event.latitude == 10.5
    assert event.longitude == -74.8
    assert event.speed == 12.0


def test_unparseable_numbers_default_to_zero(make_payload):
    event = decode_json_payload(make_payload(SPEED="fast", LATITUD=""))
    assert event.speed == 0.0
    assert event.latitude == 0.0


def test_device_id_from_metadata():
    payload = json.dumps({
        "data": {"GPS_DATETIME": "2025-12-03T19:58:16"},
        "metadata": {"DEVICE_ID": "META-1"},
        "uuid": str(uuid.uuid4()),
    }).encode()
    assert decode_json_payload(payload).device_id == "META-1"


def test_gps_epoch_when_no_datetime(make_payload):
    event = decode_json_payload(make_payload(gps_datetime="", GPS_EPOCH="1764791896"))
    assert event.timestamp == datetime(2025, 12, 3, 19, 58, 16, tzinfo=timezone.utc)


def test_missing_uuid_generates_non_idempotent_id(make_payload):
    document = json.loads(make_payload())
    del document["uuid"]
    event = decode_json_payload(json.dumps(document).encode())
    assert event.idempotent is False
    assert isinstance(event.event_id, uuid.UUID)


def test_raw_code_is_parsed(make_payload):
    assert decode_json_payload(make_payload(raw_code="12")).raw_code == 12


def test_json_with_bom_and_leading_whitespace(make_payload):
    event = decode_payload(b"\xef\xbb\xbf  " + make_payload())
    assert event.device_id == "867564050638581"


@pytest.mark.parametrize("payload,reason", [
    (b"{not json", "malformed_payload"),
    (b'["a", "list"]', "malformed_payload"),
    (b'{"metadata": {}}', "malformed_payload"),
    (b'{"data": {"GPS_DATETIME": "2025-12-03 19:58:16"}, "uuid": ""}', "missing_device_id"),
    (b'{"data": {"DEVICE_ID": "X", "GPS_DATETIME": "yesterday"}}', "invalid_timestamp"),
    (b'{"data": {"DEVICE_ID": "X"}}', "missing_timestamp"),
])
def test_malformed_json(payload, reason):
    with pytest.raises(DecodeError) as excinfo:
        decode_payload(payload, "json")
    assert excinfo.value.reason == reason


def test_empty_and_unknown_format():
    with pytest.raises(DecodeError):
        decode_payload(b"")
    with pytest.raises(DecodeError):
        decode_payload(b"{}", "xml")


# ============================================
# PROTOBUF
# ============================================
def _envelope(**data):
    return TelemetryEnvelope(
        uuid="40f8ef36-4d01-50cd-88da-06fad8a19bac",
        data=data,
        metadata=ReceiptMetadata(
            worker_id=3,
            bytes=158,
            client_ip="44.204.32.23",
            client_port=14362,
            received_epoch=1764791898673,
            decoded_epoch=1764791898674,
        ),
    )


def test_binary_envelope():
    payload = _envelope(
        DEVICE_ID="867564050638581",
        ALERT="Engine Off",
        GPS_DATETIME="2025-12-03 19:58:16",
        LATITUD="20.605243",
        LONGITUD="-100.384140",
        SPEED="0",
        ODOMETER="130.2",
    ).SerializeToString()

    event = decode_payload(payload)

    assert event.device_id == "867564050638581"
    assert event.alert == "Engine Off"
    assert event.timestamp == datetime(2025, 12, 3, 19, 58, 16, tzinfo=timezone.utc)
    assert event.odometer == pytest.approx(130.2)
    assert event.idempotent is True
    assert event.metadata == {
        "WORKER_ID": 3,
        "BYTES": 158,
        "CLIENT_IP": "44.204.32.23",
        "CLIENT_PORT": 14362,
        "RECEIVED_EPOCH": 1764791898673,
        "DECODED_EPOCH": 1764791898674,
    }


def test_binary_falls_back_to_receipt_time():
    payload = _envelope(DEVICE_ID="D1", GPS_DATETIME="garbage").SerializeToString()
    event = decode_binary_payload(payload)
    assert event.timestamp == datetime.fromtimestamp(1764791898.673, tz=timezone.utc)


def test_binary_falls_back_to_now():
    payload = TelemetryEnvelope(data={"DEVICE_ID": "D1"}).SerializeToString()
    before = datetime.now(timezone.utc)
    event = decode_binary_payload(payload)
    assert event.timestamp >= before
    assert event.idempotent is False
    assert event.metadata == {}


def test_binary_without_device_id():
    payload = _envelope(GPS_DATETIME="2025-12-03 19:58:16").SerializeToString()
    with pytest.raises(DecodeError) as excinfo:
        decode_payload(payload, "protobuf")
    assert excinfo.value.reason == "missing_device_id"


def test_binary_garbage_is_rejected():
    with pytest.raises(DecodeError):
        decode_payload(b"\xff\xff\xff\xff", "protobuf")
