"""Tests for wire value coercion and time parsing."""

import uuid
from datetime import datetime, timezone

import pytest

from fleet_trips.Services.ingest_core.field_map import FieldMap
from fleet_trips.Services.ingest_core.normalizers import (
    coerce_int,
    coerce_number,
    normalize_epoch,
    parse_event_id,
    parse_gps_datetime,
)


@pytest.mark.parametrize("value,expected", [
    ("33.9", 33.9),
    ("+20.652494", 20.652494),
    ("-100.391404", -100.391404),
    ("3,14", 3.14),
    ("  42  ", 42.0),
    (128, 128.0),
    (0.5, 0.5),
])
def test_coerce_number(value, expected):
    assert coerce_number(value) == pytest.approx(expected)


@pytest.mark.parametrize("value", [None, "", "   ", "null", "NULL", "abc", True, float("nan")])
def test_coerce_number_absent(value):
    assert coerce_number(value) is None


def test_coerce_int():
    assert coerce_int("12") == 12
    assert coerce_int("12.0") == 12
    assert coerce_int("x") is None


@pytest.mark.parametrize("value", ["12.5", "1e30", 2 ** 31, -(2 ** 31) - 1])
def test_coerce_int_rejects_fractions_and_int4_overflow(value):
    assert coerce_int(value) is None


def test_coerce_int_int4_bounds():
    assert coerce_int(2 ** 31 - 1) == 2 ** 31 - 1
    assert coerce_int("-2147483648") == -(2 ** 31)


def test_parse_gps_datetime_formats():
    expected = datetime(2025, 12, 3, 19, 58, 16, tzinfo=timezone.utc)
    assert parse_gps_datetime("2025-12-03 19:58:16") == expected
    assert parse_gps_datetime("2025-12-03T19:58:16") == expected


@pytest.mark.parametrize("value", ["", "03/12/2025 19:58", "2025-12-03", None, 1764791896])
def test_parse_gps_datetime_rejects(value):
    with pytest.raises(ValueError):
        parse_gps_datetime(value)


def test_normalize_epoch_seconds_and_milliseconds():
    seconds = normalize_epoch("1764791896")
    millis = normalize_epoch(1764791896000)
    assert seconds == millis == datetime(2025, 12, 3, 19, 58, 16, tzinfo=timezone.utc)


def test_normalize_epoch_rejects_non_positive():
    with pytest.raises(ValueError):
        normalize_epoch(0)
    with pytest.raises(ValueError):
        normalize_epoch("")


def test_parse_event_id():
    event_id, idempotent = parse_event_id("40f8ef36-4d01-50cd-88da-06fad8a19bac")
    assert event_id == uuid.UUID("40f8ef36-4d01-50cd-88da-06fad8a19bac")
    assert idempotent is True

    generated, idempotent = parse_event_id("not-a-uuid")
    assert isinstance(generated, uuid.UUID)
    assert idempotent is False

    _, idempotent = parse_event_id(None)
    assert idempotent is False


def test_field_map_aliases_and_accessors():
    fields = FieldMap({"latitude": "10,5", "LONGITUD": -74.8, "Speed": "", "imei": "ESP001"})

    assert "LATITUD" in fields
    assert fields.number("LATITUD") == pytest.approx(10.5)
    assert fields.number("lng") == pytest.approx(-74.8)
    assert fields.number("SPEED") is None
    assert fields.text("DEVICE_ID") == "ESP001"
    assert len(fields) == 4


def test_field_map_is_read_only():
    fields = FieldMap({"LATITUD": "1"})
    with pytest.raises(TypeError):
        fields["LATITUD"] = "2"
