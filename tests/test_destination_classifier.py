"""Tests for the destination decision table."""

import pytest

from fleet_trips.Services.destination_classifier import (
    Destination,
    classify,
    is_ignition_off,
    is_ignition_on,
)


@pytest.mark.parametrize("alert", ["ENGINE ON", "Engine On", "turn on", "Turn On"])
def test_ignition_on_vocabulary_ignores_case(alert):
    assert is_ignition_on(alert)
    assert not is_ignition_off(alert)


@pytest.mark.parametrize("alert", ["ENGINE OFF", "engine off", "Turn Off", "TURN OFF"])
def test_ignition_off_vocabulary_ignores_case(alert):
    assert is_ignition_off(alert)
    assert not is_ignition_on(alert)


@pytest.mark.parametrize("alert", [None, "", "ENGINE", "IGNITION ON", " ENGINE ON", "Harsh Braking"])
def test_non_ignition_alerts(alert):
    assert not is_ignition_on(alert)
    assert not is_ignition_off(alert)


@pytest.mark.parametrize("alert,active,expected", [
    ("Engine On", False, Destination.NEW_TRIP),
    ("Engine On", True, Destination.IGNORED_IGNITION_ON),
    ("Turn Off", True, Destination.END_TRIP),
    ("Turn Off", False, Destination.IGNORED_IGNITION_OFF),
    ("Harsh Braking", True, Destination.TRIP_ALERT),
    (None, True, Destination.TRIP_POINT),
    ("", True, Destination.TRIP_POINT),
    ("Harsh Braking", False, Destination.IDLE_ACTIVITY),
    (None, False, Destination.IDLE_ACTIVITY),
])
def test_decision_table(alert, active, expected):
    assert classify(alert, active) is expected


def test_whitespace_alert_is_a_trip_point():
    assert classify("   ", True) is Destination.TRIP_POINT
    assert classify("\t", False) is Destination.IDLE_ACTIVITY


def test_classify_is_total():
    alerts = [None, "", " ", "ENGINE ON", "turn off", "Low Battery", "ñ"]
    for alert in alerts:
        for active in (True, False):
            assert isinstance(classify(alert, active), Destination)
