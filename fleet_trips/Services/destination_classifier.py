# fleet_trips/Services/destination_classifier.py
"""
Destination Classifier
======================
Decides where an event goes given its alert text and whether the device
currently has an open trip.

Decision table (first match wins):

    ignition on  & no trip  -> NEW_TRIP
    ignition on  & trip     -> IGNORED_IGNITION_ON
    ignition off & trip     -> END_TRIP
    ignition off & no trip  -> IGNORED_IGNITION_OFF
    other alert  & trip     -> TRIP_ALERT
    no alert     & trip     -> TRIP_POINT
    anything     & no trip  -> IDLE_ACTIVITY

Blank and whitespace-only alerts count as no alert. Pure functions, no I/O.
"""

from enum import Enum
from typing import Optional


IGNITION_ON_ALERTS = frozenset({"ENGINE ON", "TURN ON"})
IGNITION_OFF_ALERTS = frozenset({"ENGINE OFF", "TURN OFF"})


class Destination(str, Enum):
    NEW_TRIP = "new_trip"
    END_TRIP = "end_trip"
    TRIP_POINT = "trip_point"
    TRIP_ALERT = "trip_alert"
    IDLE_ACTIVITY = "idle_activity"
    IGNORED_IGNITION_ON = "ignored_ignition_on"
    IGNORED_IGNITION_OFF = "ignored_ignition_off"


def is_ignition_on(alert: Optional[str]) -> bool:
    """'Engine On' / 'Turn On' in any letter case."""
    return alert is not None and alert.upper() in IGNITION_ON_ALERTS


def is_ignition_off(alert: Optional[str]) -> bool:
    """'Engine Off' / 'Turn Off' in any letter case."""
    return alert is not None and alert.upper() in IGNITION_OFF_ALERTS


def classify(alert: Optional[str], trip_active: bool) -> Destination:
    if is_ignition_on(alert):
        return Destination.IGNORED_IGNITION_ON if trip_active else Destination.NEW_TRIP

    if is_ignition_off(alert):
        return Destination.END_TRIP if trip_active else Destination.IGNORED_IGNITION_OFF

    if not trip_active:
        return Destination.IDLE_ACTIVITY

    if alert is not None and alert.strip():
        return Destination.TRIP_ALERT
    return Destination.TRIP_POINT
