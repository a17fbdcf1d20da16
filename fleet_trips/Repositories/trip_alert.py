# fleet_trips/Repositories/trip_alert.py
"""
Trip Alert Repository.

Alerts are either the vendor's raw text (received during an open trip) or
the synthetic ignition_on / ignition_off markers written at trip boundaries.
"""

from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from fleet_trips.Models.trip_alert import TripAlert
from fleet_trips.Schemas.telemetry_event import TelemetryEvent

IGNITION_ON_ALERT = "ignition_on"
IGNITION_OFF_ALERT = "ignition_off"

# Every alert is stored with the same severity
DEFAULT_SEVERITY = 1


def insert_trip_alert(DB: Session, trip_id: UUID, event: TelemetryEvent, alert_type: str) -> TripAlert:
    """
    Add an alert for ``trip_id`` to the caller's transaction.

    Args:
        DB: SQLAlchemy session
        trip_id: Trip the alert belongs to
        event: Event that produced the alert (position, time, correlation)
        alert_type: Raw vendor text or one of the ignition markers
    """
    alert = TripAlert(
        trip_id=trip_id,
        device_id=event.device_id,
        timestamp=event.timestamp,
        lat=event.latitude,
        lon=event.longitude,
        alert_type=alert_type,
        raw_code=event.raw_code,
        severity=DEFAULT_SEVERITY,
        correlation_id=event.event_id,
    )
    DB.add(alert)
    DB.flush()
    return alert


def get_alerts_by_trip(DB: Session, trip_id: UUID) -> List[TripAlert]:
    return (
        DB.query(TripAlert)
        .filter(TripAlert.trip_id == trip_id)
        .order_by(TripAlert.timestamp.asc(), TripAlert.created_at.asc())
        .all()
    )
