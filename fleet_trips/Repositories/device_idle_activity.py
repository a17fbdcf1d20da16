# fleet_trips/Repositories/device_idle_activity.py
"""Idle activity: everything a device reports while no trip is open."""

from typing import List

from sqlalchemy.orm import Session

from fleet_trips.Models.device_idle_activity import DeviceIdleActivity
from fleet_trips.Schemas.telemetry_event import TelemetryEvent

# activity_type of a plain GPS fix (no alert text)
IDLE_POINT_ACTIVITY = "gps_idle_point"


def insert_idle_activity(DB: Session, event: TelemetryEvent) -> DeviceIdleActivity:
    alert = (event.alert or "").strip()
    activity = DeviceIdleActivity(
        device_id=event.device_id,
        timestamp=event.timestamp,
        lat=event.latitude,
        lon=event.longitude,
        activity_type=event.alert if alert else IDLE_POINT_ACTIVITY,
        raw_code=event.raw_code,
        severity=1,
        event_metadata=dict(event.metadata),
        correlation_id=event.event_id,
    )
    DB.add(activity)
    DB.flush()
    return activity


def get_idle_activity_by_device(DB: Session, device_id: str) -> List[DeviceIdleActivity]:
    return (
        DB.query(DeviceIdleActivity)
        .filter(DeviceIdleActivity.device_id == device_id)
        .order_by(DeviceIdleActivity.timestamp.asc())
        .all()
    )
