# fleet_trips/Repositories/trip_point.py
"""Trip points: GPS fixes recorded against an open trip."""

from typing import List
from uuid import UUID

from sqlalchemy.orm import Session

from fleet_trips.Models.trip_point import TripPoint
from fleet_trips.Schemas.telemetry_event import TelemetryEvent


def insert_trip_point(DB: Session, trip_id: UUID, event: TelemetryEvent) -> TripPoint:
    point = TripPoint(
        trip_id=trip_id,
        device_id=event.device_id,
        timestamp=event.timestamp,
        lat=event.latitude,
        lng=event.longitude,
        speed=event.speed,
        heading=event.heading,
        odometer=event.odometer if event.has_odometer else None,
        correlation_id=event.event_id,
    )
    DB.add(point)
    DB.flush()
    return point


def get_points_by_trip(DB: Session, trip_id: UUID) -> List[TripPoint]:
    return (
        DB.query(TripPoint)
        .filter(TripPoint.trip_id == trip_id)
        .order_by(TripPoint.timestamp.asc(), TripPoint.point_id.asc())
        .all()
    )
