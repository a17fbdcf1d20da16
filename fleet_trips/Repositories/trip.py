# fleet_trips/Repositories/trip.py
"""
Trip Repository - Database operations for trip boundaries.

Responsibilities:
- Insert a trip when ignition turns on
- Close a trip when ignition turns off
- Find the open trip of a device (state recovery)

Usage:
    from fleet_trips.Repositories.trip import insert_trip, close_trip

    trip = insert_trip(DB, Trip_create(...))
    close_trip(DB, trip.trip_id, Trip_close(...))
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from fleet_trips.Models.trip import Trip
from fleet_trips.Schemas.trip import Trip_close, Trip_create


# ==========================================================
# CREATE OPERATIONS
# ==========================================================

def insert_trip(DB: Session, trip_data: Trip_create) -> Trip:
    """
    Add a new open trip to the caller's transaction.

    Args:
        DB: SQLAlchemy session
        trip_data: Trip_create schema with the start boundary

    Returns:
        Trip: Pending ORM object (flushed, not committed)
    """
    new_trip = Trip(**trip_data.model_dump())
    DB.add(new_trip)
    DB.flush()
    return new_trip


# ==========================================================
# READ OPERATIONS
# ==========================================================

def find_latest_open_trip(DB: Session, device_id: str) -> Optional[Trip]:
    """
    Most recently started trip of ``device_id`` that has no end time.

    Used only to recover a state row whose ignition flag is set but whose
    current_trip_id is missing.
    """
    return (
        DB.query(Trip)
        .filter(Trip.device_id == device_id, Trip.end_time.is_(None))
        .order_by(Trip.start_time.desc())
        .first()
    )


def count_open_trips(DB: Session, device_id: str) -> int:
    return (
        DB.query(Trip)
        .filter(Trip.device_id == device_id, Trip.end_time.is_(None))
        .count()
    )


# ==========================================================
# UPDATE OPERATIONS
# ==========================================================

def close_trip(DB: Session, trip_id: UUID, close_data: Trip_close) -> Optional[Trip]:
    """
    Write the end boundary of a trip.

    Args:
        DB: SQLAlchemy session
        trip_id: Trip to close
        close_data: Trip_close schema with the end boundary

    Returns:
        Trip or None: Closed trip, None if no such trip exists

    Notes:
        - odometer_delta is only set when both ends carry a reading
    """
    trip = DB.get(Trip, trip_id)
    if trip is None:
        return None

    trip.end_time = close_data.end_time
    trip.end_lat = close_data.end_lat
    trip.end_lng = close_data.end_lng
    trip.end_odometer = close_data.end_odometer

    if trip.start_odometer is not None and close_data.end_odometer is not None:
        trip.odometer_delta = close_data.end_odometer - trip.start_odometer

    DB.flush()
    return trip
