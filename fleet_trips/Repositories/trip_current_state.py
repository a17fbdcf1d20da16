# fleet_trips/Repositories/trip_current_state.py
"""
Trip Current State Repository - per-device state row access.

Responsibilities:
- Claim and lock the state row of a device inside the caller's transaction
- Record the last known fix of the device

Usage:
    from fleet_trips.Repositories.trip_current_state import lock_current_state

    with SessionLocal() as DB, DB.begin():
        state = lock_current_state(DB, "867564050638581")
        ...

Notes:
    - None of these functions commit: the transaction engine owns the
      transaction boundary for every event
"""

from datetime import datetime, timezone

from sqlalchemy import insert
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from fleet_trips.Models.trip_current_state import TripCurrentState
from fleet_trips.Schemas.telemetry_event import TelemetryEvent


# ==========================================================
# ROW CLAIM + LOCK
# ==========================================================

def _claim_row(DB: Session, device_id: str) -> None:
    """
    Make sure a state row exists for ``device_id``.

    Concurrent first events of a brand-new device race on the primary key:
    ON CONFLICT DO NOTHING lets exactly one insert win and the others wait
    on it, so the FOR UPDATE that follows always has a row to lock. The
    placeholder is part of the caller's transaction and disappears with it
    on rollback.
    """
    dialect = DB.get_bind().dialect.name
    values = {"device_id": device_id, "ignition_on": False}

    if dialect == "postgresql":
        stmt = postgresql.insert(TripCurrentState).values(**values)
        DB.execute(stmt.on_conflict_do_nothing(index_elements=["device_id"]))
    elif dialect == "sqlite":
        stmt = sqlite.insert(TripCurrentState).values(**values)
        DB.execute(stmt.on_conflict_do_nothing(index_elements=["device_id"]))
    elif DB.get(TripCurrentState, device_id) is None:
        DB.execute(insert(TripCurrentState).values(**values))


def lock_current_state(DB: Session, device_id: str) -> TripCurrentState:
    """
    Claim and lock the state row of a device.

    Args:
        DB: SQLAlchemy session with an open transaction
        device_id: Device identifier

    Returns:
        TripCurrentState: Row locked until the caller's transaction ends
        (FOR UPDATE is ignored on dialects without row locks)
    """
    _claim_row(DB, device_id)
    return (
        DB.query(TripCurrentState)
        .filter(TripCurrentState.device_id == device_id)
        .with_for_update()
        .populate_existing()
        .one()
    )


# ==========================================================
# UPDATE OPERATIONS
# ==========================================================

def touch_last_point(DB: Session, state: TripCurrentState, event: TelemetryEvent) -> TripCurrentState:
    """
    Record ``event`` as the device's last known fix.

    Applied on every destination, ignored ignition events included.
    """
    state.last_point_at = event.timestamp
    state.last_lat = event.latitude
    state.last_lng = event.longitude
    state.last_speed = event.speed
    state.last_odometer = event.odometer if event.has_odometer else None
    state.last_correlation_id = event.event_id
    state.last_updated_at = datetime.now(timezone.utc)
    DB.flush()
    return state
