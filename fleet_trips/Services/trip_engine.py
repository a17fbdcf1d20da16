# fleet_trips/Services/trip_engine.py
"""
Trip State Transaction Engine
=============================
Applies one telemetry event to the store, atomically.

For every event, inside a single transaction:
1. Claim and lock the device's trip_current_state row (SELECT ... FOR UPDATE)
2. Recover current_trip_id from the trips table if the row says a trip is
   open but does not name it
3. Classify the event (destination_classifier.classify)
4. Write the destination's rows (trip, alert, point or idle activity)
5. Record the event as the device's last known fix
6. Commit; any error rolls everything back

Events of the same device are serialized by the row lock, which is held
until commit. On databases without row locks (SQLite) a per-device
in-process mutex (DeviceLocks) is held around the transaction instead.

Usage:
    engine = TripStateEngine(SessionLocal, stats=ProcessingStats())

    destination = engine.process_payload(record.value)   # None if dropped
    destination = engine.handle(event)                    # raises ProcessingError
"""

from contextlib import nullcontext
from typing import ContextManager, Optional, Union
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from fleet_trips.Core.exceptions import DecodeError, DuplicateEventError, ProcessingError
from fleet_trips.Core.log_setup import get_logger
from fleet_trips.Models.trip_current_state import TripCurrentState
from fleet_trips.Repositories.device_idle_activity import insert_idle_activity
from fleet_trips.Repositories.trip import close_trip, find_latest_open_trip, insert_trip
from fleet_trips.Repositories.trip_alert import IGNITION_OFF_ALERT, IGNITION_ON_ALERT, insert_trip_alert
from fleet_trips.Repositories.trip_current_state import lock_current_state, touch_last_point
from fleet_trips.Repositories.trip_point import insert_trip_point
from fleet_trips.Schemas.telemetry_event import TelemetryEvent
from fleet_trips.Schemas.trip import Trip_close, Trip_create
from fleet_trips.Services.destination_classifier import Destination, classify
from fleet_trips.Services.device_locks import DeviceLocks
from fleet_trips.Services.ingest_core import decode_payload
from fleet_trips.Services.processing_stats import ProcessingStats

logger = get_logger(__name__)

# Dialects whose SELECT ... FOR UPDATE actually locks the row
ROW_LOCK_DIALECTS = frozenset({"postgresql", "mysql", "mariadb", "oracle", "mssql"})


class TripStateEngine:
    """
    Per-event transaction engine over a session factory.

    Args:
        session_factory: sessionmaker bound to the store
        stats: Counters updated for every event (a private instance if omitted)
        payload_format: Default format for process_payload ("auto", "json", "protobuf")
        use_device_locks: Force the in-process per-device mutex on or off;
            by default it is used when the bound dialect has no row locks
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        stats: Optional[ProcessingStats] = None,
        payload_format: str = "auto",
        use_device_locks: Optional[bool] = None,
    ) -> None:
        self._session_factory = session_factory
        self.stats = stats or ProcessingStats()
        self.payload_format = payload_format

        if use_device_locks is None:
            bind = session_factory.kw.get("bind")
            dialect = bind.dialect.name if bind is not None else ""
            use_device_locks = dialect not in ROW_LOCK_DIALECTS
        self._device_locks: Optional[DeviceLocks] = DeviceLocks() if use_device_locks else None

    @property
    def uses_device_locks(self) -> bool:
        return self._device_locks is not None

    # ========================================
    # ENTRY POINTS
    # ========================================
    def process_payload(
        self,
        payload: Union[bytes, str],
        payload_format: Optional[str] = None,
    ) -> Optional[Destination]:
        """
        Decode ``payload`` and apply it.

        Returns:
            Destination of the event, or None if the payload was dropped
            (malformed, no device id, unusable GPS time)

        Raises:
            ProcessingError: The store rejected the event's transaction
        """
        try:
            event = decode_payload(payload, payload_format or self.payload_format)
        except DecodeError as e:
            self.stats.record_decode_drop()
            logger.warning("event_dropped", reason=e.reason, error=str(e))
            return None

        return self.handle(event)

    def handle(self, event: TelemetryEvent) -> Destination:
        """
        Apply ``event`` in one transaction.

        Raises:
            DuplicateEventError: A uniqueness constraint fired (redelivery);
                nothing was written
            ProcessingError: Any other store failure; nothing was written
        """
        log = logger.bind(device_id=event.device_id, event_id=str(event.event_id))

        with self._device_guard(event.device_id):
            try:
                with self._session_factory() as DB, DB.begin():
                    destination = self._apply(DB, event, log)
            except IntegrityError as e:
                self.stats.record_failure(duplicate=True)
                log.warning("duplicate_event_rolled_back", idempotent=event.idempotent, error=str(e.orig))
                raise DuplicateEventError(
                    "Event violates a uniqueness constraint",
                    device_id=event.device_id,
                    event_id=str(event.event_id),
                ) from e
            except SQLAlchemyError as e:
                self.stats.record_failure()
                log.error("event_transaction_failed", error=str(e))
                raise ProcessingError(
                    f"Store rejected event: {e}",
                    device_id=event.device_id,
                    event_id=str(event.event_id),
                ) from e

        self.stats.record_processed(destination.value)
        log.debug("event_processed", destination=destination.value)
        return destination

    # ========================================
    # TRANSACTION BODY
    # ========================================
    def _device_guard(self, device_id: str) -> ContextManager[None]:
        if self._device_locks is None:
            return nullcontext()
        return self._device_locks.hold(device_id)

    def _apply(self, DB: Session, event: TelemetryEvent, log) -> Destination:
        state = lock_current_state(DB, event.device_id)
        trip_active = bool(state.ignition_on)
        trip_id = self._resolve_trip_id(DB, state, log)

        destination = classify(event.alert, trip_active)

        if destination is Destination.NEW_TRIP:
            self._start_trip(DB, state, event, log)

        elif destination is Destination.END_TRIP:
            self._end_trip(DB, state, event, trip_id, log)

        elif destination is Destination.TRIP_ALERT:
            if trip_id is None:
                log.warning("trip_alert_dropped_no_trip", alert=event.alert)
            else:
                insert_trip_alert(DB, trip_id, event, event.alert)

        elif destination is Destination.TRIP_POINT:
            if trip_id is None:
                log.warning("trip_point_skipped_no_trip")
            else:
                insert_trip_point(DB, trip_id, event)

        elif destination is Destination.IDLE_ACTIVITY:
            insert_idle_activity(DB, event)

        else:
            log.info("ignition_event_ignored", destination=destination.value, alert=event.alert)

        touch_last_point(DB, state, event)
        return destination

    def _resolve_trip_id(self, DB: Session, state: TripCurrentState, log) -> Optional[UUID]:
        """
        current_trip_id of an open trip, recovering it if the row lost it.

        The recovered id is written back to the state row.
        """
        if not state.ignition_on:
            return None
        if state.current_trip_id is not None:
            return state.current_trip_id

        log.warning("trip_state_recovery_attempt")
        trip = find_latest_open_trip(DB, state.device_id)
        if trip is None:
            self.stats.record_recovery(succeeded=False)
            log.error("trip_state_recovery_failed")
            return None

        self.stats.record_recovery(succeeded=True)
        log.warning("trip_state_recovered", trip_id=str(trip.trip_id))
        state.current_trip_id = trip.trip_id
        return trip.trip_id

    def _start_trip(self, DB: Session, state: TripCurrentState, event: TelemetryEvent, log) -> None:
        trip = insert_trip(DB, Trip_create(
            trip_id=event.event_id,
            device_id=event.device_id,
            start_time=event.timestamp,
            start_lat=event.latitude,
            start_lng=event.longitude,
            start_odometer=event.odometer if event.has_odometer else None,
        ))

        state.ignition_on = True
        state.current_trip_id = trip.trip_id

        insert_trip_alert(DB, trip.trip_id, event, IGNITION_ON_ALERT)
        log.info("trip_started", trip_id=str(trip.trip_id))

    def _end_trip(
        self,
        DB: Session,
        state: TripCurrentState,
        event: TelemetryEvent,
        trip_id: Optional[UUID],
        log,
    ) -> None:
        if trip_id is None:
            log.error("trip_close_skipped_no_trip_id")
            return

        trip = close_trip(DB, trip_id, Trip_close(
            end_time=event.timestamp,
            end_lat=event.latitude,
            end_lng=event.longitude,
            end_odometer=event.odometer if event.has_odometer else None,
        ))
        if trip is None:
            log.error("trip_close_target_missing", trip_id=str(trip_id))

        state.ignition_on = False
        state.current_trip_id = None

        insert_trip_alert(DB, trip_id, event, IGNITION_OFF_ALERT)
        log.info(
            "trip_ended",
            trip_id=str(trip_id),
            odometer_delta=trip.odometer_delta if trip is not None else None,
        )
