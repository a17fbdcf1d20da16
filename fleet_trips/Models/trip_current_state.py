# fleet_trips/Models/trip_current_state.py
from sqlalchemy import Boolean, Column, DateTime, Float, String, Uuid, false
from sqlalchemy.orm import declared_attr
from fleet_trips.DB.base_class import Base


class TripCurrentState(Base):
    """
    SQLAlchemy model for the per-device trip state row.

    Responsibilities:
    - Records whether the device currently has an open trip
    - Points at that trip (current_trip_id) while ignition is on
    - Keeps the last known fix of the device, whatever its destination

    Concurrency:
    - The transaction engine locks this row (SELECT ... FOR UPDATE) for the
      whole lifetime of an event's transaction, which serializes events of
      the same device
    - An absent row means the device never started a trip (NoTripActive)
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "trip_current_state"

    # ========================================
    # PRIMARY KEY
    # ========================================
    device_id = Column(
        String,
        primary_key=True,
        doc="Device identifier (one state row per device)"
    )

    # ========================================
    # TRIP STATE
    # ========================================
    current_trip_id = Column(
        Uuid,
        nullable=True,
        doc="Open trip of the device (NULL whenever ignition_on is false)"
    )

    ignition_on = Column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
        doc="True while a trip is open"
    )

    # ========================================
    # LAST KNOWN FIX
    # ========================================
    last_point_at = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="GPS time of the last committed event"
    )
    last_lat = Column(Float, nullable=True)
    last_lng = Column(Float, nullable=True)
    last_speed = Column(Float, nullable=True)
    last_odometer = Column(Float, nullable=True)

    last_correlation_id = Column(
        Uuid,
        nullable=True,
        doc="Event id of the last committed event"
    )

    # ========================================
    # AUDIT FIELDS
    # ========================================
    last_updated_at = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="Wall-clock time of the last update"
    )

    def __repr__(self) -> str:
        return (
            f"<TripCurrentState(device_id={self.device_id!r}, "
            f"ignition_on={self.ignition_on!r}, current_trip_id={self.current_trip_id!s})>"
        )
