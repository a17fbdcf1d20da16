# fleet_trips/Models/trip.py
from sqlalchemy import Column, DateTime, Float, Index, String, Uuid
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func
from fleet_trips.DB.base_class import Base


class Trip(Base):
    """
    SQLAlchemy model for a trip (ignition on to ignition off).

    Responsibilities:
    - Stores the start boundary written when the ignition-on event arrives
    - Stores the end boundary written when the matching ignition-off arrives
    - Keeps odometer readings at both ends and their difference

    Notes:
    - trip_id is the event id of the ignition-on event that opened the trip
    - end_time IS NULL means the trip is still open; at most one open trip
      exists per device
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "trips"

    # ========================================
    # PRIMARY KEY
    # ========================================
    trip_id = Column(
        Uuid,
        primary_key=True,
        doc="Trip identifier (event id of the starting ignition-on event)"
    )

    device_id = Column(
        String,
        nullable=False,
        doc="Device that generated this trip"
    )

    # ========================================
    # START BOUNDARY
    # ========================================
    start_time = Column(
        DateTime(timezone=True),
        nullable=False,
        doc="GPS time of the ignition-on event"
    )
    start_lat = Column(Float, nullable=False)
    start_lng = Column(Float, nullable=False)

    start_odometer = Column(
        Float,
        nullable=True,
        doc="Odometer at trip start (NULL when the device did not report one)"
    )

    # ========================================
    # END BOUNDARY (NULL while open)
    # ========================================
    end_time = Column(
        DateTime(timezone=True),
        nullable=True,
        doc="GPS time of the ignition-off event (NULL if trip is open)"
    )
    end_lat = Column(Float, nullable=True)
    end_lng = Column(Float, nullable=True)
    end_odometer = Column(Float, nullable=True)

    odometer_delta = Column(
        Float,
        nullable=True,
        doc="end_odometer - start_odometer, when both readings exist"
    )

    # ========================================
    # AUDIT FIELDS
    # ========================================
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when trip record was created"
    )

    # ========================================
    # TABLE CONSTRAINTS
    # ========================================
    __table_args__ = (
        # Open-trip lookup (recovery path) and per-device history
        Index("idx_trips_device_end_time", "device_id", "end_time"),
        Index("idx_trips_device_start_time", "device_id", "start_time"),
    )

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def __repr__(self) -> str:
        return (
            f"<Trip(trip_id={self.trip_id!s}, device_id={self.device_id!r}, "
            f"open={self.is_open!r})>"
        )
