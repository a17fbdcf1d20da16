# fleet_trips/Models/trip_alert.py
import uuid

from sqlalchemy import Column, DateTime, Float, Index, Integer, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func
from fleet_trips.DB.base_class import Base


class TripAlert(Base):
    """
    SQLAlchemy model for alerts attached to a trip.

    Two kinds of rows land here:
    - Vendor alerts received while a trip is open (alert_type is the raw
      vendor text, e.g. "Harsh Braking")
    - Synthetic ignition markers written at trip boundaries
      (alert_type "ignition_on" / "ignition_off")
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "trip_alerts"

    # ========================================
    # PRIMARY KEY
    # ========================================
    alert_id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
        doc="Random alert identifier"
    )

    trip_id = Column(
        Uuid,
        nullable=False,
        doc="Trip the alert belongs to"
    )
    device_id = Column(String, nullable=False)

    # ========================================
    # ALERT DATA
    # ========================================
    timestamp = Column(DateTime(timezone=True), nullable=False)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)

    alert_type = Column(
        Text,
        nullable=False,
        doc="Raw vendor alert text, or ignition_on / ignition_off"
    )
    raw_code = Column(Integer, nullable=True)
    severity = Column(Integer, nullable=False, default=1)

    correlation_id = Column(
        Uuid,
        nullable=False,
        doc="Event id of the event that produced this alert"
    )

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint("device_id", "correlation_id", "timestamp", name="uq_trip_alerts_event"),
        Index("idx_trip_alerts_trip_timestamp", "trip_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<TripAlert(trip_id={self.trip_id!s}, alert_type={self.alert_type!r})>"
