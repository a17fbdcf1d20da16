# fleet_trips/Models/device_idle_activity.py
import uuid

from sqlalchemy import JSON, Column, DateTime, Float, Index, Integer, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func
from fleet_trips.DB.base_class import Base


class DeviceIdleActivity(Base):
    """
    SQLAlchemy model for activity received while a device has no open trip.

    Idle GPS fixes are archived here as activity_type "gps_idle_point";
    alerts keep their raw vendor text. The receipt metadata of the event is
    stored verbatim in the metadata column.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "device_idle_activity"

    idle_id = Column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4
    )
    device_id = Column(String, nullable=False)

    timestamp = Column(DateTime(timezone=True), nullable=False)
    lat = Column(Float, nullable=False)
    lon = Column(Float, nullable=False)

    activity_type = Column(
        Text,
        nullable=False,
        doc="Raw alert text, or gps_idle_point for plain fixes"
    )
    raw_code = Column(Integer, nullable=True)
    severity = Column(Integer, nullable=True)

    # "metadata" is reserved on declarative classes; the column keeps the name
    event_metadata = Column(
        "metadata",
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
        doc="Receipt metadata forwarded from the transport (worker, client ip, epochs)"
    )

    correlation_id = Column(Uuid, nullable=False)

    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index("idx_device_idle_activity_device_timestamp", "device_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return (
            f"<DeviceIdleActivity(device_id={self.device_id!r}, "
            f"activity_type={self.activity_type!r})>"
        )
