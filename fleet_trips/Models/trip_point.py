# fleet_trips/Models/trip_point.py
from sqlalchemy import BigInteger, Column, DateTime, Float, Index, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import declared_attr
from fleet_trips.DB.base_class import Base


class TripPoint(Base):
    """
    GPS sample recorded while the device's trip is open.

    Carries no ignition state: ignition transitions are trip boundaries and
    alerts, never points.
    """

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return "trip_points"

    # BIGSERIAL on PostgreSQL; SQLite only autoincrements INTEGER PRIMARY KEY
    point_id = Column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True
    )

    trip_id = Column(
        Uuid,
        nullable=False,
        doc="Trip this point belongs to"
    )
    device_id = Column(String, nullable=False)

    timestamp = Column(
        DateTime(timezone=True),
        nullable=False,
        doc="GPS fix time"
    )

    lat = Column(Float, nullable=False)
    lng = Column(Float, nullable=False)
    speed = Column(Float, nullable=False, default=0.0)
    heading = Column(Float, nullable=False, default=0.0)
    odometer = Column(Float, nullable=True)

    correlation_id = Column(
        Uuid,
        nullable=False,
        doc="Event id of the event that produced this point"
    )

    __table_args__ = (
        # Redelivered events collide here and roll their transaction back
        UniqueConstraint("device_id", "correlation_id", "timestamp", name="uq_trip_points_event"),
        Index("idx_trip_points_trip_timestamp", "trip_id", "timestamp"),
    )

    def __repr__(self) -> str:
        return f"<TripPoint(trip_id={self.trip_id!s}, timestamp={self.timestamp!r})>"
