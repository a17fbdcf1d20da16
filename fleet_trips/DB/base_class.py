"""
fleet_trips/DB/base_class.py
=================================
SQLAlchemy Base Model Definition
=================================

Declarative base shared by the five trip-lifecycle tables.

- Extends SQLAlchemy 2.0 ``DeclarativeBase``
- Falls back to the lowercase class name when a model does not set its own
  ``__tablename__`` (every current model sets one explicitly, matching the
  store schema: trip_current_state, trips, trip_points, trip_alerts,
  device_idle_activity)
- Carries a constraint naming convention so alembic autogenerate produces
  stable, dialect-independent constraint names

Usage Example:
-------------
    from fleet_trips.DB.base_class import Base

    class TripPoint(Base):
        __tablename__ = "trip_points"
        point_id = Column(BigInteger, primary_key=True)
"""

from sqlalchemy import MetaData
from sqlalchemy.orm import DeclarativeBase, declared_attr


NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    """Base class for all trip-lifecycle models."""

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    @declared_attr.directive
    def __tablename__(cls) -> str:
        return cls.__name__.lower()
