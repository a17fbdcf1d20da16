"""
fleet_trips/DB/base.py
==========================
SQLAlchemy Model Registry
==========================

Imports every model so that ``Base.metadata`` is complete before alembic
autogenerate, ``create_all()`` (DB_AUTO_CREATE) or the test fixtures touch it.

Models Registered:
-----------------
- TripCurrentState: one mutable row per device (is a trip open, last fix)
- Trip: trip boundaries, opened on ignition on, closed on ignition off
- TripPoint: GPS samples recorded while a trip is open
- TripAlert: alerts recorded while a trip is open, plus ignition markers
- DeviceIdleActivity: everything received while no trip is open

Important:
----------
A new model MUST be imported here to be part of migrations and create_all().
"""

from fleet_trips.DB.base_class import Base

# ============================================================
# MODEL IMPORTS - DO NOT REMOVE
# ============================================================
from fleet_trips.Models.trip_current_state import TripCurrentState
from fleet_trips.Models.trip import Trip
from fleet_trips.Models.trip_point import TripPoint
from fleet_trips.Models.trip_alert import TripAlert
from fleet_trips.Models.device_idle_activity import DeviceIdleActivity

__all__ = [
    "Base",
    "TripCurrentState",
    "Trip",
    "TripPoint",
    "TripAlert",
    "DeviceIdleActivity",
]
