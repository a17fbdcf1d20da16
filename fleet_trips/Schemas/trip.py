# fleet_trips/Schemas/trip.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional
from uuid import UUID


# ============================================
# CREATE SCHEMA
# ============================================
class Trip_create(BaseModel):
    """
    Start boundary of a trip, written on an ignition-on event.

    Used by:
    - TripStateEngine when dispatching NEW_TRIP
    - Repository insert_trip() function
    """
    model_config = ConfigDict(from_attributes=True)

    trip_id: UUID = Field(
        ...,
        description="Event id of the ignition-on event"
    )

    device_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Device that generated this trip"
    )

    start_time: datetime
    start_lat: float
    start_lng: float

    start_odometer: Optional[float] = Field(
        None,
        ge=0,
        description="Odometer at start (None when not reported)"
    )


# ============================================
# CLOSE SCHEMA
# ============================================
class Trip_close(BaseModel):
    """
    End boundary of a trip, written on an ignition-off event.

    odometer_delta is derived by the repository when both readings exist.
    """
    model_config = ConfigDict(from_attributes=True)

    end_time: datetime
    end_lat: float
    end_lng: float

    end_odometer: Optional[float] = Field(
        None,
        ge=0,
        description="Odometer at end (None when not reported)"
    )
