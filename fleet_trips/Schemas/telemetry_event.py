# fleet_trips/Schemas/telemetry_event.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID


# ============================================
# CANONICAL EVENT
# ============================================
class TelemetryEvent(BaseModel):
    """
    Canonical, vendor-independent form of one telemetry message.

    Both decoders (JSON and protobuf) produce this model; the transaction
    engine only ever sees this model. Instances are immutable.
    """
    model_config = ConfigDict(frozen=True)

    device_id: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Device identifier"
    )

    event_id: UUID = Field(
        ...,
        description="Payload uuid, or a generated uuid4 when the payload had none"
    )

    idempotent: bool = Field(
        default=True,
        description="False when event_id was generated (redelivery cannot be detected)"
    )

    alert: Optional[str] = Field(
        None,
        description="Vendor alert text, verbatim"
    )

    timestamp: datetime = Field(
        ...,
        description="GPS fix time (UTC)"
    )

    latitude: float = 0.0
    longitude: float = 0.0
    speed: float = 0.0
    heading: float = 0.0
    odometer: float = 0.0

    raw_code: Optional[int] = None
    msg_class: Optional[str] = None

    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Opaque receipt metadata, archived with idle activity"
    )

    @field_validator("timestamp")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @property
    def has_odometer(self) -> bool:
        """Devices without an odometer report 0 (or nothing)."""
        return self.odometer > 0
