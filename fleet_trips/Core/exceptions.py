"""Exception hierarchy for the trip ingest service."""


class FleetTripsError(Exception):
    """Base exception for all fleet_trips errors."""


class DecodeError(FleetTripsError):
    """Payload could not be turned into a TelemetryEvent.

    Covers malformed JSON/protobuf, a missing device id and an unparseable
    GPS timestamp. The event is dropped; the transport must not redeliver it.
    """

    def __init__(self, message: str, *, reason: str = "malformed_payload") -> None:
        self.reason = reason
        super().__init__(message)


class ProcessingError(FleetTripsError):
    """The store rejected the event's transaction; nothing was written."""

    def __init__(self, message: str, *, device_id: str = "", event_id: str = "") -> None:
        self.device_id = device_id
        self.event_id = event_id
        super().__init__(message)


class DuplicateEventError(ProcessingError):
    """A uniqueness constraint fired, usually a redelivered event."""


class TransportError(FleetTripsError):
    """An event source could not be started (broker unreachable, bad credentials)."""
