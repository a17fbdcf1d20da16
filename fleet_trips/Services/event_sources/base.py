# fleet_trips/Services/event_sources/base.py
"""Common base of the transport adapters."""

from abc import ABC, abstractmethod
from concurrent.futures import Executor
from typing import Any, Dict, Optional

from fleet_trips.Core.exceptions import DuplicateEventError, ProcessingError
from fleet_trips.Core.log_setup import get_logger
from fleet_trips.Services.circuit_breaker import CircuitBreaker
from fleet_trips.Services.destination_classifier import Destination
from fleet_trips.Services.trip_engine import TripStateEngine

logger = get_logger(__name__)


class EventSource(ABC):
    """
    A transport delivering payloads to a TripStateEngine.

    Subclasses own their connection and their CircuitBreaker; the worker
    pool is shared and owned by the application.
    """

    name = "source"

    def __init__(self, engine: TripStateEngine, executor: Executor, breaker: CircuitBreaker) -> None:
        self.engine = engine
        self.executor = executor
        self.breaker = breaker
        self.received = 0
        self.running = False

    def process_one(self, payload: bytes) -> Optional[Destination]:
        """
        Apply one payload; runs on a worker thread.

        Every failure is logged here and swallowed so the transport loop
        keeps consuming.
        """
        try:
            return self.engine.process_payload(payload)
        except DuplicateEventError as e:
            logger.info("event_skipped_duplicate", source=self.name, device_id=e.device_id, event_id=e.event_id)
        except ProcessingError as e:
            logger.error("event_not_applied", source=self.name, device_id=e.device_id, event_id=e.event_id, error=str(e))
        except Exception:
            logger.exception("event_processing_crashed", source=self.name)
        return None

    def status(self) -> Dict[str, Any]:
        return {
            "source": self.name,
            "running": self.running,
            "received": self.received,
            "circuit_breaker": self.breaker.state(),
            "consecutive_failures": self.breaker.failures,
            "breaker_trips": self.breaker.trips,
        }

    @abstractmethod
    async def start(self) -> None:
        """Connect and begin consuming; raises TransportError if the transport is unreachable."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop consuming and wait for in-flight messages."""
