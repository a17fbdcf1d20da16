# fleet_trips/Services/circuit_breaker.py
"""
Transport Circuit Breaker
=========================
Counts consecutive transport errors of one event source.

After ``max_retries`` consecutive failures the breaker opens and consumption
is suspended for ``cooldown`` seconds; when the cooldown has elapsed the
counter is reset and consumption resumes. Any successful receive resets the
counter. Each adapter owns its own breaker.

Usage:
    breaker = CircuitBreaker(max_retries=5, cooldown=300)

    if breaker.is_open():
        await asyncio.sleep(breaker.remaining())
    try:
        record = await consumer.getone()
        breaker.record_success()
    except KafkaError:
        breaker.record_failure()
"""

import threading
import time
from typing import Callable, Optional

from fleet_trips.Core.log_setup import get_logger

logger = get_logger(__name__)


class CircuitBreaker:
    """Consecutive-failure counter with a cooldown window."""

    def __init__(
        self,
        max_retries: int = 5,
        cooldown: float = 300.0,
        *,
        name: str = "transport",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self.max_retries = max_retries
        self.cooldown = float(cooldown)
        self.name = name
        self._clock = clock
        self._lock = threading.Lock()
        self._failures = 0
        self._opened_at: Optional[float] = None
        self.trips = 0

    @property
    def failures(self) -> int:
        with self._lock:
            return self._failures

    def record_failure(self) -> bool:
        """
        Count one transport error.

        Returns:
            bool: True if this failure opened the breaker
        """
        with self._lock:
            if self._opened_at is not None:
                return False
            self._failures += 1
            if self._failures < self.max_retries:
                return False
            self._opened_at = self._clock()
            self.trips += 1

        logger.warning(
            "circuit_breaker_open",
            breaker=self.name,
            failures=self.max_retries,
            cooldown_seconds=self.cooldown,
        )
        return True

    def record_success(self) -> None:
        with self._lock:
            self._failures = 0
            self._opened_at = None

    def is_open(self) -> bool:
        """True while the cooldown runs; closes (and resets) once it has elapsed."""
        with self._lock:
            if self._opened_at is None:
                return False
            if self._clock() - self._opened_at < self.cooldown:
                return True
            self._opened_at = None
            self._failures = 0

        logger.info("circuit_breaker_closed", breaker=self.name)
        return False

    def remaining(self) -> float:
        """Seconds left in the cooldown (0 when closed)."""
        with self._lock:
            if self._opened_at is None:
                return 0.0
            return max(0.0, self.cooldown - (self._clock() - self._opened_at))

    def state(self) -> str:
        return "open" if self.is_open() else "closed"
