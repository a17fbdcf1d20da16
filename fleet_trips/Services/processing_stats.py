# fleet_trips/Services/processing_stats.py
"""Processing statistics.

In-memory counters of what the transaction engine did, exposed on /health.
No framework dependencies.
"""

import threading
import time
from datetime import datetime, timezone
from typing import Dict, Optional


class ProcessingStats:
    """Thread-safe processing counters.

    Updated by worker threads, read by the HTTP health endpoint.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()

        # Counters
        self.events_processed: int = 0
        self.decode_drops: int = 0
        self.failures: int = 0
        self.duplicates: int = 0
        self.recoveries: int = 0
        self.recovery_failures: int = 0
        self.last_event_at: Optional[datetime] = None

        # Destination value -> count
        self._destinations: Dict[str, int] = {}

    def record_processed(self, destination: str) -> None:
        with self._lock:
            self.events_processed += 1
            self._destinations[destination] = self._destinations.get(destination, 0) + 1
            self.last_event_at = datetime.now(timezone.utc)

    def record_decode_drop(self) -> None:
        with self._lock:
            self.decode_drops += 1

    def record_failure(self, *, duplicate: bool = False) -> None:
        with self._lock:
            if duplicate:
                self.duplicates += 1
            else:
                self.failures += 1

    def record_recovery(self, *, succeeded: bool) -> None:
        with self._lock:
            if succeeded:
                self.recoveries += 1
            else:
                self.recovery_failures += 1

    def destination_count(self, destination: str) -> int:
        with self._lock:
            return self._destinations.get(destination, 0)

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot of all stats."""
        with self._lock:
            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "events_processed": self.events_processed,
                "destinations": dict(self._destinations),
                "decode_drops": self.decode_drops,
                "failures": self.failures,
                "duplicates": self.duplicates,
                "recoveries": self.recoveries,
                "recovery_failures": self.recovery_failures,
                "last_event_at": self.last_event_at.isoformat() if self.last_event_at else None,
            }
