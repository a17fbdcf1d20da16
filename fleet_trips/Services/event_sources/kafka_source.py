# fleet_trips/Services/event_sources/kafka_source.py
"""
Kafka Event Source
==================
Poll-model adapter over aiokafka.

Loop:
1. While the circuit breaker is open, wait
2. ``getone()`` the next record; a KafkaError counts as a transport failure,
   followed by a short backoff
3. Hand the record value to the worker pool without awaiting it, then
   fetch the next record

Offsets are auto-committed, so delivery is at-least-once: a record can be
redelivered after a restart, and the store's uniqueness constraints reject
the copy.
"""

import asyncio
from concurrent.futures import Executor
from typing import Any, Callable, Dict, Optional, Set

from aiokafka import AIOKafkaConsumer
from aiokafka.errors import KafkaError
from aiokafka.helpers import create_ssl_context

from fleet_trips.Core.config import Settings, settings as default_settings
from fleet_trips.Core.exceptions import TransportError
from fleet_trips.Core.log_setup import get_logger
from fleet_trips.Services.circuit_breaker import CircuitBreaker
from fleet_trips.Services.event_sources.base import EventSource
from fleet_trips.Services.trip_engine import TripStateEngine

logger = get_logger(__name__)

# Longest single wait while the breaker is open, so stop() is noticed quickly
_BREAKER_POLL_SECONDS = 1.0


def build_consumer(config: Settings) -> AIOKafkaConsumer:
    """AIOKafkaConsumer for ``config``; SASL options only when a username is set."""
    options: Dict[str, Any] = {
        "bootstrap_servers": config.KAFKA_BOOTSTRAP_SERVERS,
        "group_id": config.KAFKA_GROUP_ID,
        "auto_offset_reset": config.KAFKA_AUTO_OFFSET_RESET,
        "enable_auto_commit": True,
        "security_protocol": config.KAFKA_SECURITY_PROTOCOL,
    }

    if config.KAFKA_SECURITY_PROTOCOL in ("SSL", "SASL_SSL"):
        options["ssl_context"] = create_ssl_context()

    if config.KAFKA_USERNAME:
        options.update(
            sasl_mechanism=config.KAFKA_SASL_MECHANISM,
            sasl_plain_username=config.KAFKA_USERNAME,
            sasl_plain_password=config.KAFKA_PASSWORD,
        )

    return AIOKafkaConsumer(config.KAFKA_TOPIC, **options)


class KafkaEventSource(EventSource):
    """Kafka consumer loop feeding the transaction engine."""

    name = "kafka"

    def __init__(
        self,
        engine: TripStateEngine,
        executor: Executor,
        *,
        config: Settings = default_settings,
        consumer_factory: Optional[Callable[[], Any]] = None,
        breaker: Optional[CircuitBreaker] = None,
    ) -> None:
        super().__init__(
            engine,
            executor,
            breaker or CircuitBreaker(
                max_retries=config.KAFKA_MAX_RETRIES,
                cooldown=config.KAFKA_CIRCUIT_BREAKER_COOLDOWN,
                name=self.name,
            ),
        )
        self.config = config
        self.error_backoff = config.KAFKA_ERROR_BACKOFF_MS / 1000.0
        self._consumer_factory = consumer_factory or (lambda: build_consumer(config))
        self._consumer: Any = None
        self._task: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Future] = set()
        self._stopping = False

    # ========================================
    # LIFECYCLE
    # ========================================
    async def start(self) -> None:
        self._consumer = self._consumer_factory()
        try:
            await self._consumer.start()
        except KafkaError as e:
            raise TransportError(f"Kafka consumer could not start: {e}") from e

        logger.info(
            "kafka_consumer_started",
            topic=self.config.KAFKA_TOPIC,
            group_id=self.config.KAFKA_GROUP_ID,
        )
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        self.request_stop()
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        await self.drain()

        if self._consumer is not None:
            await self._consumer.stop()
            self._consumer = None
        logger.info("kafka_consumer_stopped", received=self.received)

    def request_stop(self) -> None:
        self._stopping = True

    async def drain(self) -> None:
        """Wait for every record already handed to the worker pool."""
        # asyncio.wait leaves the futures alone if this waiter is cancelled
        if self._in_flight:
            await asyncio.wait(list(self._in_flight))

    # ========================================
    # CONSUMER LOOP
    # ========================================
    async def run(self) -> None:
        loop = asyncio.get_running_loop()
        self.running = True
        try:
            while not self._stopping:
                if self.breaker.is_open():
                    await asyncio.sleep(min(self.breaker.remaining(), _BREAKER_POLL_SECONDS))
                    continue

                try:
                    record = await self._consumer.getone()
                except KafkaError as e:
                    self.breaker.record_failure()
                    logger.error(
                        "kafka_receive_failed",
                        error=str(e),
                        consecutive_failures=self.breaker.failures,
                    )
                    await asyncio.sleep(self.error_backoff)
                    continue

                self.breaker.record_success()
                self.received += 1

                future = loop.run_in_executor(self.executor, self.process_one, record.value)
                self._in_flight.add(future)
                future.add_done_callback(self._in_flight.discard)
        finally:
            self.running = False
            await self.drain()
