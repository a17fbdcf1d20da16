"""Tests for the Kafka consumer loop, driven by a fake consumer."""

import asyncio
import itertools
from concurrent.futures import ThreadPoolExecutor
from types import SimpleNamespace

import pytest
from aiokafka.errors import KafkaConnectionError, KafkaError

from fleet_trips.Core.config import Settings
from fleet_trips.Core.exceptions import TransportError
from fleet_trips.Models.trip import Trip
from fleet_trips.Models.trip_point import TripPoint
from fleet_trips.Services.circuit_breaker import CircuitBreaker
from fleet_trips.Services.event_sources import KafkaEventSource


class FakeConsumer:
    """Replays a script of record values and exceptions, then asks the source to stop."""

    def __init__(self, script, fail_start=False):
        self.script = list(script)
        self.fail_start = fail_start
        self.source = None
        self.started = False
        self.stopped = False

    async def start(self):
        if self.fail_start:
            raise KafkaConnectionError("broker down")
        self.started = True

    async def stop(self):
        self.stopped = True

    async def getone(self):
        item = self.script.pop(0)
        if not self.script:
            self.source.request_stop()
        if isinstance(item, Exception):
            raise item
        return SimpleNamespace(value=item)


def _source(trip_engine, executor, consumer, breaker=None):
    config = Settings(KAFKA_ERROR_BACKOFF_MS=0)
    source = KafkaEventSource(
        trip_engine,
        executor,
        config=config,
        consumer_factory=lambda: consumer,
        breaker=breaker,
    )
    consumer.source = source
    return source


@pytest.fixture
def executor():
    pool = ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=True)


def _all(session_factory, model):
    with session_factory() as DB:
        return DB.query(model).all()


def test_records_reach_the_engine(trip_engine, session_factory, executor, make_payload):
    consumer = FakeConsumer([
        make_payload("Engine On", "2025-12-03 19:58:16"),
    ])
    source = _source(trip_engine, executor, consumer)

    asyncio.run(source.run())

    assert source.received == 1
    assert len(_all(session_factory, Trip)) == 1
    assert not source.running


def test_bad_records_do_not_stop_the_loop(trip_engine, session_factory, executor, make_payload, stats):
    consumer = FakeConsumer([
        b"garbage",
        make_payload(None, "2025-12-03 19:58:16"),
    ])
    source = _source(trip_engine, executor, consumer)

    asyncio.run(source.run())

    assert source.received == 2
    assert stats.decode_drops + stats.events_processed == 2


def test_duplicate_failure_is_contained(trip_engine, session_factory, executor, make_payload, stats):
    trip_engine.process_payload(make_payload("Engine On", "2025-12-03 19:58:16"))
    point = make_payload(None, "2025-12-03 20:00:00")
    trip_engine.process_payload(point)

    consumer = FakeConsumer([point, make_payload(None, "2025-12-03 20:01:00")])
    source = _source(trip_engine, executor, consumer)

    asyncio.run(source.run())

    assert stats.duplicates == 1
    assert len(_all(session_factory, TripPoint)) == 2


def test_receive_errors_trip_the_breaker(trip_engine, executor, make_payload):
    # Every clock read moves 10s forward, so the 5s cooldown has always passed by the next check
    ticks = itertools.count(step=10)
    breaker = CircuitBreaker(max_retries=2, cooldown=5, clock=lambda: next(ticks))
    consumer = FakeConsumer([
        KafkaError("fetch failed"),
        KafkaError("fetch failed"),
        make_payload(None),
    ])
    source = _source(trip_engine, executor, consumer, breaker=breaker)

    asyncio.run(source.run())

    assert breaker.trips == 1
    assert breaker.failures == 0
    assert source.received == 1


def test_start_failure_is_a_transport_error(trip_engine, executor):
    source = _source(trip_engine, executor, FakeConsumer([], fail_start=True))

    with pytest.raises(TransportError):
        asyncio.run(source.start())


def test_start_and_stop(trip_engine, executor, make_payload, session_factory):
    consumer = FakeConsumer([make_payload("Engine On")])
    source = _source(trip_engine, executor, consumer)

    async def scenario():
        await source.start()
        while consumer.script:
            await asyncio.sleep(0.01)
        await source.stop()

    asyncio.run(scenario())

    assert consumer.started and consumer.stopped
    assert len(_all(session_factory, Trip)) == 1
    assert source.status()["source"] == "kafka"
