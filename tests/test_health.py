"""Tests for the health endpoint (lifespan not started)."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi.testclient import TestClient

import fleet_trips.main as main_module
from fleet_trips.Core.config import Settings
from fleet_trips.Services.event_sources import KafkaEventSource


@pytest.fixture
def client():
    # No context manager: the lifespan (database check, broker connection) stays off
    return TestClient(main_module.app)


def test_health_without_source(client, stats):
    main_module._stats = stats
    stats.record_processed("new_trip")

    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["transport"] is None
    assert body["processing"]["events_processed"] == 1
    assert body["processing"]["destinations"] == {"new_trip": 1}


def test_health_reports_stopped_source_as_degraded(client, stats, trip_engine):
    main_module._stats = stats
    with ThreadPoolExecutor(max_workers=1) as executor:
        main_module._source = KafkaEventSource(trip_engine, executor, config=Settings())

        body = client.get("/health").json()

    assert body["status"] == "degraded"
    assert body["transport"]["source"] == "kafka"
    assert body["transport"]["circuit_breaker"] == "closed"


def test_build_source_rejects_unknown_kind(monkeypatch, trip_engine):
    monkeypatch.setattr(main_module.settings, "EVENT_SOURCE", "carrier-pigeon")
    with pytest.raises(ValueError):
        main_module.build_source(trip_engine, None)


def test_build_source_none(monkeypatch, trip_engine):
    monkeypatch.setattr(main_module.settings, "EVENT_SOURCE", "none")
    assert main_module.build_source(trip_engine, None) is None
