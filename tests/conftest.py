"""Shared test fixtures."""

import json
import uuid

import pytest

import fleet_trips.main as main_module
from fleet_trips.DB.base import Base
from fleet_trips.DB.session import create_db_engine, make_session_factory
from fleet_trips.Services.processing_stats import ProcessingStats
from fleet_trips.Services.trip_engine import TripStateEngine

DEVICE_ID = "867564050638581"


@pytest.fixture
def db_engine(tmp_path):
    """SQLite file database with every table created."""
    engine = create_db_engine(f"sqlite:///{tmp_path / 'trips.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return make_session_factory(db_engine)


@pytest.fixture
def stats():
    return ProcessingStats()


@pytest.fixture
def trip_engine(session_factory, stats):
    return TripStateEngine(session_factory, stats=stats)


@pytest.fixture
def make_payload():
    """Build a vendor JSON envelope; data fields override the defaults."""

    def _make(
        alert=None,
        gps_datetime="2025-12-03 19:58:16",
        device_id=DEVICE_ID,
        event_uuid=None,
        metadata=None,
        **data,
    ) -> bytes:
        fields = {
            "DEVICE_ID": device_id,
            "GPS_DATETIME": gps_datetime,
            "LATITUD": "+20.605243",
            "LONGITUD": "-100.384140",
            "SPEED": "33.9",
            "COURSE": "128",
            "ODOMETER": "121.8",
            "MSG_CLASS": "ALERT" if alert else "STATUS",
        }
        if alert is not None:
            fields["ALERT"] = alert
        fields.update(data)
        envelope = {
            "data": fields,
            "metadata": metadata if metadata is not None else {
                "BYTES": 158,
                "CLIENT_IP": "44.204.32.23",
                "CLIENT_PORT": 14362,
                "DECODED_EPOCH": 1764791898674,
                "RECEIVED_EPOCH": 1764791898673,
                "WORKER_ID": 3,
            },
            "uuid": event_uuid or str(uuid.uuid4()),
        }
        return json.dumps(envelope).encode("utf-8")

    return _make


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Module-level singletons of the app start empty in every test."""
    yield
    main_module._stats = None
    main_module._trip_engine = None
    main_module._source = None
    main_module._executor = None
