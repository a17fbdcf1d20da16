"""
fleet_trips/main.py
=============================================
FastAPI Application for Fleet Trip Ingestion
=============================================

Process entry point. Wires the store, the transaction engine and the
configured event source together and exposes a single health endpoint.

Architecture Overview:
---------------------
- Event Source: Kafka consumer or MQTT subscriber (EVENT_SOURCE)
- Worker Pool: ThreadPoolExecutor running one transaction per event
- Transaction Engine: TripStateEngine over the SQLAlchemy session factory
- HTTP: GET /health (liveness, processing counters, transport state)

Startup failures (store unreachable, transport unreachable) are fatal: the
lifespan raises and uvicorn exits.
"""

# Environment Configuration
from dotenv import load_dotenv
load_dotenv()

from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from fleet_trips.Core.config import settings
from fleet_trips.Core.log_setup import configure_logging, get_logger

# Database
from fleet_trips.DB.base import Base
from fleet_trips.DB.session import SessionLocal, check_connection, engine

# Services
from fleet_trips.Services.event_sources import EventSource, KafkaEventSource, MqttEventSource
from fleet_trips.Services.processing_stats import ProcessingStats
from fleet_trips.Services.trip_engine import TripStateEngine

logger = get_logger(__name__)

# Module-level singletons (set during startup)
_stats: Optional[ProcessingStats] = None
_trip_engine: Optional[TripStateEngine] = None
_source: Optional[EventSource] = None
_executor: Optional[ThreadPoolExecutor] = None


def get_source() -> Optional[EventSource]:
    return _source


def build_source(trip_engine: TripStateEngine, executor: ThreadPoolExecutor) -> Optional[EventSource]:
    """Event source selected by EVENT_SOURCE ('kafka', 'mqtt' or 'none')."""
    kind = settings.EVENT_SOURCE.lower()
    if kind == "kafka":
        return KafkaEventSource(trip_engine, executor, config=settings)
    if kind == "mqtt":
        return MqttEventSource(trip_engine, executor, config=settings)
    if kind == "none":
        return None
    raise ValueError(f"Unknown EVENT_SOURCE: {settings.EVENT_SOURCE!r}")


# ============================================================
# APPLICATION LIFESPAN MANAGEMENT
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup Sequence:
        1. Configure structured logging
        2. Verify the store is reachable (SELECT 1)
        3. Create tables when DB_AUTO_CREATE is set
        4. Build stats, transaction engine and worker pool
        5. Start the event source

    Shutdown Sequence:
        1. Stop the event source (in-flight events finish)
        2. Shut the worker pool down
        3. Dispose the connection pool
    """
    global _stats, _trip_engine, _source, _executor

    configure_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    logger.info(
        "service_starting",
        version=settings.PROJECT_VERSION,
        event_source=settings.EVENT_SOURCE,
        payload_format=settings.PAYLOAD_FORMAT,
        workers=settings.PROCESSING_WORKERS,
    )

    # ========================================
    # STARTUP: Store
    # ========================================
    try:
        check_connection(engine)
    except Exception:
        logger.exception("database_unreachable", url=engine.url.render_as_string(hide_password=True))
        raise

    if settings.DB_AUTO_CREATE:
        Base.metadata.create_all(bind=engine)
        logger.info("database_tables_created")

    # ========================================
    # STARTUP: Engine + Worker Pool
    # ========================================
    _stats = ProcessingStats()
    _trip_engine = TripStateEngine(
        SessionLocal,
        stats=_stats,
        payload_format=settings.PAYLOAD_FORMAT,
    )
    _executor = ThreadPoolExecutor(
        max_workers=settings.PROCESSING_WORKERS,
        thread_name_prefix="trip-worker",
    )

    # ========================================
    # STARTUP: Event Source
    # ========================================
    _source = build_source(_trip_engine, _executor)
    if _source is None:
        logger.warning("event_source_disabled")
    else:
        await _source.start()

    logger.info("service_started", device_locks=_trip_engine.uses_device_locks)

    yield

    # ========================================
    # SHUTDOWN
    # ========================================
    if _source is not None:
        await _source.stop()
    _executor.shutdown(wait=True)
    engine.dispose()
    logger.info("service_stopped", **_stats.snapshot())


# ============================================================
# APPLICATION INSTANCE CREATION
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)


# ============================================================
# HEALTH CHECK ENDPOINT
# ============================================================
@app.get("/health")
def health():
    """
    Liveness plus processing counters.

    status is "ok" while the event source runs (or none is configured) and
    "degraded" when it stopped or its circuit breaker is open.
    """
    source = get_source()
    transport = source.status() if source is not None else None

    status = "ok"
    if transport is not None and (not transport["running"] or transport["circuit_breaker"] == "open"):
        status = "degraded"

    return {
        "status": status,
        "version": settings.PROJECT_VERSION,
        "transport": transport,
        "processing": _stats.snapshot() if _stats is not None else None,
    }
