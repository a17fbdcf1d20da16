"""
fleet_trips/DB/session.py
======================================
Database Session Configuration Module
======================================

Builds the SQLAlchemy engine (connection pool shared by every worker thread)
and the session factory the transaction engine opens one session per event
from.

Usage Example:
-------------
    from fleet_trips.DB.session import SessionLocal

    with SessionLocal() as DB, DB.begin():
        DB.add(row)
    # committed on exit, rolled back if the block raised

Session Configuration:
---------------------
- autocommit=False: Transactions are explicit (``DB.begin()``)
- autoflush=False: Writes reach the database at flush/commit, never mid-query
- expire_on_commit=False: Rows stay readable after the event commits (logging)
"""

from typing import Any, Dict

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from fleet_trips.Core.config import settings


def create_db_engine(database_url: str, **overrides: Any) -> Engine:
    """
    Create the engine for ``database_url``.

    Pool sizing only applies to server databases; SQLite files get a
    thread-tolerant connection instead (tests and local runs).
    """
    options: Dict[str, Any] = {"pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
    else:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    options.update(overrides)
    return create_engine(database_url, **options)


def make_session_factory(bind: Engine) -> sessionmaker:
    """Session factory bound to ``bind`` with the service's session settings."""
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=bind,
    )


def check_connection(bind: Engine) -> None:
    """
    Round-trip a trivial query.

    Raises the driver's error when the store is unreachable; called once at
    startup, where that failure is fatal for the process.
    """
    with bind.connect() as connection:
        connection.execute(text("SELECT 1"))


# ============================================================
# DATABASE ENGINE CONFIGURATION
# ============================================================
# create_engine is lazy: no connection is opened until first use
engine = create_db_engine(settings.database_url)


# ============================================================
# SESSION FACTORY CONFIGURATION
# ============================================================
SessionLocal = make_session_factory(engine)
