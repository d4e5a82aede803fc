# backend/climate_api/db/session.py
import time
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from climate_api.core.config import settings
from climate_api.core.request_context import get_request_id, record_query

logger = logging.getLogger("climate.db")

SLOW_QUERY_MS = 250.0


def make_engine(url: str, **kwargs) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, future=True, **kwargs)


engine = make_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)


def _sql_head(statement: str) -> str:
    # Collapse whitespace + trim. No params logged.
    return " ".join((statement or "").split())[:240]


def instrument_engine(target: Engine) -> None:
    """Feed per-query timings into the request-scoped stats and warn on slow queries."""

    @event.listens_for(target, "before_cursor_execute")
    def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        context._climate_query_start = time.perf_counter()

    @event.listens_for(target, "after_cursor_execute")
    def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        start = getattr(context, "_climate_query_start", None)
        if start is None:
            return

        duration_ms = (time.perf_counter() - start) * 1000.0
        record_query(duration_ms)

        if duration_ms >= SLOW_QUERY_MS:
            logger.warning(
                "slow_db_query request_id=%s duration_ms=%.2f sql=%s",
                get_request_id(),
                duration_ms,
                _sql_head(statement),
            )


instrument_engine(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
