# backend/climate_api/api/endpoints/health.py

"""
Health endpoints.

- /api/health       -> lightweight liveness (no storage access)
- /api/health/db    -> storage readiness probe (SELECT 1 on the SQL back end)
"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.orm import Session

from climate_api.core.config import settings
from climate_api.core.responses import send_success, utc_timestamp
from climate_api.db.session import get_db

logger = logging.getLogger("climate.health")

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", summary="Liveness probe")
def health():
    """
    Returns 200 as long as the process is up and routing works.
    """
    return send_success(
        {
            "status": "ok",
            "service": "climate-api",
            "version": settings.version,
            "environment": settings.environment,
            "timestampUtc": utc_timestamp(),
        },
        "Service is healthy",
    )


@router.get("/db", summary="Storage readiness probe")
def health_db(db: Session = Depends(get_db)):
    """
    - SQL back end: tiny `SELECT 1`; 200 when reachable, 503 when not.
    - Memory back end: always up, nothing to probe.
    """
    if settings.storage_backend != "sql":
        return send_success({"status": "ok", "storage": "memory"}, "Storage is ready")

    start = time.perf_counter()
    try:
        db.execute(text("SELECT 1"))
    except Exception as exc:
        logger.exception("DB health check failed")
        raise HTTPException(
            status_code=503,
            detail={
                "message": "Database unavailable",
                "status": "error",
                "db": "down",
                "error": str(exc),
            },
        )

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    return send_success(
        {"status": "ok", "storage": "sql", "db": "up", "latencyMs": elapsed_ms},
        "Storage is ready",
    )
