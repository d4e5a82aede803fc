# backend/climate_api/api/common.py
from __future__ import annotations

import re
import uuid
from datetime import datetime, timezone
from typing import Annotated, Any, Optional, TypeVar

from fastapi import Path

from climate_api.core.errors import NotFoundError
from climate_api.repositories.base import Repository

R = TypeVar("R")

# Largest value a signed 64-bit (BIGINT) key column holds
MAX_DB_INT = 2**63 - 1

# Integer path id for projects, tasks and orders
RecordId = Annotated[int, Path(ge=1, le=MAX_DB_INT)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    """String ids for users/stations/readings/alerts, e.g. 'station-3f9c1a2b7d4e'."""
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def get_or_404(repo: Repository[R], record_id: Any, resource: str) -> R:
    record = repo.get(record_id)
    if record is None:
        raise NotFoundError(f"{resource} not found")
    return record


def ensure_station(store, station_id: str) -> None:
    if not store.stations.exists(id=station_id):
        raise NotFoundError("Weather station not found")


EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def check_email(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not EMAIL_RE.match(value):
        raise ValueError("must be a valid email address")
    return value.lower()


def strip_required(value: Optional[str]) -> Optional[str]:
    """Trim text fields; whitespace-only input is rejected like an empty string."""
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("must not be blank")
    return value
