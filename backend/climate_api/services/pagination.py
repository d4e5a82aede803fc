# backend/climate_api/services/pagination.py
"""
Pagination and date-range helpers shared by every list endpoint.

Query strings arrive as raw strings so a garbage `?page=abc` falls back to the
default instead of failing the request; dates are stricter and reject garbage.
"""

from __future__ import annotations

import math
from datetime import date, datetime, time, timezone
from typing import List, Optional, Sequence, Tuple, TypeVar

from climate_api.core.config import settings
from climate_api.core.errors import ValidationError
from climate_api.schemas import CamelModel

T = TypeVar("T")


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


def _coerce_int(raw: Optional[object], default: int) -> int:
    if raw is None or raw == "":
        return default
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return default


def parse_pagination(
    page: Optional[object] = None,
    limit: Optional[object] = None,
    *,
    default_limit: Optional[int] = None,
    max_limit: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Normalize raw page/limit query values.

    page  -> >= 1, default 1
    limit -> clamped to [1, max_limit], default default_limit
    """
    default_limit = default_limit or settings.default_page_limit
    max_limit = max_limit or settings.max_page_limit

    page_n = max(1, _coerce_int(page, 1))
    limit_n = min(max_limit, max(1, _coerce_int(limit, default_limit)))
    return page_n, limit_n


def total_pages(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def paginate(items: Sequence[T], page: int, limit: int) -> Tuple[List[T], int, int]:
    """Slice one page out of `items`. Returns (page_items, total, total_pages)."""
    total = len(items)
    start = (page - 1) * limit
    return list(items[start:start + limit]), total, total_pages(total, limit)


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    return Pagination(page=page, limit=limit, total=total, total_pages=total_pages(total, limit))


def parse_date_bound(raw: Optional[str], *, end_of_day: bool = False, field: str = "date") -> Optional[datetime]:
    """
    Parse a startDate/endDate query value into an aware UTC datetime.

    A date-only end bound covers the whole day (23:59:59.999999).
    Naive timestamps are treated as UTC.
    """
    if raw is None or not str(raw).strip():
        return None

    value = str(raw).strip()
    try:
        if len(value) == 10:
            d = date.fromisoformat(value)
            t = time.max if end_of_day else time.min
            return datetime.combine(d, t, tzinfo=timezone.utc)

        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        dt = datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid {field}: expected ISO-8601 date", details=[{"field": field, "message": str(raw)}])

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
