# backend/climate_api/core/request_context.py
from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("climate_request_id", default=None)


def set_request_id(rid: Optional[str]) -> None:
    request_id_var.set(rid)


def get_request_id() -> str:
    return request_id_var.get() or "-"


# --- SQL timing (request-scoped, only populated by the sql backend) ---

@dataclass
class QueryStats:
    query_count: int = 0
    total_ms: float = 0.0
    slowest_ms: float = 0.0


query_stats_var: ContextVar[Optional[QueryStats]] = ContextVar("climate_query_stats", default=None)


def reset_query_stats() -> None:
    """Call once per request (in middleware) to start clean stats."""
    query_stats_var.set(QueryStats())


def get_query_stats() -> QueryStats:
    stats = query_stats_var.get()
    if stats is None:
        stats = QueryStats()
        query_stats_var.set(stats)
    return stats


def clear_query_stats() -> None:
    query_stats_var.set(None)


def record_query(duration_ms: float) -> None:
    stats = get_query_stats()
    stats.query_count += 1
    stats.total_ms += float(duration_ms)
    stats.slowest_ms = max(stats.slowest_ms, float(duration_ms))
