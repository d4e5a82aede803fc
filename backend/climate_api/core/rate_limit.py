# backend/climate_api/core/rate_limit.py
import time
from typing import Dict, List, Tuple

from fastapi import Request

from climate_api.core.config import settings
from climate_api.core.errors import RateLimitError


def client_ip(request: Request) -> str:
    """
    Address used for rate-limit buckets and request logs.

    X-Forwarded-For is client-controlled, so it only counts when
    TRUSTED_PROXY says a proxy in front of us rewrites it.
    """
    if settings.trusted_proxy:
        # "client, proxy1, proxy2"
        xff = request.headers.get("x-forwarded-for")
        if xff:
            first = xff.split(",")[0].strip()
            if first:
                return first

    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class SimpleRateLimiter:
    """
    In-memory sliding-window rate limiter keyed by (key, client_ip).

    Single-process only; a multi-instance deployment needs a shared store.
    Keep call signatures clean (no *args/**kwargs), otherwise FastAPI
    treats them as query params.
    """

    def __init__(self, key: str, limit: int, window_seconds: int):
        self.key = key
        self.limit = int(limit)
        self.window_seconds = int(window_seconds)
        # (key, ip) -> list[timestamps]
        self._store: Dict[Tuple[str, str], List[float]] = {}

    def reset(self) -> None:
        self._store.clear()

    async def hit(self, request: Request) -> None:
        bucket_key = (self.key, client_ip(request))
        now = time.time()
        cutoff = now - self.window_seconds

        timestamps = [ts for ts in self._store.get(bucket_key, []) if ts >= cutoff]

        if len(timestamps) >= self.limit:
            raise RateLimitError()

        timestamps.append(now)
        self._store[bucket_key] = timestamps

    async def __call__(self, request: Request) -> None:
        await self.hit(request)


login_limiter = SimpleRateLimiter("login", settings.login_rate_limit, settings.login_rate_window)


async def login_rate_limit(request: Request) -> None:
    await login_limiter.hit(request)
