# backend/climate_api/api/deps.py
"""
Shared API dependencies.

Authentication itself happens in the authorization middleware; these
dependencies only read what it left on request.state and hand route
handlers their storage.
"""

from __future__ import annotations

from typing import Callable, Iterator

from fastapi import Depends, Request

from climate_api.core.config import settings
from climate_api.core.errors import AuthenticationError, AuthorizationError
from climate_api.core.security import Principal
from climate_api.db.session import SessionLocal
from climate_api.repositories.base import DataStore
from climate_api.repositories.memory import get_memory_store
from climate_api.repositories.sql import build_sql_store


def get_store() -> Iterator[DataStore]:
    """Yield the configured store; the SQL back end gets one session per request."""
    if settings.storage_backend == "sql":
        db = SessionLocal()
        try:
            yield build_sql_store(db)
        finally:
            db.close()
    else:
        yield get_memory_store()


def get_principal(request: Request) -> Principal:
    principal = getattr(request.state, "principal", None)
    if principal is None:
        raise AuthenticationError("Authentication required")
    return principal


def require_roles(*roles: str) -> Callable[..., Principal]:
    """
    Route-level role check on top of the middleware's route table:

        @router.get("/", dependencies=[Depends(require_roles("admin"))])
    """
    allowed = set(roles)

    def _dependency(principal: Principal = Depends(get_principal)) -> Principal:
        if principal.role not in allowed:
            raise AuthorizationError("Insufficient permissions for this operation.")
        return principal

    return _dependency
