# backend/climate_api/core/authorization.py
"""
Request authorization for everything under /api.

- Public prefixes skip authentication entirely.
- ROUTE_RULES map a path prefix to the roles allowed on it. Matching is by
  path segment: "/api/users" covers "/api/users" and "/api/users/42" but not
  "/api/usersettings".
- Any other /api path still requires a valid token (any role).

On success the verified principal is put on request.state.principal and
forwarded to handlers as x-user-id / x-user-role / x-user-username request
headers. Client-supplied x-user-* headers are always dropped first.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional, Tuple

from fastapi import Request

from climate_api.core.errors import AppError, AuthenticationError, AuthorizationError
from climate_api.core.request_context import get_request_id
from climate_api.core.responses import send_error
from climate_api.core.security import Principal, decode_access_token, extract_token_from_header

logger = logging.getLogger("climate.auth")

API_PREFIX = "/api"

PUBLIC_PREFIXES: Tuple[str, ...] = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/health",
)

ADMIN = "admin"
OPERATOR = "operator"


@dataclass(frozen=True)
class RouteRule:
    prefix: str
    roles: Optional[FrozenSet[str]] = None
    require_auth: bool = True

    def allows(self, role: str) -> bool:
        return self.roles is None or role in self.roles


ROUTE_RULES: Tuple[RouteRule, ...] = (
    RouteRule("/api/admin", frozenset({ADMIN})),
    RouteRule("/api/users", frozenset({ADMIN, OPERATOR})),
    RouteRule("/api/stations", frozenset({ADMIN, OPERATOR})),
    RouteRule("/api/readings", frozenset({ADMIN, OPERATOR})),
    RouteRule("/api/alerts", frozenset({ADMIN, OPERATOR})),
)

# Least privilege: unlisted /api routes need a token.
DEFAULT_RULE = RouteRule(API_PREFIX)

IDENTITY_HEADERS: Tuple[bytes, ...] = (b"x-user-id", b"x-user-role", b"x-user-username")


def matches_route(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def is_public(path: str) -> bool:
    return any(path.startswith(p) for p in PUBLIC_PREFIXES)


def resolve_rule(path: str, rules: Iterable[RouteRule] = ROUTE_RULES) -> Optional[RouteRule]:
    """Rule for `path`; None when the path is outside /api."""
    if not matches_route(path, API_PREFIX):
        return None
    for rule in rules:
        if matches_route(path, rule.prefix):
            return rule
    return DEFAULT_RULE


def authenticate(auth_header: Optional[str]) -> Principal:
    token = extract_token_from_header(auth_header)
    if not token:
        raise AuthenticationError("Authentication required")
    return decode_access_token(token)


def check_access(path: str, principal: Principal) -> None:
    rule = resolve_rule(path)
    if rule is not None and not rule.allows(principal.role):
        raise AuthorizationError("Access denied")


def _rewrite_identity_headers(request: Request, principal: Optional[Principal]) -> None:
    headers: List[Tuple[bytes, bytes]] = [
        (k, v) for k, v in request.scope.get("headers", []) if k.lower() not in IDENTITY_HEADERS
    ]
    if principal is not None:
        headers.extend(
            [
                (b"x-user-id", principal.user_id.encode("latin-1", "replace")),
                (b"x-user-role", principal.role.encode("latin-1", "replace")),
                (b"x-user-username", principal.username.encode("latin-1", "replace")),
            ]
        )
    request.scope["headers"] = headers


async def authorize_request(request: Request, call_next):
    path = request.url.path
    rule = resolve_rule(path)

    if rule is None:
        return await call_next(request)

    _rewrite_identity_headers(request, None)

    if request.method == "OPTIONS" or is_public(path) or not rule.require_auth:
        return await call_next(request)

    try:
        principal = authenticate(request.headers.get("authorization"))
        check_access(path, principal)
    except AppError as exc:
        logger.info(
            "auth_denied method=%s path=%s status=%s reason=%s",
            request.method,
            path,
            exc.status_code,
            exc.message,
        )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return send_error(
            exc.status_code,
            exc.code.value,
            exc.message,
            request_id=get_request_id(),
            headers=headers,
        )

    request.state.principal = principal
    _rewrite_identity_headers(request, principal)
    return await call_next(request)
