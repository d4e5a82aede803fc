from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext
from passlib.exc import UnknownHashError

from climate_api.core.config import settings
from climate_api.core.errors import AuthenticationError
from climate_api.schemas import UserRecord

logger = logging.getLogger("climate.auth")

WEAK_SECRETS = {"your-secret-key-change-in-production", "supersecret", "changeme", "secret", ""}

# Hard guard: never allow the default secret in production-like envs
if settings.is_prod and settings.jwt_secret in WEAK_SECRETS:
    raise RuntimeError(
        "Insecure JWT_SECRET configured in production environment. "
        "Set a strong random secret via the JWT_SECRET env var."
    )

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True)
class Principal:
    """Identity carried by a verified access token."""

    user_id: str
    username: str
    email: str
    role: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    try:
        return pwd_context.verify(password, hashed)
    except (UnknownHashError, ValueError):
        logger.warning("Stored password hash is not verifiable")
        return False


def create_access_token(user: UserRecord, *, expires_minutes: Optional[int] = None) -> str:
    lifetime = expires_minutes if expires_minutes is not None else settings.access_token_expire_minutes
    payload: Dict[str, Any] = {
        "sub": user.id,
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "type": ACCESS_TOKEN_TYPE,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=lifetime),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Principal:
    """
    Verify signature + expiry and return the principal.
    Raises AuthenticationError("Invalid token") on any problem.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        raise AuthenticationError("Invalid token")

    if payload.get("type", ACCESS_TOKEN_TYPE) != ACCESS_TOKEN_TYPE:
        raise AuthenticationError("Invalid token")

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        raise AuthenticationError("Invalid token")

    return Principal(
        user_id=str(user_id),
        username=str(payload.get("username") or ""),
        email=str(payload.get("email") or ""),
        role=str(role),
    )


def extract_token_from_header(auth_header: Optional[str]) -> Optional[str]:
    """Return the token from 'Bearer <token>'; anything else yields None."""
    if not auth_header:
        return None

    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None
    return parts[1]
