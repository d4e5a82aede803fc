# backend/climate_api/api/endpoints/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from pydantic import Field, field_validator

from climate_api.api.common import check_email, new_id, strip_required, utcnow
from climate_api.api.deps import get_store
from climate_api.api.endpoints.users import USER_UNIQUE_FIELDS
from climate_api.core.config import settings
from climate_api.core.errors import AuthenticationError
from climate_api.core.rate_limit import login_rate_limit
from climate_api.core.responses import ApiResponse, send_success
from climate_api.core.security import create_access_token, hash_password, verify_password
from climate_api.repositories.base import DataStore
from climate_api.schemas import CamelModel, Role, UserRecord

logger = logging.getLogger("climate.auth")

router = APIRouter(prefix="/auth", tags=["auth"])

# Mounted without a prefix: GET /api/protected
protected_router = APIRouter(tags=["auth"])


# === Schemas ===

class LoginRequest(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RegisterRequest(CamelModel):
    username: str = Field(min_length=2)
    email: str
    password: str = Field(min_length=6)

    _clean_username = field_validator("username")(strip_required)
    _clean_email = field_validator("email")(check_email)


class AuthResult(CamelModel):
    user: UserRecord
    token: str
    expires_in: str


class Identity(CamelModel):
    id: str
    username: str
    role: str


def _issue(user: UserRecord) -> AuthResult:
    return AuthResult(
        user=user,
        token=create_access_token(user),
        expires_in=settings.access_token_lifetime_label,
    )


# === Routes ===

@router.post(
    "/login",
    response_model=ApiResponse[AuthResult],
    dependencies=[Depends(login_rate_limit)],
)
def login(payload: LoginRequest, store: DataStore = Depends(get_store)):
    """
    Exchange username + password for a bearer token.

    Unknown user and wrong password give the same 401 so usernames
    cannot be enumerated.
    """
    user = store.users.find_one(username=payload.username.strip())
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.info("login_failed username=%s", payload.username)
        raise AuthenticationError("Invalid credentials")

    logger.info("login_ok user_id=%s role=%s", user.id, user.role)
    return send_success(_issue(user), "Login successful")


@router.post(
    "/register",
    response_model=ApiResponse[AuthResult],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(login_rate_limit)],
)
def register(payload: RegisterRequest, store: DataStore = Depends(get_store)):
    user = store.users.add_unique(
        {
            "id": new_id("user"),
            "username": payload.username,
            "email": payload.email,
            "role": Role.OPERATOR.value,
            "password_hash": hash_password(payload.password),
            "created_at": utcnow(),
        },
        unique=USER_UNIQUE_FIELDS,
    )
    logger.info("registered user_id=%s", user.id)
    return send_success(_issue(user), "User registered successfully")


@protected_router.get("/protected", response_model=ApiResponse[Identity])
def protected(request: Request):
    """Echo the identity the authorization middleware forwarded."""
    identity = Identity(
        id=request.headers.get("x-user-id", ""),
        username=request.headers.get("x-user-username", ""),
        role=request.headers.get("x-user-role", ""),
    )
    return send_success(identity, "Access granted")
