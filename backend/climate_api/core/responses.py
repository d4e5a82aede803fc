# backend/climate_api/core/responses.py
"""
Uniform JSON envelope for every endpoint.

Success:
    {"success": true, "message": "...", "data": ..., "pagination": {...}, "timestamp": "..."}
Error:
    {"success": false, "message": "...", "error": {"code": "...", "details": ...},
     "requestId": "...", "timestamp": "..."}

`pagination` only exists on list responses (PaginatedResponse).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import Field

from climate_api.schemas import CamelModel
from climate_api.services.pagination import Pagination, build_pagination

T = TypeVar("T")


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str = "Success"
    data: Optional[T] = None
    timestamp: str = Field(default_factory=utc_timestamp)


class PaginatedResponse(CamelModel, Generic[T]):
    success: bool = True
    message: str = "Success"
    data: List[T]
    pagination: Pagination
    timestamp: str = Field(default_factory=utc_timestamp)


def send_success(data: Any, message: str = "Success") -> ApiResponse:
    return ApiResponse(data=data, message=message)


def send_page(items: List[Any], *, page: int, limit: int, total: int, message: str) -> PaginatedResponse:
    return PaginatedResponse(
        data=items,
        message=message,
        pagination=build_pagination(page, limit, total),
    )


def error_payload(
    code: str,
    message: str,
    *,
    request_id: str,
    details: Any = None,
) -> dict:
    error: dict[str, Any] = {"code": code}
    if details is not None:
        error["details"] = details
    return {
        "success": False,
        "message": message,
        "error": error,
        "requestId": request_id,
        "timestamp": utc_timestamp(),
    }


def send_error(
    status_code: int,
    code: str,
    message: str,
    *,
    request_id: str,
    details: Any = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(error_payload(code, message, request_id=request_id, details=details)),
        headers=headers,
    )
    resp.headers["X-Request-ID"] = request_id
    return resp
