# backend/climate_api/main.py

import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from climate_api.core.authorization import authorize_request
from climate_api.core.config import settings
from climate_api.core.errors import (
    AppError,
    DatabaseError,
    ErrorCode,
    install_request_id_logging,
    log_exception_with_context,
)
from climate_api.core.rate_limit import client_ip
from climate_api.core.request_context import (
    clear_query_stats,
    get_query_stats,
    get_request_id,
    reset_query_stats,
    set_request_id,
)
from climate_api.core.responses import send_error

# --- Logging setup ---
# LogRecordFactory runs for every record, so %(request_id)s never raises
# KeyError even on third-party loggers the filter is not attached to.
_old_factory = logging.getLogRecordFactory()


def _record_factory(*args, **kwargs):
    record = _old_factory(*args, **kwargs)
    if not hasattr(record, "request_id"):
        record.request_id = "-"
    return record


logging.setLogRecordFactory(_record_factory)

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(levelname)s %(name)s request_id=%(request_id)s %(message)s",
)
install_request_id_logging()

logger = logging.getLogger("climate")

enable_docs = settings.enable_docs
logger.info("Startup: enable_docs=%s storage_backend=%s", enable_docs, settings.storage_backend)

SLOW_HTTP_MS = settings.slow_http_ms
SLOW_DB_TOTAL_MS = 800.0


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.seed_demo_data:
        _seed_on_startup()
    yield


def _seed_on_startup() -> None:
    from climate_api.services.demo_seed import seed_demo_data

    if settings.storage_backend == "sql":
        from climate_api.db.init_db import init_db
        from climate_api.db.session import SessionLocal
        from climate_api.repositories.sql import build_sql_store

        init_db()
        db = SessionLocal()
        try:
            seed_demo_data(build_sql_store(db), only_if_empty=True)
        finally:
            db.close()
    else:
        from climate_api.repositories.memory import get_memory_store

        seed_demo_data(get_memory_store(), only_if_empty=True)


# --- App setup ---
app = FastAPI(
    title="Climate Dashboard API",
    version=settings.version,
    openapi_url="/api/openapi.json" if enable_docs else None,
    docs_url="/api/docs" if enable_docs else None,
    redoc_url="/api/redoc" if enable_docs else None,
    lifespan=lifespan,
)


def _get_request_id(request: Request) -> str:
    """
    Use an incoming request id if present (common in proxies),
    otherwise generate one.
    """
    incoming = request.headers.get("x-request-id") or request.headers.get("x-correlation-id")
    if incoming and incoming.strip():
        return incoming.strip()[:128]
    return uuid.uuid4().hex


def _rid_from_request(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    if isinstance(rid, str) and rid.strip():
        return rid
    return get_request_id()


def _validation_details(exc: RequestValidationError) -> List[dict]:
    details = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path", "header")]
        details.append({"field": ".".join(loc) or "body", "message": err.get("msg", "Invalid value")})
    return details


# --- Exception handlers (standardized error contract) ---
@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("app_error code=%s path=%s message=%s", exc.code.value, request.url.path, exc.message)
    return send_error(
        exc.status_code,
        exc.code.value,
        exc.message,
        request_id=_rid_from_request(request),
        details=exc.details,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return send_error(
        400,
        ErrorCode.VALIDATION_ERROR.value,
        "Validation error. Check request body/query parameters.",
        request_id=_rid_from_request(request),
        details=_validation_details(exc),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    A dict detail is kept as structured error details; its "message" key,
    when present, becomes the envelope message.
    """
    details: Any = None
    if isinstance(exc.detail, dict):
        details = exc.detail
        msg = exc.detail.get("message")
        if not isinstance(msg, str) or not msg.strip():
            msg = "Request failed."
    else:
        msg = exc.detail if isinstance(exc.detail, str) else "Request failed."

    return send_error(
        exc.status_code,
        f"HTTP_{exc.status_code}",
        msg,
        request_id=_rid_from_request(request),
        details=details,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    log_exception_with_context("Database error", extra={"path": request.url.path})
    err = DatabaseError()
    return send_error(
        err.status_code,
        err.code.value,
        err.message,
        request_id=_rid_from_request(request),
    )


# --- Middleware ---
# Starlette runs the last-registered middleware outermost, so requests pass
# CORS -> observability (request id) -> authorization -> routes.
app.middleware("http")(authorize_request)


@app.middleware("http")
async def request_observability(request: Request, call_next):
    request_id = _get_request_id(request)
    request.state.request_id = request_id
    set_request_id(request_id)
    reset_query_stats()

    start = time.perf_counter()
    status_code = 500

    try:
        response = await call_next(request)
        status_code = getattr(response, "status_code", 200) or 200
        response.headers["X-Request-ID"] = request_id
        return response

    except Exception as e:
        # Anything reaching here escaped every exception handler.
        # NOTE: do not pass request_id via logger extra; the RequestIdFilter injects it.
        log_exception_with_context(
            "Unhandled error",
            extra={"method": request.method, "path": request.url.path},
        )
        message = "Internal Server Error" if settings.is_prod else str(e) or "Internal Server Error"
        status_code = 500
        return send_error(500, ErrorCode.INTERNAL_ERROR.value, message, request_id=request_id)

    finally:
        duration_ms = (time.perf_counter() - start) * 1000.0
        stats = get_query_stats()

        # key=value line so it stays grep-friendly
        log_fn = logger.warning if duration_ms >= float(SLOW_HTTP_MS) else logger.info
        log_fn(
            "req method=%s path=%s status=%s duration_ms=%.2f db_total_ms=%.2f db_q=%s db_slowest_ms=%.2f ip=%s ua=%s",
            request.method,
            request.url.path,
            status_code,
            duration_ms,
            stats.total_ms,
            stats.query_count,
            stats.slowest_ms,
            client_ip(request),
            (request.headers.get("user-agent") or "").replace(" ", "_")[:200],
        )

        if stats.total_ms >= SLOW_DB_TOTAL_MS:
            logger.warning(
                "slow_db_total method=%s path=%s db_total_ms=%.2f db_q=%s",
                request.method,
                request.url.path,
                stats.total_ms,
                stats.query_count,
            )

        clear_query_stats()
        set_request_id(None)


# --- CORS setup ---
allowed = settings.origins_list()
logger.info("CORS allow_origins=%s", allowed)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# --- Include routers (after app creation) ---
from climate_api.api.endpoints import (  # noqa: E402
    admin,
    alerts,
    auth,
    health,
    orders,
    projects,
    readings,
    stations,
    tasks,
    users,
)

app.include_router(auth.router, prefix="/api")
app.include_router(auth.protected_router, prefix="/api")
app.include_router(health.router, prefix="/api")
app.include_router(users.router, prefix="/api")
app.include_router(stations.router, prefix="/api")
app.include_router(readings.router, prefix="/api")
app.include_router(alerts.router, prefix="/api")
app.include_router(projects.router, prefix="/api")
app.include_router(tasks.router, prefix="/api")
app.include_router(orders.router, prefix="/api")
app.include_router(admin.router, prefix="/api")


@app.get("/", include_in_schema=False)
def root():
    if enable_docs:
        return RedirectResponse(url="/api/docs")
    return {"status": "Climate Dashboard API is running. See /api/health."}
