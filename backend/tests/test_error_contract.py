# backend/tests/test_error_contract.py

from fastapi import APIRouter, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel
from sqlalchemy.exc import OperationalError, SQLAlchemyError

from climate_api.core.errors import AppError, ConflictError
from climate_api.core.responses import error_payload

# Import the real exception handlers (do NOT rely on FastAPI defaults)
from climate_api.main import (
    app_error_handler,
    http_exception_handler,
    sqlalchemy_exception_handler,
    validation_exception_handler,
)


class _Body(BaseModel):
    count: int


def _app_with_real_handlers() -> FastAPI:
    app = FastAPI()
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)

    r = APIRouter()

    @r.get("/boom")
    def boom():
        raise HTTPException(
            status_code=400,
            detail={"type": "schema_error", "missing": ["recordedAt"], "message": "Bad schema"},
        )

    @r.get("/conflict")
    def conflict():
        raise ConflictError("Already there", details={"field": "username"})

    @r.post("/body")
    def body(payload: _Body):
        return payload

    @r.get("/db-down")
    def db_down():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    app.include_router(r, prefix="/api")
    return app


def test_http_exception_detail_dict_is_preserved():
    client = TestClient(_app_with_real_handlers())
    resp = client.get("/api/boom")
    assert resp.status_code == 400

    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Bad schema"
    assert body["error"]["code"] == "HTTP_400"
    assert body["error"]["details"]["type"] == "schema_error"
    assert body["error"]["details"]["missing"] == ["recordedAt"]

    # requestId is always present in the top-level contract
    assert isinstance(body["requestId"], str)
    assert len(body["requestId"]) > 0
    assert resp.headers["X-Request-ID"] == body["requestId"]


def test_app_error_maps_to_status_and_code():
    client = TestClient(_app_with_real_handlers())
    resp = client.get("/api/conflict")
    assert resp.status_code == 409
    body = resp.json()
    assert body["message"] == "Already there"
    assert body["error"] == {"code": "CONFLICT", "details": {"field": "username"}}
    assert body["timestamp"].endswith("Z")


def test_database_error_uses_database_error_code():
    client = TestClient(_app_with_real_handlers())
    resp = client.get("/api/db-down")
    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["message"] == "Database operation failed"
    assert body["error"] == {"code": "DATABASE_ERROR"}
    # driver text never reaches the client
    assert "connection refused" not in resp.text


def test_validation_error_is_400_with_field_details():
    client = TestClient(_app_with_real_handlers())
    resp = client.post("/api/body", json={"count": "many"})
    assert resp.status_code == 400
    body = resp.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"][0]["field"] == "count"


def test_malformed_json_is_400(client, admin_headers):
    resp = client.post(
        "/api/stations",
        content=b"{not json",
        headers={**admin_headers, "Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_unknown_route_uses_envelope(client, admin_headers):
    resp = client.get("/api/nowhere", headers=admin_headers)
    assert resp.status_code == 404
    body = resp.json()
    assert body["success"] is False
    assert body["error"]["code"] == "HTTP_404"


def test_incoming_request_id_is_echoed(client):
    resp = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert resp.headers["X-Request-ID"] == "abc-123"


def test_error_payload_omits_empty_details():
    payload = error_payload("NOT_FOUND", "Missing", request_id="rid")
    assert payload["error"] == {"code": "NOT_FOUND"}
    assert payload["requestId"] == "rid"
