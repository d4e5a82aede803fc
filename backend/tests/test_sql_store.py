# backend/tests/test_sql_store.py
"""
Same API, SQL back end: in-memory SQLite shared across threads via StaticPool.
"""

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from climate_api.api.deps import get_store
from climate_api.api.endpoints.users import USER_UNIQUE_FIELDS
from climate_api.core.errors import ConflictError
from climate_api.db.init_db import init_db
from climate_api.db.session import instrument_engine
from climate_api.main import app
from climate_api.repositories.base import DateRange, ListQuery
from climate_api.repositories.sql import build_sql_store
from climate_api.services.demo_seed import seed_demo_data


@pytest.fixture
def sql_session():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    instrument_engine(engine)
    init_db(bind=engine)
    TestSession = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    db = TestSession()
    seed_demo_data(build_sql_store(db))
    db.close()

    def _override():
        session = TestSession()
        try:
            yield build_sql_store(session)
        finally:
            session.close()

    app.dependency_overrides[get_store] = _override

    session = TestSession()
    yield session
    session.close()
    engine.dispose()


def test_seed_only_when_empty(sql_session):
    store = build_sql_store(sql_session)
    assert seed_demo_data(store) == {}
    assert store.users.count() == 2


def test_list_query_filters_orders_and_pages(sql_session):
    store = build_sql_store(sql_session)
    items, total = store.readings.list(
        ListQuery(order_by="recorded_at", descending=True, page=1, limit=2)
    )
    assert total == 4
    assert [r.id for r in items] == ["reading-4", "reading-3"]

    items, total = store.readings.list(
        ListQuery(
            date_range=DateRange(
                "recorded_at",
                start=datetime(2024, 1, 11, tzinfo=timezone.utc),
                end=datetime(2024, 1, 11, 23, 59, 59, tzinfo=timezone.utc),
            )
        )
    )
    assert {r.id for r in items} == {"reading-2", "reading-3"}


def test_records_come_back_as_utc(sql_session):
    reading = build_sql_store(sql_session).readings.get("reading-1")
    assert reading.recorded_at.tzinfo is not None
    assert reading.recorded_at == datetime(2024, 1, 10, 8, tzinfo=timezone.utc)


def test_password_hash_survives_update(sql_session):
    store = build_sql_store(sql_session)
    before = store.users.get("user-2").password_hash
    store.users.update("user-2", {"email": "ops@example.com"})
    assert store.users.get("user-2").password_hash == before


def test_station_crud_and_cascade_over_http(sql_session, client, admin_headers):
    body = {"name": "Pune West", "location": "Pune", "latitude": 18.52, "longitude": 73.85}
    created = client.post("/api/stations", json=body, headers=admin_headers)
    assert created.status_code == 201
    station_id = created.json()["data"]["id"]

    reading = {"stationId": station_id, "temperature": 25, "humidity": 40, "airQuality": 60, "rainfall": 0}
    assert client.post("/api/readings", json=reading, headers=admin_headers).status_code == 201

    resp = client.get(f"/api/readings?stationId={station_id}", headers=admin_headers)
    assert resp.json()["pagination"]["total"] == 1

    assert client.delete(f"/api/stations/{station_id}", headers=admin_headers).status_code == 200
    assert build_sql_store(sql_session).readings.count(station_id=station_id) == 0


def test_orders_over_http(sql_session, client, operator_headers):
    body = {"userId": "user-2", "items": ["Hygrometer"], "totalAmount": 35}
    resp = client.post("/api/orders", json=body, headers=operator_headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["orderNumber"] == "ORD-004"
    assert data["items"] == ["Hygrometer"]

    resp = client.patch(f"/api/orders/{data['id']}", json={"status": "delivered"}, headers=operator_headers)
    assert resp.json()["data"]["deliveredDate"] is not None


def test_login_against_sql_users(sql_session, client):
    resp = client.post("/api/auth/login", json={"username": "operator", "password": "operator123"})
    assert resp.status_code == 200
    assert resp.json()["data"]["user"]["id"] == "user-2"


def test_duplicate_user_is_409_on_sql(sql_session, client, admin_headers):
    body = {"username": "admin", "email": "x@example.com", "role": "admin"}
    assert client.post("/api/users", json=body, headers=admin_headers).status_code == 409


def test_unique_violation_at_insert_is_409_and_session_recovers(sql_session, monkeypatch):
    store = build_sql_store(sql_session)
    # Another writer got in after the lookup: only the constraint catches it
    monkeypatch.setattr(store.users, "find_one", lambda **eq: None)

    with pytest.raises(ConflictError) as exc:
        store.users.add_unique(
            {
                "id": "user-9",
                "username": "admin",
                "email": "someone@example.com",
                "role": "operator",
                "created_at": datetime.now(timezone.utc),
            },
            unique=USER_UNIQUE_FIELDS,
        )
    assert exc.value.status_code == 409
    assert exc.value.message == "A user with this username already exists"

    assert store.users.count() == 2
    assert store.users.get("user-2").username == "operator"


def test_failed_cascade_rolls_back_on_sql(sql_session, monkeypatch):
    store = build_sql_store(sql_session)

    def fail(station_id):
        raise RuntimeError("station delete failed")

    monkeypatch.setattr(store.stations, "delete", fail)

    with pytest.raises(RuntimeError):
        store.delete_station_cascade("station-1")

    assert store.stations.get("station-1") is not None
    assert store.readings.count(station_id="station-1") == 2
    assert store.alerts.count(station_id="station-1") == 1


def test_cascade_commits_together_on_sql(sql_session):
    station, readings, alerts = build_sql_store(sql_session).delete_station_cascade("station-1")
    assert station.id == "station-1"
    assert (readings, alerts) == (2, 1)

    sql_session.expire_all()
    store = build_sql_store(sql_session)
    assert store.stations.get("station-1") is None
    assert store.readings.count(station_id="station-1") == 0


@pytest.mark.parametrize(
    "path",
    [
        "/api/projects/99999999999999999999",
        "/api/tasks/99999999999999999999",
        "/api/orders/99999999999999999999",
        "/api/projects/0",
        "/api/tasks/-1",
        "/api/tasks?projectId=99999999999999999999",
    ],
)
def test_out_of_range_integer_ids_are_400(sql_session, client, operator_headers, path):
    resp = client.get(path, headers=operator_headers)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


def test_largest_integer_id_is_a_plain_404(sql_session, client, operator_headers):
    resp = client.get(f"/api/orders/{2**63 - 1}", headers=operator_headers)
    assert resp.status_code == 404


def test_equal_timestamps_order_by_id_on_sql(sql_session):
    store = build_sql_store(sql_session)
    ts = datetime(2024, 2, 1, 6, tzinfo=timezone.utc)
    for rid in ("reading-b", "reading-a", "reading-c"):
        store.readings.add(
            {"id": rid, "station_id": "station-2", "temperature": 20, "humidity": 50,
             "air_quality": 40, "rainfall": 0, "recorded_at": ts}
        )
    window = DateRange("recorded_at", start=ts, end=ts)

    items, _ = store.readings.list(ListQuery(date_range=window, order_by="recorded_at", descending=True))
    assert [r.id for r in items] == ["reading-c", "reading-b", "reading-a"]
