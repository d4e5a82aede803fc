# backend/tests/test_readings_alerts.py
from datetime import datetime, timezone

import pytest

from climate_api.repositories.base import DateRange, ListQuery

READING = {"stationId": "station-2", "temperature": 30.5, "humidity": 65, "airQuality": 120, "rainfall": 3.4}


# --- readings ---

def test_create_reading_stamps_recorded_at(client, operator_headers):
    resp = client.post("/api/readings", json=READING, headers=operator_headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["id"].startswith("reading-")
    assert data["stationId"] == "station-2"
    assert data["airQuality"] == 120
    assert data["recordedAt"]


def test_create_reading_accepts_snake_case(client, operator_headers):
    body = {"station_id": "station-1", "temperature": 20, "humidity": 50, "air_quality": 40, "rainfall": 0}
    resp = client.post("/api/readings", json=body, headers=operator_headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["stationId"] == "station-1"


def test_create_reading_for_unknown_station_is_404(client, operator_headers):
    resp = client.post("/api/readings", json={**READING, "stationId": "station-999"}, headers=operator_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Weather station not found"


@pytest.mark.parametrize(
    "override",
    [{"humidity": 101}, {"humidity": -1}, {"airQuality": 501}, {"rainfall": -0.1}, {"temperature": "hot"}],
)
def test_create_reading_range_checks(client, operator_headers, override):
    resp = client.post("/api/readings", json={**READING, **override}, headers=operator_headers)
    assert resp.status_code == 400


def test_readings_newest_first(client, admin_headers):
    resp = client.get("/api/readings", headers=admin_headers)
    ids = [r["id"] for r in resp.json()["data"]]
    assert ids == ["reading-4", "reading-3", "reading-2", "reading-1"]


def test_readings_with_equal_timestamps_order_by_id(store):
    ts = datetime(2024, 2, 1, 6, tzinfo=timezone.utc)
    for rid in ("reading-b", "reading-a", "reading-c"):
        store.readings.add(
            {"id": rid, "station_id": "station-2", "temperature": 20, "humidity": 50,
             "air_quality": 40, "rainfall": 0, "recorded_at": ts}
        )
    window = DateRange("recorded_at", start=ts, end=ts)

    items, _ = store.readings.list(ListQuery(date_range=window, order_by="recorded_at", descending=True))
    assert [r.id for r in items] == ["reading-c", "reading-b", "reading-a"]

    items, _ = store.readings.list(ListQuery(date_range=window, order_by="recorded_at"))
    assert [r.id for r in items] == ["reading-a", "reading-b", "reading-c"]


def test_readings_date_only_end_includes_that_day(client, admin_headers):
    resp = client.get("/api/readings?startDate=2024-01-11&endDate=2024-01-11", headers=admin_headers)
    ids = {r["id"] for r in resp.json()["data"]}
    assert ids == {"reading-2", "reading-3"}


def test_readings_filter_by_station(client, admin_headers):
    resp = client.get("/api/readings?stationId=station-1", headers=admin_headers)
    assert resp.json()["pagination"]["total"] == 2


def test_readings_unknown_station_filter_is_404(client, admin_headers):
    resp = client.get("/api/readings?stationId=station-999", headers=admin_headers)
    assert resp.status_code == 404


def test_readings_bad_date_is_400(client, admin_headers):
    resp = client.get("/api/readings?startDate=yesterday", headers=admin_headers)
    assert resp.status_code == 400


def test_readings_cannot_be_updated(client, admin_headers):
    resp = client.put("/api/readings/reading-1", json={"temperature": 1}, headers=admin_headers)
    assert resp.status_code == 405


def test_delete_reading(client, admin_headers, store):
    resp = client.delete("/api/readings/reading-1", headers=admin_headers)
    assert resp.status_code == 200
    assert store.readings.get("reading-1") is None
    assert client.get("/api/readings/reading-1", headers=admin_headers).status_code == 404


# --- alerts ---

def test_create_alert_starts_active(client, operator_headers):
    body = {"stationId": "station-1", "type": "airQuality", "threshold": 150, "currentValue": 180}
    resp = client.post("/api/alerts", json=body, headers=operator_headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["status"] == "active"
    assert data["type"] == "airQuality"
    assert data["currentValue"] == 180


@pytest.mark.parametrize(
    "override",
    [{"type": "wind"}, {"threshold": -1}, {"currentValue": -5}],
)
def test_create_alert_validation(client, operator_headers, override):
    body = {"stationId": "station-1", "type": "temperature", "threshold": 35, "currentValue": 36, **override}
    assert client.post("/api/alerts", json=body, headers=operator_headers).status_code == 400


def test_create_alert_unknown_station_is_404(client, operator_headers):
    body = {"stationId": "station-999", "type": "temperature", "threshold": 35, "currentValue": 36}
    assert client.post("/api/alerts", json=body, headers=operator_headers).status_code == 404


def test_alert_filters(client, admin_headers):
    resp = client.get("/api/alerts?status=acknowledged", headers=admin_headers)
    assert [a["id"] for a in resp.json()["data"]] == ["alert-2"]

    resp = client.get("/api/alerts?type=airQuality", headers=admin_headers)
    assert [a["id"] for a in resp.json()["data"]] == ["alert-3"]

    resp = client.get("/api/alerts?endDate=2024-01-10", headers=admin_headers)
    assert [a["id"] for a in resp.json()["data"]] == ["alert-1"]


@pytest.mark.parametrize("method", ["put", "patch"])
def test_update_alert_status(client, operator_headers, method):
    resp = getattr(client, method)("/api/alerts/alert-1", json={"status": "resolved"}, headers=operator_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "resolved"


def test_update_alert_invalid_status_is_400(client, operator_headers):
    resp = client.patch("/api/alerts/alert-1", json={"status": "snoozed"}, headers=operator_headers)
    assert resp.status_code == 400


def test_unknown_alert_is_404(client, operator_headers):
    assert client.get("/api/alerts/alert-999", headers=operator_headers).status_code == 404
    assert client.delete("/api/alerts/alert-999", headers=operator_headers).status_code == 404
