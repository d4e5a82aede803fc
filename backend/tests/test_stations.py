# backend/tests/test_stations.py
import pytest

NEW_STATION = {
    "name": "Kolkata East",
    "location": "Kolkata, West Bengal",
    "latitude": 22.5726,
    "longitude": 88.3639,
}


def test_create_station_echoes_fields(client, admin_headers):
    resp = client.post("/api/stations", json=NEW_STATION, headers=admin_headers)
    assert resp.status_code == 201

    data = resp.json()["data"]
    assert data["id"].startswith("station-")
    assert data["name"] == "Kolkata East"
    assert data["status"] == "active"
    assert data["createdAt"]


@pytest.mark.parametrize(
    "override",
    [{"latitude": 91}, {"longitude": -181}, {"name": "   "}, {"location": ""}, {"status": "broken"}],
)
def test_create_station_rejects_bad_values(client, admin_headers, override):
    resp = client.post("/api/stations", json={**NEW_STATION, **override}, headers=admin_headers)
    assert resp.status_code == 400


def test_list_filters_by_status(client, admin_headers):
    resp = client.get("/api/stations?status=maintenance", headers=admin_headers)
    body = resp.json()
    assert [s["id"] for s in body["data"]] == ["station-3"]
    assert body["pagination"]["total"] == 1


def test_list_by_station_id(client, admin_headers):
    resp = client.get("/api/stations?stationId=station-2", headers=admin_headers)
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()["data"]] == ["station-2"]


def test_list_by_unknown_station_id_is_404(client, admin_headers):
    resp = client.get("/api/stations?stationId=station-999", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Weather station not found"


def test_get_unknown_station_is_404(client, admin_headers):
    resp = client.get("/api/stations/station-999", headers=admin_headers)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.parametrize("method", ["put", "patch"])
def test_update_is_partial(client, admin_headers, method):
    resp = getattr(client, method)(
        "/api/stations/station-1", json={"status": "inactive"}, headers=admin_headers
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "inactive"
    assert data["name"] == "Chennai Central"


def test_update_rejects_invalid_enum(client, admin_headers):
    resp = client.patch("/api/stations/station-1", json={"status": "exploded"}, headers=admin_headers)
    assert resp.status_code == 400


def test_delete_cascades_to_readings_and_alerts(client, admin_headers, store):
    assert store.readings.count(station_id="station-1") == 2
    assert store.alerts.count(station_id="station-1") == 1

    resp = client.delete("/api/stations/station-1", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["id"] == "station-1"

    assert store.stations.get("station-1") is None
    assert store.readings.count(station_id="station-1") == 0
    assert store.alerts.count(station_id="station-1") == 0
    assert store.readings.count(station_id="station-2") == 1


def test_failed_cascade_leaves_station_readings_and_alerts(store, monkeypatch):
    def fail(station_id):
        raise RuntimeError("station delete failed")

    monkeypatch.setattr(store.stations, "delete", fail)

    with pytest.raises(RuntimeError):
        store.delete_station_cascade("station-1")

    assert store.stations.get("station-1") is not None
    assert store.readings.count(station_id="station-1") == 2
    assert store.alerts.count(station_id="station-1") == 1


def test_operator_can_create_station_with_status(client, operator_headers):
    resp = client.post("/api/stations", json={**NEW_STATION, "status": "maintenance"}, headers=operator_headers)
    assert resp.status_code == 201
    assert resp.json()["data"]["status"] == "maintenance"
