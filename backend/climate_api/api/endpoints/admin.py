# backend/climate_api/api/endpoints/admin.py
"""
Admin console: aggregate views over every collection and a couple of
maintenance actions. The middleware already limits /api/admin to admins;
require_roles repeats the check at the router so it holds for any mount.
"""

from collections import Counter
from typing import Any, Dict, List, Optional
import logging

from fastapi import APIRouter, Depends, Query

from climate_api.api.deps import get_store, require_roles
from climate_api.core.errors import ValidationError
from climate_api.core.responses import ApiResponse, send_success
from climate_api.repositories.base import DataStore, ListQuery
from climate_api.schemas import CamelModel

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
    dependencies=[Depends(require_roles("admin"))],
)

logger = logging.getLogger("climate")

OVERVIEW_LATEST = 5
READINGS_LATEST = 10


class AdminAction(CamelModel):
    action: str


def _dump(records: List[CamelModel]) -> List[dict]:
    return [r.model_dump(mode="json", by_alias=True) for r in records]


def _tally(records: List[Any], attr: str) -> Dict[str, int]:
    return dict(Counter(getattr(r, attr) for r in records))


def _latest(store: DataStore, repo_name: str, field: str, n: int) -> List[dict]:
    repo = store.collections()[repo_name]
    items, _ = repo.list(ListQuery(order_by=field, descending=True, page=1, limit=n))
    return _dump(items)


def _counts(store: DataStore) -> Dict[str, int]:
    return {name: repo.count() for name, repo in store.collections().items()}


def users_view(store: DataStore) -> Dict[str, Any]:
    users = store.users.all()
    return {"total": len(users), "byRole": _tally(users, "role"), "users": _dump(users)}


def stations_view(store: DataStore) -> Dict[str, Any]:
    stations = store.stations.all()
    return {"total": len(stations), "byStatus": _tally(stations, "status"), "stations": _dump(stations)}


def readings_view(store: DataStore) -> Dict[str, Any]:
    return {
        "total": store.readings.count(),
        "latest": _latest(store, "readings", "recorded_at", READINGS_LATEST),
    }


def alerts_view(store: DataStore) -> Dict[str, Any]:
    alerts = store.alerts.all()
    return {
        "total": len(alerts),
        "byStatus": _tally(alerts, "status"),
        "byType": _tally(alerts, "type"),
        "alerts": _dump(alerts),
    }


def overview(store: DataStore) -> Dict[str, Any]:
    return {
        "counts": _counts(store),
        "activeAlerts": store.alerts.count(status="active"),
        "latestReadings": _latest(store, "readings", "recorded_at", OVERVIEW_LATEST),
        "latestAlerts": _latest(store, "alerts", "created_at", OVERVIEW_LATEST),
    }


VIEWS = {
    "users": users_view,
    "stations": stations_view,
    "readings": readings_view,
    "alerts": alerts_view,
}


@router.get("", response_model=ApiResponse[Dict[str, Any]])
def admin_dashboard(
    view_type: Optional[str] = Query(None, alias="type"),
    store: DataStore = Depends(get_store),
):
    view = VIEWS.get(view_type or "", overview)
    return send_success(view(store), "Admin data retrieved successfully")


@router.post("", response_model=ApiResponse[Dict[str, Any]])
def admin_action(payload: AdminAction, store: DataStore = Depends(get_store)):
    if payload.action == "clearAlerts":
        cleared = store.alerts.clear()
        logger.warning("admin_action=clearAlerts cleared=%s", cleared)
        return send_success({"clearedCount": cleared}, "All alerts cleared successfully")

    if payload.action == "resetData":
        # Reports what is stored; nothing is deleted.
        return send_success(_counts(store), "Data reset summary retrieved successfully")

    raise ValidationError("Invalid admin action", details={"action": payload.action})
