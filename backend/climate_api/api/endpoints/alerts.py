# backend/climate_api/api/endpoints/alerts.py
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from climate_api.api.common import ensure_station, get_or_404, new_id, utcnow
from climate_api.api.deps import get_store
from climate_api.core.responses import ApiResponse, PaginatedResponse, send_page, send_success
from climate_api.repositories.base import DataStore, DateRange, ListQuery
from climate_api.schemas import AlertRecord, AlertStatus, AlertType, CamelModel
from climate_api.services.pagination import parse_date_bound, parse_pagination

router = APIRouter(prefix="/alerts", tags=["alerts"])

logger = logging.getLogger("climate")


class AlertCreate(CamelModel):
    station_id: str = Field(min_length=1)
    type: AlertType
    threshold: float = Field(ge=0)
    current_value: float = Field(ge=0)


class AlertStatusUpdate(CamelModel):
    status: AlertStatus


@router.get("", response_model=PaginatedResponse[AlertRecord])
def list_alerts(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    station_id: Optional[str] = Query(None, alias="stationId"),
    status_filter: Optional[str] = Query(None, alias="status"),
    alert_type: Optional[str] = Query(None, alias="type"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    store: DataStore = Depends(get_store),
):
    if station_id:
        ensure_station(store, station_id)

    page_n, limit_n = parse_pagination(page, limit)
    query = ListQuery(
        filters={"station_id": station_id, "status": status_filter, "type": alert_type},
        date_range=DateRange(
            "created_at",
            start=parse_date_bound(start_date, field="startDate"),
            end=parse_date_bound(end_date, end_of_day=True, field="endDate"),
        ),
        order_by="created_at",
        descending=True,
        page=page_n,
        limit=limit_n,
    )
    items, total = store.alerts.list(query)
    return send_page(items, page=page_n, limit=limit_n, total=total,
                     message="Sensor alerts retrieved successfully")


@router.post("", response_model=ApiResponse[AlertRecord], status_code=status.HTTP_201_CREATED)
def create_alert(payload: AlertCreate, store: DataStore = Depends(get_store)):
    ensure_station(store, payload.station_id)

    alert = store.alerts.add(
        {
            "id": new_id("alert"),
            "status": AlertStatus.ACTIVE.value,
            "created_at": utcnow(),
            **payload.model_dump(),
        }
    )
    logger.info(
        "Raised %s alert %s on station %s (value=%s threshold=%s)",
        alert.type,
        alert.id,
        alert.station_id,
        alert.current_value,
        alert.threshold,
    )
    return send_success(alert, "Sensor alert created successfully")


@router.get("/{alert_id}", response_model=ApiResponse[AlertRecord])
def get_alert(alert_id: str, store: DataStore = Depends(get_store)):
    alert = get_or_404(store.alerts, alert_id, "Sensor alert")
    return send_success(alert, "Sensor alert retrieved successfully")


@router.api_route("/{alert_id}", methods=["PUT", "PATCH"], response_model=ApiResponse[AlertRecord])
def update_alert_status(alert_id: str, payload: AlertStatusUpdate, store: DataStore = Depends(get_store)):
    get_or_404(store.alerts, alert_id, "Sensor alert")
    alert = store.alerts.update(alert_id, {"status": payload.status})
    return send_success(alert, "Sensor alert updated successfully")


@router.delete("/{alert_id}", response_model=ApiResponse[AlertRecord])
def delete_alert(alert_id: str, store: DataStore = Depends(get_store)):
    get_or_404(store.alerts, alert_id, "Sensor alert")
    alert = store.alerts.delete(alert_id)
    return send_success(alert, "Sensor alert deleted successfully")
