# backend/climate_api/api/endpoints/stations.py
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field, field_validator

from climate_api.api.common import get_or_404, new_id, strip_required, utcnow
from climate_api.api.deps import get_store
from climate_api.core.errors import NotFoundError
from climate_api.core.responses import ApiResponse, PaginatedResponse, send_page, send_success
from climate_api.repositories.base import DataStore, ListQuery
from climate_api.schemas import CamelModel, StationRecord, StationStatus
from climate_api.services.pagination import parse_pagination

router = APIRouter(prefix="/stations", tags=["stations"])

logger = logging.getLogger("climate")


class StationCreate(CamelModel):
    name: str = Field(min_length=1)
    location: str = Field(min_length=1)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    status: StationStatus = StationStatus.ACTIVE

    _clean_text = field_validator("name", "location")(strip_required)


class StationUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = Field(default=None, min_length=1)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    status: Optional[StationStatus] = None

    _clean_text = field_validator("name", "location")(strip_required)


@router.get("", response_model=PaginatedResponse[StationRecord])
def list_stations(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    station_id: Optional[str] = Query(None, alias="stationId"),
    store: DataStore = Depends(get_store),
):
    """
    List weather stations, optionally by status or a single stationId.

    Asking for a stationId that matches nothing is a 404, not an empty page.
    """
    page_n, limit_n = parse_pagination(page, limit)
    query = ListQuery(
        filters={"status": status_filter, "id": station_id},
        page=page_n,
        limit=limit_n,
    )
    items, total = store.stations.list(query)

    if station_id and total == 0:
        raise NotFoundError("Weather station not found")

    return send_page(items, page=page_n, limit=limit_n, total=total,
                     message="Weather stations retrieved successfully")


@router.post("", response_model=ApiResponse[StationRecord], status_code=status.HTTP_201_CREATED)
def create_station(payload: StationCreate, store: DataStore = Depends(get_store)):
    station = store.stations.add(
        {"id": new_id("station"), "created_at": utcnow(), **payload.model_dump()}
    )
    logger.info("Created station %s (%s)", station.id, station.name)
    return send_success(station, "Weather station created successfully")


@router.get("/{station_id}", response_model=ApiResponse[StationRecord])
def get_station(station_id: str, store: DataStore = Depends(get_store)):
    station = get_or_404(store.stations, station_id, "Weather station")
    return send_success(station, "Weather station retrieved successfully")


@router.api_route("/{station_id}", methods=["PUT", "PATCH"], response_model=ApiResponse[StationRecord])
def update_station(station_id: str, payload: StationUpdate, store: DataStore = Depends(get_store)):
    get_or_404(store.stations, station_id, "Weather station")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    station = store.stations.update(station_id, changes)
    return send_success(station, "Weather station updated successfully")


@router.delete("/{station_id}", response_model=ApiResponse[StationRecord])
def delete_station(station_id: str, store: DataStore = Depends(get_store)):
    """
    Delete a station together with its readings and alerts, all or nothing.
    """
    get_or_404(store.stations, station_id, "Weather station")

    station, deleted_readings, deleted_alerts = store.delete_station_cascade(station_id)

    logger.info(
        "Deleted station %s cascade complete: readings=%s alerts=%s",
        station_id,
        deleted_readings,
        deleted_alerts,
    )
    return send_success(station, "Weather station deleted successfully")
