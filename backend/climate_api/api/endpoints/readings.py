# backend/climate_api/api/endpoints/readings.py
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from climate_api.api.common import ensure_station, get_or_404, new_id, utcnow
from climate_api.api.deps import get_store
from climate_api.core.responses import ApiResponse, PaginatedResponse, send_page, send_success
from climate_api.repositories.base import DataStore, DateRange, ListQuery
from climate_api.schemas import CamelModel, ReadingRecord
from climate_api.services.pagination import parse_date_bound, parse_pagination

router = APIRouter(prefix="/readings", tags=["readings"])

logger = logging.getLogger("climate")


class ReadingCreate(CamelModel):
    station_id: str = Field(min_length=1)
    temperature: float
    humidity: float = Field(ge=0, le=100)
    air_quality: float = Field(ge=0, le=500)
    rainfall: float = Field(ge=0)


@router.get("", response_model=PaginatedResponse[ReadingRecord])
def list_readings(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    station_id: Optional[str] = Query(None, alias="stationId"),
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    store: DataStore = Depends(get_store),
):
    """
    Sensor readings, newest first.

    startDate is inclusive; a date-only endDate covers that whole day.
    """
    if station_id:
        ensure_station(store, station_id)

    page_n, limit_n = parse_pagination(page, limit)
    query = ListQuery(
        filters={"station_id": station_id},
        date_range=DateRange(
            "recorded_at",
            start=parse_date_bound(start_date, field="startDate"),
            end=parse_date_bound(end_date, end_of_day=True, field="endDate"),
        ),
        order_by="recorded_at",
        descending=True,
        page=page_n,
        limit=limit_n,
    )
    items, total = store.readings.list(query)
    return send_page(items, page=page_n, limit=limit_n, total=total,
                     message="Sensor readings retrieved successfully")


@router.post("", response_model=ApiResponse[ReadingRecord], status_code=status.HTTP_201_CREATED)
def create_reading(payload: ReadingCreate, store: DataStore = Depends(get_store)):
    ensure_station(store, payload.station_id)

    reading = store.readings.add(
        {"id": new_id("reading"), "recorded_at": utcnow(), **payload.model_dump()}
    )
    logger.info("Recorded reading %s for station %s", reading.id, reading.station_id)
    return send_success(reading, "Sensor reading created successfully")


@router.get("/{reading_id}", response_model=ApiResponse[ReadingRecord])
def get_reading(reading_id: str, store: DataStore = Depends(get_store)):
    reading = get_or_404(store.readings, reading_id, "Sensor reading")
    return send_success(reading, "Sensor reading retrieved successfully")


@router.delete("/{reading_id}", response_model=ApiResponse[ReadingRecord])
def delete_reading(reading_id: str, store: DataStore = Depends(get_store)):
    get_or_404(store.readings, reading_id, "Sensor reading")
    reading = store.readings.delete(reading_id)
    return send_success(reading, "Sensor reading deleted successfully")
