# backend/climate_api/repositories/base.py
"""
Storage contract shared by the in-memory and SQL back ends.

Records go in as plain dicts of snake_case field values and come out as the
pydantic record types from climate_api.schemas, whichever back end is active.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, ContextManager, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar

from climate_api.core.errors import ConflictError

from climate_api.schemas import (
    AlertRecord,
    CamelModel,
    OrderRecord,
    ProjectRecord,
    ReadingRecord,
    StationRecord,
    TaskRecord,
    UserRecord,
)

R = TypeVar("R", bound=CamelModel)


@dataclass
class DateRange:
    field: str
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    @property
    def is_empty(self) -> bool:
        return self.start is None and self.end is None


@dataclass
class ListQuery:
    """
    One list request: equality filters (None values are ignored), an optional
    date window on one field, ordering and the page to return.
    """

    filters: Dict[str, Any] = field(default_factory=dict)
    date_range: Optional[DateRange] = None
    order_by: Optional[str] = None
    descending: bool = False
    page: int = 1
    limit: int = 10

    def active_filters(self) -> Dict[str, Any]:
        return {k: v for k, v in self.filters.items() if v is not None}

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Repository(ABC, Generic[R]):
    record_type: Type[R]

    @abstractmethod
    def list(self, query: ListQuery) -> Tuple[List[R], int]:
        """Return (page_items, total_matching)."""

    @abstractmethod
    def get(self, record_id: Any) -> Optional[R]:
        ...

    @abstractmethod
    def add(self, values: Dict[str, Any]) -> R:
        """Store a new record. Integer ids are assigned when `values` has none."""

    @abstractmethod
    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[R]:
        ...

    @abstractmethod
    def delete(self, record_id: Any) -> Optional[R]:
        """Remove and return the record, or None when absent."""

    @abstractmethod
    def add_unique(self, values: Dict[str, Any], unique: Sequence[str]) -> R:
        """Like add, but 409 when another record already holds a value in `unique`."""

    @abstractmethod
    def update_unique(self, record_id: Any, changes: Dict[str, Any], unique: Sequence[str]) -> Optional[R]:
        ...

    @abstractmethod
    def find_one(self, **eq: Any) -> Optional[R]:
        ...

    @abstractmethod
    def count(self, **eq: Any) -> int:
        ...

    @abstractmethod
    def delete_where(self, **eq: Any) -> int:
        ...

    @abstractmethod
    def all(self) -> List[R]:
        ...

    def exists(self, **eq: Any) -> bool:
        return self.find_one(**eq) is not None

    def clear(self) -> int:
        return self.delete_where()

    def _conflict(self, field_name: str) -> ConflictError:
        label = self.record_type.__name__.replace("Record", "").lower()
        return ConflictError(f"A {label} with this {field_name} already exists")

    def _check_unique(self, values: Dict[str, Any], unique: Sequence[str], exclude_id: Any = None) -> None:
        for name in unique:
            value = values.get(name)
            if value is None:
                continue
            other = self.find_one(**{name: value})
            if other is not None and other.id != exclude_id:
                raise self._conflict(name)


@dataclass
class DataStore:
    """One repository per resource; what route handlers receive via get_store."""

    backend: str
    users: Repository[UserRecord]
    stations: Repository[StationRecord]
    readings: Repository[ReadingRecord]
    alerts: Repository[AlertRecord]
    projects: Repository[ProjectRecord]
    tasks: Repository[TaskRecord]
    orders: Repository[OrderRecord]
    # Groups several repository calls so they apply together or not at all
    unit_of_work: Callable[[], ContextManager[Any]] = field(default=nullcontext, repr=False)

    def collections(self) -> Dict[str, Repository]:
        return {
            "users": self.users,
            "stations": self.stations,
            "readings": self.readings,
            "alerts": self.alerts,
            "projects": self.projects,
            "tasks": self.tasks,
            "orders": self.orders,
        }

    def transaction(self) -> ContextManager[Any]:
        return self.unit_of_work()

    def delete_station_cascade(self, station_id: str) -> Tuple[Optional[StationRecord], int, int]:
        """
        Remove a station with its readings and alerts in one transaction.

        Returns (station, readings_removed, alerts_removed). On failure nothing
        is removed.
        """
        with self.transaction():
            readings = self.readings.delete_where(station_id=station_id)
            alerts = self.alerts.delete_where(station_id=station_id)
            station = self.stations.delete(station_id)
        return station, readings, alerts

    def next_order_number(self) -> str:
        """ORD-### one past the highest number currently stored."""
        highest = 0
        for order in self.orders.all():
            _, _, suffix = order.order_number.partition("-")
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return f"ORD-{highest + 1:03d}"

    def reset(self) -> None:
        for repo in self.collections().values():
            repo.clear()
