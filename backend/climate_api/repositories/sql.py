# backend/climate_api/repositories/sql.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Type

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, Session

from climate_api.db.base import Base
from climate_api.models import (
    Order,
    Project,
    SensorAlert,
    SensorReading,
    Task,
    User,
    WeatherStation,
)
from climate_api.repositories.base import DataStore, ListQuery, R, Repository
from climate_api.schemas import (
    AlertRecord,
    OrderRecord,
    ProjectRecord,
    ReadingRecord,
    StationRecord,
    TaskRecord,
    UserRecord,
)

logger = logging.getLogger("climate.db")

# Session.info key: how many store transactions are open on this session
UOW_DEPTH = "climate_uow_depth"


class SqlRepository(Repository[R]):
    """
    Repository over one ORM table. Filtering, ordering and paging run in SQL;
    every mutation commits immediately unless a store transaction is open,
    in which case it only flushes and the transaction commits at the end.
    """

    def __init__(
        self,
        db: Session,
        model: Type[Base],
        record_type: Type[R],
        *,
        default_order: str = "id",
    ):
        self.db = db
        self.model = model
        self.record_type = record_type
        self.default_order = default_order

    def _to_record(self, row: Any) -> R:
        return self.record_type.model_validate(row)

    def _column(self, name: str):
        return getattr(self.model, name)

    def _commit(self) -> None:
        if self.db.info.get(UOW_DEPTH, 0):
            self.db.flush()
        else:
            self.db.commit()

    def _filtered(self, eq: Dict[str, Any]) -> Query:
        q = self.db.query(self.model)
        for key, value in eq.items():
            q = q.filter(self._column(key) == value)
        return q

    def list(self, query: ListQuery) -> Tuple[List[R], int]:
        q = self._filtered(query.active_filters())

        dr = query.date_range
        if dr is not None and not dr.is_empty:
            col = self._column(dr.field)
            if dr.start is not None:
                q = q.filter(col >= dr.start)
            if dr.end is not None:
                q = q.filter(col <= dr.end)

        total = q.count()

        order_col = self._column(query.order_by or self.default_order)
        id_col = self._column("id")
        if query.descending:
            q = q.order_by(order_col.desc(), id_col.desc())
        else:
            q = q.order_by(order_col.asc(), id_col.asc())

        rows = q.offset(query.offset).limit(query.limit).all()
        return [self._to_record(r) for r in rows], total

    def get(self, record_id: Any) -> Optional[R]:
        row = self.db.get(self.model, record_id)
        return self._to_record(row) if row is not None else None

    def add(self, values: Dict[str, Any]) -> R:
        data = {k: v for k, v in values.items() if not (k == "id" and v is None)}
        row = self.model(**data)
        self.db.add(row)
        self._commit()
        self.db.refresh(row)
        return self._to_record(row)

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[R]:
        row = self.db.get(self.model, record_id)
        if row is None:
            return None
        for key, value in changes.items():
            setattr(row, key, value)
        self._commit()
        self.db.refresh(row)
        return self._to_record(row)

    def delete(self, record_id: Any) -> Optional[R]:
        row = self.db.get(self.model, record_id)
        if row is None:
            return None
        record = self._to_record(row)
        self.db.delete(row)
        self._commit()
        return record

    def _unique_violation(self, exc: IntegrityError, unique: Sequence[str]):
        self.db.rollback()
        detail = str(exc.orig)
        name = next((n for n in unique if n in detail), unique[0] if unique else "value")
        logger.info("unique_violation table=%s field=%s", self.model.__tablename__, name)
        return self._conflict(name)

    def add_unique(self, values: Dict[str, Any], unique: Sequence[str]) -> R:
        self._check_unique(values, unique)
        # A concurrent insert can still win between the check and the commit
        try:
            return self.add(values)
        except IntegrityError as exc:
            raise self._unique_violation(exc, unique) from exc

    def update_unique(self, record_id: Any, changes: Dict[str, Any], unique: Sequence[str]) -> Optional[R]:
        if self.db.get(self.model, record_id) is None:
            return None
        self._check_unique(changes, unique, exclude_id=record_id)
        try:
            return self.update(record_id, changes)
        except IntegrityError as exc:
            raise self._unique_violation(exc, unique) from exc

    def find_one(self, **eq: Any) -> Optional[R]:
        row = self._filtered(eq).first()
        return self._to_record(row) if row is not None else None

    def count(self, **eq: Any) -> int:
        return self._filtered(eq).count()

    def delete_where(self, **eq: Any) -> int:
        removed = self._filtered(eq).delete(synchronize_session=False)
        self._commit()
        return int(removed or 0)

    def all(self) -> List[R]:
        q = self.db.query(self.model).order_by(self._column(self.default_order).asc())
        return [self._to_record(r) for r in q.all()]


@contextmanager
def sql_transaction(db: Session) -> Iterator[None]:
    """
    Commit once when the outermost block exits; roll back if it raises.
    """
    depth = db.info.get(UOW_DEPTH, 0)
    db.info[UOW_DEPTH] = depth + 1
    try:
        yield
        if depth == 0:
            db.commit()
    except BaseException:
        if depth == 0:
            db.rollback()
        raise
    finally:
        db.info[UOW_DEPTH] = depth


def build_sql_store(db: Session) -> DataStore:
    return DataStore(
        backend="sql",
        users=SqlRepository(db, User, UserRecord, default_order="created_at"),
        stations=SqlRepository(db, WeatherStation, StationRecord, default_order="created_at"),
        readings=SqlRepository(db, SensorReading, ReadingRecord, default_order="recorded_at"),
        alerts=SqlRepository(db, SensorAlert, AlertRecord, default_order="created_at"),
        projects=SqlRepository(db, Project, ProjectRecord),
        tasks=SqlRepository(db, Task, TaskRecord),
        orders=SqlRepository(db, Order, OrderRecord),
        unit_of_work=lambda: sql_transaction(db),
    )
