# backend/climate_api/repositories/memory.py
from __future__ import annotations

import threading
from contextlib import ExitStack, contextmanager
from functools import lru_cache
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Type

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
from climate_api.services.pagination import paginate


class MemoryRepository(Repository[R]):
    """
    Process-wide list of records, located by linear scan.

    Handlers run in FastAPI's threadpool, so every read-modify-write on the
    list happens under one lock.
    """

    def __init__(self, record_type: Type[R], *, int_ids: bool = False):
        self.record_type = record_type
        self.int_ids = int_ids
        self._items: List[R] = []
        self._last_id = 0
        self._lock = threading.RLock()

    # --- helpers ---

    def _index_of(self, record_id: Any) -> int:
        for i, item in enumerate(self._items):
            if item.id == record_id:
                return i
        return -1

    @staticmethod
    def _matcher(eq: Dict[str, Any]) -> Callable[[Any], bool]:
        def _match(item: Any) -> bool:
            return all(getattr(item, k) == v for k, v in eq.items())

        return _match

    def _matches(self, item: R, query: ListQuery) -> bool:
        if not self._matcher(query.active_filters())(item):
            return False

        dr = query.date_range
        if dr is not None and not dr.is_empty:
            value = getattr(item, dr.field)
            if value is None:
                return False
            if dr.start is not None and value < dr.start:
                return False
            if dr.end is not None and value > dr.end:
                return False
        return True

    # --- contract ---

    def list(self, query: ListQuery) -> Tuple[List[R], int]:
        with self._lock:
            items = [item for item in self._items if self._matches(item, query)]

        if query.order_by:
            # id breaks ties the same way the SQL back end does
            items.sort(key=lambda r: (getattr(r, query.order_by), r.id), reverse=query.descending)

        page_items, total, _ = paginate(items, query.page, query.limit)
        return page_items, total

    def get(self, record_id: Any) -> Optional[R]:
        with self._lock:
            idx = self._index_of(record_id)
            return self._items[idx] if idx >= 0 else None

    def add(self, values: Dict[str, Any]) -> R:
        with self._lock:
            data = dict(values)
            if self.int_ids:
                if data.get("id") is None:
                    self._last_id += 1
                    data["id"] = self._last_id
                else:
                    self._last_id = max(self._last_id, int(data["id"]))
            record = self.record_type.model_validate(data)
            self._items.append(record)
            return record

    def update(self, record_id: Any, changes: Dict[str, Any]) -> Optional[R]:
        with self._lock:
            idx = self._index_of(record_id)
            if idx < 0:
                return None
            # model_copy keeps excluded fields (password_hash) that model_dump drops
            updated = self._items[idx].model_copy(update=changes)
            self._items[idx] = updated
            return updated

    def delete(self, record_id: Any) -> Optional[R]:
        with self._lock:
            idx = self._index_of(record_id)
            if idx < 0:
                return None
            return self._items.pop(idx)

    def add_unique(self, values: Dict[str, Any], unique: Sequence[str]) -> R:
        with self._lock:
            self._check_unique(values, unique)
            return self.add(values)

    def update_unique(self, record_id: Any, changes: Dict[str, Any], unique: Sequence[str]) -> Optional[R]:
        with self._lock:
            if self._index_of(record_id) < 0:
                return None
            self._check_unique(changes, unique, exclude_id=record_id)
            return self.update(record_id, changes)

    def find_one(self, **eq: Any) -> Optional[R]:
        match = self._matcher(eq)
        with self._lock:
            return next((item for item in self._items if match(item)), None)

    def count(self, **eq: Any) -> int:
        match = self._matcher(eq)
        with self._lock:
            return sum(1 for item in self._items if match(item))

    def delete_where(self, **eq: Any) -> int:
        match = self._matcher(eq)
        with self._lock:
            keep = [item for item in self._items if not match(item)]
            removed = len(self._items) - len(keep)
            self._items = keep
            return removed

    def all(self) -> List[R]:
        with self._lock:
            return list(self._items)

    def clear(self) -> int:
        with self._lock:
            removed = len(self._items)
            self._items = []
            self._last_id = 0
            return removed


@contextmanager
def memory_transaction(repos: Sequence[MemoryRepository]) -> Iterator[None]:
    """
    Hold every repo lock (always in the same order) and restore the saved
    contents if the block raises.
    """
    with ExitStack() as stack:
        for repo in repos:
            stack.enter_context(repo._lock)
        saved = [(repo, list(repo._items), repo._last_id) for repo in repos]
        try:
            yield
        except BaseException:
            for repo, items, last_id in saved:
                repo._items = items
                repo._last_id = last_id
            raise


def build_memory_store() -> DataStore:
    store = DataStore(
        backend="memory",
        users=MemoryRepository(UserRecord),
        stations=MemoryRepository(StationRecord),
        readings=MemoryRepository(ReadingRecord),
        alerts=MemoryRepository(AlertRecord),
        projects=MemoryRepository(ProjectRecord, int_ids=True),
        tasks=MemoryRepository(TaskRecord, int_ids=True),
        orders=MemoryRepository(OrderRecord, int_ids=True),
    )
    repos = list(store.collections().values())
    store.unit_of_work = lambda: memory_transaction(repos)
    return store


@lru_cache()
def get_memory_store() -> DataStore:
    """The process-wide store used when STORAGE_BACKEND=memory."""
    return build_memory_store()
