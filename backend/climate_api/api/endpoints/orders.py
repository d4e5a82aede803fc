# backend/climate_api/api/endpoints/orders.py
from typing import List, Optional
import logging
import threading

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field, field_validator

from climate_api.api.common import RecordId, get_or_404, strip_required, utcnow
from climate_api.api.deps import get_store
from climate_api.core.responses import ApiResponse, PaginatedResponse, send_page, send_success
from climate_api.repositories.base import DataStore, ListQuery
from climate_api.schemas import CamelModel, OrderRecord, OrderStatus
from climate_api.services.pagination import parse_pagination

router = APIRouter(prefix="/orders", tags=["orders"])

logger = logging.getLogger("climate")

# next_order_number() + add() must not interleave between two requests
_order_number_lock = threading.Lock()


def _clean_items(items: Optional[List[str]]) -> Optional[List[str]]:
    if items is None:
        return items
    return [strip_required(item) for item in items]


class OrderCreate(CamelModel):
    user_id: str = Field(min_length=1)
    items: List[str] = Field(min_length=1)
    total_amount: float = Field(gt=0)

    _clean = field_validator("items")(_clean_items)


class OrderReplace(CamelModel):
    user_id: str = Field(min_length=1)
    items: List[str] = Field(min_length=1)
    total_amount: float = Field(gt=0)
    status: OrderStatus

    _clean = field_validator("items")(_clean_items)


class OrderPatch(CamelModel):
    user_id: Optional[str] = Field(default=None, min_length=1)
    items: Optional[List[str]] = Field(default=None, min_length=1)
    total_amount: Optional[float] = Field(default=None, gt=0)
    status: Optional[OrderStatus] = None

    _clean = field_validator("items")(_clean_items)


def create_order(store: DataStore, *, user_id: str, items: List[str], total_amount: float) -> OrderRecord:
    """Issue the next ORD-### number and store a pending order."""
    with _order_number_lock:
        order = store.orders.add(
            {
                "user_id": user_id,
                "order_number": store.next_order_number(),
                "total_amount": total_amount,
                "status": OrderStatus.PENDING.value,
                "items": list(items),
                "order_date": utcnow(),
            }
        )
    logger.info("Created order %s for user %s total=%.2f", order.order_number, user_id, total_amount)
    return order


def _apply_changes(store: DataStore, order: OrderRecord, changes: dict) -> OrderRecord:
    if changes.get("user_id") and changes["user_id"] != order.user_id:
        get_or_404(store.users, changes["user_id"], "User")

    if changes.get("status") == OrderStatus.DELIVERED.value and order.status != OrderStatus.DELIVERED.value:
        changes["delivered_date"] = utcnow()

    return store.orders.update(order.id, changes)


@router.get("", response_model=PaginatedResponse[OrderRecord])
def list_orders(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    user_id: Optional[str] = Query(None, alias="userId"),
    store: DataStore = Depends(get_store),
):
    page_n, limit_n = parse_pagination(page, limit)
    items, total = store.orders.list(
        ListQuery(
            filters={"status": status_filter, "user_id": user_id},
            order_by="order_date",
            descending=True,
            page=page_n,
            limit=limit_n,
        )
    )
    return send_page(items, page=page_n, limit=limit_n, total=total,
                     message="Orders retrieved successfully")


@router.post("", response_model=ApiResponse[OrderRecord], status_code=status.HTTP_201_CREATED)
def create_order_endpoint(payload: OrderCreate, store: DataStore = Depends(get_store)):
    get_or_404(store.users, payload.user_id, "User")
    order = create_order(store, user_id=payload.user_id, items=payload.items, total_amount=payload.total_amount)
    return send_success(order, "Order created successfully")


@router.get("/{order_id}", response_model=ApiResponse[OrderRecord])
def get_order(order_id: RecordId, store: DataStore = Depends(get_store)):
    order = get_or_404(store.orders, order_id, "Order")
    return send_success(order, "Order retrieved successfully")


@router.put("/{order_id}", response_model=ApiResponse[OrderRecord])
def replace_order(order_id: RecordId, payload: OrderReplace, store: DataStore = Depends(get_store)):
    order = get_or_404(store.orders, order_id, "Order")
    updated = _apply_changes(store, order, payload.model_dump())
    return send_success(updated, "Order updated successfully")


@router.patch("/{order_id}", response_model=ApiResponse[OrderRecord])
def patch_order(order_id: RecordId, payload: OrderPatch, store: DataStore = Depends(get_store)):
    order = get_or_404(store.orders, order_id, "Order")
    updated = _apply_changes(store, order, payload.model_dump(exclude_unset=True, exclude_none=True))
    return send_success(updated, "Order updated successfully")


@router.delete("/{order_id}", response_model=ApiResponse[OrderRecord])
def delete_order(order_id: RecordId, store: DataStore = Depends(get_store)):
    get_or_404(store.orders, order_id, "Order")
    order = store.orders.delete(order_id)
    logger.info("Deleted order %s", order.order_number)
    return send_success(order, "Order deleted successfully")
