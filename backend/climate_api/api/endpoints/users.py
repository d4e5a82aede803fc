# backend/climate_api/api/endpoints/users.py
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field, field_validator

from climate_api.api.common import check_email, get_or_404, new_id, strip_required, utcnow
from climate_api.api.deps import get_store
from climate_api.api.endpoints.orders import create_order
from climate_api.core.responses import ApiResponse, PaginatedResponse, send_page, send_success
from climate_api.core.security import hash_password
from climate_api.repositories.base import DataStore, ListQuery
from climate_api.schemas import CamelModel, OrderRecord, Role, UserRecord
from climate_api.services.pagination import parse_pagination

router = APIRouter(prefix="/users", tags=["users"])

logger = logging.getLogger("climate")


class UserCreate(CamelModel):
    username: str = Field(min_length=2)
    email: str
    role: Role
    password: Optional[str] = Field(default=None, min_length=6)

    _clean_username = field_validator("username")(strip_required)
    _clean_email = field_validator("email")(check_email)


class UserUpdate(CamelModel):
    username: Optional[str] = Field(default=None, min_length=2)
    email: Optional[str] = None
    role: Optional[Role] = None
    password: Optional[str] = Field(default=None, min_length=6)

    _clean_username = field_validator("username")(strip_required)
    _clean_email = field_validator("email")(check_email)


class UserOrderCreate(CamelModel):
    items: List[str] = Field(min_length=1)
    total_amount: float = Field(gt=0)


# Checked and written atomically by the repository (409 on a clash)
USER_UNIQUE_FIELDS = ("username", "email")


@router.get("", response_model=PaginatedResponse[UserRecord])
def list_users(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    store: DataStore = Depends(get_store),
):
    page_n, limit_n = parse_pagination(page, limit)
    items, total = store.users.list(
        ListQuery(filters={"role": role}, order_by="created_at", page=page_n, limit=limit_n)
    )
    return send_page(items, page=page_n, limit=limit_n, total=total,
                     message="Users retrieved successfully")


@router.post("", response_model=ApiResponse[UserRecord], status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, store: DataStore = Depends(get_store)):
    user = store.users.add_unique(
        {
            "id": new_id("user"),
            "username": payload.username,
            "email": payload.email,
            "role": payload.role,
            "password_hash": hash_password(payload.password) if payload.password else None,
            "created_at": utcnow(),
        },
        unique=USER_UNIQUE_FIELDS,
    )
    logger.info("Created user %s role=%s", user.id, user.role)
    return send_success(user, "User created successfully")


@router.get("/{user_id}", response_model=ApiResponse[UserRecord])
def get_user(user_id: str, store: DataStore = Depends(get_store)):
    user = get_or_404(store.users, user_id, "User")
    return send_success(user, "User retrieved successfully")


@router.api_route("/{user_id}", methods=["PUT", "PATCH"], response_model=ApiResponse[UserRecord])
def update_user(user_id: str, payload: UserUpdate, store: DataStore = Depends(get_store)):
    get_or_404(store.users, user_id, "User")

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    password = changes.pop("password", None)
    if password:
        changes["password_hash"] = hash_password(password)
    changes["updated_at"] = utcnow()

    user = store.users.update_unique(user_id, changes, unique=USER_UNIQUE_FIELDS)
    return send_success(user, "User updated successfully")


@router.delete("/{user_id}", response_model=ApiResponse[UserRecord])
def delete_user(user_id: str, store: DataStore = Depends(get_store)):
    get_or_404(store.users, user_id, "User")
    user = store.users.delete(user_id)
    logger.info("Deleted user %s", user_id)
    return send_success(user, "User deleted successfully")


# --- Orders placed by one user ---

@router.get("/{user_id}/orders", response_model=PaginatedResponse[OrderRecord])
def list_user_orders(
    user_id: str,
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    store: DataStore = Depends(get_store),
):
    get_or_404(store.users, user_id, "User")
    page_n, limit_n = parse_pagination(page, limit)
    items, total = store.orders.list(
        ListQuery(
            filters={"user_id": user_id, "status": status_filter},
            order_by="order_date",
            descending=True,
            page=page_n,
            limit=limit_n,
        )
    )
    return send_page(items, page=page_n, limit=limit_n, total=total,
                     message="User orders retrieved successfully")


@router.post(
    "/{user_id}/orders",
    response_model=ApiResponse[OrderRecord],
    status_code=status.HTTP_201_CREATED,
)
def create_user_order(user_id: str, payload: UserOrderCreate, store: DataStore = Depends(get_store)):
    get_or_404(store.users, user_id, "User")
    order = create_order(store, user_id=user_id, items=payload.items, total_amount=payload.total_amount)
    return send_success(order, "Order created successfully")
