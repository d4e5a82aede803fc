# backend/climate_api/schemas.py
"""
Record types shared by the repositories and the routers.

JSON bodies use camelCase (`stationId`, `airQuality`, `createdAt`); Python
code uses snake_case. `CamelModel` accepts both on input and emits camelCase.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
        validate_default=True,
    )


def _ensure_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; every stored timestamp is UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDateTime = Annotated[datetime, AfterValidator(_ensure_utc)]


# === Enumerations ===

class Role(str, Enum):
    ADMIN = "admin"
    OPERATOR = "operator"


class StationStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    MAINTENANCE = "maintenance"


class AlertType(str, Enum):
    TEMPERATURE = "temperature"
    RAINFALL = "rainfall"
    AIR_QUALITY = "airQuality"


class AlertStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    ACKNOWLEDGED = "acknowledged"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ON_HOLD = "on_hold"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# === Records ===

class UserRecord(CamelModel):
    id: str
    username: str
    email: str
    role: Role
    # Never serialized; only the auth layer reads it.
    password_hash: Optional[str] = Field(default=None, exclude=True)
    created_at: UtcDateTime
    updated_at: Optional[UtcDateTime] = None


class StationRecord(CamelModel):
    id: str
    name: str
    location: str
    latitude: float
    longitude: float
    status: StationStatus = StationStatus.ACTIVE
    created_at: UtcDateTime


class ReadingRecord(CamelModel):
    id: str
    station_id: str
    temperature: float
    humidity: float
    air_quality: float
    rainfall: float
    recorded_at: UtcDateTime


class AlertRecord(CamelModel):
    id: str
    station_id: str
    type: AlertType
    threshold: float
    current_value: float
    status: AlertStatus = AlertStatus.ACTIVE
    created_at: UtcDateTime


class ProjectRecord(CamelModel):
    id: int
    name: str
    description: str
    status: ProjectStatus = ProjectStatus.PLANNING
    user_id: str
    created_at: UtcDateTime
    updated_at: Optional[UtcDateTime] = None


class TaskRecord(CamelModel):
    id: int
    title: str
    description: str
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    project_id: int
    assigned_to: Optional[str] = None
    due_date: Optional[UtcDateTime] = None
    created_at: UtcDateTime
    updated_at: Optional[UtcDateTime] = None


class OrderRecord(CamelModel):
    id: int
    user_id: str
    order_number: str
    total_amount: float
    status: OrderStatus = OrderStatus.PENDING
    items: List[str]
    order_date: UtcDateTime
    delivered_date: Optional[UtcDateTime] = None
