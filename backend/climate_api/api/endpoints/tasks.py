# backend/climate_api/api/endpoints/tasks.py
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field, field_validator

from climate_api.api.common import MAX_DB_INT, RecordId, as_utc, get_or_404, strip_required, utcnow
from climate_api.api.deps import get_store
from climate_api.core.responses import ApiResponse, PaginatedResponse, send_page, send_success
from climate_api.repositories.base import DataStore, ListQuery
from climate_api.schemas import CamelModel, TaskPriority, TaskRecord, TaskStatus
from climate_api.services.pagination import parse_pagination

router = APIRouter(prefix="/tasks", tags=["tasks"])


class _TaskFields(CamelModel):
    _clean_text = field_validator("title", "description", check_fields=False)(strip_required)
    _due_utc = field_validator("due_date", check_fields=False)(as_utc)


class TaskCreate(_TaskFields):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    project_id: int = Field(ge=1, le=MAX_DB_INT)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None


class TaskReplace(_TaskFields):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    project_id: int = Field(ge=1, le=MAX_DB_INT)
    status: TaskStatus
    priority: TaskPriority
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None


class TaskPatch(_TaskFields):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    project_id: Optional[int] = Field(default=None, ge=1, le=MAX_DB_INT)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[str] = None
    due_date: Optional[datetime] = None


def _ensure_project(store: DataStore, project_id: Optional[int]) -> None:
    if project_id is not None:
        get_or_404(store.projects, project_id, "Project")


@router.get("", response_model=PaginatedResponse[TaskRecord])
def list_tasks(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    priority: Optional[str] = Query(None),
    project_id: Optional[int] = Query(None, alias="projectId", ge=1, le=MAX_DB_INT),
    assigned_to: Optional[str] = Query(None, alias="assignedTo"),
    store: DataStore = Depends(get_store),
):
    page_n, limit_n = parse_pagination(page, limit)
    query = ListQuery(
        filters={
            "status": status_filter,
            "priority": priority,
            "project_id": project_id,
            "assigned_to": assigned_to,
        },
        page=page_n,
        limit=limit_n,
    )
    items, total = store.tasks.list(query)
    return send_page(items, page=page_n, limit=limit_n, total=total,
                     message="Tasks retrieved successfully")


@router.post("", response_model=ApiResponse[TaskRecord], status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskCreate, store: DataStore = Depends(get_store)):
    _ensure_project(store, payload.project_id)
    task = store.tasks.add({"created_at": utcnow(), **payload.model_dump()})
    return send_success(task, "Task created successfully")


@router.get("/{task_id}", response_model=ApiResponse[TaskRecord])
def get_task(task_id: RecordId, store: DataStore = Depends(get_store)):
    task = get_or_404(store.tasks, task_id, "Task")
    return send_success(task, "Task retrieved successfully")


@router.put("/{task_id}", response_model=ApiResponse[TaskRecord])
def replace_task(task_id: RecordId, payload: TaskReplace, store: DataStore = Depends(get_store)):
    get_or_404(store.tasks, task_id, "Task")
    _ensure_project(store, payload.project_id)
    task = store.tasks.update(task_id, {**payload.model_dump(), "updated_at": utcnow()})
    return send_success(task, "Task updated successfully")


@router.patch("/{task_id}", response_model=ApiResponse[TaskRecord])
def patch_task(task_id: RecordId, payload: TaskPatch, store: DataStore = Depends(get_store)):
    get_or_404(store.tasks, task_id, "Task")
    _ensure_project(store, payload.project_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    changes["updated_at"] = utcnow()
    task = store.tasks.update(task_id, changes)
    return send_success(task, "Task updated successfully")


@router.delete("/{task_id}", response_model=ApiResponse[TaskRecord])
def delete_task(task_id: RecordId, store: DataStore = Depends(get_store)):
    get_or_404(store.tasks, task_id, "Task")
    task = store.tasks.delete(task_id)
    return send_success(task, "Task deleted successfully")
