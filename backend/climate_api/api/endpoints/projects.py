# backend/climate_api/api/endpoints/projects.py
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field, field_validator

from climate_api.api.common import RecordId, get_or_404, strip_required, utcnow
from climate_api.api.deps import get_store
from climate_api.core.responses import ApiResponse, PaginatedResponse, send_page, send_success
from climate_api.repositories.base import DataStore, ListQuery
from climate_api.schemas import CamelModel, ProjectRecord, ProjectStatus
from climate_api.services.pagination import parse_pagination

router = APIRouter(prefix="/projects", tags=["projects"])


class ProjectCreate(CamelModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    status: ProjectStatus = ProjectStatus.PLANNING

    _clean_text = field_validator("name", "description")(strip_required)


class ProjectReplace(CamelModel):
    name: str = Field(min_length=1)
    description: str = Field(min_length=1)
    user_id: str = Field(min_length=1)
    status: ProjectStatus

    _clean_text = field_validator("name", "description")(strip_required)


class ProjectPatch(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    user_id: Optional[str] = Field(default=None, min_length=1)
    status: Optional[ProjectStatus] = None

    _clean_text = field_validator("name", "description")(strip_required)


@router.get("", response_model=PaginatedResponse[ProjectRecord])
def list_projects(
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    user_id: Optional[str] = Query(None, alias="userId"),
    store: DataStore = Depends(get_store),
):
    page_n, limit_n = parse_pagination(page, limit)
    items, total = store.projects.list(
        ListQuery(filters={"status": status_filter, "user_id": user_id}, page=page_n, limit=limit_n)
    )
    return send_page(items, page=page_n, limit=limit_n, total=total,
                     message="Projects retrieved successfully")


@router.post("", response_model=ApiResponse[ProjectRecord], status_code=status.HTTP_201_CREATED)
def create_project(payload: ProjectCreate, store: DataStore = Depends(get_store)):
    project = store.projects.add({"created_at": utcnow(), **payload.model_dump()})
    return send_success(project, "Project created successfully")


@router.get("/{project_id}", response_model=ApiResponse[ProjectRecord])
def get_project(project_id: RecordId, store: DataStore = Depends(get_store)):
    project = get_or_404(store.projects, project_id, "Project")
    return send_success(project, "Project retrieved successfully")


@router.put("/{project_id}", response_model=ApiResponse[ProjectRecord])
def replace_project(project_id: RecordId, payload: ProjectReplace, store: DataStore = Depends(get_store)):
    get_or_404(store.projects, project_id, "Project")
    project = store.projects.update(project_id, {**payload.model_dump(), "updated_at": utcnow()})
    return send_success(project, "Project updated successfully")


@router.patch("/{project_id}", response_model=ApiResponse[ProjectRecord])
def patch_project(project_id: RecordId, payload: ProjectPatch, store: DataStore = Depends(get_store)):
    get_or_404(store.projects, project_id, "Project")
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    changes["updated_at"] = utcnow()
    project = store.projects.update(project_id, changes)
    return send_success(project, "Project updated successfully")


@router.delete("/{project_id}", response_model=ApiResponse[ProjectRecord])
def delete_project(project_id: RecordId, store: DataStore = Depends(get_store)):
    get_or_404(store.projects, project_id, "Project")
    project = store.projects.delete(project_id)
    return send_success(project, "Project deleted successfully")
