from __future__ import annotations

from typing import List

from fastapi import APIRouter, status

from ..models import (
    AssignmentCreate,
    ExtensionCreate,
    ProjectCreate,
    ProjectDetail,
    ProjectFinancials,
    ProjectStats,
    ProjectUpdate,
    StatusChangeCreate,
)
from ..services.projects import (
    assign_employee,
    create_extension,
    create_project,
    get_project,
    get_project_financials,
    get_project_stats,
    list_projects,
    record_status_change,
    unassign_employee,
    update_project,
)

router = APIRouter(prefix="/api/v2/projects", tags=["projects"])


@router.get("")
def projects_endpoint() -> List[dict]:
    return list_projects()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_project_endpoint(payload: ProjectCreate):
    return create_project(payload)


@router.get("/stats", response_model=ProjectStats)
def project_stats() -> ProjectStats:
    return get_project_stats()


@router.get("/{project_id}", response_model=ProjectDetail)
def project_detail(project_id: str) -> ProjectDetail:
    return get_project(project_id)


@router.put("/{project_id}")
def update_project_endpoint(project_id: str, payload: ProjectUpdate):
    return update_project(project_id, payload)


@router.get("/{project_id}/financials", response_model=ProjectFinancials)
def project_financials(project_id: str) -> ProjectFinancials:
    return get_project_financials(project_id)


@router.post("/{project_id}/extensions", status_code=status.HTTP_201_CREATED)
def create_extension_endpoint(project_id: str, payload: ExtensionCreate):
    return create_extension(project_id, payload)


@router.post("/{project_id}/status", status_code=status.HTTP_201_CREATED)
def record_status_endpoint(project_id: str, payload: StatusChangeCreate):
    return record_status_change(project_id, payload)


@router.post("/{project_id}/employees", status_code=status.HTTP_201_CREATED)
def assign_employee_endpoint(project_id: str, payload: AssignmentCreate):
    return assign_employee(project_id, payload)


@router.delete("/{project_id}/employees/{employee_id}", status_code=status.HTTP_200_OK)
def unassign_employee_endpoint(project_id: str, employee_id: str):
    return unassign_employee(project_id, employee_id)
