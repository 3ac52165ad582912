from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .portfolio import PROJECT_STATUSES

STATUS_PATTERN = "^(" + "|".join(PROJECT_STATUSES) + ")$"


class ClientCreate(BaseModel):
    name: str = Field(min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    source: Optional[str] = None


class ClientUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    source: Optional[str] = None


class ProjectCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    name: str = Field(min_length=1)
    client_id: str = Field(alias="clientId", min_length=1)
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    completion_date: Optional[date] = Field(default=None, alias="completionDate")
    budget: Decimal = Field(ge=0, decimal_places=2)
    status: str = Field(default="planning", pattern=STATUS_PATTERN)

    @model_validator(mode="after")
    def _check_schedule(self):
        if self.start_date > self.end_date:
            raise ValueError("startDate must not be after endDate")
        return self


class ProjectUpdate(BaseModel):
    """Editable project fields; status changes go through the status endpoint."""

    model_config = ConfigDict(populate_by_name=True)
    name: Optional[str] = Field(default=None, min_length=1)
    client_id: Optional[str] = Field(default=None, alias="clientId", min_length=1)
    start_date: Optional[date] = Field(default=None, alias="startDate")
    end_date: Optional[date] = Field(default=None, alias="endDate")
    completion_date: Optional[date] = Field(default=None, alias="completionDate")
    budget: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)


class EmployeeCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    name: str = Field(min_length=1)
    employee_code: str = Field(alias="employeeCode", min_length=1)
    designation: str = Field(min_length=1)
    salary: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)


class EmployeeUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    name: Optional[str] = Field(default=None, min_length=1)
    employee_code: Optional[str] = Field(default=None, alias="employeeCode", min_length=1)
    designation: Optional[str] = Field(default=None, min_length=1)
    salary: Optional[Decimal] = Field(default=None, gt=0, decimal_places=2)


class ExtensionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    new_end_date: Optional[date] = Field(default=None, alias="newEndDate")
    extended_budget: Optional[Decimal] = Field(default=None, alias="extendedBudget", ge=0, decimal_places=2)
    actual_completion_date: Optional[date] = Field(default=None, alias="actualCompletionDate")
    notes: Optional[str] = None


class StatusChangeCreate(BaseModel):
    status: str = Field(pattern=STATUS_PATTERN)
    changed_at: Optional[datetime] = Field(default=None, alias="changedAt")
    notes: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class AssignmentCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    employee_id: str = Field(alias="employeeId", min_length=1)
    assigned_at: Optional[datetime] = Field(default=None, alias="assignedAt")


class SalaryRecordCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    financial_year: str = Field(alias="financialYear", pattern=r"^\d{4}-\d{2}$")
    annual_salary: Decimal = Field(alias="annualSalary", gt=0, decimal_places=2)
    effective_from: date = Field(alias="effectiveFrom")


class ProjectStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    total_projects: int = Field(alias="totalProjects")
    completed_projects: int = Field(alias="completedProjects")
    in_progress_projects: int = Field(alias="inProgressProjects")
    total_clients: int = Field(alias="totalClients")
    total_employees: int = Field(alias="totalEmployees")


class ProjectFinancials(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    name: str
    budget: float
    extension_budget: float = Field(alias="extensionBudget")
    total_cost: float = Field(alias="totalCost")
    start_date: date = Field(alias="startDate")
    scheduled_end_date: date = Field(alias="scheduledEndDate")
    effective_end_date: date = Field(alias="effectiveEndDate")
    status: str
    hold_days: int = Field(alias="holdDays")
    assigned_employees: int = Field(alias="assignedEmployees")


class ProjectDetail(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    name: str
    client_id: str = Field(alias="clientId")
    client_name: Optional[str] = Field(default=None, alias="clientName")
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    completion_date: Optional[date] = Field(default=None, alias="completionDate")
    budget: float
    status: str
    extensions: List[dict] = Field(default_factory=list)
    status_history: List[dict] = Field(default_factory=list, alias="statusHistory")
    employees: List[dict] = Field(default_factory=list)
