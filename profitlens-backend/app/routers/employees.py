from __future__ import annotations

from typing import List

from fastapi import APIRouter, status

from ..models import EmployeeCreate, EmployeeUpdate, SalaryRecordCreate
from ..services.projects import add_salary_record, create_employee, list_employees, update_employee

router = APIRouter(prefix="/api/v2/employees", tags=["employees"])


@router.get("")
def employees_endpoint() -> List[dict]:
    return list_employees()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_employee_endpoint(payload: EmployeeCreate):
    return create_employee(payload)


@router.put("/{employee_id}")
def update_employee_endpoint(employee_id: str, payload: EmployeeUpdate):
    return update_employee(employee_id, payload)


@router.post("/{employee_id}/salaries", status_code=status.HTTP_201_CREATED)
def add_salary_record_endpoint(employee_id: str, payload: SalaryRecordCreate):
    return add_salary_record(employee_id, payload)
