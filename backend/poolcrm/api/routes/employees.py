"""
Employee roster API routes.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy import func
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Employee
from ...schemas.employee import (
    EmployeeCreateRequest, EmployeeUpdateRequest, EmployeeResponse, EmployeesListResponse
)
from ...auth.dependencies import get_company_filter, CompanyFilter
from ..updates import apply_update

router = APIRouter(prefix="/employees", tags=["Employees"])


def _ensure_unique_email(db: Session, company_filter: CompanyFilter, email: str, exclude_id: UUID = None):
    query = company_filter.filter_query(db.query(Employee), Employee).filter(
        func.lower(Employee.email_address) == email.lower()
    )
    if exclude_id is not None:
        query = query.filter(Employee.id != exclude_id)
    if query.first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Employee with this email already exists"
        )


# PUBLIC_INTERFACE
@router.get("", response_model=EmployeesListResponse,
            summary="List employees",
            description="List the company's employees, newest first.")
async def list_employees(
    current: Optional[bool] = Query(None, description="Filter by current employment"),
    user_type: Optional[str] = Query(None, description="Filter by admin, manager or employee"),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    query = company_filter.filter_query(db.query(Employee), Employee)
    if current is not None:
        query = query.filter(Employee.current == current)
    if user_type:
        query = query.filter(Employee.user_type == user_type)

    employees = query.order_by(Employee.created_at.desc()).all()
    return EmployeesListResponse(
        employees=[EmployeeResponse.model_validate(e) for e in employees],
        total=len(employees)
    )


# PUBLIC_INTERFACE
@router.get("/{employee_id}", response_model=EmployeeResponse, summary="Get employee")
async def get_employee(
    employee_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    return EmployeeResponse.model_validate(company_filter.get(db, Employee, employee_id, "Employee not found"))


# PUBLIC_INTERFACE
@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED,
             summary="Create employee",
             description="Add an employee. Name and email address are required.")
async def create_employee(
    request: EmployeeCreateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    _ensure_unique_email(db, company_filter, request.email_address)

    employee = Employee(company_id=company_filter.company_id, **request.model_dump(exclude_none=True))
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return EmployeeResponse.model_validate(employee)


# PUBLIC_INTERFACE
@router.put("/{employee_id}", response_model=EmployeeResponse, summary="Update employee")
async def update_employee(
    employee_id: UUID,
    request: EmployeeUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    employee = company_filter.get(db, Employee, employee_id, "Employee not found")
    changes = request.model_dump(exclude_unset=True)
    if changes.get("email_address"):
        _ensure_unique_email(db, company_filter, changes["email_address"], exclude_id=employee.id)

    apply_update(employee, changes, required=(
        "name", "email_address", "user_type", "current",
        "is_project_manager", "is_sales_person", "is_foreman",
    ))
    db.commit()
    db.refresh(employee)
    return EmployeeResponse.model_validate(employee)


# PUBLIC_INTERFACE
@router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete employee",
               description="Delete an employee. Their events are kept unassigned.")
async def delete_employee(
    employee_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    employee = company_filter.get(db, Employee, employee_id, "Employee not found")
    db.delete(employee)
    db.commit()
