"""
Project management API routes.

Provides endpoints for project CRUD, the per-project expense ledger
(subcontractor hours, materials and additional expenses), contract
milestones and company-wide project statistics.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session, joinedload
from uuid import UUID

from ...database.connection import get_db
from ...database.models import (
    Customer, InventoryItem, Project, ProjectAdditionalExpense, ProjectMaterial, ProjectMilestone,
    ProjectStatus, ProjectSubcontractorHours, Subcontractor
)
from ...schemas.project import (
    ProjectCreateRequest, ProjectUpdateRequest, ProjectResponse, ProjectsListResponse,
    SubcontractorHoursRequest, SubcontractorHoursUpdateRequest, SubcontractorHoursResponse,
    MaterialRequest, MaterialUpdateRequest, MaterialResponse,
    AdditionalExpenseRequest, AdditionalExpenseUpdateRequest, AdditionalExpenseResponse,
    ExpenseTotals, ProjectExpensesResponse, ProjectStatisticsResponse, MonthlyStatisticsResponse,
    MilestonesUpdateRequest, MilestoneResponse, MilestonesResponse
)
from ...auth.dependencies import get_company_filter, CompanyFilter
from ...services import expenses
from ..updates import apply_update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["Projects"])


def _project_response(project: Project) -> ProjectResponse:
    response = ProjectResponse.model_validate(project)
    if project.customer is not None:
        response.customer_name = f"{project.customer.first_name} {project.customer.last_name}"
    return response


def _check_customer(db: Session, company_filter: CompanyFilter, customer_id: Optional[UUID]):
    if customer_id is not None:
        company_filter.get(db, Customer, customer_id, "Customer not found")


def _hours_response(entry: ProjectSubcontractorHours) -> SubcontractorHoursResponse:
    return SubcontractorHoursResponse(
        id=entry.id,
        subcontractor_id=entry.subcontractor_id,
        subcontractor_name=entry.subcontractor.name if entry.subcontractor else None,
        hours=entry.hours,
        rate=entry.rate,
        effective_rate=expenses.effective_rate(entry),
        cost=expenses.subcontractor_cost(entry),
        date_worked=entry.date_worked,
        notes=entry.notes
    )


def _material_response(entry: ProjectMaterial) -> MaterialResponse:
    item = entry.inventory_item
    return MaterialResponse(
        id=entry.id,
        inventory_id=entry.inventory_id,
        inventory_name=item.name if item else None,
        unit=item.unit if item else None,
        quantity=entry.quantity,
        unit_cost=entry.unit_cost,
        cost=expenses.material_cost(entry),
        date_used=entry.date_used,
        notes=entry.notes
    )


# PUBLIC_INTERFACE
@router.get("", response_model=ProjectsListResponse,
            summary="List projects",
            description="List the company's projects, newest first, optionally filtered by status or customer.")
async def list_projects(
    status_filter: Optional[ProjectStatus] = Query(None, alias="status", description="Filter by status"),
    customer_id: Optional[UUID] = Query(None, description="Filter by customer"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(100, ge=1, le=500, description="Items per page"),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    query = company_filter.filter_query(db.query(Project), Project).options(joinedload(Project.customer))

    if status_filter is not None:
        query = query.filter(Project.status == status_filter)
    if customer_id is not None:
        query = query.filter(Project.customer_id == customer_id)

    total = query.count()
    projects = query.order_by(Project.created_at.desc()).offset((page - 1) * per_page).limit(per_page).all()

    return ProjectsListResponse(
        projects=[_project_response(p) for p in projects],
        total=total
    )


# PUBLIC_INTERFACE
@router.get("/statistics", response_model=ProjectStatisticsResponse,
            summary="Project statistics",
            description="Total estimated value, expenses and profit of projects created within a period "
                        "(day, week, month, 6mo, year or total).")
async def get_project_statistics(
    period: str = Query("total", description="day, week, month, 6mo, year or total"),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    if period not in expenses.STATISTICS_PERIODS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid period. Use one of: {', '.join(expenses.STATISTICS_PERIODS)}"
        )
    since = expenses.period_start(period)
    stats = expenses.project_statistics(db, company_filter.company_id, since)
    return ProjectStatisticsResponse(period=period, since=since, **stats)


# PUBLIC_INTERFACE
@router.get("/monthly-statistics", response_model=MonthlyStatisticsResponse,
            summary="Monthly statistics",
            description="Project value, revenue, profit and customer pipeline counts for each month of a year.")
async def get_monthly_statistics(
    year: Optional[int] = Query(None, ge=2000, le=2100, description="Calendar year; defaults to the current year"),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    if year is None:
        year = datetime.now(timezone.utc).year
    rows = expenses.monthly_statistics(db, company_filter.company_id, year)
    return MonthlyStatisticsResponse(year=year, monthly_data=rows)


# PUBLIC_INTERFACE
@router.get("/{project_id}", response_model=ProjectResponse,
            summary="Get project")
async def get_project(
    project_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    return _project_response(project)


# PUBLIC_INTERFACE
@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED,
             summary="Create project",
             description="Create a project. Project type and pool/spa are required; "
                         "the customer must belong to the company.")
async def create_project(
    request: ProjectCreateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    _check_customer(db, company_filter, request.customer_id)

    project = Project(company_id=company_filter.company_id, **request.model_dump(exclude_none=True))
    db.add(project)
    db.commit()
    db.refresh(project)
    return _project_response(project)


# PUBLIC_INTERFACE
@router.put("/{project_id}", response_model=ProjectResponse,
            summary="Update project")
async def update_project(
    project_id: UUID,
    request: ProjectUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    changes = request.model_dump(exclude_unset=True)
    _check_customer(db, company_filter, changes.get("customer_id"))

    apply_update(project, changes, required=("project_type", "pool_or_spa", "status"))
    db.commit()
    db.refresh(project)
    return _project_response(project)


# PUBLIC_INTERFACE
@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete project",
               description="Delete a project together with its expense entries.")
async def delete_project(
    project_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    db.delete(project)
    db.commit()


# PUBLIC_INTERFACE
@router.get("/{project_id}/expenses", response_model=ProjectExpensesResponse,
            summary="Project expenses",
            description="All expense entries for a project with category totals and profit.")
async def get_project_expenses(
    project_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    totals = expenses.project_totals(project)

    return ProjectExpensesResponse(
        project_id=project.id,
        subcontractor_hours=[
            _hours_response(e) for e in sorted(project.subcontractor_hours, key=lambda e: e.date_worked, reverse=True)
        ],
        materials=[
            _material_response(e) for e in sorted(project.materials, key=lambda e: e.date_used, reverse=True)
        ],
        additional_expenses=[
            AdditionalExpenseResponse.model_validate(e)
            for e in sorted(project.additional_expenses, key=lambda e: e.expense_date, reverse=True)
        ],
        totals=ExpenseTotals(
            subcontractors=totals["subcontractors"],
            materials=totals["materials"],
            additional=totals["additional"],
            total=totals["total"]
        ),
        est_value=totals["est_value"],
        profit=totals["profit"]
    )


def _project_child(db: Session, model, project: Project, entry_id: UUID, detail: str):
    entry = db.query(model).filter(model.id == entry_id, model.project_id == project.id).first()
    if not entry:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
    return entry


# PUBLIC_INTERFACE
@router.post("/{project_id}/expenses/subcontractor-hours", response_model=SubcontractorHoursResponse,
             status_code=status.HTTP_201_CREATED,
             summary="Log subcontractor hours")
async def add_subcontractor_hours(
    project_id: UUID,
    request: SubcontractorHoursRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    company_filter.get(db, Subcontractor, request.subcontractor_id, "Subcontractor not found")

    entry = ProjectSubcontractorHours(project_id=project.id, **request.model_dump())
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return _hours_response(entry)


# PUBLIC_INTERFACE
@router.put("/{project_id}/expenses/subcontractor-hours/{entry_id}", response_model=SubcontractorHoursResponse,
            summary="Update subcontractor hours")
async def update_subcontractor_hours(
    project_id: UUID,
    entry_id: UUID,
    request: SubcontractorHoursUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    entry = _project_child(db, ProjectSubcontractorHours, project, entry_id, "Subcontractor hours entry not found")
    apply_update(entry, request.model_dump(exclude_unset=True), required=("hours", "date_worked"))
    db.commit()
    db.refresh(entry)
    return _hours_response(entry)


# PUBLIC_INTERFACE
@router.delete("/{project_id}/expenses/subcontractor-hours/{entry_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete subcontractor hours")
async def delete_subcontractor_hours(
    project_id: UUID,
    entry_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    entry = _project_child(db, ProjectSubcontractorHours, project, entry_id, "Subcontractor hours entry not found")
    db.delete(entry)
    db.commit()


# PUBLIC_INTERFACE
@router.post("/{project_id}/expenses/materials", response_model=MaterialResponse,
             status_code=status.HTTP_201_CREATED,
             summary="Log material usage",
             description="Record inventory used on a project. Unit cost defaults to the item's unit price.")
async def add_material(
    project_id: UUID,
    request: MaterialRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    item = company_filter.get(db, InventoryItem, request.inventory_id, "Inventory item not found")

    data = request.model_dump()
    if data["unit_cost"] is None:
        data["unit_cost"] = item.unit_price
    entry = ProjectMaterial(project_id=project.id, **data)
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return _material_response(entry)


# PUBLIC_INTERFACE
@router.put("/{project_id}/expenses/materials/{entry_id}", response_model=MaterialResponse,
            summary="Update material usage")
async def update_material(
    project_id: UUID,
    entry_id: UUID,
    request: MaterialUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    entry = _project_child(db, ProjectMaterial, project, entry_id, "Material entry not found")
    apply_update(entry, request.model_dump(exclude_unset=True), required=("quantity", "unit_cost", "date_used"))
    db.commit()
    db.refresh(entry)
    return _material_response(entry)


# PUBLIC_INTERFACE
@router.delete("/{project_id}/expenses/materials/{entry_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete material usage")
async def delete_material(
    project_id: UUID,
    entry_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    entry = _project_child(db, ProjectMaterial, project, entry_id, "Material entry not found")
    db.delete(entry)
    db.commit()


# PUBLIC_INTERFACE
@router.post("/{project_id}/expenses/additional", response_model=AdditionalExpenseResponse,
             status_code=status.HTTP_201_CREATED,
             summary="Add additional expense")
async def add_additional_expense(
    project_id: UUID,
    request: AdditionalExpenseRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    entry = ProjectAdditionalExpense(project_id=project.id, **request.model_dump())
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return AdditionalExpenseResponse.model_validate(entry)


# PUBLIC_INTERFACE
@router.put("/{project_id}/expenses/additional/{entry_id}", response_model=AdditionalExpenseResponse,
            summary="Update additional expense")
async def update_additional_expense(
    project_id: UUID,
    entry_id: UUID,
    request: AdditionalExpenseUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    entry = _project_child(db, ProjectAdditionalExpense, project, entry_id, "Additional expense not found")
    apply_update(entry, request.model_dump(exclude_unset=True), required=("description", "amount", "expense_date"))
    db.commit()
    db.refresh(entry)
    return AdditionalExpenseResponse.model_validate(entry)


# PUBLIC_INTERFACE
@router.delete("/{project_id}/expenses/additional/{entry_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete additional expense")
async def delete_additional_expense(
    project_id: UUID,
    entry_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    entry = _project_child(db, ProjectAdditionalExpense, project, entry_id, "Additional expense not found")
    db.delete(entry)
    db.commit()


def _milestones_response(project: Project) -> MilestonesResponse:
    milestones = sorted(project.milestones, key=lambda m: m.sort_order)
    return MilestonesResponse(
        project_id=project.id,
        milestones=[MilestoneResponse.model_validate(m) for m in milestones],
        **expenses.milestone_totals(milestones)
    )


# PUBLIC_INTERFACE
@router.get("/{project_id}/milestones", response_model=MilestonesResponse,
            summary="Project milestones",
            description="Contract milestones in order, with cost and customer price totals.")
async def get_project_milestones(
    project_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")
    return _milestones_response(project)


# PUBLIC_INTERFACE
@router.put("/{project_id}/milestones", response_model=MilestonesResponse,
            summary="Replace project milestones",
            description="Replace the milestone list. Customer prices are recomputed from cost and markup "
                        "unless a flat price is given.")
async def replace_project_milestones(
    project_id: UUID,
    request: MilestonesUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    project = company_filter.get(db, Project, project_id, "Project not found")

    for item in request.milestones:
        if item.subcontractor_hours_id is not None:
            _project_child(db, ProjectSubcontractorHours, project, item.subcontractor_hours_id,
                           "Subcontractor hours entry not found")
        if item.additional_expense_id is not None:
            _project_child(db, ProjectAdditionalExpense, project, item.additional_expense_id,
                           "Additional expense not found")

    for milestone in list(project.milestones):
        db.delete(milestone)
    db.flush()

    for index, item in enumerate(request.milestones):
        data = item.model_dump()
        db.add(ProjectMilestone(
            company_id=project.company_id,
            project_id=project.id,
            sort_order=index,
            customer_price=expenses.milestone_price(item.cost, item.markup_percent, item.flat_price),
            **data
        ))
    db.commit()
    db.refresh(project)
    logger.info("Project %s milestones replaced (%d items)", project.id, len(request.milestones))
    return _milestones_response(project)
