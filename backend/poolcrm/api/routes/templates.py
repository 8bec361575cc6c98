"""
Expense template API routes.

Templates are named sets of expense lines a company reuses across similar
projects. Applying a template copies its lines onto a project as regular
subcontractor hours, material and additional expense entries.
"""
import logging
from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import (
    ExpenseTemplate, ExpenseTemplateAdditional, ExpenseTemplateMaterial, ExpenseTemplateSubcontractor,
    InventoryItem, Project, ProjectAdditionalExpense, ProjectMaterial, ProjectSubcontractorHours, Subcontractor
)
from ...schemas.template import (
    TemplateRequest, TemplateResponse, TemplatesListResponse,
    TemplateSubcontractorResponse, TemplateMaterialResponse, TemplateAdditionalResponse,
    ApplyTemplateRequest, ApplyTemplateResponse
)
from ...auth.dependencies import get_company_filter, CompanyFilter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/templates", tags=["Templates"])


def _response(template: ExpenseTemplate) -> TemplateResponse:
    return TemplateResponse(
        id=template.id,
        company_id=template.company_id,
        name=template.name,
        subcontractors=[
            TemplateSubcontractorResponse(
                id=line.id,
                subcontractor_id=line.subcontractor_id,
                subcontractor_name=line.subcontractor.name if line.subcontractor else None,
                hours=line.hours,
                rate=line.rate,
                notes=line.notes
            )
            for line in template.subcontractor_lines
        ],
        materials=[
            TemplateMaterialResponse(
                id=line.id,
                inventory_id=line.inventory_id,
                inventory_name=line.inventory_item.name if line.inventory_item else None,
                quantity=line.quantity,
                unit_cost=line.unit_cost,
                notes=line.notes
            )
            for line in template.material_lines
        ],
        additional=[TemplateAdditionalResponse.model_validate(line) for line in template.additional_lines],
        created_at=template.created_at,
        updated_at=template.updated_at
    )


def _set_lines(db: Session, company_filter: CompanyFilter, template: ExpenseTemplate, request: TemplateRequest):
    """Replace the template's lines after checking every reference belongs to the company."""
    for line in request.subcontractors:
        company_filter.get(db, Subcontractor, line.subcontractor_id, "Subcontractor not found")
    for line in request.materials:
        company_filter.get(db, InventoryItem, line.inventory_id, "Inventory item not found")

    template.subcontractor_lines = [ExpenseTemplateSubcontractor(**line.model_dump()) for line in request.subcontractors]
    template.material_lines = [ExpenseTemplateMaterial(**line.model_dump()) for line in request.materials]
    template.additional_lines = [ExpenseTemplateAdditional(**line.model_dump()) for line in request.additional]


# PUBLIC_INTERFACE
@router.get("", response_model=TemplatesListResponse,
            summary="List expense templates",
            description="List the company's expense templates, newest first.")
async def list_templates(
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    templates = company_filter.filter_query(db.query(ExpenseTemplate), ExpenseTemplate).order_by(
        ExpenseTemplate.created_at.desc()
    ).all()
    return TemplatesListResponse(templates=[_response(t) for t in templates], total=len(templates))


# PUBLIC_INTERFACE
@router.get("/{template_id}", response_model=TemplateResponse, summary="Get expense template")
async def get_template(
    template_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    return _response(company_filter.get(db, ExpenseTemplate, template_id, "Template not found"))


# PUBLIC_INTERFACE
@router.post("", response_model=TemplateResponse, status_code=status.HTTP_201_CREATED,
             summary="Create expense template")
async def create_template(
    request: TemplateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    template = ExpenseTemplate(company_id=company_filter.company_id, name=request.name)
    _set_lines(db, company_filter, template, request)
    db.add(template)
    db.commit()
    db.refresh(template)
    return _response(template)


# PUBLIC_INTERFACE
@router.put("/{template_id}", response_model=TemplateResponse,
            summary="Replace expense template",
            description="Rename the template and replace all of its lines.")
async def update_template(
    template_id: UUID,
    request: TemplateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    template = company_filter.get(db, ExpenseTemplate, template_id, "Template not found")
    template.name = request.name
    _set_lines(db, company_filter, template, request)
    db.commit()
    db.refresh(template)
    return _response(template)


# PUBLIC_INTERFACE
@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete expense template")
async def delete_template(
    template_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    template = company_filter.get(db, ExpenseTemplate, template_id, "Template not found")
    db.delete(template)
    db.commit()


# PUBLIC_INTERFACE
@router.post("/{template_id}/apply", response_model=ApplyTemplateResponse, status_code=status.HTTP_201_CREATED,
             summary="Apply template to project",
             description="Copy every template line onto the project as a new expense entry. "
                         "Material lines without a unit cost use the item's current unit price.")
async def apply_template(
    template_id: UUID,
    request: ApplyTemplateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    template = company_filter.get(db, ExpenseTemplate, template_id, "Template not found")
    project = company_filter.get(db, Project, request.project_id, "Project not found")
    day = request.expense_date or date.today()

    for line in template.subcontractor_lines:
        db.add(ProjectSubcontractorHours(
            project_id=project.id, subcontractor_id=line.subcontractor_id,
            hours=line.hours, rate=line.rate, date_worked=day, notes=line.notes
        ))
    for line in template.material_lines:
        unit_cost = line.unit_cost if line.unit_cost is not None else line.inventory_item.unit_price
        db.add(ProjectMaterial(
            project_id=project.id, inventory_id=line.inventory_id,
            quantity=line.quantity, unit_cost=unit_cost, date_used=day, notes=line.notes
        ))
    for line in template.additional_lines:
        db.add(ProjectAdditionalExpense(
            project_id=project.id, description=line.description, amount=line.amount,
            category=line.category, expense_date=day, notes=line.notes
        ))
    db.commit()
    logger.info("Template %s applied to project %s", template.id, project.id)

    return ApplyTemplateResponse(
        template_id=template.id,
        project_id=project.id,
        subcontractor_hours=len(template.subcontractor_lines),
        materials=len(template.material_lines),
        additional_expenses=len(template.additional_lines)
    )
