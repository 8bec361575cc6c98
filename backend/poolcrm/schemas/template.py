"""
Expense template schemas.

A template holds subcontractor, material and additional expense lines
that can be copied onto any project in one step.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID


class TemplateSubcontractorLine(BaseModel):
    subcontractor_id: UUID
    hours: Decimal = Field(..., ge=0)
    rate: Optional[Decimal] = Field(None, ge=0, description="Overrides the subcontractor's default rate")
    notes: Optional[str] = None


class TemplateMaterialLine(BaseModel):
    inventory_id: UUID
    quantity: Decimal = Field(..., gt=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0, description="Defaults to the item's unit price when applied")
    notes: Optional[str] = None


class TemplateAdditionalLine(BaseModel):
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    category: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class TemplateRequest(BaseModel):
    """Create or replace a template; the line lists replace existing lines."""
    name: str = Field(..., min_length=1, max_length=255)
    subcontractors: List[TemplateSubcontractorLine] = []
    materials: List[TemplateMaterialLine] = []
    additional: List[TemplateAdditionalLine] = []


class TemplateSubcontractorResponse(BaseModel):
    id: UUID
    subcontractor_id: UUID
    subcontractor_name: Optional[str] = None
    hours: float
    rate: Optional[float] = None
    notes: Optional[str] = None


class TemplateMaterialResponse(BaseModel):
    id: UUID
    inventory_id: UUID
    inventory_name: Optional[str] = None
    quantity: float
    unit_cost: Optional[float] = None
    notes: Optional[str] = None


class TemplateAdditionalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    description: str
    amount: float
    category: Optional[str] = None
    notes: Optional[str] = None


class TemplateResponse(BaseModel):
    id: UUID
    company_id: str
    name: str
    subcontractors: List[TemplateSubcontractorResponse]
    materials: List[TemplateMaterialResponse]
    additional: List[TemplateAdditionalResponse]
    created_at: datetime
    updated_at: Optional[datetime] = None


class TemplatesListResponse(BaseModel):
    templates: List[TemplateResponse]
    total: int


class ApplyTemplateRequest(BaseModel):
    project_id: UUID
    expense_date: Optional[date] = Field(None, description="Date given to every created entry; defaults to today")


class ApplyTemplateResponse(BaseModel):
    """Counts of project expense entries created from a template."""
    template_id: UUID
    project_id: UUID
    subcontractor_hours: int
    materials: int
    additional_expenses: int
