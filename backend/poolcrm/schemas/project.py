"""
Project-related Pydantic schemas.

Defines request/response models for project CRUD, the three kinds of
project expenses, the per-project expense summary, contract milestones
and statistics.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID

from ..database.models import MilestoneType, ProjectStatus, ProjectType, PoolOrSpa


class ProjectCreateRequest(BaseModel):
    """Project creation request schema."""
    customer_id: Optional[UUID] = Field(None, description="Customer the project belongs to")
    address: Optional[str] = Field(None, description="Job site address")
    project_type: ProjectType = Field(..., description="residential, commercial or HOA")
    pool_or_spa: PoolOrSpa = Field(..., description="pool, spa or pool & spa")
    sq_feet: Optional[Decimal] = Field(None, ge=0)
    status: ProjectStatus = Field(ProjectStatus.LEAD, description="Project status")
    accessories_features: Optional[str] = None
    est_value: Optional[Decimal] = Field(None, ge=0, description="Estimated contract value")
    project_manager: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class ProjectUpdateRequest(BaseModel):
    """Project update request schema."""
    customer_id: Optional[UUID] = None
    address: Optional[str] = None
    project_type: Optional[ProjectType] = None
    pool_or_spa: Optional[PoolOrSpa] = None
    sq_feet: Optional[Decimal] = Field(None, ge=0)
    status: Optional[ProjectStatus] = None
    accessories_features: Optional[str] = None
    est_value: Optional[Decimal] = Field(None, ge=0)
    project_manager: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None


class ProjectResponse(BaseModel):
    """Project response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Project ID")
    company_id: str = Field(..., description="Company ID")
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = Field(None, description="Customer display name")
    address: Optional[str] = None
    project_type: ProjectType
    pool_or_spa: PoolOrSpa
    sq_feet: Optional[float] = None
    status: ProjectStatus
    accessories_features: Optional[str] = None
    est_value: Optional[float] = None
    project_manager: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class ProjectsListResponse(BaseModel):
    """Projects list response schema."""
    projects: List[ProjectResponse] = Field(..., description="List of projects")
    total: int = Field(..., description="Total number of matching projects")


class SubcontractorHoursRequest(BaseModel):
    subcontractor_id: UUID
    hours: Decimal = Field(..., ge=0)
    rate: Optional[Decimal] = Field(None, ge=0, description="Overrides the subcontractor's default rate")
    date_worked: date
    notes: Optional[str] = None


class SubcontractorHoursUpdateRequest(BaseModel):
    hours: Optional[Decimal] = Field(None, ge=0)
    rate: Optional[Decimal] = Field(None, ge=0)
    date_worked: Optional[date] = None
    notes: Optional[str] = None


class SubcontractorHoursResponse(BaseModel):
    id: UUID
    subcontractor_id: UUID
    subcontractor_name: Optional[str] = None
    hours: float
    rate: Optional[float] = None
    effective_rate: float
    cost: float
    date_worked: date
    notes: Optional[str] = None


class MaterialRequest(BaseModel):
    inventory_id: UUID
    quantity: Decimal = Field(..., gt=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0, description="Defaults to the item's unit price")
    date_used: date
    notes: Optional[str] = None


class MaterialUpdateRequest(BaseModel):
    quantity: Optional[Decimal] = Field(None, gt=0)
    unit_cost: Optional[Decimal] = Field(None, ge=0)
    date_used: Optional[date] = None
    notes: Optional[str] = None


class MaterialResponse(BaseModel):
    id: UUID
    inventory_id: UUID
    inventory_name: Optional[str] = None
    unit: Optional[str] = None
    quantity: float
    unit_cost: float
    cost: float
    date_used: date
    notes: Optional[str] = None


class AdditionalExpenseRequest(BaseModel):
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    expense_date: date
    category: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class AdditionalExpenseUpdateRequest(BaseModel):
    description: Optional[str] = Field(None, min_length=1)
    amount: Optional[Decimal] = Field(None, ge=0)
    expense_date: Optional[date] = None
    category: Optional[str] = Field(None, max_length=100)
    notes: Optional[str] = None


class AdditionalExpenseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    description: str
    amount: float
    expense_date: date
    category: Optional[str] = None
    notes: Optional[str] = None


class ExpenseTotals(BaseModel):
    """Cost totals per expense category."""
    subcontractors: float
    materials: float
    additional: float
    total: float


class ProjectExpensesResponse(BaseModel):
    """Full expense breakdown for one project."""
    project_id: UUID
    subcontractor_hours: List[SubcontractorHoursResponse]
    materials: List[MaterialResponse]
    additional_expenses: List[AdditionalExpenseResponse]
    totals: ExpenseTotals
    est_value: float
    profit: float


class ProjectStatisticsResponse(BaseModel):
    """Aggregates over projects created within a period."""
    period: str
    since: Optional[datetime] = None
    project_count: int
    total_est_value: float
    total_expenses: float
    total_profit: float
    status_counts: dict


class MonthlyStatistics(BaseModel):
    """Metrics for records created in one month."""
    month: int = Field(..., ge=1, le=12)
    value: float
    revenue: float
    profit: float
    leads: int
    customers_signed: int
    sold: int
    total_customers: int
    completed_projects: int


class MonthlyStatisticsResponse(BaseModel):
    year: int
    monthly_data: List[MonthlyStatistics]


class MilestoneItem(BaseModel):
    """One milestone in a project's milestone list."""
    name: str = Field(..., min_length=1, max_length=255)
    milestone_type: MilestoneType = MilestoneType.CUSTOM
    description: Optional[str] = None
    cost: Decimal = Field(Decimal("0"), ge=0)
    markup_percent: Decimal = Field(Decimal("0"), ge=0)
    flat_price: Optional[Decimal] = Field(None, ge=0, description="Customer price; overrides cost plus markup")
    subcontractor_hours_id: Optional[UUID] = None
    additional_expense_id: Optional[UUID] = None


class MilestonesUpdateRequest(BaseModel):
    """Replace a project's milestones; list order becomes the milestone order."""
    milestones: List[MilestoneItem]


class MilestoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    milestone_type: MilestoneType
    description: Optional[str] = None
    cost: float
    markup_percent: float
    flat_price: Optional[float] = None
    customer_price: float
    sort_order: int
    subcontractor_hours_id: Optional[UUID] = None
    additional_expense_id: Optional[UUID] = None


class MilestonesResponse(BaseModel):
    project_id: UUID
    milestones: List[MilestoneResponse]
    total_cost: float
    total_customer_price: float
