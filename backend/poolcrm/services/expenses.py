"""
Project cost, profit and goal metric calculations.
"""
from datetime import datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..database.models import (
    Customer, PipelineStatus, Project, ProjectStatus, ProjectSubcontractorHours,
)

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Lookback window for /projects/statistics; "total" has no lower bound
STATISTICS_PERIODS = {
    "day": 1,
    "week": 7,
    "month": 30,
    "6mo": 180,
    "year": 365,
    "total": None,
}

DATA_POINTS = [
    {"key": "profit", "label": "Profit", "format": "currency"},
    {"key": "est_value", "label": "Estimated Value", "format": "currency"},
    {"key": "leads", "label": "Leads", "format": "number"},
    {"key": "projects_sold", "label": "Projects Sold", "format": "number"},
    {"key": "total_customers", "label": "Total Customers", "format": "number"},
    {"key": "active_projects", "label": "Active Projects", "format": "number"},
    {"key": "completed_projects", "label": "Completed Projects", "format": "number"},
]
DATA_POINT_KEYS = {point["key"] for point in DATA_POINTS}

ACTIVE_STATUSES = (ProjectStatus.SOLD, ProjectStatus.IN_PROGRESS)
COMPLETED_STATUSES = (ProjectStatus.COMPLETE, ProjectStatus.COMPLETED)
# Projects that count towards revenue: sold and anything after it
REVENUE_STATUSES = ACTIVE_STATUSES + COMPLETED_STATUSES

MONTHLY_CURRENCY_METRICS = ("value", "revenue", "profit")
MONTHLY_COUNT_METRICS = ("leads", "customers_signed", "sold", "total_customers", "completed_projects")


def _dec(value) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


def effective_rate(entry: ProjectSubcontractorHours) -> Decimal:
    """Entry rate, else the subcontractor's default rate, else zero."""
    if entry.rate is not None:
        return _dec(entry.rate)
    if entry.subcontractor is not None and entry.subcontractor.rate is not None:
        return _dec(entry.subcontractor.rate)
    return ZERO


def subcontractor_cost(entry: ProjectSubcontractorHours) -> Decimal:
    return _dec(entry.hours) * effective_rate(entry)


def material_cost(entry) -> Decimal:
    return _dec(entry.quantity) * _dec(entry.unit_cost)


# PUBLIC_INTERFACE
def project_totals(project: Project) -> Dict[str, Decimal]:
    """
    Sum a project's expenses per category.

    Args:
        project: Project with its expense relationships loadable

    Returns:
        Dict[str, Decimal]: subcontractors, materials, additional, total,
        est_value and profit (est_value minus total)
    """
    subs = sum((subcontractor_cost(e) for e in project.subcontractor_hours), ZERO)
    materials = sum((material_cost(e) for e in project.materials), ZERO)
    additional = sum((_dec(e.amount) for e in project.additional_expenses), ZERO)
    total = subs + materials + additional
    est_value = _dec(project.est_value)
    return {
        "subcontractors": subs,
        "materials": materials,
        "additional": additional,
        "total": total,
        "est_value": est_value,
        "profit": est_value - total,
    }


def milestone_price(cost, markup_percent=None, flat_price=None) -> Decimal:
    """Customer price of a milestone: the flat price if set, else cost plus markup, to the cent."""
    if flat_price is not None:
        return _dec(flat_price).quantize(CENT, rounding=ROUND_HALF_UP)
    price = _dec(cost) * (1 + _dec(markup_percent) / 100)
    return price.quantize(CENT, rounding=ROUND_HALF_UP)


def milestone_totals(milestones) -> Dict[str, Decimal]:
    """Summed cost and customer price of a milestone list."""
    return {
        "total_cost": sum((_dec(m.cost) for m in milestones), ZERO),
        "total_customer_price": sum((_dec(m.customer_price) for m in milestones), ZERO),
    }


def period_start(period: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """
    Start of a statistics window.

    Raises:
        KeyError: If the period name is unknown
    """
    days = STATISTICS_PERIODS[period]
    if days is None:
        return None
    return (now or datetime.now(timezone.utc)) - timedelta(days=days)


def _projects_since(db: Session, company_id: str, since: Optional[datetime]):
    query = db.query(Project).options(
        selectinload(Project.subcontractor_hours).selectinload(ProjectSubcontractorHours.subcontractor),
        selectinload(Project.materials),
        selectinload(Project.additional_expenses),
    ).filter(Project.company_id == company_id)
    if since is not None:
        query = query.filter(Project.created_at >= since)
    return query.all()


# PUBLIC_INTERFACE
def project_statistics(db: Session, company_id: str, since: Optional[datetime]) -> Dict:
    """Aggregate value, expenses and profit over projects created since a date."""
    projects = _projects_since(db, company_id, since)
    est_value = ZERO
    expenses = ZERO
    status_counts: Dict[str, int] = {}
    for project in projects:
        totals = project_totals(project)
        est_value += totals["est_value"]
        expenses += totals["total"]
        key = project.status.value if project.status else "unknown"
        status_counts[key] = status_counts.get(key, 0) + 1
    return {
        "project_count": len(projects),
        "total_est_value": est_value,
        "total_expenses": expenses,
        "total_profit": est_value - expenses,
        "status_counts": status_counts,
    }


def _count(query, model, since):
    if since is not None:
        query = query.filter(model.created_at >= since)
    return query.scalar() or 0


def _count_projects(db: Session, company_id: str, since, statuses: Iterable[ProjectStatus]):
    query = db.query(func.count(Project.id)).filter(
        Project.company_id == company_id,
        Project.status.in_(list(statuses)),
    )
    return _count(query, Project, since)


# PUBLIC_INTERFACE
def data_point_value(db: Session, company_id: str, data_point: str, since: Optional[datetime]) -> Decimal:
    """
    Current value of a goal metric for a company.

    Args:
        db: Database session
        company_id: Company to measure
        data_point: One of DATA_POINT_KEYS
        since: Only count records created on or after this moment

    Returns:
        Decimal: Metric value (zero for unknown metrics)
    """
    if data_point == "profit":
        return project_statistics(db, company_id, since)["total_profit"]
    if data_point == "est_value":
        query = db.query(func.coalesce(func.sum(Project.est_value), 0)).filter(
            Project.company_id == company_id
        )
        return _dec(_count(query, Project, since))
    if data_point == "leads":
        query = db.query(func.count(Customer.id)).filter(
            Customer.company_id == company_id,
            Customer.pipeline_status == PipelineStatus.LEAD,
        )
        return Decimal(_count(query, Customer, since))
    if data_point == "projects_sold":
        return Decimal(_count_projects(db, company_id, since, [ProjectStatus.SOLD]))
    if data_point == "total_customers":
        query = db.query(func.count(Customer.id)).filter(Customer.company_id == company_id)
        return Decimal(_count(query, Customer, since))
    if data_point == "active_projects":
        return Decimal(_count_projects(db, company_id, since, ACTIVE_STATUSES))
    if data_point == "completed_projects":
        return Decimal(_count_projects(db, company_id, since, COMPLETED_STATUSES))
    return ZERO


def goal_progress(current: Decimal, target: Decimal) -> float:
    """Percent of target reached, capped at 100; zero for non-positive targets."""
    target = _dec(target)
    if target <= 0:
        return 0.0
    return float(min(_dec(current) / target * 100, Decimal(100)))


def goal_overdue(current: Decimal, target: Decimal, target_date: Optional[datetime],
                 now: Optional[datetime] = None) -> bool:
    if target_date is None:
        return False
    now = now or datetime.now(timezone.utc)
    if target_date.tzinfo is None:
        target_date = target_date.replace(tzinfo=timezone.utc)
    return target_date < now and _dec(current) < _dec(target)


def _utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


# PUBLIC_INTERFACE
def monthly_statistics(db: Session, company_id: str, year: int) -> List[Dict]:
    """
    Per-month project and customer metrics for one calendar year (UTC).

    Projects and customers are counted in the month they were created.

    Returns:
        List[Dict]: Twelve rows keyed by ``month`` (1-12) with value,
        revenue and profit totals plus lead, signed, sold, customer and
        completed counts
    """
    start = datetime(year, 1, 1, tzinfo=timezone.utc)
    end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
    months = []
    for month in range(1, 13):
        row = {"month": month}
        row.update({metric: ZERO for metric in MONTHLY_CURRENCY_METRICS})
        row.update({metric: 0 for metric in MONTHLY_COUNT_METRICS})
        months.append(row)

    projects = [p for p in _projects_since(db, company_id, start) if _utc(p.created_at) < end]
    for project in projects:
        row = months[_utc(project.created_at).month - 1]
        totals = project_totals(project)
        row["value"] += totals["est_value"]
        row["profit"] += totals["profit"]
        if project.status in REVENUE_STATUSES:
            row["revenue"] += totals["est_value"]
        if project.status == ProjectStatus.SOLD:
            row["sold"] += 1
        if project.status in COMPLETED_STATUSES:
            row["completed_projects"] += 1

    customers = db.query(Customer.created_at, Customer.pipeline_status).filter(
        Customer.company_id == company_id,
        Customer.created_at >= start,
        Customer.created_at < end,
    ).all()
    for created_at, pipeline_status in customers:
        row = months[_utc(created_at).month - 1]
        row["total_customers"] += 1
        if pipeline_status == PipelineStatus.LEAD:
            row["leads"] += 1
        elif pipeline_status == PipelineStatus.SIGNED:
            row["customers_signed"] += 1
    return months
