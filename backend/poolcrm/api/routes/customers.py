"""
Customer management API routes.

Provides endpoints for customer CRUD operations and pipeline filtering
within the company context.
"""
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Customer, PipelineStatus
from ...schemas.customer import (
    CustomerCreateRequest, CustomerUpdateRequest, CustomerResponse, CustomersListResponse
)
from ...auth.dependencies import get_company_filter, CompanyFilter
from ..updates import apply_update

router = APIRouter(prefix="/customers", tags=["Customers"])


# PUBLIC_INTERFACE
@router.get("", response_model=CustomersListResponse,
            summary="List customers",
            description="List the company's customers, newest first, with optional pipeline and text filters.")
async def list_customers(
    pipeline_status: Optional[PipelineStatus] = Query(None, description="Filter by pipeline stage"),
    q: Optional[str] = Query(None, description="Search name, email or phone"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(100, ge=1, le=500, description="Items per page"),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    query = company_filter.filter_query(db.query(Customer), Customer)

    if pipeline_status is not None:
        query = query.filter(Customer.pipeline_status == pipeline_status)

    if q:
        pattern = f"%{q}%"
        query = query.filter(
            (Customer.first_name.ilike(pattern)) |
            (Customer.last_name.ilike(pattern)) |
            (Customer.email.ilike(pattern)) |
            (Customer.phone.ilike(pattern))
        )

    total = query.count()
    customers = query.order_by(Customer.created_at.desc()).offset((page - 1) * per_page).limit(per_page).all()

    return CustomersListResponse(
        customers=[CustomerResponse.model_validate(c) for c in customers],
        total=total
    )


# PUBLIC_INTERFACE
@router.get("/{customer_id}", response_model=CustomerResponse,
            summary="Get customer")
async def get_customer(
    customer_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    customer = company_filter.get(db, Customer, customer_id, "Customer not found")
    return CustomerResponse.model_validate(customer)


# PUBLIC_INTERFACE
@router.post("", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED,
             summary="Create customer",
             description="Create a customer. First and last name are required.")
async def create_customer(
    request: CustomerCreateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    data = request.model_dump(exclude_none=True)
    customer = Customer(company_id=company_filter.company_id, **data)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return CustomerResponse.model_validate(customer)


# PUBLIC_INTERFACE
@router.put("/{customer_id}", response_model=CustomerResponse,
            summary="Update customer",
            description="Update the supplied customer fields.")
async def update_customer(
    customer_id: UUID,
    request: CustomerUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    customer = company_filter.get(db, Customer, customer_id, "Customer not found")

    apply_update(customer, request.model_dump(exclude_unset=True),
                 required=("first_name", "last_name", "pipeline_status"))

    db.commit()
    db.refresh(customer)
    return CustomerResponse.model_validate(customer)


# PUBLIC_INTERFACE
@router.delete("/{customer_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete customer",
               description="Delete a customer. Their projects and messages are kept without a customer link.")
async def delete_customer(
    customer_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    customer = company_filter.get(db, Customer, customer_id, "Customer not found")
    db.delete(customer)
    db.commit()
