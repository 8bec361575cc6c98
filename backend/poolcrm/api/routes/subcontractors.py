"""
Subcontractor API routes.
"""
from datetime import date
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Subcontractor
from ...schemas.subcontractor import (
    SubcontractorCreateRequest, SubcontractorUpdateRequest,
    SubcontractorResponse, SubcontractorsListResponse
)
from ...auth.dependencies import get_company_filter, CompanyFilter
from ..updates import apply_update

router = APIRouter(prefix="/subcontractors", tags=["Subcontractors"])


def _response(subcontractor: Subcontractor) -> SubcontractorResponse:
    response = SubcontractorResponse.model_validate(subcontractor)
    response.coi_expired = (
        subcontractor.coi_expiration is not None and subcontractor.coi_expiration < date.today()
    )
    return response


# PUBLIC_INTERFACE
@router.get("", response_model=SubcontractorsListResponse,
            summary="List subcontractors",
            description="List the company's subcontractors, newest first.")
async def list_subcontractors(
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    subcontractors = company_filter.filter_query(db.query(Subcontractor), Subcontractor).order_by(
        Subcontractor.created_at.desc()
    ).all()
    return SubcontractorsListResponse(
        subcontractors=[_response(s) for s in subcontractors],
        total=len(subcontractors)
    )


# PUBLIC_INTERFACE
@router.get("/{subcontractor_id}", response_model=SubcontractorResponse, summary="Get subcontractor")
async def get_subcontractor(
    subcontractor_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    return _response(company_filter.get(db, Subcontractor, subcontractor_id, "Subcontractor not found"))


# PUBLIC_INTERFACE
@router.post("", response_model=SubcontractorResponse, status_code=status.HTTP_201_CREATED,
             summary="Create subcontractor",
             description="Add a subcontractor. Name is required.")
async def create_subcontractor(
    request: SubcontractorCreateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    subcontractor = Subcontractor(company_id=company_filter.company_id, **request.model_dump(exclude_none=True))
    db.add(subcontractor)
    db.commit()
    db.refresh(subcontractor)
    return _response(subcontractor)


# PUBLIC_INTERFACE
@router.put("/{subcontractor_id}", response_model=SubcontractorResponse, summary="Update subcontractor")
async def update_subcontractor(
    subcontractor_id: UUID,
    request: SubcontractorUpdateRequest,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    subcontractor = company_filter.get(db, Subcontractor, subcontractor_id, "Subcontractor not found")
    apply_update(subcontractor, request.model_dump(exclude_unset=True), required=("name",))
    db.commit()
    db.refresh(subcontractor)
    return _response(subcontractor)


# PUBLIC_INTERFACE
@router.delete("/{subcontractor_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Delete subcontractor",
               description="Delete a subcontractor together with their logged project hours.")
async def delete_subcontractor(
    subcontractor_id: UUID,
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    subcontractor = company_filter.get(db, Subcontractor, subcontractor_id, "Subcontractor not found")
    db.delete(subcontractor)
    db.commit()
