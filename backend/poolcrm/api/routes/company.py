"""
Company profile and registration whitelist API routes.
"""
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import UUID

from ...database.connection import get_db
from ...database.models import Company, WhitelistEntry
from ...schemas.company import (
    CompanyResponse, CompanyUpdateRequest,
    WhitelistAddRequest, WhitelistEntryResponse, WhitelistListResponse
)
from ...auth.dependencies import (
    get_current_admin_user, get_company_context, get_company_filter,
    CurrentUser, CompanyFilter
)
from ..updates import apply_update

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Company"])


# PUBLIC_INTERFACE
@router.get("/company", response_model=CompanyResponse,
            summary="Get company profile",
            description="Get the profile of the authenticated user's company.")
async def get_company(
    company: Company = Depends(get_company_context)
):
    return CompanyResponse.model_validate(company)


# PUBLIC_INTERFACE
@router.put("/company", response_model=CompanyResponse,
            summary="Update company profile",
            description="Update company name, address and contact details. Admin only.")
async def update_company(
    request: CompanyUpdateRequest,
    current_user: CurrentUser = Depends(get_current_admin_user),
    company: Company = Depends(get_company_context),
    db: Session = Depends(get_db)
):
    apply_update(company, request.model_dump(exclude_unset=True), required=("country",))
    db.commit()
    db.refresh(company)
    return CompanyResponse.model_validate(company)


# PUBLIC_INTERFACE
@router.get("/whitelist", response_model=WhitelistListResponse,
            summary="List whitelist",
            description="List email addresses allowed to register under the company.")
async def list_whitelist(
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    entries = company_filter.filter_query(db.query(WhitelistEntry), WhitelistEntry).order_by(
        WhitelistEntry.created_at.desc()
    ).all()
    return WhitelistListResponse(
        entries=[WhitelistEntryResponse.model_validate(e) for e in entries],
        total=len(entries)
    )


# PUBLIC_INTERFACE
@router.post("/whitelist", response_model=WhitelistEntryResponse, status_code=status.HTTP_201_CREATED,
             summary="Whitelist email",
             description="Allow an email address to register under the company. Admin only.")
async def add_whitelist_entry(
    request: WhitelistAddRequest,
    current_user: CurrentUser = Depends(get_current_admin_user),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    existing = company_filter.filter_query(db.query(WhitelistEntry), WhitelistEntry).filter(
        WhitelistEntry.email == request.email
    ).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already whitelisted"
        )

    entry = WhitelistEntry(
        company_id=company_filter.company_id,
        email=request.email,
        added_by=current_user.user_id
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("Whitelisted email for company %s", company_filter.company_id)
    return WhitelistEntryResponse.model_validate(entry)


# PUBLIC_INTERFACE
@router.delete("/whitelist/{entry_id}", status_code=status.HTTP_204_NO_CONTENT,
               summary="Remove whitelist entry",
               description="Remove an email from the company whitelist. Admin only.")
async def remove_whitelist_entry(
    entry_id: UUID,
    current_user: CurrentUser = Depends(get_current_admin_user),
    company_filter: CompanyFilter = Depends(get_company_filter),
    db: Session = Depends(get_db)
):
    entry = company_filter.get(db, WhitelistEntry, entry_id, "Whitelist entry not found")
    db.delete(entry)
    db.commit()
