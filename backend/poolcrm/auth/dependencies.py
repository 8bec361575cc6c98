"""
Authentication dependencies for FastAPI endpoints.

Provides dependency functions for extracting user information, company context,
and enforcing authentication/authorization requirements.
"""
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from uuid import UUID

from ..database.connection import get_db
from ..database.models import Company
from ..database.tenancy import apply_company_scope
from .jwt_handler import JWTHandler

security = HTTPBearer(auto_error=False)


class CurrentUser:
    """Current user information from JWT token."""

    def __init__(self, user_id: UUID, company_id: str, email: str, role: str):
        self.user_id = user_id
        self.company_id = company_id
        self.email = email
        self.role = role
        self.is_admin = role == "admin"


# PUBLIC_INTERFACE
async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    Get current authenticated user from JWT token.

    Args:
        credentials: HTTP authorization credentials

    Returns:
        CurrentUser: Current user information

    Raises:
        HTTPException: If token is missing or invalid
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception

    payload = JWTHandler.verify_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise credentials_exception

    user_id = payload.get("sub")
    company_id = payload.get("company_id")
    if user_id is None or company_id is None:
        raise credentials_exception

    try:
        parsed_id = UUID(user_id)
    except ValueError:
        raise credentials_exception

    return CurrentUser(
        user_id=parsed_id,
        company_id=company_id,
        email=payload.get("email"),
        role=payload.get("role"),
    )


# PUBLIC_INTERFACE
async def get_current_admin_user(
    current_user: CurrentUser = Depends(get_current_user)
) -> CurrentUser:
    """
    Get current user and ensure they have admin role.

    Raises:
        HTTPException: If user is not admin
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions"
        )
    return current_user


# PUBLIC_INTERFACE
async def get_company_db(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Session:
    """Request session scoped to the caller's company for row-level security."""
    apply_company_scope(db, current_user.company_id)
    return db


# PUBLIC_INTERFACE
async def get_company_context(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
) -> Company:
    """
    Load the caller's company.

    Args:
        current_user: Current authenticated user
        db: Company-scoped database session

    Returns:
        Company: Company object

    Raises:
        HTTPException: If the company no longer exists
    """
    company = db.query(Company).filter(Company.company_id == current_user.company_id).first()
    if not company:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Company not found"
        )
    return company


class CompanyFilter:
    """Helper class for applying company-based filtering to database queries."""

    def __init__(self, company_id: str):
        self.company_id = company_id

    def filter_query(self, query, model_class):
        """Apply company filter to a SQLAlchemy query."""
        return query.filter(model_class.company_id == self.company_id)

    def get(self, db: Session, model_class, record_id: UUID, detail: str):
        """Fetch a company-owned record or raise 404."""
        record = self.filter_query(db.query(model_class), model_class).filter(
            model_class.id == record_id
        ).first()
        if not record:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)
        return record


# PUBLIC_INTERFACE
async def get_company_filter(
    company: Company = Depends(get_company_context)
) -> CompanyFilter:
    """
    Get company filter for database queries.

    Args:
        company: Current company context

    Returns:
        CompanyFilter: Company filter utility
    """
    return CompanyFilter(company.company_id)
