"""
Authentication API routes.

Provides endpoints for whitelist-gated registration, company-scoped login,
token refresh and employee logon tracking.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ...database.connection import get_db
from ...database.tenancy import apply_system_scope
from ...database.models import Company, Employee, User, UserRole, WhitelistEntry
from ...schemas.auth import (
    UserRegistrationRequest, UserLoginRequest,
    AuthResponse, RegistrationResponse, TokenRefreshResponse,
    LastLogonResponse, StandardResponse, UserInfo
)
from ...auth.dependencies import get_current_user, get_company_db, CurrentUser
from ...auth.jwt_handler import JWTHandler, PasswordHandler
from ...services import IntegrationError
from ...services.email import send_registration_welcome

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _user_token(user: User) -> str:
    return JWTHandler.create_user_token(user.id, user.company_id, user.email, user.role.value)


# PUBLIC_INTERFACE
@router.post("/register", response_model=RegistrationResponse, status_code=status.HTTP_201_CREATED,
             summary="Register user",
             description="Register a user under a company ID. The first user creates the company; "
                         "later users must have their email whitelisted by the company.")
def register_user(
    request: UserRegistrationRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new user.

    When the company has no whitelist yet, the company is created, the user
    becomes its admin and is added to the whitelist as registered. Otherwise
    the email must already be whitelisted.
    """
    apply_system_scope(db)
    email = request.email.lower()

    existing_user = db.query(User).filter(
        User.company_id == request.company_id,
        User.email == email
    ).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User with this email already exists in this company"
        )

    whitelist_count = db.query(WhitelistEntry).filter(
        WhitelistEntry.company_id == request.company_id
    ).count()
    company_created = whitelist_count == 0

    if company_created:
        company = db.query(Company).filter(Company.company_id == request.company_id).first()
        if not company:
            company = Company(company_id=request.company_id, company_name=request.company_name)
            db.add(company)
            db.flush()
        entry = WhitelistEntry(company_id=company.company_id, email=email)
        db.add(entry)
        role = UserRole.ADMIN
    else:
        entry = db.query(WhitelistEntry).filter(
            WhitelistEntry.company_id == request.company_id,
            WhitelistEntry.email == email
        ).first()
        if not entry:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Email is not authorized for this company. Contact your administrator."
            )
        company = db.query(Company).filter(Company.company_id == request.company_id).first()
        role = UserRole.USER

    user = User(
        company_id=request.company_id,
        email=email,
        password_hash=PasswordHandler.hash_password(request.password),
        full_name=request.full_name,
        role=role
    )
    db.add(user)
    db.flush()

    entry.registered = True
    entry.registered_at = datetime.now(timezone.utc)
    if company_created:
        entry.added_by = user.id
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s in company %s", user.id, user.company_id)

    if company_created:
        try:
            send_registration_welcome(email, company.company_id, company.company_name, request.full_name)
        except IntegrationError as e:
            logger.warning("Welcome email for company %s failed: %s", company.company_id, e)

    return RegistrationResponse(
        access_token=_user_token(user),
        user=UserInfo.model_validate(user),
        company_created=company_created
    )


# PUBLIC_INTERFACE
@router.post("/login", response_model=AuthResponse,
             summary="User login",
             description="Authenticate with company ID, email and password.")
async def login_user(
    request: UserLoginRequest,
    db: Session = Depends(get_db)
):
    """
    Authenticate user and return an access token.

    Valid credentials for a user of a different company are refused with 403.
    """
    apply_system_scope(db)
    email = request.email.lower()
    user = db.query(User).filter(
        User.company_id == request.company_id.strip(),
        User.email == email,
        User.active == True
    ).first()

    if not user:
        elsewhere = db.query(User).filter(User.email == email, User.active == True).all()
        if any(PasswordHandler.verify_password(request.password, u.password_hash) for u in elsewhere):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid company ID for this user"
            )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    if not PasswordHandler.verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    user.last_login = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    return AuthResponse(
        access_token=_user_token(user),
        user=UserInfo.model_validate(user)
    )


# PUBLIC_INTERFACE
@router.post("/logout", response_model=StandardResponse,
             summary="User logout",
             description="Logout current user. Tokens are stateless; the client discards it.")
async def logout_user(
    current_user: CurrentUser = Depends(get_current_user)
):
    return StandardResponse(message="Logged out successfully")


# PUBLIC_INTERFACE
@router.post("/refresh", response_model=TokenRefreshResponse,
             summary="Refresh access token",
             description="Issue a new access token for the authenticated user.")
async def refresh_token(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
):
    user = db.query(User).filter(User.id == current_user.user_id, User.active == True).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive"
        )
    return TokenRefreshResponse(access_token=_user_token(user))


# PUBLIC_INTERFACE
@router.get("/me", response_model=UserInfo,
            summary="Current user",
            description="Get the authenticated user's profile.")
async def get_me(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
):
    user = db.query(User).filter(User.id == current_user.user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserInfo.model_validate(user)


# PUBLIC_INTERFACE
@router.post("/update-last-logon", response_model=LastLogonResponse,
             summary="Record employee logon",
             description="Stamp last_logon on the employee record matching the caller's email.")
async def update_last_logon(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_company_db)
):
    employee = db.query(Employee).filter(
        Employee.company_id == current_user.company_id,
        func.lower(Employee.email_address) == (current_user.email or "").lower()
    ).first()
    if not employee:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Employee not found"
        )
    employee.last_logon = datetime.now(timezone.utc)
    db.commit()
    return LastLogonResponse(employee_id=employee.id, last_logon=employee.last_logon)
