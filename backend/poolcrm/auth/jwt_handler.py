"""
JWT token handling for authentication and authorization.

Provides utilities for creating, validating, and decoding JWT tokens
with company and user information, plus password hashing.
"""
import os
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from passlib.context import CryptContext
from uuid import UUID

# Configuration
SECRET_KEY = os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))  # 24 hours default
OAUTH_STATE_EXPIRE_MINUTES = 10
MIN_PASSWORD_LENGTH = 8

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class JWTHandler:
    """JWT token handler for authentication."""

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token.

        Args:
            data: Token payload data
            expires_delta: Token expiration delta

        Returns:
            str: Encoded JWT token
        """
        to_encode = data.copy()
        expire = datetime.now(timezone.utc) + (
            expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
        )
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Optional[Dict[str, Any]]:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token to verify

        Returns:
            Optional[Dict[str, Any]]: Token payload if valid, None if invalid
        """
        try:
            return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except JWTError:
            return None

    @staticmethod
    def create_user_token(user_id: UUID, company_id: str, email: str, role: str) -> str:
        """
        Create an access token for a user.

        Args:
            user_id: User ID
            company_id: Company the user belongs to
            email: User email
            role: User role

        Returns:
            str: JWT token
        """
        data = {
            "sub": str(user_id),
            "company_id": company_id,
            "email": email,
            "role": role,
            "type": "access",
        }
        return JWTHandler.create_access_token(data)

    @staticmethod
    def create_oauth_state(user_id: UUID) -> str:
        """Signed, short-lived state parameter for the calendar OAuth flow."""
        data = {
            "sub": str(user_id),
            "type": "oauth_state",
            "nonce": secrets.token_urlsafe(8),
        }
        return JWTHandler.create_access_token(data, timedelta(minutes=OAUTH_STATE_EXPIRE_MINUTES))

    @staticmethod
    def verify_oauth_state(state: str) -> Optional[UUID]:
        """
        Verify an OAuth state parameter.

        Args:
            state: State value echoed back by the provider

        Returns:
            Optional[UUID]: User ID if valid, None if invalid or expired
        """
        payload = JWTHandler.verify_token(state)
        if not payload or payload.get("type") != "oauth_state":
            return None
        try:
            return UUID(payload.get("sub"))
        except (TypeError, ValueError):
            return None


class PasswordHandler:
    """Password handling utilities."""

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def validate_password_strength(password: str) -> bool:
        """
        Validate password strength.

        Args:
            password: Password to validate

        Returns:
            bool: True if password meets requirements
        """
        return len(password) >= MIN_PASSWORD_LENGTH

