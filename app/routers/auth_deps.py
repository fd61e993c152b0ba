"""
RBAC Dependencies.
Resolve the caller from the bearer token and enforce role-based access.
"""
import logging
from typing import Callable, List, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.core.exceptions import AccessDeniedError, AuthenticationError, ValidationError
from app.database import get_db
from app.models.employee import Employee
from app.models.user import User, UserRole
from app.schemas.auth import TokenData
from app.services import auth as auth_service

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


def get_current_user(token: Optional[str] = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """
    Extracts and validates the current user from the JWT token.
    """
    if not token:
        raise AuthenticationError("Not authenticated")

    payload = auth_service.decode_access_token(token)

    if payload is None:
        logger.warning("Authentication failed: Invalid token")
        raise AuthenticationError("Could not validate credentials")

    if payload.get("error") == "TOKEN_EXPIRED":
        logger.info("Authentication failed: Token expired")
        raise AuthenticationError("TOKEN_EXPIRED")

    if payload.get("type") != "access":
        logger.warning("Authentication failed: Invalid token type")
        raise AuthenticationError("Invalid token type")

    token_data = TokenData(email=payload.get("sub"), role=payload.get("role"))
    if token_data.email is None:
        logger.warning("Authentication failed: Missing subject (email) in token")
        raise AuthenticationError("Missing subject in token")

    user = db.query(User).filter(User.email == token_data.email).first()
    if user is None:
        logger.warning(f"Authentication failed: User {token_data.email} not found in database")
        raise AuthenticationError("User not found")
    if not user.is_active:
        logger.warning(f"Authentication failed: User {token_data.email} is inactive")
        raise AccessDeniedError("User is inactive")
    return user


def require_role(allowed_roles: List[UserRole]) -> Callable:
    """
    Dependency factory that checks the stored profile role (never the token claim).

    Usage:
        @router.post("/import-config")
        def import_config(user: User = Depends(require_role([UserRole.ADMIN]))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in allowed_roles:
            logger.warning(f"Access denied for {current_user.email}: role {current_user.role.value}")
            raise AccessDeniedError(f"Access denied. Required roles: {[r.value for r in allowed_roles]}")
        return current_user
    return role_checker


require_admin = require_role([UserRole.ADMIN])
require_reviewer = require_role([UserRole.ADMIN, UserRole.MANAGER])


def get_current_employee(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Employee:
    """The employee record linked to the caller's profile."""
    employee = db.get(Employee, current_user.employee_id) if current_user.employee_id else None
    if employee is None:
        raise ValidationError("No employee record is linked to this account")
    return employee
