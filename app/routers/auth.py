from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session
from datetime import datetime, timezone
import logging
from app.core.exceptions import AccessDeniedError, AuthenticationError
from app.core.limiter import limiter, LOGIN_RATE_LIMIT
from app.database import get_db
from app.models.user import User
from app.routers.auth_deps import get_current_user
from app.services import auth as auth_service
from app.services.audit import AuditService
from app.schemas.auth import LoginRequest, Token, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["auth"]
)

@router.post("/login", response_model=Token)
@limiter.limit(LOGIN_RATE_LIMIT)
def login(request: Request, login_data: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == login_data.email).first()
    if not user or not auth_service.verify_password(login_data.password, user.hashed_password):
        AuditService.log(
            db,
            action="failed_login",
            entity_type="user",
            entity_id=None,
            user_id=None,
            details={"email": login_data.email, "reason": "invalid_credentials"}
        )
        db.commit()
        raise AuthenticationError("Incorrect email or password")

    if not user.is_active:
        raise AccessDeniedError("User is inactive")

    access_token = auth_service.create_access_token(data={
        "sub": user.email,
        "role": user.role.value,
        "user_id": user.id,
        "employee_id": user.employee_id,
    })

    user.last_login_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)
    logger.info(f"User {user.email} logged in")

    return Token(
        access_token=access_token,
        token_type="bearer",
        user=UserResponse.model_validate(user),
    )

@router.get("/me", response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user
