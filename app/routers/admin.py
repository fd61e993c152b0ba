import logging
from fastapi import APIRouter, Depends
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from app.core.exceptions import NotFoundError
from app.database import get_db
from app.models.user import User
from app.routers.auth_deps import require_admin
from app.schemas.company import CompanySettingsResponse, CompanySettingsUpdate
from app.services.audit import AuditService
from app.services.leave_service import get_company_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/settings", response_model=CompanySettingsResponse)
def read_company_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    company = get_company_settings(db)
    if company is None:
        raise NotFoundError("Company settings have not been initialized")
    return company


@router.patch("/settings", response_model=CompanySettingsResponse)
def update_company_settings(
    changes: CompanySettingsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    company = get_company_settings(db)
    if company is None:
        raise NotFoundError("Company settings have not been initialized")

    updates = changes.model_dump(exclude_unset=True)
    for field, value in updates.items():
        setattr(company, field, value)

    AuditService.log(
        db,
        action="update_company_settings",
        entity_type="company_settings",
        entity_id=company.id,
        user_id=current_user.id,
        details=updates,
    )
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(company)
    logger.info(f"Company settings updated by {current_user.email}: {sorted(updates)}")
    return company
