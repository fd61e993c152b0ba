from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.user import User
from app.schemas.leave import LeaveRequestResponse, LeaveRequestWithEmployee, LeaveReviewRequest
from app.routers.auth_deps import require_reviewer
from app.services import leave_service

router = APIRouter(prefix="/leave", tags=["leave-manager"])


@router.get("/approvals", response_model=List[LeaveRequestResponse])
def list_pending_approvals(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reviewer),
):
    """Oldest pending requests first."""
    return leave_service.list_pending(db)


@router.post("/requests/{request_id}/approve", response_model=LeaveRequestResponse)
def approve_leave(
    request_id: int,
    review: Optional[LeaveReviewRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reviewer),
):
    note = review.note if review else None
    return leave_service.approve(db, request_id, reviewer_id=current_user.id, note=note)


@router.post("/requests/{request_id}/deny", response_model=LeaveRequestResponse)
def deny_leave(
    request_id: int,
    review: Optional[LeaveReviewRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reviewer),
):
    note = review.note if review else None
    return leave_service.deny(db, request_id, reviewer_id=current_user.id, note=note)


@router.get("/approvals/history", response_model=List[LeaveRequestWithEmployee])
def list_review_history(
    limit: int = Query(default=30, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reviewer),
):
    """Recently approved or denied requests, newest review first."""
    return leave_service.list_reviewed(db, limit=limit)
