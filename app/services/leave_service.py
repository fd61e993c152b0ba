"""
Leave Service Layer

Owns the leave request lifecycle: submission with auto-approval, manual
review (approve / deny) and cancellation, plus the balance ledger that keeps
employee day counters consistent with those transitions.

Architecture:
- Router -> Service (this module) -> Models
- Every public operation is one transaction: status change, balance effect
  and audit entry commit together or not at all.
- Status changes are conditional updates on the expected pre-state, so two
  racing reviewers cannot both win.
"""

from contextlib import contextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence, Union
import logging

from pydantic import BaseModel
from sqlalchemy.orm import Session, joinedload

from app.core.config import settings
from app.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from app.models.company import CompanySettings
from app.models.employee import Employee
from app.models.leave_balance import BalanceEntryType, LeaveBalanceEntry
from app.models.leave_request import (
    CANCELLABLE_STATUSES,
    LEAVE_TYPE_CONFIG,
    LeaveRequest,
    LeaveStatus,
    LeaveType,
)
from app.services.audit import AuditService

logger = logging.getLogger(__name__)

DEFAULT_SICK_THRESHOLD = 3
DEFAULT_PERSONAL_THRESHOLD = 1

# Leave types that draw down a tracked balance; everything else is untracked.
BALANCE_BY_LEAVE_TYPE: Dict[LeaveType, str] = {
    LeaveType.VACATION: "vacation",
    LeaveType.SICK: "sick",
}

_REMAINING_COLUMNS = {
    "vacation": Employee.vacation_days_remaining,
    "sick": Employee.sick_days_remaining,
}


def business_days(start_date: date, end_date: date) -> int:
    """
    Count Monday-Friday dates in the inclusive range, never less than 1.
    Holidays are not consulted.
    """
    count = 0
    current = start_date
    while current <= end_date:
        if current.weekday() < 5:
            count += 1
        current += timedelta(days=1)
    return max(count, 1)


class AutoApprovalPolicy(BaseModel):
    """Company auto-approval knobs, decoupled from the settings row for testability."""
    enabled: bool = False
    sick_threshold: int = DEFAULT_SICK_THRESHOLD
    personal_threshold: int = DEFAULT_PERSONAL_THRESHOLD

    @classmethod
    def from_settings(cls, company: Optional[CompanySettings]) -> "AutoApprovalPolicy":
        if company is None:
            return cls()
        return cls(
            enabled=bool(company.auto_approve_enabled),
            sick_threshold=(
                company.auto_approve_sick_threshold
                if company.auto_approve_sick_threshold is not None
                else DEFAULT_SICK_THRESHOLD
            ),
            personal_threshold=(
                company.auto_approve_personal_threshold
                if company.auto_approve_personal_threshold is not None
                else DEFAULT_PERSONAL_THRESHOLD
            ),
        )

    def threshold_for(self, leave_type: LeaveType) -> int:
        if leave_type == LeaveType.SICK:
            return self.sick_threshold
        if leave_type == LeaveType.PERSONAL:
            return self.personal_threshold
        return 0

    def allows(self, leave_type: Union[LeaveType, str], days: int) -> bool:
        leave_type = LeaveType(leave_type)
        if not self.enabled or not LEAVE_TYPE_CONFIG[leave_type]["auto_approvable"]:
            return False
        return days <= self.threshold_for(leave_type)


@contextmanager
def _transaction(db: Session):
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


# ---------------------------------------------------------------------------
# Balance ledger
# ---------------------------------------------------------------------------

def balance_for(leave_type: Union[LeaveType, str]) -> Optional[str]:
    return BALANCE_BY_LEAVE_TYPE.get(LeaveType(leave_type))


def _remaining_days(db: Session, employee_id: int, balance: str) -> float:
    column = _REMAINING_COLUMNS[balance]
    return db.query(column).filter(Employee.id == employee_id).scalar() or 0.0


def _has_sufficient_balance(db: Session, employee_id: int, leave_type: str, days: int) -> bool:
    if settings.leave.allow_negative_balance:
        return True
    balance = balance_for(leave_type)
    if balance is None:
        return True
    return _remaining_days(db, employee_id, balance) >= days


def _find_entry(db: Session, leave_request_id: int, entry_type: BalanceEntryType) -> Optional[LeaveBalanceEntry]:
    return db.query(LeaveBalanceEntry).filter(
        LeaveBalanceEntry.leave_request_id == leave_request_id,
        LeaveBalanceEntry.entry_type == entry_type.value,
    ).first()


def _apply_entry(
    db: Session,
    leave: LeaveRequest,
    entry_type: BalanceEntryType,
    days: float,
) -> Optional[LeaveBalanceEntry]:
    balance = balance_for(leave.leave_type)
    if balance is None:
        return None
    if _find_entry(db, leave.id, entry_type) is not None:
        logger.info(f"Balance {entry_type.value} for leave request {leave.id} already applied")
        return None

    entry = LeaveBalanceEntry(
        leave_request_id=leave.id,
        employee_id=leave.employee_id,
        balance=balance,
        entry_type=entry_type.value,
        days=days,
    )
    db.add(entry)
    column = _REMAINING_COLUMNS[balance]
    db.query(Employee).filter(Employee.id == leave.employee_id).update(
        {column: column + days}, synchronize_session=False
    )
    db.flush()
    return entry


def apply_deduction(db: Session, leave: LeaveRequest, days: float) -> Optional[LeaveBalanceEntry]:
    """Debit `days` from the matching balance once per request. No-op for untracked leave types."""
    return _apply_entry(db, leave, BalanceEntryType.DEDUCTION, -days)


def apply_restoration(db: Session, leave: LeaveRequest) -> Optional[LeaveBalanceEntry]:
    """Reverse a previously applied deduction, once."""
    deduction = _find_entry(db, leave.id, BalanceEntryType.DEDUCTION)
    if deduction is None:
        return None
    return _apply_entry(db, leave, BalanceEntryType.RESTORATION, -deduction.days)


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------

def _transition(
    db: Session,
    request_id: int,
    allowed: Sequence[LeaveStatus],
    values: dict,
) -> LeaveRequest:
    allowed_values = [s.value for s in allowed]
    updated = db.query(LeaveRequest).filter(
        LeaveRequest.id == request_id,
        LeaveRequest.status.in_(allowed_values),
    ).update(values, synchronize_session=False)

    if updated == 0:
        current = db.query(LeaveRequest.status).filter(LeaveRequest.id == request_id).scalar()
        if current is None:
            raise NotFoundError("Leave request not found")
        raise InvalidTransitionError(
            f"Leave request is {current}; expected one of: {', '.join(allowed_values)}",
            details={"status": current},
        )

    leave = db.get(LeaveRequest, request_id)
    db.refresh(leave)
    return leave


def submit(
    db: Session,
    employee_id: int,
    leave_type: Union[LeaveType, str],
    start_date: date,
    end_date: date,
    reason: str = "",
    policy: Optional[AutoApprovalPolicy] = None,
    actor_id: Optional[int] = None,
) -> LeaveRequest:
    """
    Create a leave request, auto-approving it when the policy allows.

    Auto-approved requests are stamped as reviewed now and debit the
    matching balance in the same transaction.
    """
    leave_type = LeaveType(leave_type)
    if end_date < start_date:
        raise ValidationError("End date must be on or after start date")

    if db.get(Employee, employee_id) is None:
        raise NotFoundError("Employee not found")

    policy = policy or AutoApprovalPolicy()
    days = business_days(start_date, end_date)

    with _transaction(db):
        auto_approve = policy.allows(leave_type, days)
        if auto_approve and not _has_sufficient_balance(db, employee_id, leave_type, days):
            logger.info(f"Auto-approval skipped for employee {employee_id}: insufficient {leave_type.value} balance")
            auto_approve = False

        status = LeaveStatus.AUTO_APPROVED if auto_approve else LeaveStatus.PENDING
        leave = LeaveRequest(
            employee_id=employee_id,
            leave_type=leave_type.value,
            start_date=start_date,
            end_date=end_date,
            days_count=days,
            reason=reason or "",
            status=status.value,
            is_auto_approved=auto_approve,
            reviewed_at=datetime.now(timezone.utc) if auto_approve else None,
        )
        db.add(leave)
        db.flush()

        if auto_approve:
            apply_deduction(db, leave, days)

        AuditService.log(
            db,
            action="auto_approve_leave" if auto_approve else "submit_leave",
            entity_type="leave_request",
            entity_id=leave.id,
            user_id=actor_id,
            details={"employee_id": employee_id, "leave_type": leave_type.value, "days": days},
        )

    db.refresh(leave)
    logger.info(f"Leave request {leave.id} submitted for employee {employee_id}: {leave.status} ({days} day(s))")
    return leave


def approve(db: Session, request_id: int, reviewer_id: int, note: Optional[str] = None) -> LeaveRequest:
    """Approve a pending request and debit the recomputed business days once."""
    with _transaction(db):
        leave = _transition(db, request_id, (LeaveStatus.PENDING,), {
            LeaveRequest.status: LeaveStatus.APPROVED.value,
            LeaveRequest.reviewed_by: reviewer_id,
            LeaveRequest.reviewed_at: datetime.now(timezone.utc),
            LeaveRequest.review_note: note or None,
        })
        days = business_days(leave.start_date, leave.end_date)
        if not _has_sufficient_balance(db, leave.employee_id, leave.leave_type, days):
            raise ValidationError(
                f"Insufficient {leave.leave_type} balance to approve {days} day(s)",
                details={"leave_request_id": request_id},
            )
        apply_deduction(db, leave, days)

        AuditService.log(
            db,
            action="approve_leave",
            entity_type="leave_request",
            entity_id=leave.id,
            user_id=reviewer_id,
            details={"employee_id": leave.employee_id, "days": days, "note": note},
        )

    logger.info(f"Leave request {request_id} approved by user {reviewer_id}")
    return leave


def deny(db: Session, request_id: int, reviewer_id: int, note: Optional[str] = None) -> LeaveRequest:
    with _transaction(db):
        leave = _transition(db, request_id, (LeaveStatus.PENDING,), {
            LeaveRequest.status: LeaveStatus.DENIED.value,
            LeaveRequest.reviewed_by: reviewer_id,
            LeaveRequest.reviewed_at: datetime.now(timezone.utc),
            LeaveRequest.review_note: note or None,
        })
        AuditService.log(
            db,
            action="deny_leave",
            entity_type="leave_request",
            entity_id=leave.id,
            user_id=reviewer_id,
            details={"employee_id": leave.employee_id, "note": note},
        )

    logger.info(f"Leave request {request_id} denied by user {reviewer_id}")
    return leave


def cancel(db: Session, request_id: int, actor_id: Optional[int] = None) -> LeaveRequest:
    """
    Cancel a pending or approved request. Deducted days stay deducted unless
    `settings.leave.restore_balance_on_cancel` is on.
    """
    with _transaction(db):
        leave = _transition(db, request_id, CANCELLABLE_STATUSES, {
            LeaveRequest.status: LeaveStatus.CANCELLED.value,
        })
        restored = None
        if settings.leave.restore_balance_on_cancel:
            restored = apply_restoration(db, leave)

        AuditService.log(
            db,
            action="cancel_leave",
            entity_type="leave_request",
            entity_id=leave.id,
            user_id=actor_id,
            details={"employee_id": leave.employee_id, "restored_days": restored.days if restored else 0},
        )

    logger.info(f"Leave request {request_id} cancelled")
    return leave


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def get_request(db: Session, request_id: int) -> LeaveRequest:
    leave = db.get(LeaveRequest, request_id)
    if leave is None:
        raise NotFoundError("Leave request not found")
    return leave


def list_requests(
    db: Session,
    employee_id: Optional[int] = None,
    status: Optional[str] = None,
) -> List[LeaveRequest]:
    query = db.query(LeaveRequest)
    if employee_id is not None:
        query = query.filter(LeaveRequest.employee_id == employee_id)
    if status:
        query = query.filter(LeaveRequest.status == status)
    return query.order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).all()


def list_pending(db: Session) -> List[LeaveRequest]:
    return db.query(LeaveRequest).filter(
        LeaveRequest.status == LeaveStatus.PENDING.value
    ).order_by(LeaveRequest.created_at.asc(), LeaveRequest.id.asc()).all()


def list_reviewed(db: Session, limit: int = 30) -> List[LeaveRequest]:
    """Most recently reviewed requests (manual approvals and denials), newest first."""
    return db.query(LeaveRequest).options(joinedload(LeaveRequest.employee)).filter(
        LeaveRequest.status.in_([LeaveStatus.APPROVED.value, LeaveStatus.DENIED.value])
    ).order_by(LeaveRequest.reviewed_at.desc(), LeaveRequest.id.desc()).limit(limit).all()


def get_company_settings(db: Session) -> Optional[CompanySettings]:
    return db.query(CompanySettings).order_by(CompanySettings.id).first()


def get_policy(db: Session) -> AutoApprovalPolicy:
    return AutoApprovalPolicy.from_settings(get_company_settings(db))
