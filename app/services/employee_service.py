"""
Employee Directory Service

Listing, lookup and HR maintenance of employee records. Creating an employee
can also create the linked login account, which is what lets that person
submit leave. Every write is audited in the same transaction.
"""

from typing import Any, Dict, List, Optional
import logging

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.core.exceptions import NotFoundError, ValidationError
from app.models.employee import Employee
from app.models.leave_request import LeaveRequest
from app.models.user import User
from app.schemas.employee import EmployeeCreate
from app.services import auth as auth_service
from app.services.audit import AuditService
from app.services.leave_service import get_company_settings

logger = logging.getLogger(__name__)

FALLBACK_VACATION_DAYS = 15
FALLBACK_SICK_DAYS = 10


def list_employees(
    db: Session,
    include_terminated: bool = False,
    search: Optional[str] = None,
) -> List[Employee]:
    query = db.query(Employee)
    if not include_terminated:
        query = query.filter(Employee.termination_date.is_(None))
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(
            Employee.first_name.ilike(pattern),
            Employee.last_name.ilike(pattern),
            Employee.email.ilike(pattern),
        ))
    return query.order_by(Employee.last_name, Employee.first_name, Employee.id).all()


def get_employee(db: Session, employee_id: int) -> Employee:
    employee = db.get(Employee, employee_id)
    if employee is None:
        raise NotFoundError("Employee not found")
    return employee


def recent_leave_requests(db: Session, employee_id: int, limit: int = 20) -> List[LeaveRequest]:
    return db.query(LeaveRequest).filter(
        LeaveRequest.employee_id == employee_id
    ).order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc()).limit(limit).all()


def _ensure_email_free(db: Session, email: str, employee_id: Optional[int] = None) -> None:
    query = db.query(Employee.id).filter(Employee.email == email)
    if employee_id is not None:
        query = query.filter(Employee.id != employee_id)
    if query.first() is not None:
        raise ValidationError(f"An employee with email {email} already exists")


def create_employee(db: Session, data: EmployeeCreate, actor_id: Optional[int] = None) -> Employee:
    _ensure_email_free(db, data.email)
    if data.password and db.query(User.id).filter(User.email == data.email).first() is not None:
        raise ValidationError(f"A user account with email {data.email} already exists")

    company = get_company_settings(db)
    vacation = data.vacation_days_entitled
    if vacation is None:
        vacation = company.default_vacation_days if company and company.default_vacation_days is not None else FALLBACK_VACATION_DAYS
    sick = data.sick_days_entitled
    if sick is None:
        sick = company.default_sick_days if company and company.default_sick_days is not None else FALLBACK_SICK_DAYS

    try:
        employee = Employee(
            **data.model_dump(exclude={"password", "role", "vacation_days_entitled", "sick_days_entitled"}),
            vacation_days_entitled=vacation,
            vacation_days_remaining=vacation,
            sick_days_entitled=sick,
            sick_days_remaining=sick,
        )
        db.add(employee)
        db.flush()

        user_id = None
        if data.password:
            user = User(
                email=data.email,
                hashed_password=auth_service.get_password_hash(data.password),
                full_name=employee.full_name,
                role=data.role,
                employee_id=employee.id,
                is_active=True,
            )
            db.add(user)
            db.flush()
            user_id = user.id

        AuditService.log(
            db,
            action="create_employee",
            entity_type="employee",
            entity_id=employee.id,
            user_id=actor_id,
            details={"email": data.email, "login_user_id": user_id},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(employee)
    logger.info(f"Employee {employee.id} created ({employee.email})")
    return employee


def update_employee(
    db: Session,
    employee_id: int,
    changes: Dict[str, Any],
    actor_id: Optional[int] = None,
) -> Employee:
    """
    Apply HR edits. Entitlement changes do not touch the remaining balances;
    those move only through the leave ledger.
    """
    employee = get_employee(db, employee_id)
    if changes.get("email") and changes["email"] != employee.email:
        _ensure_email_free(db, changes["email"], employee_id=employee.id)

    try:
        previous = {field: getattr(employee, field) for field in changes}
        for field, value in changes.items():
            setattr(employee, field, value)

        AuditService.log(
            db,
            action="update_employee",
            entity_type="employee",
            entity_id=employee.id,
            user_id=actor_id,
            details={"changes": changes, "previous": previous},
        )
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(employee)
    logger.info(f"Employee {employee.id} updated: {sorted(changes)}")
    return employee
