from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List, Optional
from app.core.exceptions import AccessDeniedError
from app.database import get_db
from app.models.employee import Employee
from app.models.leave_request import LeaveStatus
from app.models.user import User
from app.routers.auth_deps import get_current_user, get_current_employee
from app.schemas.leave import LeaveRequestCreate, LeaveRequestResponse, LeaveBalanceResponse
from app.services import leave_service

router = APIRouter(
    prefix="/leave",
    tags=["leave"]
)


@router.post("/requests", response_model=LeaveRequestResponse, status_code=status.HTTP_201_CREATED)
def submit_leave_request(
    request: LeaveRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    employee: Employee = Depends(get_current_employee),
):
    return leave_service.submit(
        db,
        employee_id=employee.id,
        leave_type=request.leave_type,
        start_date=request.start_date,
        end_date=request.end_date,
        reason=request.reason,
        policy=leave_service.get_policy(db),
        actor_id=current_user.id,
    )


@router.get("/requests", response_model=List[LeaveRequestResponse])
def list_my_leave_requests(
    status: Optional[LeaveStatus] = None,
    db: Session = Depends(get_db),
    employee: Employee = Depends(get_current_employee),
):
    return leave_service.list_requests(
        db, employee_id=employee.id, status=status.value if status else None
    )


@router.post("/requests/{request_id}/cancel", response_model=LeaveRequestResponse)
def cancel_leave_request(
    request_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    leave = leave_service.get_request(db, request_id)
    if leave.employee_id != current_user.employee_id and not current_user.is_admin:
        raise AccessDeniedError("You can only cancel your own leave requests")
    return leave_service.cancel(db, request_id, actor_id=current_user.id)


@router.get("/balance", response_model=LeaveBalanceResponse)
def get_my_leave_balance(employee: Employee = Depends(get_current_employee)):
    return LeaveBalanceResponse(
        employee_id=employee.id,
        vacation_days_remaining=employee.vacation_days_remaining,
        vacation_days_entitled=employee.vacation_days_entitled,
        sick_days_remaining=employee.sick_days_remaining,
        sick_days_entitled=employee.sick_days_entitled,
    )
