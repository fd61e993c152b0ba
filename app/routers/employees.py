from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.database import get_db
from app.models.user import User
from app.routers.auth_deps import require_admin, require_reviewer
from app.schemas.employee import EmployeeCreate, EmployeeDetailResponse, EmployeeResponse, EmployeeUpdate
from app.schemas.leave import LeaveRequestResponse
from app.services import employee_service

router = APIRouter(prefix="/employees", tags=["employees"])


@router.get("", response_model=List[EmployeeResponse])
def list_employees(
    include_terminated: bool = False,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reviewer),
):
    """Active employees by last name; terminated ones only on request."""
    return employee_service.list_employees(db, include_terminated=include_terminated, search=search)


@router.get("/{employee_id}", response_model=EmployeeDetailResponse)
def get_employee(
    employee_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_reviewer),
):
    employee = employee_service.get_employee(db, employee_id)
    recent = employee_service.recent_leave_requests(db, employee.id)
    return EmployeeDetailResponse(
        **EmployeeResponse.model_validate(employee).model_dump(),
        leave_requests=[LeaveRequestResponse.model_validate(r) for r in recent],
    )


@router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
def create_employee(
    data: EmployeeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return employee_service.create_employee(db, data, actor_id=current_user.id)


@router.patch("/{employee_id}", response_model=EmployeeResponse)
def update_employee(
    employee_id: int,
    changes: EmployeeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    return employee_service.update_employee(
        db, employee_id, changes.model_dump(exclude_unset=True), actor_id=current_user.id
    )
