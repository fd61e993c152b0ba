from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import Optional
from app.models.leave_request import LeaveType

class LeaveRequestCreate(BaseModel):
    leave_type: LeaveType
    start_date: date
    end_date: date
    reason: str = Field(default="", max_length=2000)

class LeaveRequestResponse(BaseModel):
    id: int
    employee_id: int
    leave_type: str
    start_date: date
    end_date: date
    days_count: float
    reason: str
    status: str
    is_auto_approved: bool
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_note: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class LeaveReviewRequest(BaseModel):
    note: Optional[str] = Field(default=None, max_length=2000)

class LeaveBalanceResponse(BaseModel):
    employee_id: int
    vacation_days_remaining: float
    vacation_days_entitled: float
    sick_days_remaining: float
    sick_days_entitled: float

class EmployeeSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    job_title: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class LeaveRequestWithEmployee(LeaveRequestResponse):
    """Review history row, with the requesting employee embedded."""
    employee: Optional[EmployeeSummary] = None
