from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import date, datetime
from typing import List, Literal, Optional
from app.models.user import UserRole
from app.schemas.leave import LeaveRequestResponse

EmploymentType = Literal["full_time", "part_time", "contract"]


class EmployeeResponse(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: Optional[str] = None
    job_title: Optional[str] = None
    employment_type: Optional[str] = None
    start_date: Optional[date] = None
    termination_date: Optional[date] = None
    site_id: Optional[int] = None
    department_id: Optional[int] = None
    job_role_id: Optional[int] = None
    vacation_days_remaining: float
    vacation_days_entitled: float
    sick_days_remaining: float
    sick_days_entitled: float
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class EmployeeDetailResponse(EmployeeResponse):
    """Employee record plus the most recent leave requests, newest first."""
    leave_requests: List[LeaveRequestResponse] = []


class EmployeeCreate(BaseModel):
    """
    New directory entry. Entitlements default to the company settings and
    the remaining balances start equal to them. A password also creates the
    linked login account.
    """
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(default="", max_length=100)
    email: EmailStr
    phone: str = ""
    job_title: str = ""
    employment_type: EmploymentType = "full_time"
    start_date: Optional[date] = None
    site_id: Optional[int] = None
    department_id: Optional[int] = None
    job_role_id: Optional[int] = None
    vacation_days_entitled: Optional[float] = Field(default=None, ge=0)
    sick_days_entitled: Optional[float] = Field(default=None, ge=0)

    password: Optional[str] = Field(default=None, min_length=8)
    role: UserRole = UserRole.EMPLOYEE


class EmployeeUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    job_title: Optional[str] = None
    employment_type: Optional[EmploymentType] = None
    start_date: Optional[date] = None
    termination_date: Optional[date] = None
    site_id: Optional[int] = None
    department_id: Optional[int] = None
    job_role_id: Optional[int] = None
    vacation_days_entitled: Optional[float] = Field(default=None, ge=0)
    sick_days_entitled: Optional[float] = Field(default=None, ge=0)

    @field_validator("first_name", "last_name", "email", "vacation_days_entitled", "sick_days_entitled")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v
