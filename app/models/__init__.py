# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, employee, company, site, department, job_role, system_role,
    pto, holiday, calendar_event, training, integration,
    leave_request, leave_balance, audit_log
)

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .employee import Employee
from .company import CompanySettings
from .leave_request import LeaveRequest, LeaveStatus, LeaveType

__all__ = [
    "User",
    "UserRole",
    "Employee",
    "CompanySettings",
    "LeaveRequest",
    "LeaveStatus",
    "LeaveType",
]
