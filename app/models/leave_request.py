from sqlalchemy import Column, Integer, String, Date, Float, ForeignKey, DateTime, Boolean, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base
import enum

class LeaveType(str, enum.Enum):
    VACATION = "vacation"
    SICK = "sick"
    PERSONAL = "personal"
    BEREAVEMENT = "bereavement"
    PARENTAL = "parental"
    UNPAID = "unpaid"

class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    CANCELLED = "cancelled"
    AUTO_APPROVED = "auto_approved"

# Static per-type policy. Only sick and personal leave may be auto-approved.
LEAVE_TYPE_CONFIG = {
    LeaveType.VACATION: {"label": "Vacation", "auto_approvable": False},
    LeaveType.SICK: {"label": "Sick Day", "auto_approvable": True},
    LeaveType.PERSONAL: {"label": "Personal", "auto_approvable": True},
    LeaveType.BEREAVEMENT: {"label": "Bereavement", "auto_approvable": False},
    LeaveType.PARENTAL: {"label": "Parental", "auto_approvable": False},
    LeaveType.UNPAID: {"label": "Unpaid", "auto_approvable": False},
}

CANCELLABLE_STATUSES = (LeaveStatus.PENDING, LeaveStatus.APPROVED, LeaveStatus.AUTO_APPROVED)

class LeaveRequest(Base):
    __tablename__ = "leave_requests"

    id = Column(Integer, primary_key=True, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    leave_type = Column(String, nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    days_count = Column(Float, nullable=False)  # business days at submission time
    reason = Column(Text, default="")
    status = Column(String, default=LeaveStatus.PENDING.value, nullable=False, index=True)  # enum value stored as string for SQLite
    is_auto_approved = Column(Boolean, default=False, nullable=False)

    reviewed_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    review_note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    employee = relationship("Employee", back_populates="leave_requests")
    reviewer = relationship("User", foreign_keys=[reviewed_by])
