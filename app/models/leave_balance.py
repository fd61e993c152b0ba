from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.sql import func
from app.database import Base
import enum

class BalanceEntryType(str, enum.Enum):
    DEDUCTION = "deduction"
    RESTORATION = "restoration"

class LeaveBalanceEntry(Base):
    """
    Ledger of balance effects applied on behalf of a leave request.

    The unique (leave_request_id, entry_type) pair makes each effect
    apply at most once, whichever code path triggers it.
    """
    __tablename__ = "leave_balance_entries"
    __table_args__ = (
        UniqueConstraint("leave_request_id", "entry_type", name="uq_leave_balance_entry_once"),
    )

    id = Column(Integer, primary_key=True, index=True)
    leave_request_id = Column(Integer, ForeignKey("leave_requests.id"), nullable=False, index=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False, index=True)
    balance = Column(String, nullable=False)  # "vacation" | "sick"
    entry_type = Column(String, nullable=False)
    days = Column(Float, nullable=False)  # signed: negative for deductions
    created_at = Column(DateTime(timezone=True), server_default=func.now())
