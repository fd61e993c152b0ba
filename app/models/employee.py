from sqlalchemy import Column, Integer, String, Date, Float, ForeignKey, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Employee(Base):
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False, default="")
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, default="")
    job_title = Column(String, default="")
    employment_type = Column(String, default="full_time")  # full_time | part_time | contract
    start_date = Column(Date, nullable=True)
    termination_date = Column(Date, nullable=True)  # set = no longer in the directory

    site_id = Column(Integer, ForeignKey("sites.id"), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    job_role_id = Column(Integer, ForeignKey("job_roles.id"), nullable=True)

    # Balances are plain counters; every change goes through the leave balance ledger
    vacation_days_remaining = Column(Float, default=0.0, nullable=False)
    vacation_days_entitled = Column(Float, default=0.0, nullable=False)
    sick_days_remaining = Column(Float, default=0.0, nullable=False)
    sick_days_entitled = Column(Float, default=0.0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", back_populates="employee", uselist=False)
    leave_requests = relationship("LeaveRequest", back_populates="employee")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Employee {self.id}: {self.full_name}>"
