from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class JobRole(Base):
    __tablename__ = "job_roles"

    id = Column(Integer, primary_key=True, index=True)
    job_code = Column(String, unique=True, nullable=False, index=True)
    job_title = Column(String, nullable=False)
    job_level = Column(String, default="")
    employment_type_default = Column(String, default="full_time")  # full_time | part_time | contract | intern
    compensation_type_default = Column(String, default="hourly")  # hourly | salary
    exempt_status = Column(String, default="non_exempt")
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    department = relationship("Department")
