"""
Department Model with Hierarchy Support.
Departments belong to a site and may nest under a parent department.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    dept_code = Column(String, unique=True, nullable=False, index=True)  # Short code like "ENG", "HR", "FIN"
    dept_name = Column(String, nullable=False)

    site_id = Column(Integer, ForeignKey("sites.id"), nullable=True)

    # Hierarchy support: parent department for nested structures
    parent_dept_id = Column(Integer, ForeignKey("departments.id"), nullable=True)

    cost_center_code = Column(String, default="")
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    site = relationship("Site")
    parent = relationship("Department", remote_side=[id], back_populates="children")
    children = relationship("Department", back_populates="parent")

    def __repr__(self):
        return f"<Department {self.dept_code}: {self.dept_name}>"
