from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class TrainingCourse(Base):
    __tablename__ = "training_courses"

    id = Column(Integer, primary_key=True, index=True)
    training_code = Column(String, unique=True, nullable=False, index=True)
    training_name = Column(String, nullable=False)
    category = Column(String, default="")
    description = Column(Text, default="")
    default_expiry_months = Column(Integer, nullable=True)
    delivery_method = Column(String, default="in_person")  # lms | in_person | hybrid
    is_mandatory_possible = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class TrainingRequirement(Base):
    __tablename__ = "training_requirements"

    id = Column(Integer, primary_key=True, index=True)
    fingerprint = Column(String(64), unique=True, nullable=False, index=True)
    training_course_id = Column(Integer, ForeignKey("training_courses.id"), nullable=True)
    applies_to_role_id = Column(Integer, ForeignKey("system_roles.id"), nullable=True)
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    required_by_days_from_hire = Column(Integer, nullable=True)
    expiry_months_override = Column(Integer, nullable=True)
    block_work_if_incomplete = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    training_course = relationship("TrainingCourse")
