"""
System roles and their permission grants.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from app.database import Base


class DataScope(str, enum.Enum):
    SELF = "self"
    DIRECT_REPORTS = "direct_reports"
    DEPARTMENT = "department"
    SITE = "site"
    COMPANY = "company"


class SystemRole(Base):
    __tablename__ = "system_roles"

    id = Column(Integer, primary_key=True, index=True)
    role_code = Column(String, unique=True, nullable=False, index=True)
    role_name = Column(String, nullable=False)
    role_description = Column(Text, default="")
    data_scope_default = Column(String, default=DataScope.SELF.value)
    can_view_paystubs_self_only = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    permissions = relationship("RolePermission", back_populates="role", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<SystemRole {self.role_code}>"


class RolePermission(Base):
    """Child rows of a role; replaced wholesale per role on import."""
    __tablename__ = "role_permissions"

    id = Column(Integer, primary_key=True, index=True)
    role_id = Column(Integer, ForeignKey("system_roles.id"), nullable=False, index=True)
    permission_code = Column(String, nullable=False)
    allowed = Column(Boolean, default=False, nullable=False)
    scope = Column(String, default=DataScope.SELF.value)
    notes = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    role = relationship("SystemRole", back_populates="permissions")
