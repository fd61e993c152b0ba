"""
PTO reference data: types, accrual policies and approval routing rules.
"""
from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.database import Base


class PTOType(Base):
    __tablename__ = "pto_types"

    id = Column(Integer, primary_key=True, index=True)
    pto_type_code = Column(String, unique=True, nullable=False, index=True)
    pto_type_name = Column(String, nullable=False)
    is_payable_on_termination = Column(Boolean, default=False, nullable=False)
    counts_toward_liability = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class PTOPolicy(Base):
    __tablename__ = "pto_policies"

    id = Column(Integer, primary_key=True, index=True)
    policy_code = Column(String, unique=True, nullable=False, index=True)
    policy_name = Column(String, nullable=False)
    pto_type_id = Column(Integer, ForeignKey("pto_types.id"), nullable=True)
    applies_to_role_id = Column(Integer, ForeignKey("system_roles.id"), nullable=True)
    accrual_method = Column(String, default="entitlement")  # accrual | entitlement
    annual_entitlement_hours = Column(Float, default=0.0)
    accrual_rate_hours_per_payperiod = Column(Float, default=0.0)
    carryover_cap_hours = Column(Float, default=0.0)
    balance_cap_hours = Column(Float, default=0.0)
    waiting_period_days = Column(Integer, default=0)
    allow_negative_balance = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    pto_type = relationship("PTOType")
    applies_to_role = relationship("SystemRole")


class PTOApprovalRule(Base):
    __tablename__ = "pto_approval_rules"

    id = Column(Integer, primary_key=True, index=True)
    rule_code = Column(String, unique=True, nullable=False, index=True)
    pto_type_id = Column(Integer, ForeignKey("pto_types.id"), nullable=True)
    max_days_auto_approve = Column(Integer, nullable=True)
    approver_type = Column(String, default="manager")  # manager | role_user | specific_user
    approver_identifier = Column(String, default="")
    backup_approver_identifier = Column(String, default="")
    escalation_threshold_days = Column(Integer, nullable=True)
    sla_hours = Column(Integer, default=48)
    notes = Column(Text, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    pto_type = relationship("PTOType")
