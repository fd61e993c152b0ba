from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.sql import func
from app.database import Base


class Integration(Base):
    __tablename__ = "integrations"

    id = Column(Integer, primary_key=True, index=True)
    integration_code = Column(String, unique=True, nullable=False, index=True)
    system_name = Column(String, nullable=False)
    integration_type = Column(String, default="")
    direction = Column(String, default="inbound")
    enabled = Column(Boolean, default=False, nullable=False)
    owner_email = Column(String, default="")
    frequency = Column(String, default="on_demand")
    notes = Column(Text, default="")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
