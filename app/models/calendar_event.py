from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from app.database import Base


class CalendarEvent(Base):
    __tablename__ = "calendar_events"

    id = Column(Integer, primary_key=True, index=True)
    # Digest of the defining fields; the natural key used by configuration import
    fingerprint = Column(String(64), unique=True, nullable=False, index=True)
    event_type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    date_ts = Column(DateTime(timezone=True), nullable=False)
    end_date_ts = Column(DateTime(timezone=True), nullable=True)
    scope = Column(String, default="company")  # company | site | team | personal
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True)
    is_recurring = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
