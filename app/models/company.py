from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from app.database import Base

class CompanySettings(Base):
    """Singleton row holding company identity and leave policy knobs."""
    __tablename__ = "company_settings"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, default="")
    operating_name = Column(String, default="")
    country = Column(String, default="CA")
    time_zone = Column(String, default="America/Toronto")
    currency = Column(String, default="CAD")
    week_starts_on = Column(String, default="Mon")
    default_language = Column(String, default="en-CA")
    hr_contact_email = Column(String, default="")

    default_sick_days = Column(Integer, default=10)
    default_vacation_days = Column(Integer, default=15)

    auto_approve_enabled = Column(Boolean, default=True, nullable=False)
    auto_approve_sick_threshold = Column(Integer, default=3, nullable=True)
    auto_approve_personal_threshold = Column(Integer, default=1, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
