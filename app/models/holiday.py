from sqlalchemy import Column, Integer, String, Date, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from app.database import Base


class Holiday(Base):
    __tablename__ = "holidays"

    id = Column(Integer, primary_key=True, index=True)
    holiday_code = Column(String, unique=True, nullable=False, index=True)
    holiday_name = Column(String, nullable=False)
    date = Column(Date, nullable=False)
    country = Column(String, default="CA")
    region_state = Column(String, default="")
    site_id = Column(Integer, ForeignKey("sites.id"), nullable=True)  # null = all sites
    is_paid = Column(Boolean, default=False, nullable=False)
    notes = Column(Text, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now())
