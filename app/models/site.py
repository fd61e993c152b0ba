from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from app.database import Base


class Site(Base):
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, index=True)
    site_code = Column(String, unique=True, nullable=False, index=True)
    site_name = Column(String, nullable=False)
    address_line1 = Column(String, default="")
    city = Column(String, default="")
    region_state = Column(String, default="")
    postal_code = Column(String, default="")
    country = Column(String, default="CA")
    time_zone = Column(String, default="America/Toronto")
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Site {self.site_code}: {self.site_name}>"
