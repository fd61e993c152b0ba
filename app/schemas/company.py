from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional


class CompanySettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    company_name: Optional[str] = None
    operating_name: Optional[str] = None
    country: Optional[str] = None
    time_zone: Optional[str] = None
    currency: Optional[str] = None
    week_starts_on: Optional[str] = None
    default_language: Optional[str] = None
    hr_contact_email: Optional[str] = None
    default_sick_days: Optional[int] = None
    default_vacation_days: Optional[int] = None
    auto_approve_enabled: bool
    auto_approve_sick_threshold: Optional[int] = None
    auto_approve_personal_threshold: Optional[int] = None


class CompanySettingsUpdate(BaseModel):
    """Partial update; omitted fields are left untouched."""
    company_name: Optional[str] = None
    operating_name: Optional[str] = None
    hr_contact_email: Optional[str] = None
    default_sick_days: Optional[int] = Field(default=None, ge=0)
    default_vacation_days: Optional[int] = Field(default=None, ge=0)
    auto_approve_enabled: Optional[bool] = None
    auto_approve_sick_threshold: Optional[int] = Field(default=None, ge=0)
    auto_approve_personal_threshold: Optional[int] = Field(default=None, ge=0)

    @field_validator("auto_approve_enabled")
    @classmethod
    def auto_approve_enabled_not_null(cls, v):
        """The switch may be omitted but not cleared; a null threshold means "use the default"."""
        if v is None:
            raise ValueError("auto_approve_enabled cannot be null")
        return v
