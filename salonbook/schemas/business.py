"""
Pydantic schemas for the caller's business context and SMS settings
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from uuid import UUID


class BusinessContext(BaseModel):
    """
    Who is acting, and for which business.

    Passed explicitly into every scheduling operation instead of being read
    from an ambient session.
    """
    model_config = ConfigDict(frozen=True)

    business_id: UUID
    user_id: Optional[UUID] = None
    staff_id: Optional[UUID] = None
    is_owner: bool = False


class SMSSettingsUpdate(BaseModel):
    is_enabled: Optional[bool] = None
    reminder_enabled: Optional[bool] = None
    reminder_minutes: Optional[int] = Field(None, ge=1, le=24 * 60)
    business_notification_enabled: Optional[bool] = None
    verification_enabled: Optional[bool] = None
    notification_phone_source: Optional[str] = Field(None, pattern="^(business|profile)$")


class PhoneVerificationRequest(BaseModel):
    phone: str = Field(..., min_length=7)


class PhoneVerificationCheck(BaseModel):
    phone: str = Field(..., min_length=7)
    code: str = Field(..., min_length=6, max_length=6)
