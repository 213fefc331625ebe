"""
Pydantic schemas used by the reminder dispatcher
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import date
from uuid import UUID


class ReminderCandidate(BaseModel):
    """One logical booking that may need a reminder"""
    appointment_id: UUID = Field(..., description="First stored row of the booking")
    appointment_group_id: Optional[UUID] = Field(None, description="Shared id of multi-service bookings")
    business_id: UUID
    appointment_date: date
    start_time: str
    customer_phone: str

    @property
    def claim_key(self) -> UUID:
        return self.appointment_group_id or self.appointment_id


class ReminderScanResult(BaseModel):
    """Counters for one scan"""
    selected: int = 0
    due: int = 0
    sent: int = 0
    failed: int = 0
    already_claimed: int = 0
    skipped_businesses: int = 0
    errors: int = 0
