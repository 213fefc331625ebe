"""
Pydantic schemas for appointments, bookings and grouped appointment views
"""
from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date
from decimal import Decimal
from uuid import UUID

from salonbook.models.appointment import APPOINTMENT_STATUSES
from salonbook.utils.time_utils import normalize_time


def _validate_hhmm(v: str) -> str:
    try:
        return normalize_time(v)
    except ValueError:
        raise ValueError("Time must be in HH:MM format")


# ============================================================================
# Request Schemas
# ============================================================================

class BookingRequest(BaseModel):
    """One booking covering one or more services for a customer"""
    customer_id: UUID
    service_ids: List[UUID] = Field(..., min_length=1, description="Selected services")
    appointment_date: date
    start_time: str = Field(..., description="Start time (HH:MM)")
    staff_id: Optional[UUID] = Field(None, description="Leave empty to assign a random active staff member")
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        return _validate_hhmm(v)

    @field_validator("service_ids")
    @classmethod
    def dedupe_services(cls, v: List[UUID]) -> List[UUID]:
        # Keep selection order, drop repeated picks
        return list(dict.fromkeys(v))


class PublicBookingRequest(BaseModel):
    """Booking made by a customer on the business's public page"""
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=7)
    email: Optional[str] = None
    service_ids: List[UUID] = Field(..., min_length=1)
    appointment_date: date
    start_time: str
    staff_id: Optional[UUID] = None
    notes: Optional[str] = None

    @field_validator("start_time")
    @classmethod
    def validate_start_time(cls, v: str) -> str:
        return _validate_hhmm(v)


class StatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        if v not in APPOINTMENT_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(APPOINTMENT_STATUSES)}")
        return v


class WorkingHoursIn(BaseModel):
    """One weekly working-hour window"""
    day_of_week: int = Field(..., description="Day of week (0=Sunday, 6=Saturday)", ge=0, le=6)
    start_time: str = Field("09:00", description="Opening time (HH:MM)")
    end_time: str = Field("18:00", description="Closing time (HH:MM)")
    is_closed: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        return _validate_hhmm(v)

    @model_validator(mode="after")
    def start_before_end(self):
        if not self.is_closed and self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time unless the day is closed")
        return self


# ============================================================================
# Response Schemas
# ============================================================================

class ServiceSummary(BaseModel):
    id: Optional[UUID] = None
    name: str
    duration_minutes: Optional[int] = None


class AppointmentGroupView(BaseModel):
    """Logical booking assembled from the stored per-service rows"""
    group_key: UUID
    appointment_group_id: Optional[UUID] = None
    appointment_ids: List[UUID] = Field(default_factory=list)
    appointment_date: date
    start_time: str
    end_time: str
    status: str
    customer_id: UUID
    customer_name: Optional[str] = None
    staff_id: Optional[UUID] = None
    staff_name: Optional[str] = None
    notes: Optional[str] = None
    services: List[ServiceSummary] = Field(default_factory=list)
    total_price: Decimal = Decimal("0")
    reminder_sent: bool = False

    @property
    def total_duration(self) -> int:
        return sum(s.duration_minutes or 0 for s in self.services)
