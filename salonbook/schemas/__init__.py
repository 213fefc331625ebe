# salonbook/schemas/__init__.py
from .appointment import (
    BookingRequest,
    PublicBookingRequest,
    StatusUpdate,
    WorkingHoursIn,
    ServiceSummary,
    AppointmentGroupView,
)

from .business import (
    BusinessContext,
    SMSSettingsUpdate,
    PhoneVerificationRequest,
    PhoneVerificationCheck,
)
