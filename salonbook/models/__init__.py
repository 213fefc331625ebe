# salonbook/models/__init__.py
from .base import Base
from .business import Business, WorkingHours
from .customer import Customer
from .staff import Staff, StaffPermission, StaffRoleAssignment
from .service import Service
from .appointment import Appointment, APPOINTMENT_STATUSES, ACTIVE_STATUSES
from .sms import SMSSettings, SMSLog, DailySMSUsage, PhoneVerification, SMS_TYPES

__all__ = [
    "Base",
    "Business",
    "WorkingHours",
    "Customer",
    "Staff",
    "StaffPermission",
    "StaffRoleAssignment",
    "Service",
    "Appointment",
    "APPOINTMENT_STATUSES",
    "ACTIVE_STATUSES",
    "SMSSettings",
    "SMSLog",
    "DailySMSUsage",
    "PhoneVerification",
    "SMS_TYPES",
]
