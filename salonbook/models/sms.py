# salonbook/models/sms.py
"""
SMS configuration, delivery log, daily usage counters and phone verification codes
"""
from sqlalchemy import Column, String, Integer, Boolean, Date, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid
from salonbook.models.base import Base


SMS_TYPES = ("verification", "reminder", "business_notification", "customer_confirmation")


class SMSSettings(Base):
    __tablename__ = "sms_settings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, unique=True)

    is_enabled = Column(Boolean, default=True)
    reminder_enabled = Column(Boolean, default=True)
    reminder_minutes = Column(Integer, default=30)
    business_notification_enabled = Column(Boolean, default=True)
    verification_enabled = Column(Boolean, default=False)
    notification_phone_source = Column(String(20), default="business")  # business, profile

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_dict(self):
        return {
            "id": str(self.id),
            "business_id": str(self.business_id),
            "is_enabled": self.is_enabled,
            "reminder_enabled": self.reminder_enabled,
            "reminder_minutes": self.reminder_minutes,
            "business_notification_enabled": self.business_notification_enabled,
            "verification_enabled": self.verification_enabled,
            "notification_phone_source": self.notification_phone_source,
        }


class SMSLog(Base):
    __tablename__ = "sms_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)

    phone_number = Column(String(20), nullable=False)
    message = Column(Text, nullable=False)
    sms_type = Column(String(30), nullable=False)  # verification, reminder, business_notification, customer_confirmation
    status = Column(String(20), nullable=False, default="pending")  # pending, sent, failed
    provider_response = Column(Text, nullable=True)

    sent_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def to_dict(self):
        return {
            "id": str(self.id),
            "phone_number": self.phone_number,
            "message": self.message,
            "sms_type": self.sms_type,
            "status": self.status,
            "provider_response": self.provider_response,
            "sent_at": self.sent_at.isoformat() if self.sent_at else None,
        }


class DailySMSUsage(Base):
    __tablename__ = "daily_sms_usage"
    __table_args__ = (UniqueConstraint("business_id", "date", name="uq_daily_sms_usage_business_date"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False)
    date = Column(Date, nullable=False)
    sms_count = Column(Integer, nullable=False, default=0)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class PhoneVerification(Base):
    __tablename__ = "phone_verifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False)
    phone_number = Column(String(20), nullable=False, index=True)
    verification_code = Column(String(6), nullable=False)
    is_verified = Column(Boolean, default=False)
    expires_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
