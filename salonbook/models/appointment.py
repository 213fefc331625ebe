# salonbook/models/appointment.py
from sqlalchemy import Column, String, Text, Date, DateTime, Boolean, Numeric, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base
import uuid


APPOINTMENT_STATUSES = ("scheduled", "confirmed", "completed", "cancelled", "no_show")
ACTIVE_STATUSES = ("scheduled", "confirmed")


class Appointment(Base):
    """One stored row per booked service; rows booked together share appointment_group_id"""
    __tablename__ = "appointments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # References
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=False, index=True)
    staff_id = Column(UUID(as_uuid=True), ForeignKey("staff.id"), nullable=True)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=False)
    appointment_group_id = Column(UUID(as_uuid=True), nullable=True, index=True)

    # Appointment details (local wall-clock values)
    appointment_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)  # HH:MM format
    end_time = Column(String(5), nullable=False)  # HH:MM format
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    # Status tracking
    status = Column(String(20), default="scheduled")  # scheduled, confirmed, completed, cancelled, no_show

    # Reminders: flips false -> true exactly once
    reminder_sent = Column(Boolean, nullable=False, default=False)
    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    customer = relationship("Customer")
    staff = relationship("Staff")
    service = relationship("Service")

    @property
    def group_key(self):
        """Ungrouped legacy rows form their own singleton group"""
        return self.appointment_group_id or self.id

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, date={self.appointment_date}, "
            f"start={self.start_time}, status={self.status})>"
        )
