# salonbook/models/business.py
"""
Business Model - the salon/barbershop tenant and its weekly working hours
"""
from sqlalchemy import Column, String, Boolean, DateTime, Integer, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import uuid
from salonbook.models.base import Base


class Business(Base):
    __tablename__ = "businesses"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, unique=True)
    phone = Column(String(20), nullable=True)
    email = Column(String(200), nullable=True)
    country_code = Column(String(5), default="+90")
    timezone = Column(String(50), default="Europe/Istanbul")

    staff = relationship("Staff", back_populates="business")
    services = relationship("Service", back_populates="business")

    # Technical fields
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
    is_active = Column(Boolean, default=True)

    def __repr__(self):
        return f"<Business(id={self.id}, name={self.name})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "phone": self.phone,
            "email": self.email,
            "country_code": self.country_code,
            "timezone": self.timezone,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "is_active": self.is_active,
        }


class WorkingHours(Base):
    __tablename__ = "working_hours"

    id = Column(Integer, primary_key=True)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False)
    # NULL means the window applies to the whole business
    staff_id = Column(UUID(as_uuid=True), ForeignKey("staff.id"), nullable=True)
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    start_time = Column(String(5), nullable=False)  # HH:MM format
    end_time = Column(String(5), nullable=False)  # HH:MM format
    is_closed = Column(Boolean, default=False)

    def __repr__(self):
        return (
            f"<WorkingHours(business_id={self.business_id}, staff_id={self.staff_id}, "
            f"day={self.day_of_week})>"
        )

    def to_dict(self):
        return {
            "day_of_week": self.day_of_week,
            "staff_id": str(self.staff_id) if self.staff_id else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "is_closed": bool(self.is_closed),
        }
