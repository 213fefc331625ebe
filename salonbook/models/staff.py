# salonbook/models/staff.py
"""
Staff members and their scoped permissions
"""
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from salonbook.models.base import Base


class Staff(Base):
    __tablename__ = "staff"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    business_id = Column(UUID(as_uuid=True), ForeignKey("businesses.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=True)
    phone = Column(String(20), nullable=True)
    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    business = relationship("Business", back_populates="staff")
    role_assignments = relationship("StaffRoleAssignment", back_populates="staff")

    def __repr__(self):
        return f"<Staff(id={self.id}, name={self.name})>"


class StaffPermission(Base):
    """A named permission, e.g. 'appointments.create'"""
    __tablename__ = "staff_permissions"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(String(500), nullable=True)
    category = Column(String(100), nullable=False, default="general")
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class StaffRoleAssignment(Base):
    __tablename__ = "staff_role_assignments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    staff_id = Column(UUID(as_uuid=True), ForeignKey("staff.id", ondelete="CASCADE"), nullable=False, index=True)
    permission_id = Column(UUID(as_uuid=True), ForeignKey("staff_permissions.id"), nullable=False)
    granted_by = Column(UUID(as_uuid=True), nullable=True)
    granted_at = Column(DateTime(timezone=True), server_default=func.now())

    staff = relationship("Staff", back_populates="role_assignments")
    permission = relationship("StaffPermission")
