# ============================================================================
# salonbook/services/appointment/appointment_service.py
# Booking, editing and status changes for multi-service appointment groups
# ============================================================================
"""Service for creating and changing appointments"""
import logging
import random
from datetime import date
from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import UUID, uuid4

from sqlalchemy import or_
from sqlalchemy.orm import Session

from salonbook.core.exceptions import AppointmentNotFoundError
from salonbook.models.appointment import Appointment, ACTIVE_STATUSES, APPOINTMENT_STATUSES
from salonbook.models.customer import Customer
from salonbook.models.service import Service
from salonbook.models.staff import Staff
from salonbook.schemas.appointment import AppointmentGroupView, BookingRequest
from salonbook.schemas.business import BusinessContext
from salonbook.services.appointment.grouping import group_appointments
from salonbook.utils.time_utils import add_minutes, to_minutes

logger = logging.getLogger(__name__)


def calculate_end_time(start_time: str, duration_minutes: int) -> str:
    """Start plus duration, wrapped modulo 24h"""
    return add_minutes(start_time, duration_minutes)


def pick_staff(
        active_staff: Sequence[Staff],
        staff_id: Optional[UUID],
        rng: Optional[random.Random] = None
) -> Optional[UUID]:
    """
    The explicitly chosen staff member, else a uniform random pick among active staff.

    Returns None when nobody is chosen and the business has no active staff.
    """
    if staff_id is not None:
        if not any(member.id == staff_id for member in active_staff):
            raise ValueError("Selected staff member is not active in this business")
        return staff_id

    if not active_staff:
        return None

    return (rng or random).choice(list(active_staff)).id


class AppointmentService:
    """Handles appointment booking operations"""

    @staticmethod
    def get_active_staff(db: Session, business_id: UUID) -> List[Staff]:
        return db.query(Staff).filter(
            Staff.business_id == business_id,
            Staff.is_active.is_(True)
        ).order_by(Staff.name).all()

    @staticmethod
    def get_selected_services(db: Session, business_id: UUID, service_ids: Sequence[UUID]) -> List[Service]:
        """Active services in selection order; unknown ids are an error"""
        services = db.query(Service).filter(
            Service.business_id == business_id,
            Service.id.in_(list(service_ids)),
            Service.is_active.is_(True)
        ).all()
        by_id = {service.id: service for service in services}

        missing = [str(sid) for sid in service_ids if sid not in by_id]
        if missing:
            raise ValueError(f"Services not found: {', '.join(missing)}")

        return [by_id[sid] for sid in service_ids]

    @staticmethod
    def resolve_group_key(db: Session, business_id: UUID, key: UUID) -> Optional[UUID]:
        """
        Group key of the booking addressed by `key`.

        `key` may be a group id or the id of any member row; None if neither exists.
        """
        row = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            or_(
                Appointment.appointment_group_id == key,
                Appointment.id == key
            )
        ).first()
        return row.group_key if row is not None else None

    @staticmethod
    def get_group_rows(db: Session, business_id: UUID, key: UUID) -> List[Appointment]:
        """All rows of the booking addressed by a group id or any member row id"""
        group_key = AppointmentService.resolve_group_key(db, business_id, key)
        if group_key is None:
            return []

        return db.query(Appointment).filter(
            Appointment.business_id == business_id,
            or_(
                Appointment.appointment_group_id == group_key,
                Appointment.id == group_key
            )
        ).all()

    @staticmethod
    def _build_rows(
            business_id: UUID,
            request: BookingRequest,
            services: Sequence[Service],
            staff_id: Optional[UUID],
            group_id: UUID,
            status: str,
            reminder_sent: bool = False
    ) -> List[Appointment]:
        total_duration = sum(service.duration_minutes or 0 for service in services)
        end_time = calculate_end_time(request.start_time, total_duration)

        return [
            Appointment(
                business_id=business_id,
                customer_id=request.customer_id,
                service_id=service.id,
                staff_id=staff_id,
                appointment_date=request.appointment_date,
                start_time=request.start_time,
                end_time=end_time,
                # Each row carries its own share; the group total is the sum
                total_price=Decimal(service.price or 0),
                appointment_group_id=group_id,
                notes=request.notes or None,
                status=status,
                reminder_sent=reminder_sent,
            )
            for service in services
        ]

    @staticmethod
    def create_booking(
            db: Session,
            context: BusinessContext,
            request: BookingRequest,
            rng: Optional[random.Random] = None
    ) -> AppointmentGroupView:
        """Create one appointment group with a row per selected service"""
        customer = db.query(Customer).filter(
            Customer.id == request.customer_id,
            Customer.business_id == context.business_id
        ).first()
        if not customer:
            raise ValueError("Customer not found")

        services = AppointmentService.get_selected_services(db, context.business_id, request.service_ids)
        staff_id = pick_staff(
            AppointmentService.get_active_staff(db, context.business_id),
            request.staff_id,
            rng
        )

        rows = AppointmentService._build_rows(
            context.business_id, request, services, staff_id,
            group_id=uuid4(), status="scheduled"
        )

        db.add_all(rows)
        db.commit()
        for row in rows:
            db.refresh(row)

        logger.info(
            f"Created appointment group {rows[0].appointment_group_id} with {len(rows)} services "
            f"for business {context.business_id}"
        )
        return group_appointments(rows)[0]

    @staticmethod
    def edit_booking(
            db: Session,
            context: BusinessContext,
            group_key: UUID,
            request: BookingRequest,
            rng: Optional[random.Random] = None
    ) -> AppointmentGroupView:
        """
        Replace a group's rows with one row per currently selected service.

        Group id and status carry over from before the edit. The reminder flag
        carries over only while the date and start time stay the same.
        """
        existing = AppointmentService.get_group_rows(db, context.business_id, group_key)
        if not existing:
            raise AppointmentNotFoundError("Appointment not found")

        services = AppointmentService.get_selected_services(db, context.business_id, request.service_ids)
        staff_id = pick_staff(
            AppointmentService.get_active_staff(db, context.business_id),
            request.staff_id,
            rng
        )

        group_id = existing[0].appointment_group_id or existing[0].id
        status = existing[0].status
        unmoved = (
            existing[0].appointment_date == request.appointment_date
            and existing[0].start_time == request.start_time
        )
        reminder_sent = unmoved and any(row.reminder_sent for row in existing)

        rows = AppointmentService._build_rows(
            context.business_id, request, services, staff_id,
            group_id=group_id, status=status, reminder_sent=reminder_sent
        )

        try:
            db.query(Appointment).filter(
                Appointment.id.in_([row.id for row in existing])
            ).delete(synchronize_session=False)
            db.add_all(rows)
            db.commit()
        except Exception:
            db.rollback()
            raise

        for row in rows:
            db.refresh(row)

        logger.info(f"Edited appointment group {group_id}: {len(existing)} rows replaced by {len(rows)}")
        return group_appointments(rows)[0]

    @staticmethod
    def update_group_status(
            db: Session,
            context: BusinessContext,
            group_key: UUID,
            status: str
    ) -> int:
        """Set the status of every row in a group; returns rows changed"""
        if status not in APPOINTMENT_STATUSES:
            raise ValueError(f"Invalid status '{status}'")

        resolved = AppointmentService.resolve_group_key(db, context.business_id, group_key)
        if resolved is None:
            raise AppointmentNotFoundError("Appointment not found")

        updated = db.query(Appointment).filter(
            Appointment.business_id == context.business_id,
            or_(
                Appointment.appointment_group_id == resolved,
                Appointment.id == resolved
            )
        ).update({Appointment.status: status}, synchronize_session=False)

        db.commit()
        logger.info(f"Appointment group {resolved} set to {status} ({updated} rows)")
        return updated

    @staticmethod
    def find_available_staff(
            db: Session,
            business_id: UUID,
            day: date,
            start_time: str,
            duration_minutes: int
    ) -> Optional[UUID]:
        """First active staff member (by name) with no overlapping active appointment"""
        start = to_minutes(start_time)
        end = start + duration_minutes

        appointments = db.query(Appointment).filter(
            Appointment.business_id == business_id,
            Appointment.appointment_date == day,
            Appointment.status.in_(ACTIVE_STATUSES),
            Appointment.staff_id.isnot(None)
        ).all()

        for member in AppointmentService.get_active_staff(db, business_id):
            busy = any(
                start < _end_minutes(appt) and to_minutes(appt.start_time) < end
                for appt in appointments
                if appt.staff_id == member.id
            )
            if not busy:
                return member.id

        return None


def _end_minutes(appointment: Appointment) -> int:
    start = to_minutes(appointment.start_time)
    end = to_minutes(appointment.end_time)
    return end + 24 * 60 if end < start else end
