# ============================================================================
# salonbook/services/appointment/appointment_query_service.py
# Read-side queries - no FastAPI dependencies, fully testable
# ============================================================================
from sqlalchemy.orm import Session, selectinload
from sqlalchemy import desc
from datetime import date
from typing import Optional, Dict, Any, List
from uuid import UUID

from salonbook.models.appointment import Appointment
from salonbook.schemas.appointment import AppointmentGroupView
from salonbook.schemas.business import BusinessContext
from salonbook.services.appointment.appointment_service import AppointmentService
from salonbook.services.appointment.grouping import group_appointments
from salonbook.services.scheduling.placement import build_day_grid
from salonbook.services.scheduling.slots import SlotService


def _with_relations(query):
    return query.options(
        selectinload(Appointment.service),
        selectinload(Appointment.customer),
        selectinload(Appointment.staff),
    )


class AppointmentQueryService:
    """Service layer for appointment lookups."""

    @staticmethod
    def list_day(
            db: Session,
            context: BusinessContext,
            day: date,
            status: Optional[str] = None
    ) -> List[AppointmentGroupView]:
        """Grouped appointments of one day, earliest first."""
        query = db.query(Appointment).filter(
            Appointment.business_id == context.business_id,
            Appointment.appointment_date == day
        )
        if status:
            query = query.filter(Appointment.status == status)

        rows = _with_relations(query).order_by(Appointment.start_time.asc(), Appointment.created_at.asc()).all()
        return group_appointments(rows)

    @staticmethod
    def get_group(
            db: Session,
            context: BusinessContext,
            group_key: UUID
    ) -> Optional[AppointmentGroupView]:
        rows = AppointmentService.get_group_rows(db, context.business_id, group_key)
        groups = group_appointments(rows)
        return groups[0] if groups else None

    @staticmethod
    def customer_history(
            db: Session,
            context: BusinessContext,
            customer_id: UUID
    ) -> List[AppointmentGroupView]:
        """A customer's bookings, newest first."""
        query = db.query(Appointment).filter(
            Appointment.business_id == context.business_id,
            Appointment.customer_id == customer_id
        )
        rows = _with_relations(query).order_by(
            desc(Appointment.appointment_date),
            desc(Appointment.start_time)
        ).all()
        return group_appointments(rows)

    @staticmethod
    def day_calendar(
            db: Session,
            context: BusinessContext,
            day: date
    ) -> Dict[str, Any]:
        """Slot-by-staff grid for the dashboard calendar."""
        groups = AppointmentQueryService.list_day(db, context, day)
        groups = [g for g in groups if g.status != "cancelled"]
        staff = AppointmentService.get_active_staff(db, context.business_id)
        slots = SlotService.get_day_slots(db, context.business_id, day)

        rows = build_day_grid(slots, [member.id for member in staff], groups)
        return {
            "date": day.isoformat(),
            "staff": [{"id": str(member.id), "name": member.name} for member in staff],
            "rows": [
                {
                    "time": row["time"],
                    "cells": [
                        {
                            "staff_id": cell["staff_id"],
                            "kind": cell["kind"],
                            "appointment": (
                                cell["appointment"].model_dump(mode="json")
                                if cell["appointment"] is not None else None
                            ),
                        }
                        for cell in row["cells"]
                    ],
                }
                for row in rows
            ],
        }
