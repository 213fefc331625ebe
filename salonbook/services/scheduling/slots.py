# ===== salonbook/services/scheduling/slots.py =====
"""
Time-slot generation from weekly working-hour windows.

A day with no window, or with a closed window, simply has no slots.
"""
from datetime import date
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from salonbook.config.settings import get_settings
from salonbook.models.appointment import Appointment, ACTIVE_STATUSES
from salonbook.models.business import WorkingHours
from salonbook.utils.time_utils import format_minutes, to_minutes, weekday_index
import logging

logger = logging.getLogger(__name__)
settings = get_settings()


def find_window(windows: Iterable, day: date):
    """Return the working-hour window for the weekday of `day`, if any"""
    dow = weekday_index(day)
    return next((w for w in windows if w.day_of_week == dow), None)


def generate_time_slots(
        day: date,
        windows: Iterable,
        interval_minutes: Optional[int] = None
) -> List[str]:
    """
    Bookable start times (HH:MM) for one calendar date.

    A slot is emitted every `interval_minutes` starting at the window's
    start time while the slot start is before the window's end time.
    """
    interval = interval_minutes or settings.SLOT_INTERVAL_MINUTES

    window = find_window(windows, day)
    if window is None or window.is_closed:
        return []

    current = to_minutes(window.start_time)
    end = to_minutes(window.end_time)

    slots = []
    while current < end:
        slots.append(format_minutes(current))
        current += interval

    return slots


def find_occupied_slots(
        slots: Sequence[str],
        appointments: Iterable,
        interval_minutes: Optional[int] = None
) -> List[str]:
    """Slots whose [start, start + interval) overlaps any appointment's [start, end)"""
    interval = interval_minutes or settings.SLOT_INTERVAL_MINUTES
    ranges = [_appointment_range(appt) for appt in appointments]

    occupied = []
    for slot in slots:
        slot_start = to_minutes(slot)
        slot_end = slot_start + interval
        if any(slot_start < appt_end and appt_start < slot_end for appt_start, appt_end in ranges):
            occupied.append(slot)

    return occupied


def _appointment_range(appointment):
    start = to_minutes(appointment.start_time)
    end = to_minutes(appointment.end_time)
    # An end before the start wrapped past midnight; it occupies the rest of the day
    if end < start:
        end += 24 * 60
    return start, end


class SlotService:
    """Database-backed slot lookups"""

    @staticmethod
    def get_windows(
            db: Session,
            business_id: UUID,
            staff_id: Optional[UUID] = None
    ) -> List[WorkingHours]:
        """
        Weekly windows for a staff member or the whole business.

        Staff-specific rows win; days the staff member has no row for fall
        back to the business-wide row.
        """
        business_rows = db.query(WorkingHours).filter(
            WorkingHours.business_id == business_id,
            WorkingHours.staff_id.is_(None)
        ).all()

        if staff_id is None:
            return business_rows

        staff_rows = db.query(WorkingHours).filter(
            WorkingHours.business_id == business_id,
            WorkingHours.staff_id == staff_id
        ).all()

        by_day = {row.day_of_week: row for row in business_rows}
        by_day.update({row.day_of_week: row for row in staff_rows})
        return [by_day[dow] for dow in sorted(by_day)]

    @staticmethod
    def get_day_slots(
            db: Session,
            business_id: UUID,
            day: date,
            staff_id: Optional[UUID] = None
    ) -> List[str]:
        windows = SlotService.get_windows(db, business_id, staff_id)
        return generate_time_slots(day, windows)

    @staticmethod
    def get_slot_availability(
            db: Session,
            business_id: UUID,
            day: date,
            staff_id: Optional[UUID] = None
    ) -> List[dict]:
        """Day slots flagged as occupied by the staff member's active appointments"""
        slots = SlotService.get_day_slots(db, business_id, day, staff_id)

        occupied = set()
        if staff_id is not None and slots:
            appointments = db.query(Appointment).filter(
                Appointment.business_id == business_id,
                Appointment.staff_id == staff_id,
                Appointment.appointment_date == day,
                Appointment.status.in_(ACTIVE_STATUSES)
            ).all()
            occupied = set(find_occupied_slots(slots, appointments))

        logger.debug(f"{len(slots)} slots on {day} for business {business_id}, {len(occupied)} occupied")
        return [{"time": slot, "available": slot not in occupied} for slot in slots]

    @staticmethod
    def save_windows(
            db: Session,
            business_id: UUID,
            windows: Sequence,
            staff_id: Optional[UUID] = None
    ) -> List[WorkingHours]:
        """Upsert one row per day of week for the business or a staff member"""
        existing = {
            row.day_of_week: row
            for row in db.query(WorkingHours).filter(
                WorkingHours.business_id == business_id,
                WorkingHours.staff_id == staff_id if staff_id else WorkingHours.staff_id.is_(None)
            ).all()
        }

        saved = []
        for window in windows:
            row = existing.get(window.day_of_week)
            if row is None:
                row = WorkingHours(business_id=business_id, staff_id=staff_id, day_of_week=window.day_of_week)
                db.add(row)
            row.start_time = window.start_time
            row.end_time = window.end_time
            row.is_closed = window.is_closed
            saved.append(row)

        db.commit()
        logger.info(f"Saved {len(saved)} working-hour windows for business {business_id} (staff={staff_id})")
        return sorted(saved, key=lambda r: r.day_of_week)
