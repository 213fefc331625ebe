# ===== salonbook/services/scheduling/placement.py =====
"""
Appointment placement: which appointment occupies a staff member's slot.

An appointment occupies every slot whose start falls inside
[start_time, end_time), so a 60 minute booking covers two 30 minute slots.
The first covered slot is the "start" cell, the rest are "continuation" cells.
"""
from typing import Iterable, List, Optional, Sequence

from salonbook.utils.time_utils import to_minutes

CELL_START = "start"
CELL_CONTINUATION = "continuation"
CELL_FREE = "free"


def occupies(appointment, slot_time: str) -> bool:
    start = to_minutes(appointment.start_time)
    end = to_minutes(appointment.end_time)
    if end < start:
        end += 24 * 60
    return start <= to_minutes(slot_time) < end


def find_appointment_at(appointments: Iterable, staff_id, slot_time: str):
    """
    Return the appointment of `staff_id` occupying `slot_time`, or None for a free slot.

    `staff_id=None` looks up appointments that have no staff assigned.
    """
    for appointment in appointments:
        if appointment.staff_id != staff_id:
            continue
        if occupies(appointment, slot_time):
            return appointment
    return None


def is_continuation(appointment, slot_time: str) -> bool:
    """True when the slot is covered by an appointment that started earlier"""
    return to_minutes(appointment.start_time) != to_minutes(slot_time)


def build_day_grid(
        slots: Sequence[str],
        staff_ids: Sequence,
        appointments: Sequence
) -> List[dict]:
    """
    Calendar grid rows, one per slot, each with a cell per staff column.

    A leading column with key None holds appointments nobody is assigned to.
    """
    columns: List[Optional[object]] = [None, *staff_ids]
    rows = []

    for slot in slots:
        cells = []
        for staff_id in columns:
            appointment = find_appointment_at(appointments, staff_id, slot)
            if appointment is None:
                kind = CELL_FREE
            elif is_continuation(appointment, slot):
                kind = CELL_CONTINUATION
            else:
                kind = CELL_START
            cells.append({
                "staff_id": str(staff_id) if staff_id else None,
                "kind": kind,
                "appointment": appointment,
            })
        rows.append({"time": slot, "cells": cells})

    return rows
