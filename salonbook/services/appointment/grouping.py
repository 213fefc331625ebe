# ============================================================================
# salonbook/services/appointment/grouping.py
# Collapses stored per-service rows into logical bookings
# ============================================================================
from collections import OrderedDict
from decimal import Decimal
from typing import Iterable, List

from salonbook.models.appointment import Appointment
from salonbook.schemas.appointment import AppointmentGroupView, ServiceSummary


def group_appointments(rows: Iterable[Appointment]) -> List[AppointmentGroupView]:
    """
    Merge rows sharing an appointment_group_id into one view per booking.

    Rows without a group id are their own group. The first row seen for a
    group supplies the shared fields; services are deduplicated by name and
    prices are summed. Output keeps the order in which groups were first seen.
    """
    groups: "OrderedDict[object, AppointmentGroupView]" = OrderedDict()

    for row in rows:
        key = row.group_key
        service = _service_summary(row)
        price = Decimal(row.total_price or 0)

        existing = groups.get(key)
        if existing is None:
            groups[key] = AppointmentGroupView(
                group_key=key,
                appointment_group_id=row.appointment_group_id,
                appointment_ids=[row.id],
                appointment_date=row.appointment_date,
                start_time=row.start_time,
                end_time=row.end_time,
                status=row.status,
                customer_id=row.customer_id,
                customer_name=row.customer.full_name if row.customer is not None else None,
                staff_id=row.staff_id,
                staff_name=row.staff.name if row.staff is not None else None,
                notes=row.notes,
                services=[service] if service else [],
                total_price=price,
                reminder_sent=bool(row.reminder_sent),
            )
            continue

        existing.appointment_ids.append(row.id)
        existing.total_price += price
        existing.reminder_sent = existing.reminder_sent or bool(row.reminder_sent)
        if service and all(s.name != service.name for s in existing.services):
            existing.services.append(service)

    return list(groups.values())


def _service_summary(row: Appointment):
    if row.service is None:
        return None
    return ServiceSummary(
        id=row.service.id,
        name=row.service.name,
        duration_minutes=row.service.duration_minutes,
    )
