# ============================================================================
# salonbook/api/v1/dashboard/appointments.py
# Session authenticated endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Query, Path, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from salonbook.config.database import get_db
from salonbook.api.dependencies import (
    get_business_context,
    get_reminder_dispatcher,
    require_permission,
)
from salonbook.core.exceptions import (
    AppointmentNotFoundError,
    ReminderAlreadySentError,
    SMSNotEnabledError,
)
from salonbook.schemas.appointment import BookingRequest, StatusUpdate
from salonbook.schemas.business import BusinessContext
from salonbook.services.appointment.appointment_query_service import AppointmentQueryService
from salonbook.services.appointment.appointment_service import AppointmentService
from salonbook.services.staff import permission_service as perms

router = APIRouter(prefix="/appointments", tags=["dashboard-appointments"])


@router.get("")
async def list_appointments(
        day: date = Query(..., alias="date", description="Day to list (YYYY-MM-DD)"),
        status_filter: Optional[str] = Query(None, alias="status",
                                             description="Filter by status (scheduled, confirmed, completed, cancelled, no_show)"),
        context: BusinessContext = Depends(get_business_context),
        db: Session = Depends(get_db)
):
    """Grouped appointments of a day."""
    groups = AppointmentQueryService.list_day(db, context, day, status_filter)
    return {
        "business_id": str(context.business_id),
        "date": day.isoformat(),
        "total_appointments": len(groups),
        "appointments": [g.model_dump(mode="json") for g in groups],
    }


@router.get("/calendar")
async def get_day_calendar(
        day: date = Query(..., alias="date", description="Day to show (YYYY-MM-DD)"),
        context: BusinessContext = Depends(get_business_context),
        db: Session = Depends(get_db)
):
    """Slot-by-staff calendar grid for a day."""
    return AppointmentQueryService.day_calendar(db, context, day)


@router.get("/{group_key}")
async def get_appointment(
        group_key: UUID = Path(..., description="Appointment group ID (or ID of an ungrouped appointment)"),
        context: BusinessContext = Depends(get_business_context),
        db: Session = Depends(get_db)
):
    group = AppointmentQueryService.get_group(db, context, group_key)
    if not group:
        raise HTTPException(
            status_code=404,
            detail="Appointment not found or you don't have access to it"
        )
    return group.model_dump(mode="json")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
        request: BookingRequest,
        context: BusinessContext = Depends(require_permission(perms.APPOINTMENTS_CREATE)),
        db: Session = Depends(get_db)
):
    """Book one or more services for a customer as a single appointment."""
    try:
        group = AppointmentService.create_booking(db, context, request)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return group.model_dump(mode="json")


@router.put("/{group_key}")
async def edit_appointment(
        request: BookingRequest,
        group_key: UUID = Path(...),
        context: BusinessContext = Depends(require_permission(perms.APPOINTMENTS_EDIT)),
        db: Session = Depends(get_db)
):
    """Replace the services, time or staff of an appointment group."""
    try:
        group = AppointmentService.edit_booking(db, context, group_key, request)
    except AppointmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return group.model_dump(mode="json")


@router.patch("/{group_key}/status")
async def update_appointment_status(
        update: StatusUpdate,
        group_key: UUID = Path(...),
        context: BusinessContext = Depends(require_permission(perms.APPOINTMENTS_STATUS)),
        db: Session = Depends(get_db)
):
    try:
        updated = AppointmentService.update_group_status(db, context, group_key, update.status)
    except AppointmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"group_key": str(group_key), "status": update.status, "updated": updated}


@router.post("/{group_key}/reminder")
async def send_reminder(
        group_key: UUID = Path(...),
        context: BusinessContext = Depends(require_permission(perms.REMINDERS_SEND)),
        dispatcher=Depends(get_reminder_dispatcher)
):
    """Send the reminder SMS now. Fails with 409 when it was already sent."""
    try:
        sent = dispatcher.send_manual_reminder(context, group_key)
    except AppointmentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ReminderAlreadySentError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SMSNotEnabledError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"group_key": str(group_key), "sent": sent}
