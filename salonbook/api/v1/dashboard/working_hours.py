# salonbook/api/v1/dashboard/working_hours.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import List, Optional
from uuid import UUID

from salonbook.config.database import get_db
from salonbook.api.dependencies import get_business_context, require_permission
from salonbook.schemas.appointment import WorkingHoursIn
from salonbook.schemas.business import BusinessContext
from salonbook.services.scheduling.slots import SlotService
from salonbook.services.staff import permission_service as perms

router = APIRouter(prefix="/working-hours", tags=["dashboard-working-hours"])


@router.get("")
async def get_working_hours(
        staff_id: Optional[UUID] = Query(None, description="Staff member; omit for business hours"),
        context: BusinessContext = Depends(get_business_context),
        db: Session = Depends(get_db)
):
    windows = SlotService.get_windows(db, context.business_id, staff_id)
    return {"staff_id": str(staff_id) if staff_id else None, "days": [w.to_dict() for w in windows]}


@router.put("")
async def save_working_hours(
        windows: List[WorkingHoursIn],
        staff_id: Optional[UUID] = Query(None),
        context: BusinessContext = Depends(require_permission(perms.WORKING_HOURS_EDIT)),
        db: Session = Depends(get_db)
):
    saved = SlotService.save_windows(db, context.business_id, windows, staff_id)
    return {"staff_id": str(staff_id) if staff_id else None, "days": [w.to_dict() for w in saved]}


@router.get("/slots")
async def get_day_slots(
        day: date = Query(..., alias="date"),
        staff_id: Optional[UUID] = Query(None),
        context: BusinessContext = Depends(get_business_context),
        db: Session = Depends(get_db)
):
    """Bookable slots of a day, flagged unavailable where the staff member is busy."""
    return {
        "date": day.isoformat(),
        "slots": SlotService.get_slot_availability(db, context.business_id, day, staff_id),
    }
