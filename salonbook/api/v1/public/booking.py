# ============================================================================
# salonbook/api/v1/public/booking.py
# Public booking page endpoints (no authentication, addressed by business slug)
# ============================================================================
from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional
from uuid import UUID

from salonbook.config.database import get_db
from salonbook.api.dependencies import get_sms_service
from salonbook.models.business import Business
from salonbook.models.service import Service
from salonbook.schemas.appointment import PublicBookingRequest
from salonbook.schemas.business import PhoneVerificationCheck, PhoneVerificationRequest
from salonbook.services.appointment.appointment_service import AppointmentService
from salonbook.services.appointment.public_booking_service import PublicBookingService
from salonbook.services.scheduling.slots import SlotService
from salonbook.services.sms.sms_settings_service import SMSSettingsService
from salonbook.services.sms.verification_service import PhoneVerificationService

router = APIRouter(prefix="/public", tags=["public-booking"])


def get_public_business(
        slug: str = Path(..., description="Business slug"),
        db: Session = Depends(get_db)
) -> Business:
    business = PublicBookingService.get_business_by_slug(db, slug)
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business


@router.get("/{slug}")
async def get_booking_page(
        business: Business = Depends(get_public_business),
        db: Session = Depends(get_db)
):
    """Business info, active services and staff for the booking page."""
    services = db.query(Service).filter(
        Service.business_id == business.id,
        Service.is_active.is_(True)
    ).order_by(Service.name).all()
    staff = AppointmentService.get_active_staff(db, business.id)

    return {
        "business": business.to_dict(),
        "services": [s.to_dict() for s in services],
        "staff": [{"id": str(m.id), "name": m.name} for m in staff],
    }


@router.get("/{slug}/slots")
async def get_public_slots(
        day: date = Query(..., alias="date"),
        staff_id: Optional[UUID] = Query(None),
        business: Business = Depends(get_public_business),
        db: Session = Depends(get_db)
):
    return {
        "date": day.isoformat(),
        "slots": SlotService.get_slot_availability(db, business.id, day, staff_id),
    }


@router.post("/{slug}/bookings", status_code=status.HTTP_201_CREATED)
async def create_public_booking(
        request: PublicBookingRequest,
        business: Business = Depends(get_public_business),
        db: Session = Depends(get_db),
        sms_service=Depends(get_sms_service)
):
    try:
        group = PublicBookingService.create_public_booking(db, business, request, sms_service)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return group.model_dump(mode="json")


@router.post("/{slug}/verification")
async def request_phone_verification(
        request: PhoneVerificationRequest,
        business: Business = Depends(get_public_business),
        db: Session = Depends(get_db),
        sms_service=Depends(get_sms_service)
):
    sms_settings = SMSSettingsService.get_settings(db, business.id)
    if not sms_settings or not sms_settings.is_enabled or not sms_settings.verification_enabled:
        raise HTTPException(status_code=400, detail="Phone verification is not enabled")

    verification = PhoneVerificationService.create_verification(db, sms_service, request.phone, business.id)
    if verification is None:
        raise HTTPException(status_code=502, detail="Verification code could not be sent")

    return {"phone": request.phone, "expires_at": verification.expires_at.isoformat()}


@router.post("/{slug}/verification/check")
async def check_phone_verification(
        request: PhoneVerificationCheck,
        business: Business = Depends(get_public_business),
        db: Session = Depends(get_db)
):
    verified = PhoneVerificationService.verify_code(db, request.phone, request.code, business.id)
    if not verified:
        raise HTTPException(status_code=400, detail="Invalid or expired verification code")
    return {"phone": request.phone, "verified": True}
