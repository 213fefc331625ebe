# ============================================================================
# salonbook/services/appointment/public_booking_service.py
# Bookings made by customers on a business's public booking page
# ============================================================================
import logging
from typing import Optional

from sqlalchemy.orm import Session

from salonbook.models.business import Business
from salonbook.models.customer import Customer
from salonbook.schemas.appointment import AppointmentGroupView, BookingRequest, PublicBookingRequest
from salonbook.schemas.business import BusinessContext
from salonbook.services.appointment.appointment_service import AppointmentService
from salonbook.services.sms.sms_settings_service import SMSSettingsService
from salonbook.services.sms.verification_service import PhoneVerificationService
from salonbook.utils.text_processing import format_sms_date

logger = logging.getLogger(__name__)


class PublicBookingService:

    @staticmethod
    def get_business_by_slug(db: Session, slug: str) -> Optional[Business]:
        return db.query(Business).filter(
            Business.slug == slug,
            Business.is_active.is_(True)
        ).first()

    @staticmethod
    def find_or_create_customer(db: Session, business_id, request: PublicBookingRequest) -> Customer:
        customer = db.query(Customer).filter(
            Customer.business_id == business_id,
            Customer.phone == request.phone
        ).first()
        if customer:
            return customer

        customer = Customer(
            business_id=business_id,
            first_name=request.first_name,
            last_name=request.last_name,
            phone=request.phone,
            email=request.email,
        )
        db.add(customer)
        db.commit()
        db.refresh(customer)
        return customer

    @staticmethod
    def create_public_booking(
            db: Session,
            business: Business,
            request: PublicBookingRequest,
            sms_service=None
    ) -> AppointmentGroupView:
        """
        Book on behalf of a walk-in customer.

        When no staff member is chosen, the first one free for the whole
        duration gets the booking.
        """
        sms_settings = SMSSettingsService.get_settings(db, business.id)

        if sms_settings and sms_settings.is_enabled and sms_settings.verification_enabled:
            if not PhoneVerificationService.is_phone_verified(db, request.phone, business.id):
                raise ValueError("Phone number must be verified before booking")

        services = AppointmentService.get_selected_services(db, business.id, request.service_ids)
        total_duration = sum(service.duration_minutes or 0 for service in services)

        staff_id = request.staff_id
        if staff_id is None and AppointmentService.get_active_staff(db, business.id):
            staff_id = AppointmentService.find_available_staff(
                db, business.id, request.appointment_date, request.start_time, total_duration
            )
            if staff_id is None:
                raise ValueError("No staff member is available at the selected time")

        customer = PublicBookingService.find_or_create_customer(db, business.id, request)
        context = BusinessContext(business_id=business.id)

        group = AppointmentService.create_booking(
            db,
            context,
            BookingRequest(
                customer_id=customer.id,
                service_ids=request.service_ids,
                appointment_date=request.appointment_date,
                start_time=request.start_time,
                staff_id=staff_id,
                notes=request.notes,
            )
        )

        if sms_service and sms_settings and sms_settings.is_enabled \
                and sms_settings.business_notification_enabled and business.phone:
            message = (
                f"Yeni randevu: {customer.full_name}, {format_sms_date(request.appointment_date)} "
                f"{request.start_time}. {', '.join(s.name for s in services)}"
            )
            result = sms_service.send_business_notification(business.phone, message, business.id)
            if not result.get("success"):
                logger.warning(f"Business notification failed for business {business.id}")

        return group
