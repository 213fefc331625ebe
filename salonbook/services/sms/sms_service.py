# salonbook/services/sms/sms_service.py
"""SMS transport over Twilio, with every attempt written to the SMS log"""
import logging
from datetime import date, datetime
from typing import Callable, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from salonbook.config.database import SessionLocal
from salonbook.config.settings import get_settings
from salonbook.models.business import Business
from salonbook.models.sms import DailySMSUsage, SMSLog
from salonbook.utils.text_processing import clean_turkish_chars, only_digits

logger = logging.getLogger(__name__)
settings = get_settings()


def format_phone_number(phone: str, country_code: Optional[str] = None) -> str:
    """
    Normalize a local or international number to E.164.

    "0532 123 45 67" with "+90" -> "+905321234567"
    """
    country_code = country_code or settings.DEFAULT_COUNTRY_CODE
    country_digits = only_digits(country_code)
    stripped = phone.strip()
    digits = only_digits(stripped)

    if not digits:
        raise ValueError(f"Invalid phone number: {phone!r}")

    if stripped.startswith("+"):
        return f"+{digits}"
    if digits.startswith("00"):
        return f"+{digits[2:]}"
    if digits.startswith(country_digits) and len(digits) > 10:
        return f"+{digits}"

    # National format: drop the trunk prefix
    if digits.startswith("0"):
        digits = digits[1:]
    return f"+{country_digits}{digits}"


class SMSService:
    """
    Sends SMS through Twilio.

    Implements the reminder transport contract
    `send_reminder_sms(phone, message, business_id) -> bool`.
    """

    def __init__(
            self,
            session_factory: Callable[[], Session] = SessionLocal,
            client: Optional[Client] = None
    ):
        self.session_factory = session_factory
        if client is None and settings.TWILIO_ACCOUNT_SID:
            client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        self.client = client

    # ------------------------------------------------------------------
    # Public senders
    # ------------------------------------------------------------------

    def send_reminder_sms(self, phone: str, message: str, business_id: UUID) -> bool:
        # No SMS credit or subscription check; every due reminder is handed to Twilio
        result = self._send(business_id, phone, message, "reminder")
        return result["success"]

    def send_verification_code(self, phone: str, code: str, business_id: UUID) -> bool:
        message = (
            f"Randevu dogrulama kodunuz: {code}. "
            f"{settings.PHONE_VERIFICATION_TTL_MINUTES} dakika gecerlidir. {settings.SMS_SIGNATURE}"
        )
        result = self._send(business_id, phone, message, "verification")
        return result["success"]

    def send_customer_confirmation(self, phone: str, message: str, business_id: UUID) -> dict:
        # Confirmations are not logged
        return self._send(business_id, phone, message, "customer_confirmation", log=False)

    def send_business_notification(
            self,
            phone: str,
            message: str,
            business_id: UUID,
            today: Optional[date] = None
    ) -> dict:
        """
        Notify the business about a new booking.

        The first FREE_DAILY_BUSINESS_NOTIFICATIONS per day are on the house,
        later ones are billed to the business.
        """
        today = today or date.today()
        result = self._send(business_id, phone, message, "business_notification")

        try:
            with self.session_factory() as db:
                count = increment_daily_usage(db, business_id, today)
        except SQLAlchemyError as e:
            logger.error(f"Failed to record daily notification usage for business {business_id}: {e}")
            result["daily_count"] = None
            result["source"] = "system"
            return result

        result["daily_count"] = count
        result["source"] = "system" if count <= settings.FREE_DAILY_BUSINESS_NOTIFICATIONS else "business"
        return result

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _send(
            self,
            business_id: UUID,
            phone: str,
            message: str,
            sms_type: str,
            log: bool = True
    ) -> dict:
        """Deliver one SMS; never raises for transport failures"""
        body = clean_turkish_chars(message)

        try:
            to_phone = format_phone_number(phone, self._country_code(business_id))
        except ValueError as e:
            logger.error(f"Cannot send {sms_type} SMS for business {business_id}: {e}")
            if log:
                self._log(business_id, phone, body, sms_type, "failed", str(e))
            return {"success": False, "error": str(e)}

        if not self.client:
            logger.error("Twilio client not initialized")
            if log:
                self._log(business_id, to_phone, body, sms_type, "failed", "Twilio client not initialized")
            return {"success": False, "error": "Twilio client not initialized"}

        try:
            twilio_message = self.client.messages.create(
                body=body,
                from_=settings.TWILIO_FROM_NUMBER,
                to=to_phone
            )
        except (TwilioException, OSError) as e:
            logger.error(f"Twilio error sending {sms_type} SMS to {to_phone}: {str(e)}")
            if log:
                self._log(business_id, to_phone, body, sms_type, "failed", str(e))
            return {"success": False, "error": str(e)}

        logger.info(f"{sms_type} SMS sent successfully to {to_phone}: {twilio_message.sid}")
        if log:
            self._log(business_id, to_phone, body, sms_type, "sent", twilio_message.sid)
        return {"success": True, "message_sid": twilio_message.sid}

    def _country_code(self, business_id: UUID) -> Optional[str]:
        try:
            with self.session_factory() as db:
                business = db.query(Business).filter(Business.id == business_id).first()
                return business.country_code if business else None
        except SQLAlchemyError as e:
            logger.error(f"Error fetching business country code: {e}")
            return None

    def _log(
            self,
            business_id: UUID,
            phone: str,
            message: str,
            sms_type: str,
            status: str,
            response: Optional[str] = None
    ):
        try:
            with self.session_factory() as db:
                db.add(SMSLog(
                    business_id=business_id,
                    phone_number=phone,
                    message=message,
                    sms_type=sms_type,
                    status=status,
                    provider_response=response,
                    sent_at=datetime.now(),
                ))
                db.commit()
        except SQLAlchemyError as e:
            logger.error(f"SMS logging error: {e}")


def get_daily_count(db: Session, business_id: UUID, day: date) -> int:
    usage = db.query(DailySMSUsage).filter(
        DailySMSUsage.business_id == business_id,
        DailySMSUsage.date == day
    ).first()
    return usage.sms_count if usage else 0


def increment_daily_usage(db: Session, business_id: UUID, day: date) -> int:
    """Bump today's counter and return the new value"""
    updated = db.query(DailySMSUsage).filter(
        DailySMSUsage.business_id == business_id,
        DailySMSUsage.date == day
    ).update(
        {DailySMSUsage.sms_count: DailySMSUsage.sms_count + 1},
        synchronize_session=False
    )

    if not updated:
        db.add(DailySMSUsage(business_id=business_id, date=day, sms_count=1))

    db.commit()
    return get_daily_count(db, business_id, day)
