# salonbook/services/sms/verification_service.py
"""Phone number verification by one-time SMS code"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from salonbook.config.settings import get_settings
from salonbook.models.sms import PhoneVerification

logger = logging.getLogger(__name__)
settings = get_settings()


class PhoneVerificationService:
    """Create, check and query phone verification codes"""

    @staticmethod
    def generate_code() -> str:
        return f"{secrets.randbelow(10 ** 6):06d}"

    @staticmethod
    def create_verification(
            db: Session,
            sms_service,
            phone: str,
            business_id: UUID,
            now: Optional[datetime] = None
    ) -> Optional[PhoneVerification]:
        """
        Issue a fresh code for the phone, replacing earlier ones.

        Returns None when the code could not be delivered; the stored code is
        removed in that case so it can never be used.
        """
        now = now or datetime.now()

        db.query(PhoneVerification).filter(
            PhoneVerification.phone_number == phone,
            PhoneVerification.business_id == business_id
        ).delete(synchronize_session=False)

        verification = PhoneVerification(
            phone_number=phone,
            business_id=business_id,
            verification_code=PhoneVerificationService.generate_code(),
            is_verified=False,
            expires_at=now + timedelta(minutes=settings.PHONE_VERIFICATION_TTL_MINUTES),
        )
        db.add(verification)
        db.commit()
        db.refresh(verification)

        if not sms_service.send_verification_code(phone, verification.verification_code, business_id):
            logger.error(f"Verification code could not be sent to {phone}")
            db.delete(verification)
            db.commit()
            return None

        return verification

    @staticmethod
    def verify_code(
            db: Session,
            phone: str,
            code: str,
            business_id: UUID,
            now: Optional[datetime] = None
    ) -> bool:
        now = now or datetime.now()

        verification = db.query(PhoneVerification).filter(
            PhoneVerification.phone_number == phone,
            PhoneVerification.verification_code == code,
            PhoneVerification.business_id == business_id,
            PhoneVerification.is_verified.is_(False),
            PhoneVerification.expires_at > now
        ).first()

        if not verification:
            return False

        verification.is_verified = True
        db.commit()
        return True

    @staticmethod
    def is_phone_verified(db: Session, phone: str, business_id: UUID) -> bool:
        return db.query(PhoneVerification).filter(
            PhoneVerification.phone_number == phone,
            PhoneVerification.business_id == business_id,
            PhoneVerification.is_verified.is_(True)
        ).first() is not None
