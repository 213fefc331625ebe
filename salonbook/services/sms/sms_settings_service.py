# ============================================================================
# salonbook/services/sms/sms_settings_service.py
# Per-business SMS configuration, log listing and delivery stats
# ============================================================================
from sqlalchemy.orm import Session
from sqlalchemy import desc
from typing import Optional, Dict, Any, List
from uuid import UUID
import logging

from salonbook.models.sms import SMSSettings, SMSLog

logger = logging.getLogger(__name__)

DEFAULTS = {
    "is_enabled": True,
    "reminder_enabled": True,
    "reminder_minutes": 30,
    "business_notification_enabled": True,
    "verification_enabled": False,
    "notification_phone_source": "business",
}


class SMSSettingsService:
    """Service layer for SMS settings"""

    @staticmethod
    def get_settings(db: Session, business_id: UUID) -> Optional[SMSSettings]:
        return db.query(SMSSettings).filter(SMSSettings.business_id == business_id).first()

    @staticmethod
    def create_settings(db: Session, business_id: UUID, **overrides) -> SMSSettings:
        values = {**DEFAULTS, **{k: v for k, v in overrides.items() if v is not None}}
        sms_settings = SMSSettings(business_id=business_id, **values)

        db.add(sms_settings)
        db.commit()
        db.refresh(sms_settings)
        return sms_settings

    @staticmethod
    def update_settings(db: Session, business_id: UUID, **changes) -> SMSSettings:
        """Apply non-None changes, creating the settings row on first save"""
        sms_settings = SMSSettingsService.get_settings(db, business_id)
        if sms_settings is None:
            return SMSSettingsService.create_settings(db, business_id, **changes)

        for field, value in changes.items():
            if value is not None:
                setattr(sms_settings, field, value)

        db.commit()
        db.refresh(sms_settings)
        logger.info(f"SMS settings updated for business {business_id}")
        return sms_settings

    @staticmethod
    def get_logs(db: Session, business_id: UUID, limit: int = 50) -> List[Dict[str, Any]]:
        logs = db.query(SMSLog).filter(
            SMSLog.business_id == business_id
        ).order_by(desc(SMSLog.sent_at)).limit(limit).all()
        return [log.to_dict() for log in logs]

    @staticmethod
    def get_stats(db: Session, business_id: UUID) -> Dict[str, int]:
        statuses = [row.status for row in db.query(SMSLog.status).filter(SMSLog.business_id == business_id)]
        return {
            "total": len(statuses),
            "sent": sum(1 for s in statuses if s == "sent"),
            "failed": sum(1 for s in statuses if s == "failed"),
        }
