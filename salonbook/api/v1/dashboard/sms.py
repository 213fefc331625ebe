# salonbook/api/v1/dashboard/sms.py
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from salonbook.config.database import get_db
from salonbook.api.dependencies import get_business_context, require_permission
from salonbook.schemas.business import BusinessContext, SMSSettingsUpdate
from salonbook.services.sms.sms_settings_service import SMSSettingsService, DEFAULTS
from salonbook.services.staff import permission_service as perms

router = APIRouter(prefix="/sms", tags=["dashboard-sms"])


@router.get("/settings")
async def get_sms_settings(
        context: BusinessContext = Depends(get_business_context),
        db: Session = Depends(get_db)
):
    sms_settings = SMSSettingsService.get_settings(db, context.business_id)
    if sms_settings is None:
        return {"business_id": str(context.business_id), "configured": False, **DEFAULTS}
    return {"configured": True, **sms_settings.to_dict()}


@router.put("/settings")
async def update_sms_settings(
        update: SMSSettingsUpdate,
        context: BusinessContext = Depends(require_permission(perms.SMS_SETTINGS)),
        db: Session = Depends(get_db)
):
    sms_settings = SMSSettingsService.update_settings(db, context.business_id, **update.model_dump())
    return {"configured": True, **sms_settings.to_dict()}


@router.get("/logs")
async def get_sms_logs(
        limit: int = Query(50, ge=1, le=200),
        context: BusinessContext = Depends(get_business_context),
        db: Session = Depends(get_db)
):
    return {"logs": SMSSettingsService.get_logs(db, context.business_id, limit)}


@router.get("/stats")
async def get_sms_stats(
        context: BusinessContext = Depends(get_business_context),
        db: Session = Depends(get_db)
):
    return SMSSettingsService.get_stats(db, context.business_id)
