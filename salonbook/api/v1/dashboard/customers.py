# salonbook/api/v1/dashboard/customers.py
from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from uuid import UUID

from salonbook.config.database import get_db
from salonbook.api.dependencies import get_business_context
from salonbook.schemas.business import BusinessContext
from salonbook.services.appointment.appointment_query_service import AppointmentQueryService

router = APIRouter(prefix="/customers", tags=["dashboard-customers"])


@router.get("/{customer_id}/appointments")
async def get_customer_history(
        customer_id: UUID = Path(..., description="The customer ID"),
        context: BusinessContext = Depends(get_business_context),
        db: Session = Depends(get_db)
):
    """A customer's appointment history, one entry per booking, newest first."""
    groups = AppointmentQueryService.customer_history(db, context, customer_id)
    return {
        "customer_id": str(customer_id),
        "total_appointments": len(groups),
        "appointments": [g.model_dump(mode="json") for g in groups],
    }
