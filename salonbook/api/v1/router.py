"""
API v1 router setup

/public/{slug}/...   booking page, no authentication
/dashboard/...       owner and staff dashboard, JWT bearer token
"""
from fastapi import APIRouter

from salonbook.api.v1.dashboard import appointments, customers, working_hours, sms
from salonbook.api.v1.public import booking

# Dashboard routers each resolve a BusinessContext from the bearer token
dashboard_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])
for module in (appointments, customers, working_hours, sms):
    dashboard_router.include_router(module.router)

api_v1_router = APIRouter()
api_v1_router.include_router(booking.router, tags=["Public"])
api_v1_router.include_router(dashboard_router)


@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API version and authentication overview."""
    return {
        "version": "1.0",
        "authentication": {
            "public": "No authentication required",
            "dashboard": "JWT Bearer token (owner `sub`, or staff `staff_id` claim)",
        },
        "routes": {
            "public": "/api/v1/public/{slug}",
            "dashboard": "/api/v1/dashboard",
        },
    }
