"""Health checks and monitoring endpoints"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from salonbook.config.database import get_db

health_router = APIRouter()


@health_router.get("/")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "salonbook-api"}


@health_router.get("/detailed")
async def detailed_health_check(request: Request, db: Session = Depends(get_db)):
    """Detailed health check with dependencies"""
    checks = {
        "api": "healthy",
        "database": "unknown",
        "reminder_loop": "disabled",
        "overall": "unknown"
    }

    # Check database
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except SQLAlchemyError as e:
        checks["database"] = f"unhealthy: {str(e)}"

    # Check in-process reminder loop
    reminder_loop = getattr(request.app.state, "reminder_loop", None)
    if reminder_loop is not None:
        checks["reminder_loop"] = "healthy" if reminder_loop.is_running else "stopped"

    # Overall status
    if all(status in ("healthy", "disabled") for key, status in checks.items() if key != "overall"):
        checks["overall"] = "healthy"
    else:
        checks["overall"] = "degraded"

    return checks
