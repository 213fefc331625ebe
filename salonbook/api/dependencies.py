# ============================================================================
# FILE: salonbook/api/dependencies.py
# Resolves the caller's BusinessContext from a bearer JWT
# ============================================================================
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional
from jose import JWTError, jwt
from uuid import UUID

from salonbook.config.database import get_db
from salonbook.config.settings import settings
from salonbook.models.business import Business
from salonbook.models.staff import Staff
from salonbook.schemas.business import BusinessContext
from salonbook.services.staff.permission_service import PermissionService

# Tokens are issued by the external auth provider
jwt_security = HTTPBearer(
    scheme_name="JWT Bearer Token",
    description="Enter your JWT access token"
)


def verify_access_token(token: str) -> dict:
    """
    Verify and decode a JWT access token.

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Could not validate credentials: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if payload.get("type", "access") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload


def _uuid_claim(payload: dict, claim: str) -> Optional[UUID]:
    value = payload.get(claim)
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid {claim} in token",
            headers={"WWW-Authenticate": "Bearer"},
        )


async def get_business_context(
        credentials: HTTPAuthorizationCredentials = Depends(jwt_security),
        db: Session = Depends(get_db)
) -> BusinessContext:
    """
    Dependency resolving which business the caller acts for.

    Staff tokens carry a `staff_id` claim; any other token is treated as a
    business owner identified by `sub`.

    Raises:
        HTTPException 401: Invalid token
        HTTPException 403: Caller has no business
    """
    payload = verify_access_token(credentials.credentials)
    user_id = _uuid_claim(payload, "sub")
    staff_id = _uuid_claim(payload, "staff_id")

    if staff_id is not None:
        staff = db.query(Staff).filter(Staff.id == staff_id, Staff.is_active.is_(True)).first()
        if not staff:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Staff member not found or inactive"
            )
        return BusinessContext(business_id=staff.business_id, user_id=user_id, staff_id=staff.id)

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    business = db.query(Business).filter(Business.owner_id == user_id).first()
    if not business:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User not associated with a business"
        )

    return BusinessContext(business_id=business.id, user_id=user_id, is_owner=True)


def require_permission(name: str):
    """
    Dependency factory guarding staff-side mutations.

    Usage in routes:
        context: BusinessContext = Depends(require_permission("appointments.create"))
    """

    async def checker(
            context: BusinessContext = Depends(get_business_context),
            db: Session = Depends(get_db)
    ) -> BusinessContext:
        if not PermissionService.has_permission(db, context, name):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {name}"
            )
        return context

    return checker


# ============================================================================
# Service Dependencies (overridable in tests)
# ============================================================================

def get_sms_service():
    from salonbook.services.sms.sms_service import SMSService
    return SMSService()


def get_reminder_dispatcher():
    from salonbook.services.reminder.reminder_service import ReminderDispatcher
    return ReminderDispatcher()
