# salonbook/services/staff/permission_service.py
"""Permission oracle for staff-side actions"""
from typing import Iterable, Set
from sqlalchemy.orm import Session

from salonbook.models.staff import StaffPermission, StaffRoleAssignment
from salonbook.schemas.business import BusinessContext

# Permission names checked by the dashboard API
APPOINTMENTS_CREATE = "appointments.create"
APPOINTMENTS_EDIT = "appointments.edit"
APPOINTMENTS_STATUS = "appointments.status"
REMINDERS_SEND = "reminders.send"
WORKING_HOURS_EDIT = "working_hours.edit"
SMS_SETTINGS = "sms.settings"


class PermissionService:

    @staticmethod
    def get_permissions(db: Session, context: BusinessContext) -> Set[str]:
        """Names of the permissions granted to the calling staff member"""
        if context.staff_id is None:
            return set()

        rows = db.query(StaffPermission.name).join(
            StaffRoleAssignment, StaffRoleAssignment.permission_id == StaffPermission.id
        ).filter(
            StaffRoleAssignment.staff_id == context.staff_id
        ).all()
        return {row.name for row in rows}

    @staticmethod
    def has_permission(db: Session, context: BusinessContext, name: str) -> bool:
        """Owners may do everything; staff only what they were granted"""
        if context.is_owner:
            return True
        return name in PermissionService.get_permissions(db, context)

    @staticmethod
    def has_any_permission(db: Session, context: BusinessContext, names: Iterable[str]) -> bool:
        if context.is_owner:
            return True
        granted = PermissionService.get_permissions(db, context)
        return any(name in granted for name in names)
