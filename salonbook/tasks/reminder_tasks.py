# ===== salonbook/tasks/reminder_tasks.py =====
import logging
from uuid import UUID

from salonbook.config.celery_config import celery_app
from salonbook.schemas.business import BusinessContext
from salonbook.services.reminder.reminder_service import ReminderDispatcher

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=0)
def dispatch_due_reminders(self):
    """
    Periodic reminder scan, scheduled by Celery beat.

    Never retried: a reminder that failed after its flag was claimed stays spent.
    """
    result = ReminderDispatcher().run_scan()
    logger.info(f"Reminder task {self.request.id} finished: {result.model_dump()}")
    return result.model_dump()


@celery_app.task(bind=True, max_retries=0)
def send_manual_reminder(self, business_id: str, appointment_id: str):
    """Queue a manual resend from the dashboard"""
    context = BusinessContext(business_id=UUID(business_id))
    try:
        sent = ReminderDispatcher().send_manual_reminder(context, UUID(appointment_id))
    except ValueError as exc:
        logger.warning(f"Manual reminder for {appointment_id} not sent: {exc}")
        return {"status": "failed", "reason": str(exc)}

    return {"status": "sent" if sent else "failed", "appointment_id": appointment_id}
