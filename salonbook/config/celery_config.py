# salonbook/config/celery_config.py
"""Celery configuration and task routing"""
from celery import Celery
from kombu import Queue

from salonbook.config.settings import get_settings

settings = get_settings()


def create_celery_app() -> Celery:
    """Create and configure Celery application"""

    celery_app = Celery(
        "salonbook",
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=["salonbook.tasks.reminder_tasks"],
    )

    # Configure Celery
    celery_app.conf.update(
        task_serializer=settings.CELERY_TASK_SERIALIZER,
        accept_content=["json"],
        result_serializer="json",
        # Appointment dates and times are local wall-clock values
        enable_utc=False,

        # Task routing
        task_routes={
            "salonbook.tasks.reminder_tasks.*": {"queue": "reminders"},
        },

        # Queue definitions
        task_queues=(
            Queue("reminders", routing_key="reminders"),
        ),

        # Periodic reminder scan
        beat_schedule={
            "dispatch-due-reminders": {
                "task": "salonbook.tasks.reminder_tasks.dispatch_due_reminders",
                "schedule": float(settings.REMINDER_POLL_INTERVAL_SECONDS),
            },
        },

        # Worker settings
        worker_max_tasks_per_child=1000,
        worker_prefetch_multiplier=1,
        task_acks_late=True,

        broker_connection_retry_on_startup=True,
    )

    return celery_app


# Create the Celery app instance
celery_app = create_celery_app()
