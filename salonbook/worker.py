"""
Celery worker entry point

Beat triggers the periodic reminder scan; the dashboard can queue manual
reminder sends. Start both with:

    celery -A salonbook.worker worker --beat -Q reminders
"""
import logging
from celery.signals import beat_init, worker_ready, worker_shutdown

from salonbook.config.celery_config import celery_app
from salonbook.config.settings import get_settings
from salonbook.utils.my_logging import setup_logging

setup_logging()
logger = logging.getLogger(__name__)
settings = get_settings()


@worker_ready.connect
def worker_ready_handler(sender=None, **kwargs):
    reminder_tasks = sorted(name for name in celery_app.tasks.keys() if name.startswith("salonbook."))
    logger.info(f"🚀 Reminder worker ready, tasks: {reminder_tasks}")


@beat_init.connect
def beat_init_handler(sender=None, **kwargs):
    logger.info(f"⏰ Reminder scan scheduled every {settings.REMINDER_POLL_INTERVAL_SECONDS}s")


@worker_shutdown.connect
def worker_shutdown_handler(sender=None, **kwargs):
    logger.info("🛑 Reminder worker shutting down...")


if __name__ == "__main__":
    celery_app.start([
        "worker",
        "--beat",
        "--loglevel=info",
        "--concurrency=2",
        "--queues=reminders",
    ])
