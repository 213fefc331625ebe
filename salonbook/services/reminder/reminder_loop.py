# salonbook/services/reminder/reminder_loop.py
"""Background task that runs a reminder scan at a fixed interval until stopped"""
import asyncio
import logging
from typing import Optional

from salonbook.config.settings import get_settings
from salonbook.schemas.reminder import ReminderScanResult
from salonbook.services.reminder.reminder_service import ReminderDispatcher

logger = logging.getLogger(__name__)
settings = get_settings()


class ReminderLoop:
    """
    Periodic reminder scanner for the API process.

    The first scan runs one interval after start(). Scans execute in a worker
    thread so database and SMS I/O never block the event loop.
    """

    def __init__(self, dispatcher: ReminderDispatcher, interval_seconds: Optional[float] = None):
        self.dispatcher = dispatcher
        self.interval_seconds = interval_seconds or settings.REMINDER_POLL_INTERVAL_SECONDS
        self._stop_event: Optional[asyncio.Event] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        """Schedule the loop on the running event loop; no-op if already running"""
        if self.is_running:
            return
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="reminder-loop")
        logger.info(f"⏰ Reminder loop started (every {self.interval_seconds}s)")

    async def stop(self):
        """Signal the loop to finish and wait for an in-flight scan to complete"""
        if not self.is_running:
            return
        self._stop_event.set()
        await self._task
        self._task = None
        logger.info("🛑 Reminder loop stopped")

    async def trigger_once(self) -> Optional[ReminderScanResult]:
        """Run a single scan now"""
        try:
            return await asyncio.to_thread(self.dispatcher.run_scan)
        except Exception as e:
            # Keep the loop alive whatever a scan does
            logger.error(f"Reminder scan failed: {e}")
            return None

    async def _run(self):
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                await self.trigger_once()
