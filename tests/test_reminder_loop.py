import asyncio
import threading
import unittest

from salonbook.schemas.reminder import ReminderScanResult
from salonbook.services.reminder.reminder_loop import ReminderLoop


class CountingDispatcher:
    def __init__(self, error=None):
        self.error = error
        self.calls = 0
        self.threads = set()

    def run_scan(self):
        self.calls += 1
        self.threads.add(threading.get_ident())
        if self.error is not None:
            raise self.error
        return ReminderScanResult(selected=1)


class TestReminderLoop(unittest.TestCase):

    def test_scans_until_stopped(self):
        dispatcher = CountingDispatcher()

        async def scenario():
            loop = ReminderLoop(dispatcher, interval_seconds=0.01)
            loop.start()
            self.assertTrue(loop.is_running)
            await asyncio.sleep(0.1)
            await loop.stop()
            return loop

        loop = asyncio.run(scenario())

        self.assertFalse(loop.is_running)
        self.assertGreaterEqual(dispatcher.calls, 1)
        self.assertNotIn(threading.get_ident(), dispatcher.threads)

    def test_no_scan_after_stop(self):
        dispatcher = CountingDispatcher()

        async def scenario():
            loop = ReminderLoop(dispatcher, interval_seconds=0.01)
            loop.start()
            await asyncio.sleep(0.05)
            await loop.stop()
            calls = dispatcher.calls
            await asyncio.sleep(0.05)
            return calls

        calls_at_stop = asyncio.run(scenario())
        self.assertEqual(dispatcher.calls, calls_at_stop)

    def test_trigger_once_returns_result(self):
        dispatcher = CountingDispatcher()
        result = asyncio.run(ReminderLoop(dispatcher, interval_seconds=60).trigger_once())
        self.assertEqual(result.selected, 1)

    def test_failing_scan_does_not_kill_loop(self):
        dispatcher = CountingDispatcher(error=RuntimeError("database down"))

        async def scenario():
            loop = ReminderLoop(dispatcher, interval_seconds=0.01)
            self.assertIsNone(await loop.trigger_once())
            loop.start()
            await asyncio.sleep(0.1)
            running = loop.is_running
            await loop.stop()
            return running

        self.assertTrue(asyncio.run(scenario()))
        self.assertGreaterEqual(dispatcher.calls, 2)

    def test_stop_without_start(self):
        asyncio.run(ReminderLoop(CountingDispatcher(), interval_seconds=1).stop())
