import asyncio
import unittest

from incident_feed.scheduler import RefreshScheduler


class TestRefreshScheduler(unittest.IsolatedAsyncioTestCase):
    async def test_runs_until_stopped(self):
        calls = []

        async def refresh():
            calls.append(1)

        scheduler = RefreshScheduler(0.01, refresh)
        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()

        self.assertFalse(scheduler.running)
        self.assertGreaterEqual(len(calls), 2)
        self.assertEqual(scheduler.runs, len(calls))

        count = len(calls)
        await asyncio.sleep(0.05)
        self.assertEqual(len(calls), count)

    async def test_failures_do_not_stop_the_loop(self):
        calls = []

        async def refresh():
            calls.append(1)
            raise RuntimeError("fetch failed")

        scheduler = RefreshScheduler(0.01, refresh)
        await scheduler.start()
        await asyncio.sleep(0.1)
        await scheduler.stop()
        self.assertGreaterEqual(len(calls), 2)
        self.assertEqual(scheduler.runs, 0)

    async def test_start_is_idempotent_and_stop_is_safe(self):
        async def refresh():
            pass

        scheduler = RefreshScheduler(60, refresh)
        await scheduler.stop()
        await scheduler.start()
        task = scheduler._task
        await scheduler.start()
        self.assertIs(scheduler._task, task)
        await scheduler.stop()
        self.assertIsNone(scheduler._task)

    def test_interval_must_be_positive(self):
        async def refresh():
            pass

        with self.assertRaises(ValueError):
            RefreshScheduler(0, refresh)


if __name__ == "__main__":
    unittest.main()
