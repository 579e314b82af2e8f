import asyncio

from django.test import SimpleTestCase

from realtime.engine.timer import AsyncioScheduler, ManualScheduler


class ManualSchedulerTests(SimpleTestCase):
    async def test_advance_fires_live_handles(self):
        scheduler = ManualScheduler()
        calls = []

        async def callback():
            calls.append("tick")

        handle = scheduler.every(callback)
        await scheduler.advance(3)
        self.assertEqual(len(calls), 3)

        handle.cancel()
        await scheduler.advance(2)
        self.assertEqual(len(calls), 3)
        self.assertEqual(scheduler.live, set())

    def test_cancel_all(self):
        scheduler = ManualScheduler()

        async def callback():
            pass

        first = scheduler.every(callback)
        second = scheduler.every(callback)
        scheduler.cancel_all()
        self.assertFalse(first.active)
        self.assertFalse(second.active)
        self.assertEqual(scheduler.started, 2)


class AsyncioSchedulerTests(SimpleTestCase):
    async def test_ticks_until_cancelled_from_inside(self):
        scheduler = AsyncioScheduler(0.001)
        calls = []
        done = asyncio.Event()

        async def callback():
            calls.append("tick")
            if len(calls) == 3:
                handle.cancel()
                done.set()

        handle = scheduler.every(callback)
        await asyncio.wait_for(done.wait(), timeout=2)
        await asyncio.wait_for(handle.task, timeout=2)
        self.assertEqual(len(calls), 3)
        self.assertEqual(scheduler.live, set())

    async def test_cancel_from_outside_stops_the_task(self):
        scheduler = AsyncioScheduler(10)

        async def callback():
            raise AssertionError("should never fire")

        handle = scheduler.every(callback)
        await asyncio.sleep(0)
        handle.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await handle.task
        self.assertEqual(scheduler.live, set())
