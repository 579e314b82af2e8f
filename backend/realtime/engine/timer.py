"""Cancellable per-room countdown timers.

A scheduler hands out ``TimerHandle`` objects that invoke an async callback
once per interval until cancelled. The scheduler keeps the set of live
handles so callers can check that a room never runs two timers at once.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Awaitable[None]]


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class TimerHandle:
    def __init__(self, scheduler: "BaseScheduler"):
        self.scheduler = scheduler
        self.cancelled = False
        self.task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return not self.cancelled

    def cancel(self) -> None:
        if self.cancelled:
            return
        self.cancelled = True
        self.scheduler.live.discard(self)
        task = self.task
        # A handle cancelled from inside its own callback exits at the next wake-up.
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()


class BaseScheduler:
    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self.live: Set[TimerHandle] = set()

    def every(self, callback: TickCallback) -> TimerHandle:
        raise NotImplementedError

    def cancel_all(self) -> None:
        for handle in list(self.live):
            handle.cancel()


class AsyncioScheduler(BaseScheduler):
    def every(self, callback: TickCallback) -> TimerHandle:
        handle = TimerHandle(self)
        self.live.add(handle)
        handle.task = asyncio.get_running_loop().create_task(self._run(handle, callback))
        return handle

    async def _run(self, handle: TimerHandle, callback: TickCallback) -> None:
        try:
            while not handle.cancelled:
                await asyncio.sleep(self.interval)
                if handle.cancelled:
                    break
                await callback()
        except Exception:
            logger.exception("Room timer callback failed")
            raise
        finally:
            handle.cancelled = True
            self.live.discard(handle)


class ManualScheduler(BaseScheduler):
    """Scheduler driven explicitly by the caller; used to step timers deterministically."""

    def __init__(self, interval: float = 1.0):
        super().__init__(interval)
        self.callbacks = {}
        self.started = 0

    def every(self, callback: TickCallback) -> TimerHandle:
        handle = TimerHandle(self)
        self.live.add(handle)
        self.callbacks[handle] = callback
        self.started += 1
        return handle

    async def fire(self, handle: TimerHandle) -> None:
        if handle.active:
            await self.callbacks[handle]()

    async def advance(self, ticks: int = 1) -> None:
        for _ in range(ticks):
            for handle in list(self.live):
                await self.fire(handle)
