"""
Cooperative scheduling primitives for the session engine.

Everything that happens on a cadence (volume sampling, the live-feedback
interval, the session countdown, the preparation and analysis delays) goes
through a ``Scheduler`` so that one owner can cancel it and tests can drive
time by hand instead of waiting on the wall clock.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class TimerHandle:
    """Cancellable handle returned by ``Scheduler.call_later``/``call_every``."""

    def __init__(self, name: str = ""):
        self.name = name
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Cancel the scheduled callback. Safe to call more than once."""
        self._cancelled = True

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"<{type(self).__name__} {self.name or '?'} {state}>"


class Scheduler:
    """
    Clock + timer abstraction.

    Implementations must run every callback on the same thread that
    scheduled it; callers rely on that to avoid locking.
    """

    def now(self) -> float:
        """Monotonic time in seconds."""
        raise NotImplementedError

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> TimerHandle:
        """Run ``callback`` once after ``delay`` seconds."""
        raise NotImplementedError

    def call_every(self, interval: float, callback: Callable[[], None], name: str = "") -> TimerHandle:
        """Run ``callback`` every ``interval`` seconds until cancelled."""
        raise NotImplementedError


class _AsyncioTimerHandle(TimerHandle):
    def __init__(self, name: str = ""):
        super().__init__(name)
        self._handle: Optional[asyncio.TimerHandle] = None

    def cancel(self) -> None:
        super().cancel()
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class AsyncioScheduler(Scheduler):
    """Scheduler backed by an asyncio event loop (``loop.call_later``)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None], name: str = "") -> TimerHandle:
        handle = _AsyncioTimerHandle(name)

        def _fire() -> None:
            handle._handle = None
            if handle.cancelled:
                return
            handle._cancelled = True
            _run_callback(callback, handle)

        handle._handle = self.loop.call_later(max(0.0, delay), _fire)
        return handle

    def call_every(self, interval: float, callback: Callable[[], None], name: str = "") -> TimerHandle:
        if interval <= 0:
            raise ValueError(f"interval must be > 0, got {interval}")

        handle = _AsyncioTimerHandle(name)
        # Anchor ticks to the schedule, not to when the previous tick ran
        next_due = self.loop.time() + interval

        def _tick() -> None:
            nonlocal next_due
            handle._handle = None
            if handle.cancelled:
                return
            _run_callback(callback, handle)
            if handle.cancelled:
                return
            next_due += interval
            delay = max(0.0, next_due - self.loop.time())
            handle._handle = self.loop.call_later(delay, _tick)

        handle._handle = self.loop.call_later(interval, _tick)
        return handle


def _run_callback(callback: Callable[[], None], handle: TimerHandle) -> None:
    """Run a scheduled callback; an exception is logged, never propagated into the loop."""
    try:
        callback()
    except Exception:
        logger.exception(f"Scheduled callback {handle.name or callback!r} failed")
