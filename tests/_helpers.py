"""Test doubles shared by the test modules: a hand-driven clock and fake audio inputs."""

from typing import Callable, List, Optional

import numpy as np

from audio.devices import AudioInput
from session.models import ProgressUpdate
from session.progress import ProgressSink
from utils.scheduler import Scheduler, TimerHandle

SCENARIO_TRANSCRIPT = "So, um, I think that, uh, this is basically a great idea"


class ManualTimer(TimerHandle):
    def __init__(self, name: str, due: float, callback: Callable[[], None], interval: Optional[float], seq: int):
        super().__init__(name)
        self.due = due
        self.callback = callback
        self.interval = interval
        self.seq = seq


class ManualScheduler(Scheduler):
    """Scheduler whose clock only moves when ``advance`` is called."""

    def __init__(self, start: float = 0.0):
        self._now = start
        self._timers: List[ManualTimer] = []
        self._seq = 0

    def now(self) -> float:
        return self._now

    def _add(self, name, delay, callback, interval) -> ManualTimer:
        self._seq += 1
        timer = ManualTimer(name, self._now + max(0.0, delay), callback, interval, self._seq)
        self._timers.append(timer)
        return timer

    def call_later(self, delay, callback, name=""):
        return self._add(name, delay, callback, None)

    def call_every(self, interval, callback, name=""):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        return self._add(name, interval, callback, interval)

    def pending(self) -> List[str]:
        return [t.name for t in self._timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing due callbacks in time order."""
        target = self._now + seconds
        while True:
            due = [t for t in self._timers if not t.cancelled and t.due <= target + 1e-9]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self._now = max(self._now, timer.due)
            if timer.interval is None:
                timer._cancelled = True
            else:
                timer.due += timer.interval
            timer.callback()
        self._now = target
        self._timers = [t for t in self._timers if not t.cancelled]


def sine_frame(amplitude: float = 0.5, size: int = 256, cycles: int = 8) -> np.ndarray:
    t = np.arange(size)
    return (amplitude * np.sin(2 * np.pi * cycles * t / size)).astype(np.float32)


class FakeAudioInput(AudioInput):
    """Input returning the same frame on every read."""

    def __init__(self, frame: Optional[np.ndarray] = None, name: str = "fake-mic"):
        self.name = name
        self.frame = sine_frame() if frame is None else frame
        self.open_count = 0
        self.close_count = 0
        self.is_open = False
        self.fail_reads = 0

    def open(self) -> None:
        self.open_count += 1
        self.is_open = True

    def read(self):
        if self.fail_reads > 0:
            self.fail_reads -= 1
            raise IOError("stream read failed")
        return self.frame

    def close(self) -> None:
        self.close_count += 1
        self.is_open = False


class FailingAudioInput(FakeAudioInput):
    """Input whose ``open`` raises the given exception."""

    def __init__(self, exc: Exception):
        super().__init__()
        self.exc = exc

    def open(self) -> None:
        self.open_count += 1
        raise self.exc


class RecordingProgressSink(ProgressSink):
    def __init__(self):
        self.updates: List[ProgressUpdate] = []

    def record(self, update: ProgressUpdate) -> None:
        self.updates.append(update)
