"""Shared fixtures: manual clock, synthetic frames and fake encoders."""

from typing import Callable, Optional

import numpy as np
import pytest

from docsnap.core.logging import LogBuffer, Logger
from docsnap.core.source import LightControl, LiveSource, SourceError
from docsnap.core.timers import Clock, TimerHandle


class ManualTimer(TimerHandle):
    """Timer fired by ManualClock.advance()."""

    def __init__(
        self,
        due: float,
        interval: Optional[float],
        callback: Callable[[], None],
        seq: int,
    ) -> None:
        self.due = due
        self.interval = interval
        self.callback = callback
        self.seq = seq
        self._active = True

    def cancel(self) -> None:
        self._active = False

    @property
    def active(self) -> bool:
        return self._active


class ManualClock(Clock):
    """Deterministic clock: time only moves inside advance()."""

    def __init__(self) -> None:
        self._now = 0.0
        self._timers: list[ManualTimer] = []
        self._seq = 0

    def now(self) -> float:
        return self._now

    def _add(self, delay: float, interval: Optional[float], cb: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(self._now + delay, interval, cb, self._seq)
        self._seq += 1
        self._timers.append(timer)
        return timer

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        return self._add(interval_ms, interval_ms, callback)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        return self._add(delay_ms, None, callback)

    @property
    def pending(self) -> int:
        """Number of timers that may still fire."""
        return sum(1 for t in self._timers if t.active)

    def advance(self, ms: float) -> None:
        """Move time forward, firing due timers in order."""
        target = self._now + ms
        while True:
            due = [t for t in self._timers if t.active and t.due <= target]
            if not due:
                break
            timer = min(due, key=lambda t: (t.due, t.seq))
            self._now = timer.due
            if timer.interval is None:
                timer.cancel()
            else:
                timer.due += timer.interval
            timer.callback()
        self._now = target
        self._timers = [t for t in self._timers if t.active]


class FakeTorch(LightControl):
    """Light that remembers its state."""

    def __init__(self, supported: bool = True) -> None:
        self._supported = supported
        self._enabled = False

    def is_supported(self) -> bool:
        return self._supported

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled


class FakeSource(LiveSource):
    """Source showing whatever frame the test sets."""

    def __init__(
        self,
        frame: Optional[np.ndarray] = None,
        fail_open: bool = False,
        torch: Optional[LightControl] = None,
    ) -> None:
        self.current = frame
        self.fail_open = fail_open
        self.opened = False
        self.closed = False
        self._torch = torch

    def open(self) -> None:
        if self.fail_open:
            raise SourceError("Permission denied")
        self.opened = True

    def close(self) -> None:
        self.closed = True

    @property
    def torch(self) -> Optional[LightControl]:
        return self._torch

    def frame(self) -> Optional[np.ndarray]:
        return self.current


class SyncEncoder:
    """Encoder that finishes immediately with a numbered fake blob."""

    def __init__(self, after: Optional[Callable[[], None]] = None) -> None:
        self.calls = 0
        self.after = after

    def __call__(self, image, fmt, quality, done) -> None:
        self.calls += 1
        done(f"blob-{self.calls}".encode())
        if self.after is not None:
            self.after()


class DeferredEncoder:
    """Encoder whose completions the test releases by hand."""

    def __init__(self) -> None:
        self.pending: list[Callable[[Optional[bytes]], None]] = []
        self.calls = 0

    def __call__(self, image, fmt, quality, done) -> None:
        self.calls += 1
        self.pending.append(done)

    def complete(self, blob: Optional[bytes] = b"late-blob") -> None:
        """Finish the oldest pending encode."""
        self.pending.pop(0)(blob)


def _hash_row_edges(height: int, size: int = 8) -> np.ndarray:
    """Row bin edges used by the area resampler for a size-row grid."""
    return np.floor(np.arange(size) * (height / size)).astype(np.intp)


def ramp_frame(
    code: int = 0,
    width: int = 1600,
    height: int = 900,
    lo: int = 0,
    hi: int = 255,
) -> np.ndarray:
    """Grey frame of horizontal ramps, one direction per hash row.

    Bit r of `code` set makes row band r run bright-to-dark, so every
    dHash bit of that row is 1; otherwise the row is all 0 bits. Two
    codes differing in k bits give hashes 8*k bits apart.
    """
    ramp = np.linspace(lo, hi, width)
    bands = np.searchsorted(_hash_row_edges(height), np.arange(height), side="right") - 1
    flipped = ((code >> bands) & 1).astype(bool)

    gray = np.where(flipped[:, None], ramp[::-1][None, :], ramp[None, :])
    gray = np.rint(gray).astype(np.uint8)

    frame = np.empty((height, width, 4), dtype=np.uint8)
    frame[:, :, 0] = gray
    frame[:, :, 1] = gray
    frame[:, :, 2] = gray
    frame[:, :, 3] = 255
    return frame


def uniform_frame(value: int = 128, width: int = 640, height: int = 360) -> np.ndarray:
    """Flat grey frame."""
    frame = np.full((height, width, 4), value, dtype=np.uint8)
    frame[:, :, 3] = 255
    return frame


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def logger() -> Logger:
    return Logger(LogBuffer())
