"""Clock and timer abstraction for the capture loop.

The monitor and collector never touch Qt directly; they ask a Clock
for the time and for periodic / one-shot callbacks. QtClock backs this
with QElapsedTimer and QTimer on the GUI thread.
"""

from typing import Callable, Optional

from PySide6.QtCore import QElapsedTimer, QObject, QTimer


class TimerHandle:
    """A scheduled callback that can be cancelled."""

    def cancel(self) -> None:
        """Stop the timer. Safe to call more than once."""
        raise NotImplementedError

    @property
    def active(self) -> bool:
        """True while the callback may still fire."""
        raise NotImplementedError


class Clock:
    """Time source and scheduler interface."""

    def now(self) -> float:
        """Monotonic time in milliseconds."""
        raise NotImplementedError

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Run callback every interval_ms until cancelled."""
        raise NotImplementedError

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        """Run callback once after delay_ms unless cancelled."""
        raise NotImplementedError


class QtTimerHandle(TimerHandle):
    """TimerHandle backed by a QTimer."""

    def __init__(self, timer: QTimer) -> None:
        self._timer: Optional[QTimer] = timer

    def cancel(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer.deleteLater()
            self._timer = None

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()


class QtClock(Clock):
    """Clock running on the Qt event loop of the calling thread."""

    def __init__(self, parent: Optional[QObject] = None) -> None:
        self._parent = parent
        self._elapsed = QElapsedTimer()
        self._elapsed.start()

    def now(self) -> float:
        return float(self._elapsed.elapsed())

    def call_every(self, interval_ms: int, callback: Callable[[], None]) -> TimerHandle:
        timer = QTimer(self._parent)
        timer.setInterval(interval_ms)
        timer.timeout.connect(callback)
        timer.start()
        return QtTimerHandle(timer)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        timer.setInterval(delay_ms)
        handle = QtTimerHandle(timer)

        def fire() -> None:
            handle.cancel()
            callback()

        timer.timeout.connect(fire)
        timer.start()
        return handle
