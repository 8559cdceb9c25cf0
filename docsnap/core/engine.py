"""Qt capture engine.

Wraps a CaptureMonitor for the GUI:
- Drives ticks and deadlines with QTimer (QtClock)
- Encodes blobs on a QThreadPool so ticks keep running meanwhile
- Re-emits monitor callbacks as Qt signals
"""

from typing import Callable, Optional

import numpy as np
from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot

from .codec import EncodeError, encode_image
from .logging import Logger, get_logger
from .model import CaptureConfig, OrientationSample, QualityTier, State
from .monitor import CaptureMonitor, EncodeDone
from .source import LiveSource, SourceError
from .timers import QtClock


class _EncodeSignals(QObject):
    """Signals of an encode task (QRunnable cannot emit)."""

    finished = Signal(object)  # bytes, or None on failure
    failed = Signal(str)  # error message


class EncodeTask(QRunnable):
    """Encodes one buffer on a pool thread."""

    def __init__(self, image: np.ndarray, fmt: str, quality: float) -> None:
        super().__init__()
        self.setAutoDelete(False)
        self._image = image
        self._fmt = fmt
        self._quality = quality
        # Created on the GUI thread, so finished is delivered there
        self.signals = _EncodeSignals()

    def run(self) -> None:
        try:
            blob: Optional[bytes] = encode_image(self._image, self._fmt, self._quality)
        except EncodeError as e:
            # Log on the GUI thread, where the log view listens
            self.signals.failed.emit(str(e))
            blob = None
        self.signals.finished.emit(blob)


class ThreadedEncoder:
    """Encoder that runs on a thread pool and completes on the GUI thread."""

    def __init__(
        self,
        pool: Optional[QThreadPool] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        self._pool = pool or QThreadPool.globalInstance()
        self._logger = logger or get_logger()
        self._pending: set[EncodeTask] = set()

    @property
    def pending(self) -> int:
        """Encodes not yet delivered."""
        return len(self._pending)

    def __call__(self, image: np.ndarray, fmt: str, quality: float, done: EncodeDone) -> None:
        task = EncodeTask(image, fmt, quality)

        def finished(blob: Optional[bytes]) -> None:
            self._pending.discard(task)
            done(blob)

        task.signals.failed.connect(self._logger.error)
        task.signals.finished.connect(finished)
        self._pending.add(task)
        self._pool.start(task)


class CaptureEngine(QObject):
    """Main capture engine controller.

    Owns one CaptureMonitor per start(); a stopped monitor is discarded.
    """

    state_changed = Signal(object)  # State
    status_changed = Signal(str, str)  # tier label ("" keeps current), text
    progress_updated = Signal(int, int)  # accepted, target
    image_captured = Signal(object)  # CaptureFrame
    batch_ready = Signal(object)  # ConsensusResult

    def __init__(
        self,
        parent: Optional[QObject] = None,
        logger: Optional[Logger] = None,
    ) -> None:
        """Initialize the engine."""
        super().__init__(parent)

        self._logger = logger or get_logger()
        self._clock = QtClock(self)
        self._encoder = ThreadedEncoder(logger=self._logger)
        self._monitor: Optional[CaptureMonitor] = None

    @property
    def is_running(self) -> bool:
        """Check if a monitor is currently ticking."""
        return self._monitor is not None and self._monitor.state is State.Monitoring

    @property
    def state(self) -> State:
        """Get current state."""
        if self._monitor:
            return self._monitor.state
        return State.Idle

    @property
    def monitor(self) -> Optional[CaptureMonitor]:
        """The current monitor, if any."""
        return self._monitor

    def current_frame(self) -> Optional[np.ndarray]:
        """Latest source frame for preview."""
        if not self.is_running:
            return None
        try:
            return self._monitor.source.frame()  # type: ignore[union-attr]
        except SourceError:
            return None  # The next tick reports it

    def start(self, source: LiveSource, config: Optional[CaptureConfig] = None) -> bool:
        """Start monitoring a source.

        Args:
            source: Live source to watch
            config: Capture configuration (defaults if None)

        Returns:
            True if started, False if already running or start failed
        """
        if self.is_running:
            self._logger.warning("Capture already running")
            return False

        self._logger.clear_context()
        monitor = CaptureMonitor(
            source,
            self._clock,
            config=config,
            encoder=self._encoder,
            logger=self._logger,
        )
        monitor.on_state = self.state_changed.emit
        monitor.on_status = self._emit_status
        monitor.on_progress = self.progress_updated.emit
        monitor.on_capture = self.image_captured.emit
        monitor.on_batch = self.batch_ready.emit

        self._monitor = monitor
        return monitor.start()

    def stop(self) -> None:
        """Stop monitoring."""
        if self._monitor:
            self._monitor.stop()

    def manual_capture(self) -> bool:
        """Capture the current frame immediately."""
        return self._call(lambda m: m.manual_capture())

    def start_auto_consensus(self, target_count: int, timeout_ms: int) -> bool:
        """Start an auto-capture session."""
        return self._call(lambda m: m.start_auto_consensus(target_count, timeout_ms))

    def cancel_auto_consensus(self) -> None:
        """Cancel the running auto-capture session."""
        self._call(lambda m: m.cancel_auto_consensus())

    def toggle_torch(self) -> bool:
        """Flip the source light."""
        return self._call(lambda m: m.toggle_torch())

    @Slot(object)
    def update_orientation(self, sample: OrientationSample) -> None:
        """Forward an orientation reading to the monitor."""
        if self._monitor:
            self._monitor.update_orientation(sample)

    def _call(self, action: Callable[[CaptureMonitor], Optional[bool]]) -> bool:
        if self._monitor is None:
            return False
        return bool(action(self._monitor))

    def _emit_status(self, tier: Optional[QualityTier], text: str) -> None:
        self.status_changed.emit(tier.value if tier else "", text)
