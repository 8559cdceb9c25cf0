"""Best-effort device orientation sampler.

Wraps QRotationSensor when the platform has one. Readings are only an
auxiliary hint stamped on captured frames; nothing depends on them.
"""

import time
from typing import Optional

from PySide6.QtCore import QObject, QTimer, Signal
from PySide6.QtSensors import QRotationSensor

from .constants import ORIENTATION_INTERVAL_MS
from .model import OrientationSample


class OrientationSampler(QObject):
    """Polls the rotation sensor and emits OrientationSample values."""

    sample_ready = Signal(object)  # OrientationSample

    def __init__(
        self,
        interval_ms: int = ORIENTATION_INTERVAL_MS,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)

        self._sensor = QRotationSensor(self)
        self._available = self._sensor.connectToBackend()
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._poll)

    def is_available(self) -> bool:
        """True if the platform provides a rotation sensor."""
        return self._available

    def start(self) -> bool:
        """Begin sampling. Returns False (and does nothing) without a sensor."""
        if not self._available:
            return False
        self._sensor.start()
        self._timer.start()
        return True

    def stop(self) -> None:
        """Stop sampling."""
        self._timer.stop()
        if self._available:
            self._sensor.stop()

    def _poll(self) -> None:
        reading = self._sensor.reading()
        if reading is None:
            return

        # z ~ compass heading, x ~ front/back tilt, y ~ left/right tilt
        self.sample_ready.emit(
            OrientationSample(
                alpha=float(reading.z()),
                beta=float(reading.x()),
                gamma=float(reading.y()),
                timestamp=time.time(),
            )
        )
