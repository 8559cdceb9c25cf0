"""Common UI widgets for DocSnap.

Provides reusable UI components used across the application.
"""

from typing import Optional

import numpy as np
from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QColor, QPixmap
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSpinBox,
    QWidget,
)

from docsnap.core.codec import rgba_to_qimage
from docsnap.core.constants import CONSENSUS_TARGET_DEFAULT, CONSENSUS_TIMEOUT_MS_DEFAULT


class StatusIndicator(QWidget):
    """Status line coloured by the current quality tier."""

    # Tier to color mapping
    TIER_COLORS = {
        "good": QColor(40, 167, 69),     # Green
        "mid": QColor(255, 193, 7),      # Yellow
        "bad": QColor(220, 53, 69),      # Red
    }

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        # Status dot
        self._dot = QLabel("●")
        self._dot.setFixedWidth(20)
        layout.addWidget(self._dot)

        # Status text
        self._text = QLabel("Camera off")
        self._text.setWordWrap(True)
        layout.addWidget(self._text, 1)

        self._tier = ""
        self.set_status("bad", "Camera off")

    @property
    def tier(self) -> str:
        """Current visual class."""
        return self._tier

    def set_status(self, tier: str, text: str) -> None:
        """Update the displayed status.

        Args:
            tier: "good", "mid", "bad", or "" to keep the current colour
            text: Human-readable status
        """
        self._text.setText(text)
        if not tier:
            return
        self._tier = tier
        color = self.TIER_COLORS.get(tier, QColor(128, 128, 128))
        self._dot.setStyleSheet(f"color: {color.name()};")


class ProgressDisplay(QWidget):
    """Progress display showing accepted/target format."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._label = QLabel("")
        self._label.setStyleSheet("font-size: 18px; font-weight: bold;")
        layout.addWidget(self._label)

    def set_progress(self, accepted: int, target: int) -> None:
        """Update progress display.

        Args:
            accepted: Frames accepted so far
            target: Frames requested
        """
        self._label.setText(f"{accepted}/{target}")

    def clear(self) -> None:
        """Hide the counter between sessions."""
        self._label.setText("")


class PreviewLabel(QLabel):
    """Scaled live preview of the source."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setMinimumSize(480, 270)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setFrameStyle(QFrame.Shape.StyledPanel)
        self.setStyleSheet("background-color: #222; color: #aaa;")
        self.setText("No video")

    def show_frame(self, frame: Optional[np.ndarray]) -> None:
        """Display an RGBA frame, or a placeholder when there is none."""
        if frame is None or frame.size == 0:
            self.setText("No video")
            return

        pixmap = QPixmap.fromImage(rgba_to_qimage(frame))
        self.setPixmap(
            pixmap.scaled(
                self.size(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.FastTransformation,
            )
        )


class ControlButtons(QWidget):
    """Buttons for Start/Stop, manual capture, auto-capture and light."""

    start_clicked = Signal()
    stop_clicked = Signal()
    capture_clicked = Signal()
    auto_clicked = Signal(int, int)  # target, timeout_ms
    cancel_auto_clicked = Signal()
    torch_clicked = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        self._start_btn = QPushButton("Start")
        self._start_btn.setStyleSheet(
            "background-color: #28a745; color: white; font-weight: bold;"
        )
        self._start_btn.clicked.connect(self.start_clicked.emit)
        layout.addWidget(self._start_btn)

        self._stop_btn = QPushButton("Stop")
        self._stop_btn.setStyleSheet("background-color: #dc3545; color: white;")
        self._stop_btn.clicked.connect(self.stop_clicked.emit)
        layout.addWidget(self._stop_btn)

        self._capture_btn = QPushButton("Capture")
        self._capture_btn.clicked.connect(self.capture_clicked.emit)
        layout.addWidget(self._capture_btn)

        self._target = QSpinBox()
        self._target.setRange(1, 20)
        self._target.setValue(CONSENSUS_TARGET_DEFAULT)
        self._target.setSuffix(" frames")
        layout.addWidget(self._target)

        self._timeout = QSpinBox()
        self._timeout.setRange(1, 120)
        self._timeout.setValue(CONSENSUS_TIMEOUT_MS_DEFAULT // 1000)
        self._timeout.setSuffix(" s")
        layout.addWidget(self._timeout)

        self._auto_btn = QPushButton("Auto")
        self._auto_btn.clicked.connect(self._on_auto_clicked)
        layout.addWidget(self._auto_btn)

        self._cancel_btn = QPushButton("Cancel auto")
        self._cancel_btn.clicked.connect(self.cancel_auto_clicked.emit)
        layout.addWidget(self._cancel_btn)

        self._torch_btn = QPushButton("Light")
        self._torch_btn.clicked.connect(self.torch_clicked.emit)
        layout.addWidget(self._torch_btn)

        self.set_running(False)

    def _on_auto_clicked(self) -> None:
        self.auto_clicked.emit(self._target.value(), self._timeout.value() * 1000)

    def set_consensus_defaults(self, target: int, timeout_ms: int) -> None:
        """Preset the auto-capture inputs."""
        self._target.setValue(target)
        self._timeout.setValue(max(1, timeout_ms // 1000))

    def set_running(self, running: bool) -> None:
        """Enable the buttons that make sense for the current state.

        Args:
            running: Whether the camera is monitoring
        """
        self._start_btn.setEnabled(not running)
        self._stop_btn.setEnabled(running)
        self._capture_btn.setEnabled(running)
        self._auto_btn.setEnabled(running)
        self._cancel_btn.setEnabled(running)
        self._torch_btn.setEnabled(running)
