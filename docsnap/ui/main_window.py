"""Main window for DocSnap.

Combines the live preview, the tier-coloured status line, auto-capture
progress, controls, captured thumbnails and the log view.
"""

from typing import Optional

import numpy as np
from PySide6.QtCore import QSize, Qt, Signal
from PySide6.QtGui import QIcon, QImage, QPixmap
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPlainTextEdit,
    QVBoxLayout,
    QWidget,
)

from docsnap.core.constants import LOG_BUFFER_SIZE
from docsnap.core.logging import LogBuffer, LogEntry
from docsnap.core.model import CaptureFrame, ConsensusResult, State

from .widgets import ControlButtons, PreviewLabel, ProgressDisplay, StatusIndicator


class LogView(QPlainTextEdit):
    """Log viewer with circular buffer display."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setReadOnly(True)
        self.setMaximumBlockCount(LOG_BUFFER_SIZE)  # Circular buffer
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.WidgetWidth)
        self.setStyleSheet(
            "font-family: Consolas, Monaco, monospace; font-size: 11px;"
        )

    def add_entry(self, entry: LogEntry) -> None:
        """Add a log entry."""
        self.appendPlainText(entry.format())

    def set_entries(self, entries: list[LogEntry]) -> None:
        """Set all log entries."""
        self.clear()
        for entry in entries:
            self.appendPlainText(entry.format())


class CaptureList(QListWidget):
    """Thumbnails of captured frames, kept in memory only."""

    THUMB_SIZE = QSize(160, 90)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setViewMode(QListWidget.ViewMode.IconMode)
        self.setIconSize(self.THUMB_SIZE)
        self.setFlow(QListWidget.Flow.LeftToRight)
        self.setWrapping(False)
        self.setFixedHeight(self.THUMB_SIZE.height() + 40)

    def add_frame(self, frame: CaptureFrame, caption: str) -> None:
        """Append a thumbnail of an encoded frame."""
        image = QImage.fromData(frame.encoded_image)
        item = QListWidgetItem(caption)
        if not image.isNull():
            pixmap = QPixmap.fromImage(image).scaled(
                self.THUMB_SIZE,
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
            item.setIcon(QIcon(pixmap))
        item.setToolTip(f"{len(frame.encoded_image)} bytes")
        self.addItem(item)
        self.scrollToBottom()


class MainWindow(QMainWindow):
    """Main application window."""

    start_requested = Signal()
    stop_requested = Signal()
    capture_requested = Signal()
    auto_requested = Signal(int, int)  # target, timeout_ms
    cancel_auto_requested = Signal()
    torch_requested = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.setWindowTitle("DocSnap - document capture")
        self.setMinimumSize(800, 640)

        self._is_running = False
        self._batch_count = 0

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self) -> None:
        """Setup the main UI layout."""
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setSpacing(8)

        self._preview = PreviewLabel()
        layout.addWidget(self._preview, 3)

        # Status section
        status_frame = QFrame()
        status_frame.setFrameStyle(QFrame.Shape.StyledPanel)
        status_layout = QHBoxLayout(status_frame)

        self._status = StatusIndicator()
        status_layout.addWidget(self._status, 1)

        self._progress = ProgressDisplay()
        status_layout.addWidget(self._progress)

        layout.addWidget(status_frame)

        self._controls = ControlButtons()
        layout.addWidget(self._controls)

        captures_label = QLabel("Captures")
        captures_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(captures_label)

        self._captures = CaptureList()
        layout.addWidget(self._captures)

        log_label = QLabel("Log")
        log_label.setStyleSheet("font-weight: bold;")
        layout.addWidget(log_label)

        self._log_view = LogView()
        layout.addWidget(self._log_view, 1)

    def _connect_signals(self) -> None:
        """Forward control clicks as window signals."""
        self._controls.start_clicked.connect(self.start_requested.emit)
        self._controls.stop_clicked.connect(self.stop_requested.emit)
        self._controls.capture_clicked.connect(self.capture_requested.emit)
        self._controls.auto_clicked.connect(self.auto_requested.emit)
        self._controls.cancel_auto_clicked.connect(self.cancel_auto_requested.emit)
        self._controls.torch_clicked.connect(self.torch_requested.emit)

    # State updates

    def set_state(self, state: State) -> None:
        """Update controls for the monitor state."""
        self._is_running = state is State.Monitoring
        self._controls.set_running(self._is_running)
        if not self._is_running:
            self._preview.show_frame(None)
            self._progress.clear()

    def set_status(self, tier: str, text: str) -> None:
        """Status sink: tier label and human-readable text."""
        self._status.set_status(tier, text)

    def set_progress(self, accepted: int, target: int) -> None:
        """Progress sink: accepted/target during auto-capture."""
        self._progress.set_progress(accepted, target)

    def clear_progress(self) -> None:
        """Hide the progress counter."""
        self._progress.clear()

    def set_consensus_defaults(self, target: int, timeout_ms: int) -> None:
        """Preset the auto-capture inputs."""
        self._controls.set_consensus_defaults(target, timeout_ms)

    def show_frame(self, frame: Optional[np.ndarray]) -> None:
        """Refresh the live preview."""
        self._preview.show_frame(frame)

    def add_capture(self, frame: CaptureFrame) -> None:
        """Show a single-shot capture."""
        self._captures.add_frame(frame, f"#{self._captures.count() + 1}")

    def add_batch(self, result: ConsensusResult) -> None:
        """Show the frames of a finished auto-capture session."""
        self._batch_count += 1
        for index, frame in enumerate(result.frames, start=1):
            self._captures.add_frame(frame, f"A{self._batch_count}.{index}")
        self._progress.clear()

    def show_error_dialog(self, title: str, message: str) -> None:
        """Show an error dialog."""
        QMessageBox.critical(self, title, message)

    # Logging

    def set_log_buffer(self, buffer: LogBuffer) -> None:
        """Set log buffer and display existing entries.

        Args:
            buffer: Log buffer to use
        """
        self._log_view.set_entries(buffer.get_all())
        buffer.add_listener(self._log_view.add_entry)

    # Window behavior

    def closeEvent(self, event) -> None:
        """Handle close event - request stop if running."""
        if self._is_running:
            self.stop_requested.emit()
        event.accept()
