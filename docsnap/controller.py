"""Application controller that wires UI to the capture engine.

Handles all signal connections between MainWindow, CaptureEngine and
the optional orientation sampler, plus the preview refresh timer.
"""

from typing import Callable, Optional

from PySide6.QtCore import QObject, QTimer, Slot

from docsnap.core.engine import CaptureEngine
from docsnap.core.logging import get_logger
from docsnap.core.model import CaptureConfig, ConsensusResult, State
from docsnap.core.sensors import OrientationSampler
from docsnap.core.source import LiveSource
from docsnap.ui.main_window import MainWindow


class ApplicationController(QObject):
    """Controller that connects UI to capture engine.

    Responsibilities:
    - Wire signals between MainWindow and CaptureEngine
    - Create a fresh source on every Start
    - Refresh the preview while monitoring
    - Feed orientation readings when a sensor exists
    """

    def __init__(
        self,
        window: MainWindow,
        source_factory: Callable[[], LiveSource],
        config: Optional[CaptureConfig] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            window: Main application window
            source_factory: Builds the live source for each Start
            config: Capture configuration (defaults if None)
            parent: Parent QObject
        """
        super().__init__(parent)

        self._window = window
        self._source_factory = source_factory
        self._config = config or CaptureConfig()
        self._engine = CaptureEngine(self)
        self._logger = get_logger()

        self._preview_timer = QTimer(self)
        self._preview_timer.setInterval(self._config.tick_interval_ms)
        self._preview_timer.timeout.connect(self._refresh_preview)

        self._orientation = OrientationSampler(parent=self)

        self._window.set_log_buffer(self._logger.buffer)
        self._connect_signals()

    @property
    def engine(self) -> CaptureEngine:
        """The capture engine."""
        return self._engine

    def _connect_signals(self) -> None:
        """Connect all signals between window and engine."""
        # Window -> Controller -> Engine
        self._window.start_requested.connect(self._on_start_requested)
        self._window.stop_requested.connect(self._on_stop_requested)
        self._window.capture_requested.connect(self._engine.manual_capture)
        self._window.auto_requested.connect(self._on_auto_requested)
        self._window.cancel_auto_requested.connect(self._on_cancel_auto_requested)
        self._window.torch_requested.connect(self._engine.toggle_torch)

        # Engine -> Controller -> Window
        self._engine.state_changed.connect(self._on_state_changed)
        self._engine.status_changed.connect(self._window.set_status)
        self._engine.progress_updated.connect(self._window.set_progress)
        self._engine.image_captured.connect(self._window.add_capture)
        self._engine.batch_ready.connect(self._on_batch_ready)

        self._orientation.sample_ready.connect(self._engine.update_orientation)

    # Start/Stop handlers

    @Slot()
    def _on_start_requested(self) -> None:
        """Handle start request from UI."""
        source = self._source_factory()
        if not self._engine.start(source, self._config):
            self._logger.error("Capture could not start")
            self._window.show_error_dialog(
                "Capture could not start",
                "The video source could not be opened. See the log for details.",
            )

    @Slot()
    def _on_stop_requested(self) -> None:
        """Handle stop request."""
        self._engine.stop()

    @Slot(int, int)
    def _on_auto_requested(self, target: int, timeout_ms: int) -> None:
        """Handle auto-capture request."""
        if not self._engine.start_auto_consensus(target, timeout_ms):
            self._window.set_status("", "Start the camera first")

    @Slot()
    def _on_cancel_auto_requested(self) -> None:
        """Handle auto-capture cancel request."""
        self._engine.cancel_auto_consensus()
        self._window.clear_progress()

    # Engine events

    @Slot(object)
    def _on_state_changed(self, state: State) -> None:
        """Track monitor state for UI and background timers."""
        self._window.set_state(state)

        if state is State.Monitoring:
            self._preview_timer.start()
            if self._orientation.is_available():
                self._orientation.start()
            else:
                self._logger.debug("No orientation sensor")
        else:
            self._preview_timer.stop()
            self._orientation.stop()

    @Slot(object)
    def _on_batch_ready(self, result: ConsensusResult) -> None:
        """Show a finished auto-capture session."""
        self._window.add_batch(result)

    @Slot()
    def _refresh_preview(self) -> None:
        self._window.show_frame(self._engine.current_frame())
