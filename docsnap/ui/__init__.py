"""UI components for DocSnap.

This package provides PySide6-based UI components:
- MainWindow: Main application window
- LogView, CaptureList: Log and thumbnail panes
- Common widgets: status indicator, progress, preview, buttons
"""

from .main_window import CaptureList, LogView, MainWindow
from .widgets import ControlButtons, PreviewLabel, ProgressDisplay, StatusIndicator

__all__ = [
    # Main window
    "MainWindow",
    "LogView",
    "CaptureList",
    # Widgets
    "StatusIndicator",
    "ProgressDisplay",
    "PreviewLabel",
    "ControlButtons",
]
