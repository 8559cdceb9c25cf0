"""DocSnap application entry point.

Picks the live source from the command line (camera by default, a
screen region with --screen, or a still image with --image), then
creates the UI and runs the Qt event loop.
"""

import sys
from typing import Callable, Optional

from PySide6.QtCore import QCommandLineOption, QCommandLineParser
from PySide6.QtWidgets import QApplication

from docsnap.core.constants import CONSENSUS_TARGET_DEFAULT, CONSENSUS_TIMEOUT_MS_DEFAULT
from docsnap.core.logging import get_logger
from docsnap.core.model import CaptureConfig, Rect
from docsnap.core.source import LiveSource


def parse_region(text: str) -> Optional[Rect]:
    """Parse "x,y,w,h" into a Rect, None if malformed."""
    parts = text.split(",")
    if len(parts) != 4:
        return None
    try:
        x, y, w, h = (int(p.strip()) for p in parts)
    except ValueError:
        return None
    rect = Rect(x, y, w, h)
    return rect if rect.is_valid() else None


def make_source_factory(
    screen: Optional[Rect],
    image_path: Optional[str],
) -> Callable[[], LiveSource]:
    """Return a callable building the selected source."""
    if image_path:
        from docsnap.core.source import StillSource

        return lambda: StillSource.from_file(image_path)

    if screen is not None:
        from docsnap.core.screen import ScreenSource

        return lambda: ScreenSource(screen)

    from docsnap.core.camera import CameraSource

    return CameraSource


def main() -> int:
    """Application entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    app = QApplication(sys.argv)
    app.setApplicationName("DocSnap")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("DocSnap")

    parser = QCommandLineParser()
    parser.setApplicationDescription("Assisted document capture for OCR")
    parser.addHelpOption()
    parser.addVersionOption()

    screen_opt = QCommandLineOption("screen", "Use a screen region as source.", "x,y,w,h")
    image_opt = QCommandLineOption("image", "Use a still image as source.", "path")
    target_opt = QCommandLineOption(
        "target", "Frames per auto-capture.", "n", str(CONSENSUS_TARGET_DEFAULT)
    )
    timeout_opt = QCommandLineOption(
        "timeout", "Auto-capture time budget.", "ms", str(CONSENSUS_TIMEOUT_MS_DEFAULT)
    )
    smooth_opt = QCommandLineOption("smooth", "Blur captures to tame glare.")
    for option in (screen_opt, image_opt, target_opt, timeout_opt, smooth_opt):
        parser.addOption(option)
    parser.process(app)

    logger = get_logger()

    screen: Optional[Rect] = None
    if parser.isSet(screen_opt):
        screen = parse_region(parser.value(screen_opt))
        if screen is None:
            logger.error(f"Invalid --screen value: {parser.value(screen_opt)}")
            print("--screen expects x,y,w,h with positive width and height", file=sys.stderr)
            return 2

    try:
        target = int(parser.value(target_opt))
        timeout_ms = int(parser.value(timeout_opt))
    except ValueError:
        print("--target and --timeout expect integers", file=sys.stderr)
        return 2

    config = CaptureConfig(smoothing=parser.isSet(smooth_opt))
    image_path = parser.value(image_opt) if parser.isSet(image_opt) else None

    # Create main window with controller
    from docsnap.controller import ApplicationController
    from docsnap.ui import MainWindow

    window = MainWindow()
    window.set_consensus_defaults(target, timeout_ms)
    controller = ApplicationController(
        window,
        make_source_factory(screen, image_path),
        config,
    )

    window.show()

    # Run event loop
    exit_code = app.exec()
    controller.engine.stop()
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
