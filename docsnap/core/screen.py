"""Screen-region live source using mss.

Treats a rectangle of the desktop as a video feed, e.g. a document held
up in a video call or shown in a viewer window.
"""

import threading
import time
from typing import Optional

import mss
import numpy as np

from .constants import CAPTURE_RETRY_INTERVAL_MS, CAPTURE_RETRY_N
from .model import Rect
from .source import LiveSource, SourceError

# Thread-local mss instance to avoid GDI resource exhaustion and thread-safety issues
# mss uses thread-local storage for Windows GDI handles, so each thread needs its own instance
_thread_local = threading.local()


def _get_mss() -> "mss.mss":
    """Get or create a thread-local mss instance.

    If an mss instance is created on one thread and used on another, it
    fails with "'_thread._local' object has no attribute 'srcdc'".
    """
    if getattr(_thread_local, "mss_instance", None) is None:
        _thread_local.mss_instance = mss.mss()
    return _thread_local.mss_instance


def _reset_mss() -> None:
    """Reset the thread-local mss instance (call on error recovery)."""
    instance = getattr(_thread_local, "mss_instance", None)
    if instance is not None:
        try:
            instance.close()
        except Exception:
            pass  # Instance is being discarded anyway
        _thread_local.mss_instance = None


def bgra_to_rgba(image: np.ndarray) -> np.ndarray:
    """Swap the B and R channels of an mss BGRA grab."""
    rgba = image[:, :, [2, 1, 0, 3]].copy()
    rgba[:, :, 3] = 255
    return rgba


def grab_region(
    region: Rect,
    retry_count: int = CAPTURE_RETRY_N,
    retry_interval_ms: int = CAPTURE_RETRY_INTERVAL_MS,
) -> np.ndarray:
    """Grab a desktop rectangle as RGBA.

    Args:
        region: Rectangle in virtual desktop coordinates
        retry_count: Number of attempts
        retry_interval_ms: Milliseconds between attempts

    Returns:
        RGBA uint8 array of shape (region.h, region.w, 4)

    Raises:
        SourceError: If every attempt fails
    """
    last_error: Optional[Exception] = None
    monitor = {"left": region.x, "top": region.y, "width": region.w, "height": region.h}

    for attempt in range(retry_count):
        try:
            shot = _get_mss().grab(monitor)
            return bgra_to_rgba(np.array(shot))
        except Exception as e:
            last_error = e
            # Reset mss instance on error - it may be in a bad state
            _reset_mss()
            if attempt < retry_count - 1:
                time.sleep(retry_interval_ms / 1000.0)

    raise SourceError(
        f"Screen grab failed after {retry_count} attempts. Last error: {last_error}"
    )


def virtual_desktop() -> Rect:
    """Bounds of all monitors combined (mss monitor 0)."""
    bounds = _get_mss().monitors[0]
    return Rect(bounds["left"], bounds["top"], bounds["width"], bounds["height"])


class ScreenSource(LiveSource):
    """A desktop rectangle as a live source.

    The region defaults to the whole virtual desktop.
    """

    def __init__(self, region: Optional[Rect] = None) -> None:
        self._region = region
        self._opened = False

    @property
    def region(self) -> Optional[Rect]:
        """Captured rectangle (None until opened if defaulted)."""
        return self._region

    def open(self) -> None:
        """Validate the region against the desktop.

        Raises:
            SourceError: If mss cannot enumerate monitors or the region
                lies outside the desktop
        """
        try:
            desktop = virtual_desktop()
        except Exception as e:
            raise SourceError(f"Screen capture unavailable: {e}") from e

        if self._region is None:
            self._region = desktop

        region = self._region
        if not region.is_valid():
            raise SourceError(f"Empty screen region: {region}")

        if not (desktop.x <= region.x and desktop.y <= region.y and
                region.right <= desktop.right and region.bottom <= desktop.bottom):
            raise SourceError(
                f"Region ({region.x}, {region.y}, {region.w}x{region.h}) outside desktop "
                f"({desktop.x}, {desktop.y}, {desktop.w}x{desktop.h})"
            )

        self._opened = True

    def close(self) -> None:
        """Release the grabber of the calling thread."""
        self._opened = False
        _reset_mss()

    def frame(self) -> Optional[np.ndarray]:
        """Grab the region now, None before open()."""
        if not self._opened or self._region is None:
            return None
        return grab_region(self._region)
