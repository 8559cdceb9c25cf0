"""Live sources and pixel sampling.

Every frame handled by DocSnap is an RGBA uint8 numpy array of shape
(height, width, 4). Sources hand out their latest frame; the sampler
renders an arbitrary region of it into a buffer of a requested size.
"""

from typing import Optional

import numpy as np

from .model import Rect


class SourceError(Exception):
    """Exception raised when a live source cannot be acquired or read."""

    pass


class LightControl:
    """Optional light (torch) capability of a source."""

    def is_supported(self) -> bool:
        """Check whether the light can be switched."""
        raise NotImplementedError

    @property
    def enabled(self) -> bool:
        """Current light state."""
        raise NotImplementedError

    def set_enabled(self, enabled: bool) -> None:
        """Switch the light on or off."""
        raise NotImplementedError


def _resample_axis0(seg: np.ndarray, out: int) -> np.ndarray:
    """Resize the first axis of a float array to `out` samples.

    Shrinking averages the source pixels covered by each output pixel;
    growing interpolates linearly between pixel centres.
    """
    length = seg.shape[0]
    if length == out:
        return seg

    if length > out:
        edges = np.floor(np.arange(out) * (length / out)).astype(np.intp)
        counts = np.diff(np.append(edges, length))
        sums = np.add.reduceat(seg, edges, axis=0)
        return sums / counts.reshape((-1,) + (1,) * (seg.ndim - 1))

    pos = (np.arange(out) + 0.5) * (length / out) - 0.5
    pos = np.clip(pos, 0, length - 1)
    lo = np.floor(pos).astype(np.intp)
    hi = np.minimum(lo + 1, length - 1)
    frac = (pos - lo).reshape((-1,) + (1,) * (seg.ndim - 1))
    return seg[lo] * (1.0 - frac) + seg[hi] * frac


def resample(frame: np.ndarray, region: Rect, width: int, height: int) -> np.ndarray:
    """Render a region of a frame into a width x height buffer.

    Args:
        frame: Source frame (RGBA uint8, or 2D grayscale)
        region: Region of the frame to render
        width: Output width in pixels
        height: Output height in pixels

    Returns:
        Resampled buffer with the same channel layout as the input

    Raises:
        ValueError: If the region or output size is empty or the region
            is outside the frame
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Output size must be positive: {width}x{height}")

    if not region.is_valid():
        raise ValueError(f"Region must not be empty: {region}")

    frame_h, frame_w = frame.shape[:2]
    if region.x < 0 or region.y < 0 or region.right > frame_w or region.bottom > frame_h:
        raise ValueError(
            f"Region ({region.x}, {region.y}, {region.w}x{region.h}) "
            f"outside frame {frame_w}x{frame_h}"
        )

    seg = frame[region.y:region.bottom, region.x:region.right].astype(np.float32)

    # Rows first, then columns (swap axes so both passes work on axis 0)
    out = _resample_axis0(seg, height)
    out = np.swapaxes(_resample_axis0(np.swapaxes(out, 0, 1), width), 0, 1)

    return np.clip(np.rint(out), 0, 255).astype(np.uint8)


def sample_pixels(
    source: "LiveSource",
    region: Rect,
    width: int,
    height: int,
) -> np.ndarray:
    """Pixel sampler: draw a region of a live source into an offscreen buffer.

    Raises:
        SourceError: If the source has no frame yet
    """
    return source.render(region, width, height)


def sample_frame(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """Draw a whole frame into a width x height buffer.

    Works on a frame snapshot so every metric of a tick sees the same
    pixels.
    """
    frame_h, frame_w = frame.shape[:2]
    return resample(frame, Rect.full(frame_w, frame_h), width, height)


def frame_size(frame: Optional[np.ndarray]) -> tuple[int, int]:
    """Return (width, height) of a frame, (0, 0) when there is none."""
    if frame is None or frame.ndim < 2:
        return (0, 0)
    return (int(frame.shape[1]), int(frame.shape[0]))


class LiveSource:
    """Base class for live image sources.

    Subclasses provide `frame()`; everything else has a default.
    A source reports a zero size until its first frame arrives.
    """

    def open(self) -> None:
        """Acquire the source.

        Raises:
            SourceError: If the source cannot be acquired
        """

    def close(self) -> None:
        """Release the source."""

    @property
    def torch(self) -> Optional[LightControl]:
        """Light capability, None when the source has no light."""
        return None

    def frame(self) -> Optional[np.ndarray]:
        """Latest RGBA frame, or None if nothing is decodable yet."""
        raise NotImplementedError

    def natural_size(self) -> tuple[int, int]:
        """Current (width, height), (0, 0) until ready."""
        return frame_size(self.frame())

    def render(self, region: Rect, width: int, height: int) -> np.ndarray:
        """Render a region of the current frame at the requested size.

        Raises:
            SourceError: If no frame is available yet
        """
        frame = self.frame()
        if 0 in frame_size(frame):
            raise SourceError("No frame available")
        return resample(frame, region, width, height)  # type: ignore[arg-type]


class StillSource(LiveSource):
    """A source that always shows the same frame.

    Used for scoring photos offline and for tests.
    """

    def __init__(self, frame: Optional[np.ndarray] = None) -> None:
        """Initialize with an RGBA frame (None means not ready)."""
        self.current = frame

    @classmethod
    def from_file(cls, path: str) -> "StillSource":
        """Load an image file as a still source.

        Raises:
            SourceError: If the file cannot be decoded
        """
        from .codec import load_image

        return cls(load_image(path))

    def frame(self) -> Optional[np.ndarray]:
        """Return the fixed frame."""
        return self.current
