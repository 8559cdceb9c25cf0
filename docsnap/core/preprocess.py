"""Contrast preprocessing for OCR-bound captures."""

import numpy as np

from .constants import SMOOTH_KERNEL
from .quality import luma


def stretch_contrast(image: np.ndarray) -> np.ndarray:
    """Greyscale the buffer and stretch its luma range to [0, 255].

    v' = (v - min) * 255 / max(1, max - min), written to R, G and B.
    A flat frame keeps its (greyscale) value instead of collapsing.
    Alpha is left untouched. The buffer is modified in place.

    Args:
        image: RGBA uint8 buffer

    Returns:
        The same buffer, for chaining
    """
    gray = luma(image)
    if gray.size == 0:
        return image

    lo = float(gray.min())
    hi = float(gray.max())

    if hi - lo > 0:
        stretched = (gray - lo) * 255.0 / max(1.0, hi - lo)
    else:
        stretched = gray

    # Rounded to the nearest level, fractional luma is never truncated
    values = np.clip(np.rint(stretched), 0, 255).astype(np.uint8)
    image[:, :, 0] = values
    image[:, :, 1] = values
    image[:, :, 2] = values
    return image


def smooth(image: np.ndarray) -> np.ndarray:
    """3x3 weighted blur over interior pixels, edges left as they are.

    Kernel [[1,2,1],[2,4,2],[1,2,1]] / 16, applied to R, G and B in place.
    """
    height, width = image.shape[:2]
    if height < 3 or width < 3:
        return image

    kernel = np.asarray(SMOOTH_KERNEL, dtype=np.float32)
    kernel /= kernel.sum()

    src = image[:, :, :3].astype(np.float32)
    acc = np.zeros((height - 2, width - 2, 3), dtype=np.float32)
    for dy in range(3):
        for dx in range(3):
            acc += kernel[dy, dx] * src[dy:dy + height - 2, dx:dx + width - 2]

    image[1:-1, 1:-1, :3] = np.clip(np.rint(acc), 0, 255).astype(np.uint8)
    return image


def preprocess(image: np.ndarray, smoothing: bool = False) -> np.ndarray:
    """Contrast stretch, optionally followed by the highlight blur."""
    stretch_contrast(image)
    if smoothing:
        smooth(image)
    return image
