"""Frame quality scoring and debounce.

Implements the focus/exposure metrics, tier classification and the
consecutive-GOOD counter that turns noisy per-tick tiers into a
stable "ready" signal.
"""

from typing import Optional

import numpy as np

from .constants import (
    BRIGHTNESS_SAMPLE_SIZE,
    GRAY_WEIGHT_B,
    GRAY_WEIGHT_G,
    GRAY_WEIGHT_R,
    SHARPNESS_SAMPLE_SIZE,
    SHARPNESS_SCALE,
    SINGLE_STABILITY_TICKS,
)
from .model import QualitySample, QualityThresholds, QualityTier
from .source import frame_size, sample_frame


def luma(image: np.ndarray) -> np.ndarray:
    """Convert an RGBA/RGB buffer to float luma.

    Uses ITU-R BT.601 weights: Y = 0.299*R + 0.587*G + 0.114*B

    Args:
        image: Buffer in RGBA or RGB order, or already 2D grayscale

    Returns:
        float32 array of shape (height, width)
    """
    if image.ndim == 2:
        return image.astype(np.float32)

    r = image[:, :, 0].astype(np.float32)
    g = image[:, :, 1].astype(np.float32)
    b = image[:, :, 2].astype(np.float32)

    return GRAY_WEIGHT_R * r + GRAY_WEIGHT_G * g + GRAY_WEIGHT_B * b


def sharpness(sample: np.ndarray) -> float:
    """Focus metric of an analysis buffer.

    Population variance of luma divided by 100. Blur lowers local
    contrast and with it the variance.
    """
    gray = luma(sample)
    if gray.size == 0:
        return 0.0
    return float(np.var(gray, dtype=np.float64)) / SHARPNESS_SCALE


def brightness(sample: np.ndarray) -> float:
    """Exposure metric of an analysis buffer: mean luma in [0, 255]."""
    gray = luma(sample)
    if gray.size == 0:
        return 0.0
    return float(np.mean(gray, dtype=np.float64))


def measure_quality(
    frame: Optional[np.ndarray],
    sharpness_size: tuple[int, int] = SHARPNESS_SAMPLE_SIZE,
    brightness_size: tuple[int, int] = BRIGHTNESS_SAMPLE_SIZE,
) -> Optional[QualitySample]:
    """Score a live frame at the fixed analysis resolutions.

    Args:
        frame: Current source frame (RGBA)
        sharpness_size: (width, height) of the focus buffer
        brightness_size: (width, height) of the exposure buffer

    Returns:
        QualitySample, or None if the frame is missing or zero-sized
    """
    if 0 in frame_size(frame):
        return None

    focus_buf = sample_frame(frame, *sharpness_size)  # type: ignore[arg-type]
    light_buf = sample_frame(frame, *brightness_size)  # type: ignore[arg-type]

    return QualitySample(
        sharpness=sharpness(focus_buf),
        brightness=brightness(light_buf),
    )


def classify(
    sample: QualitySample,
    thresholds: Optional[QualityThresholds] = None,
) -> QualityTier:
    """Classify a sample into GOOD, MID or BAD."""
    thresholds = thresholds or QualityThresholds()

    if thresholds.good.admits(sample):
        return QualityTier.GOOD
    if thresholds.mid.admits(sample):
        return QualityTier.MID
    return QualityTier.BAD


class StabilityCounter:
    """Tracks consecutive GOOD ticks.

    - Increment on GOOD
    - Reset to 0 on MID or BAD
    - Reset to 0 when the caller consumes the signal (capture fired)
    """

    def __init__(self, required_ticks: int = SINGLE_STABILITY_TICKS) -> None:
        """Initialize the counter.

        Args:
            required_ticks: Consecutive GOOD ticks needed (default 3)
        """
        self._required_ticks = required_ticks
        self._count = 0

    @property
    def count(self) -> int:
        """Current consecutive GOOD count."""
        return self._count

    @property
    def required_ticks(self) -> int:
        """Number of ticks required to pass."""
        return self._required_ticks

    def update(self, tier: QualityTier) -> int:
        """Feed one tick's tier.

        Returns:
            The updated count
        """
        if tier is QualityTier.GOOD:
            self._count += 1
        else:
            self._count = 0
        return self._count

    def is_stable(self, required_ticks: Optional[int] = None) -> bool:
        """Check the count against a threshold (default: required_ticks)."""
        required = self._required_ticks if required_ticks is None else required_ticks
        return self._count >= required

    def reset(self) -> None:
        """Reset the counter."""
        self._count = 0
