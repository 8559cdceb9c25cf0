"""Core data models for DocSnap.

Defines the monitor states, quality tiers, regions, capture frames
and the run configuration shared by the capture loop and the UI.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from .constants import (
    BATCH_STABILITY_TICKS,
    COOLDOWN_MS,
    DIVERSITY_THRESHOLD_BITS,
    GOOD_BRIGHTNESS_MAX,
    GOOD_BRIGHTNESS_MIN,
    GOOD_SHARPNESS_MIN,
    HASH_SIZE,
    IMAGE_FORMAT,
    IMAGE_QUALITY,
    MID_BRIGHTNESS_MAX,
    MID_BRIGHTNESS_MIN,
    MID_SHARPNESS_MIN,
    OUTPUT_HEIGHT,
    OUTPUT_WIDTH,
    SINGLE_STABILITY_TICKS,
    TICK_INTERVAL_MS,
)


class State(Enum):
    """Capture monitor lifecycle states."""

    Idle = auto()
    """Not started, or start failed"""

    Monitoring = auto()
    """Stream active, ticking"""

    Stopped = auto()
    """Terminal, resources released"""


class QualityTier(Enum):
    """Discrete frame quality classification.

    The value doubles as the visual class handed to the status sink.
    """

    GOOD = "good"
    MID = "mid"
    BAD = "bad"


@dataclass(frozen=True)
class Rect:
    """An integer region of a source frame.

    Attributes:
        x: Left edge
        y: Top edge
        w: Width (must be > 0)
        h: Height (must be > 0)
    """

    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        """Right edge X coordinate."""
        return self.x + self.w

    @property
    def bottom(self) -> int:
        """Bottom edge Y coordinate."""
        return self.y + self.h

    def is_valid(self) -> bool:
        """Check if rect has positive dimensions."""
        return self.w > 0 and self.h > 0

    @classmethod
    def full(cls, width: int, height: int) -> "Rect":
        """Region covering a whole width x height frame."""
        return cls(0, 0, width, height)


@dataclass(frozen=True)
class QualitySample:
    """Focus and exposure metrics of one tick.

    Attributes:
        sharpness: Luma variance / 100 (>= 0)
        brightness: Mean luma in [0, 255]
    """

    sharpness: float
    brightness: float


@dataclass(frozen=True)
class TierBand:
    """Requirements a sample must meet to reach a tier.

    Brightness bounds are exclusive on both ends.
    """

    min_sharpness: float
    min_brightness: float
    max_brightness: float

    def admits(self, sample: QualitySample) -> bool:
        """Check whether the sample satisfies this band."""
        return (
            sample.sharpness > self.min_sharpness and
            self.min_brightness < sample.brightness < self.max_brightness
        )


@dataclass(frozen=True)
class QualityThresholds:
    """Threshold pairs for the GOOD and MID tiers."""

    good: TierBand = TierBand(
        GOOD_SHARPNESS_MIN, GOOD_BRIGHTNESS_MIN, GOOD_BRIGHTNESS_MAX
    )
    mid: TierBand = TierBand(
        MID_SHARPNESS_MIN, MID_BRIGHTNESS_MIN, MID_BRIGHTNESS_MAX
    )


@dataclass(frozen=True)
class OrientationSample:
    """Best-effort device orientation reading, in degrees."""

    alpha: float
    beta: float
    gamma: float
    timestamp: float


@dataclass
class CaptureFrame:
    """A captured, encoded frame and its perceptual fingerprint.

    Attributes:
        encoded_image: Compressed image blob
        hash: dHash bit string
        orientation: Orientation at capture time, if a sampler is attached
    """

    encoded_image: bytes
    hash: str
    orientation: Optional[OrientationSample] = None


@dataclass
class ConsensusResult:
    """Outcome of one auto-capture session.

    Attributes:
        frames: Accepted frames in acceptance order (0..target_count)
        target_count: Number of frames requested
        timed_out: True if the deadline ended the session
    """

    frames: list[CaptureFrame]
    target_count: int
    timed_out: bool = False

    @property
    def complete(self) -> bool:
        """True if the session reached its target."""
        return len(self.frames) == self.target_count


@dataclass
class CaptureConfig:
    """Tunables for one capture monitor.

    Attributes:
        thresholds: GOOD / MID tier bands
        tick_interval_ms: Sampling period
        single_stability: GOOD ticks before a single-shot capture
        batch_stability: GOOD ticks before a batch capture attempt
        cooldown_ms: Minimum gap between batch attempts
        diversity_threshold: Minimum Hamming distance inside a session
        hash_size: dHash grid size
        output_size: Normalized (width, height)
        image_format: Encoder format tag
        image_quality: Encoder quality in [0, 1]
        smoothing: Run the 3x3 blur after the contrast stretch
    """

    thresholds: QualityThresholds = field(default_factory=QualityThresholds)
    tick_interval_ms: int = TICK_INTERVAL_MS
    single_stability: int = SINGLE_STABILITY_TICKS
    batch_stability: int = BATCH_STABILITY_TICKS
    cooldown_ms: int = COOLDOWN_MS
    diversity_threshold: int = DIVERSITY_THRESHOLD_BITS
    hash_size: int = HASH_SIZE
    output_size: tuple[int, int] = (OUTPUT_WIDTH, OUTPUT_HEIGHT)
    image_format: str = IMAGE_FORMAT
    image_quality: float = IMAGE_QUALITY
    smoothing: bool = False
