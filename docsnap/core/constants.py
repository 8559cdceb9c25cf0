"""Global tuning constants for the capture loop."""

from typing import Final

# Timing constants
TICK_INTERVAL_MS: Final[int] = 300
"""Quality sampling period"""

COOLDOWN_MS: Final[int] = 800
"""Minimum gap between batch capture attempts"""

CONSENSUS_TARGET_DEFAULT: Final[int] = 5
"""Default number of distinct frames per auto-capture session"""

CONSENSUS_TIMEOUT_MS_DEFAULT: Final[int] = 15000
"""Default auto-capture time budget"""

# Debounce
SINGLE_STABILITY_TICKS: Final[int] = 3
"""Consecutive GOOD ticks before a single-shot capture"""

BATCH_STABILITY_TICKS: Final[int] = 2
"""Consecutive GOOD ticks before a batch capture attempt"""

# Quality thresholds (brightness bounds are exclusive)
GOOD_SHARPNESS_MIN: Final[float] = 35.0
GOOD_BRIGHTNESS_MIN: Final[float] = 35.0
GOOD_BRIGHTNESS_MAX: Final[float] = 230.0

MID_SHARPNESS_MIN: Final[float] = 20.0
MID_BRIGHTNESS_MIN: Final[float] = 25.0
MID_BRIGHTNESS_MAX: Final[float] = 245.0

# Analysis resolutions
SHARPNESS_SAMPLE_SIZE: Final[tuple[int, int]] = (160, 120)
"""Width, height of the focus analysis buffer"""

BRIGHTNESS_SAMPLE_SIZE: Final[tuple[int, int]] = (64, 48)
"""Width, height of the exposure analysis buffer"""

SHARPNESS_SCALE: Final[float] = 100.0
"""Luma variance divisor, keeps thresholds small integers"""

# Normalized output
OUTPUT_WIDTH: Final[int] = 1600
OUTPUT_HEIGHT: Final[int] = 900

IMAGE_FORMAT: Final[str] = "JPEG"
IMAGE_QUALITY: Final[float] = 0.9
"""Encoder quality factor in [0, 1]"""

# Perceptual hash
HASH_SIZE: Final[int] = 8
"""dHash grid size, fingerprint has HASH_SIZE**2 bits"""

DIVERSITY_THRESHOLD_BITS: Final[int] = 12
"""Minimum Hamming distance between frames of one session"""

# Screen source
CAPTURE_RETRY_N: Final[int] = 3
"""Screen grab attempts before giving up"""

CAPTURE_RETRY_INTERVAL_MS: Final[int] = 200
"""Pause between screen grab attempts"""

# Camera source
CAMERA_PREFERRED_SIZE: Final[tuple[int, int]] = (1280, 720)

# Orientation sampler
ORIENTATION_INTERVAL_MS: Final[int] = 200

# Logging
LOG_BUFFER_SIZE: Final[int] = 200
"""Circular log buffer capacity"""

# Grayscale conversion weights (ITU-R BT.601)
GRAY_WEIGHT_R: Final[float] = 0.299
GRAY_WEIGHT_G: Final[float] = 0.587
GRAY_WEIGHT_B: Final[float] = 0.114

# 3x3 smoothing kernel, normalised by its sum
SMOOTH_KERNEL: Final[tuple[tuple[int, ...], ...]] = (
    (1, 2, 1),
    (2, 4, 2),
    (1, 2, 1),
)
