"""Core capture engine and utilities.

This package provides the core functionality for DocSnap:
- Data models (State, QualityTier, Rect, CaptureFrame, etc.)
- Live sources and pixel sampling
- Quality scoring and debounce
- Frame normalization, contrast preprocessing and dHash
- Frame-quality state machine and auto-consensus collector
- Logging with circular buffer
"""

from .constants import (
    BATCH_STABILITY_TICKS,
    CONSENSUS_TARGET_DEFAULT,
    CONSENSUS_TIMEOUT_MS_DEFAULT,
    COOLDOWN_MS,
    DIVERSITY_THRESHOLD_BITS,
    HASH_SIZE,
    LOG_BUFFER_SIZE,
    OUTPUT_HEIGHT,
    OUTPUT_WIDTH,
    SINGLE_STABILITY_TICKS,
    TICK_INTERVAL_MS,
)
from .model import (
    CaptureConfig,
    CaptureFrame,
    ConsensusResult,
    OrientationSample,
    QualitySample,
    QualityThresholds,
    QualityTier,
    Rect,
    State,
    TierBand,
)

__all__ = [
    # Constants
    "TICK_INTERVAL_MS",
    "COOLDOWN_MS",
    "SINGLE_STABILITY_TICKS",
    "BATCH_STABILITY_TICKS",
    "DIVERSITY_THRESHOLD_BITS",
    "HASH_SIZE",
    "OUTPUT_WIDTH",
    "OUTPUT_HEIGHT",
    "CONSENSUS_TARGET_DEFAULT",
    "CONSENSUS_TIMEOUT_MS_DEFAULT",
    "LOG_BUFFER_SIZE",
    # Models
    "State",
    "QualityTier",
    "Rect",
    "QualitySample",
    "TierBand",
    "QualityThresholds",
    "OrientationSample",
    "CaptureFrame",
    "ConsensusResult",
    "CaptureConfig",
]
