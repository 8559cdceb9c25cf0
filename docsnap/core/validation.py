"""Configuration validation utilities.

Checks a CaptureConfig and auto-capture requests before the monitor
starts, so bad tunables are reported instead of silently misbehaving.
"""

from dataclasses import dataclass

from .model import CaptureConfig, TierBand


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes:
        valid: True if validation passed
        errors: List of error messages if validation failed
    """

    valid: bool
    errors: list[str]

    @classmethod
    def success(cls) -> "ValidationResult":
        """Create a successful validation result."""
        return cls(valid=True, errors=[])

    @classmethod
    def failure(cls, *errors: str) -> "ValidationResult":
        """Create a failed validation result with error messages."""
        return cls(valid=False, errors=list(errors))

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid


def validate_band(band: TierBand, name: str) -> ValidationResult:
    """Validate a single tier band.

    Args:
        band: The band to check
        name: Human-readable name for error messages

    Returns:
        ValidationResult indicating success or failure
    """
    errors: list[str] = []

    if band.min_sharpness < 0:
        errors.append(f"{name}: minimum sharpness must be >= 0")

    if not (0 <= band.min_brightness <= 255 and 0 <= band.max_brightness <= 255):
        errors.append(f"{name}: brightness bounds must lie in [0, 255]")

    if band.max_brightness - band.min_brightness <= 1:
        errors.append(f"{name}: brightness band is empty")

    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success()


def validate_capture_config(config: CaptureConfig) -> ValidationResult:
    """Validate every tunable of a capture configuration.

    Checks:
    1. Both tier bands are well formed
    2. GOOD is strictly stricter than MID
    3. Timing, debounce, hash and output parameters are in range

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with all errors found
    """
    errors: list[str] = []

    good = config.thresholds.good
    mid = config.thresholds.mid

    errors.extend(validate_band(good, "GOOD").errors)
    errors.extend(validate_band(mid, "MID").errors)

    if not (
        good.min_sharpness >= mid.min_sharpness and
        good.min_brightness >= mid.min_brightness and
        good.max_brightness <= mid.max_brightness
    ):
        errors.append("GOOD thresholds must be stricter than MID thresholds")

    if config.tick_interval_ms <= 0:
        errors.append("Tick interval must be positive")

    if config.single_stability < 1 or config.batch_stability < 1:
        errors.append("Stability counts must be at least 1")

    if config.batch_stability > config.single_stability:
        errors.append("Batch stability must not exceed single-shot stability")

    if config.cooldown_ms < 0:
        errors.append("Cooldown must not be negative")

    if config.hash_size < 2:
        errors.append("Hash size must be at least 2")
    elif not 0 <= config.diversity_threshold <= config.hash_size ** 2:
        errors.append(
            f"Diversity threshold must lie in [0, {config.hash_size ** 2}]"
        )

    width, height = config.output_size
    if width <= 0 or height <= 0:
        errors.append("Output size must be positive")

    if not 0.0 <= config.image_quality <= 1.0:
        errors.append("Image quality must lie in [0, 1]")

    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success()


def validate_consensus_request(target_count: int, timeout_ms: int) -> ValidationResult:
    """Validate auto-capture parameters.

    Args:
        target_count: Number of distinct frames requested
        timeout_ms: Session time budget

    Returns:
        ValidationResult indicating success or failure
    """
    errors: list[str] = []

    if target_count <= 0:
        errors.append("Target frame count must be positive")

    if timeout_ms <= 0:
        errors.append("Timeout must be positive")

    if errors:
        return ValidationResult.failure(*errors)
    return ValidationResult.success()
