"""Tests for frame quality scoring, tier classification and debounce.

Verifies that:
- Metrics are computed on luma at the analysis resolutions
- Tier boundaries are exclusive
- The GOOD counter increments, resets and reports stability
"""

import numpy as np
import pytest

from conftest import ramp_frame, uniform_frame

from docsnap.core.constants import SINGLE_STABILITY_TICKS
from docsnap.core.model import QualitySample, QualityThresholds, QualityTier, TierBand
from docsnap.core.quality import (
    StabilityCounter,
    brightness,
    classify,
    luma,
    measure_quality,
    sharpness,
)


class TestMetrics:
    """Tests for the sharpness and brightness metrics."""

    def test_uniform_frame_has_zero_sharpness(self) -> None:
        """A flat frame has no luma variance."""
        assert sharpness(uniform_frame(200)) == 0.0

    def test_uniform_frame_brightness_is_its_value(self) -> None:
        """Mean luma of a flat grey frame is the grey level."""
        assert brightness(uniform_frame(90)) == pytest.approx(90.0, abs=0.01)

    def test_luma_uses_bt601_weights(self) -> None:
        """Pure red, green and blue map to their weights times 255."""
        image = np.zeros((1, 3, 4), dtype=np.uint8)
        image[0, 0, 0] = 255
        image[0, 1, 1] = 255
        image[0, 2, 2] = 255

        gray = luma(image)

        assert gray[0, 0] == pytest.approx(0.299 * 255, abs=0.01)
        assert gray[0, 1] == pytest.approx(0.587 * 255, abs=0.01)
        assert gray[0, 2] == pytest.approx(0.114 * 255, abs=0.01)

    def test_sharpness_is_variance_over_100(self) -> None:
        """Half black, half white: variance 127.5^2."""
        image = np.zeros((2, 2), dtype=np.uint8)
        image[:, 1] = 255
        assert sharpness(image) == pytest.approx(127.5 ** 2 / 100, rel=1e-4)

    def test_empty_buffer_scores_zero(self) -> None:
        """Empty input yields zero metrics instead of NaN."""
        empty = np.zeros((0, 0, 4), dtype=np.uint8)
        assert sharpness(empty) == 0.0
        assert brightness(empty) == 0.0


class TestMeasureQuality:
    """Tests for scoring whole frames."""

    def test_missing_frame_returns_none(self) -> None:
        """No frame means the source is not ready."""
        assert measure_quality(None) is None

    def test_zero_size_frame_returns_none(self) -> None:
        """A zero-sized frame is treated as not ready."""
        assert measure_quality(np.zeros((0, 0, 4), dtype=np.uint8)) is None

    def test_full_range_ramp_scores_good(self) -> None:
        """A 0..255 ramp is sharp and mid-grey."""
        sample = measure_quality(ramp_frame())
        assert sample is not None
        assert sample.sharpness > 35
        assert 35 < sample.brightness < 230
        assert classify(sample) is QualityTier.GOOD

    def test_short_ramp_scores_mid(self) -> None:
        """A 0..170 ramp has too little contrast for GOOD."""
        sample = measure_quality(ramp_frame(hi=170))
        assert sample is not None
        assert classify(sample) is QualityTier.MID

    def test_flat_frame_scores_bad(self) -> None:
        """A flat frame has no focus signal at all."""
        sample = measure_quality(uniform_frame(128))
        assert sample is not None
        assert classify(sample) is QualityTier.BAD

    def test_metrics_do_not_depend_on_source_size(self) -> None:
        """Frames are scored at fixed resolutions."""
        small = measure_quality(ramp_frame(width=640, height=360))
        large = measure_quality(ramp_frame(width=1920, height=1080))
        assert small is not None and large is not None
        assert small.brightness == pytest.approx(large.brightness, abs=1.0)
        assert small.sharpness == pytest.approx(large.sharpness, rel=0.05)


class TestClassify:
    """Tests for tier boundaries."""

    def test_good_sample(self) -> None:
        assert classify(QualitySample(40, 128)) is QualityTier.GOOD

    def test_sharpness_boundary_is_exclusive(self) -> None:
        """sharpness == 35 is not GOOD (strict >), but is MID."""
        assert classify(QualitySample(35, 128)) is QualityTier.MID

    def test_good_brightness_bounds_are_exclusive(self) -> None:
        """brightness == 35 or 230 falls back to MID."""
        assert classify(QualitySample(40, 35)) is QualityTier.MID
        assert classify(QualitySample(40, 230)) is QualityTier.MID

    def test_mid_boundaries_are_exclusive(self) -> None:
        """Exactly on any MID bound is BAD."""
        assert classify(QualitySample(20, 128)) is QualityTier.BAD
        assert classify(QualitySample(30, 25)) is QualityTier.BAD
        assert classify(QualitySample(30, 245)) is QualityTier.BAD

    def test_dark_frame_is_bad(self) -> None:
        assert classify(QualitySample(100, 10)) is QualityTier.BAD

    def test_custom_thresholds(self) -> None:
        """Thresholds can be overridden per monitor."""
        relaxed = QualityThresholds(
            good=TierBand(1, 0, 255),
            mid=TierBand(0, 0, 255),
        )
        assert classify(QualitySample(2, 128), relaxed) is QualityTier.GOOD


class TestStabilityCounter:
    """Tests for the consecutive-GOOD counter."""

    def test_initial_count_is_zero(self) -> None:
        counter = StabilityCounter()
        assert counter.count == 0
        assert counter.required_ticks == SINGLE_STABILITY_TICKS

    def test_good_ticks_accumulate(self) -> None:
        """Each GOOD tick adds one."""
        counter = StabilityCounter()
        for i in range(4):
            assert counter.update(QualityTier.GOOD) == i + 1

    @pytest.mark.parametrize("tier", [QualityTier.MID, QualityTier.BAD])
    def test_non_good_resets(self, tier: QualityTier) -> None:
        """MID and BAD both clear the streak."""
        counter = StabilityCounter()
        counter.update(QualityTier.GOOD)
        counter.update(QualityTier.GOOD)
        assert counter.update(tier) == 0

    def test_stable_after_required_ticks(self) -> None:
        """Stability needs exactly required_ticks GOOD ticks."""
        counter = StabilityCounter(required_ticks=3)
        counter.update(QualityTier.GOOD)
        counter.update(QualityTier.GOOD)
        assert not counter.is_stable()
        counter.update(QualityTier.GOOD)
        assert counter.is_stable()

    def test_explicit_requirement_overrides_default(self) -> None:
        """Batch mode asks for fewer ticks than single-shot."""
        counter = StabilityCounter(required_ticks=3)
        counter.update(QualityTier.GOOD)
        counter.update(QualityTier.GOOD)
        assert counter.is_stable(2)
        assert not counter.is_stable()

    def test_reset(self) -> None:
        counter = StabilityCounter()
        counter.update(QualityTier.GOOD)
        counter.reset()
        assert counter.count == 0
