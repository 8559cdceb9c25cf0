"""Tests for frame normalization (rotate, cover-crop, scale)."""

import numpy as np
import pytest

from conftest import ramp_frame, uniform_frame

from docsnap.core.model import Rect
from docsnap.core.normalize import cover_crop, normalize_frame

ASPECT = 16 / 9


class TestCoverCrop:
    """Tests for the centred cover crop."""

    def test_exact_aspect_is_untouched(self) -> None:
        assert cover_crop(1920, 1080, ASPECT) == Rect(0, 0, 1920, 1080)

    def test_taller_frame_trims_top_and_bottom(self) -> None:
        """4:3 loses equal bands above and below."""
        assert cover_crop(640, 480, ASPECT) == Rect(0, 60, 640, 360)

    def test_wider_frame_trims_left_and_right(self) -> None:
        """Ultra-wide loses equal bands at the sides."""
        assert cover_crop(2000, 900, ASPECT) == Rect(200, 0, 1600, 900)

    def test_crop_keeps_target_aspect(self) -> None:
        crop = cover_crop(1280, 1024, ASPECT)
        assert crop.w / crop.h == pytest.approx(ASPECT, rel=0.01)


class TestNormalizeFrame:
    """Tests for the canonical output buffer."""

    @pytest.mark.parametrize(
        "width,height",
        [(1280, 720), (640, 480), (720, 1280), (100, 100), (3000, 500)],
    )
    def test_output_is_always_1600x900(self, width: int, height: int) -> None:
        """Any input size or orientation gives a 1600x900 RGBA buffer."""
        out = normalize_frame(uniform_frame(100, width, height))
        assert out is not None
        assert out.shape == (900, 1600, 4)
        assert out.dtype == np.uint8

    def test_custom_output_size(self) -> None:
        out = normalize_frame(uniform_frame(100, 640, 480), (320, 180))
        assert out is not None
        assert out.shape == (180, 320, 4)

    def test_missing_frame_returns_none(self) -> None:
        assert normalize_frame(None) is None

    def test_zero_size_returns_none(self) -> None:
        assert normalize_frame(np.zeros((0, 640, 4), dtype=np.uint8)) is None

    def test_landscape_at_output_size_is_identity(self) -> None:
        frame = ramp_frame(code=0x5A)
        out = normalize_frame(frame)
        assert out is not None
        assert np.array_equal(out, frame)

    def test_portrait_is_rotated_clockwise(self) -> None:
        """The portrait top-left corner ends up at the top-right."""
        frame = uniform_frame(0, width=900, height=1600)
        frame[:100, :100, 0] = 255

        out = normalize_frame(frame)

        assert out is not None
        assert out[50, 1550, 0] == 255
        assert out[50, 50, 0] == 0
        assert out[850, 1550, 0] == 0

    def test_portrait_crop_keeps_centre(self) -> None:
        """A 3:4 portrait is cropped symmetrically after rotation."""
        frame = uniform_frame(0, width=600, height=800)
        # Left/right strips of the portrait become top/bottom after
        # rotation and are cropped away
        frame[:, :50, 1] = 255
        frame[:, -50:, 1] = 255

        out = normalize_frame(frame)

        assert out is not None
        assert out[:, :, 1].max() == 0
