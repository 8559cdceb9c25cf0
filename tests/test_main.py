"""Tests for command line helpers."""

import pytest

from docsnap.core.model import Rect
from docsnap.core.screen import ScreenSource
from docsnap.core.source import StillSource
from docsnap.main import make_source_factory, parse_region


class TestParseRegion:
    def test_valid_region(self) -> None:
        assert parse_region("10, 20, 640, 360") == Rect(10, 20, 640, 360)

    @pytest.mark.parametrize("text", ["", "1,2,3", "a,b,c,d", "0,0,0,100", "0,0,100,-5"])
    def test_invalid_region(self, text: str) -> None:
        assert parse_region(text) is None


class TestSourceFactory:
    def test_screen_factory_builds_fresh_sources(self) -> None:
        factory = make_source_factory(Rect(0, 0, 100, 100), None)
        first, second = factory(), factory()
        assert isinstance(first, ScreenSource)
        assert first is not second
        assert first.region == Rect(0, 0, 100, 100)

    def test_image_takes_precedence(self, tmp_path) -> None:
        from docsnap.core.codec import encode_image
        from conftest import ramp_frame

        path = tmp_path / "doc.png"
        path.write_bytes(encode_image(ramp_frame(width=16, height=9), "PNG"))

        factory = make_source_factory(Rect(0, 0, 100, 100), str(path))
        assert isinstance(factory(), StillSource)
