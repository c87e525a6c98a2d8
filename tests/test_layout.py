"""Tests for the coordinate mapper."""

from __future__ import annotations

import pytest

from conftest import element

from slidekit_html.layout import compute_layout, element_geometry, rect_geometry
from slidekit_html.models import Rect


@pytest.mark.unit
class TestComputeLayout:
    """Test scale and centering."""

    def test_exact_fit(self):
        layout = compute_layout(Rect(x=0, y=0, width=960, height=540))
        assert layout.scale == pytest.approx(1.0)
        assert layout.offset_x == pytest.approx(0.0)
        assert layout.offset_y == pytest.approx(0.0)

    def test_wide_root_letterboxed(self):
        layout = compute_layout(Rect(x=0, y=0, width=1920, height=540))
        assert layout.scale == pytest.approx(0.5)
        assert layout.offset_x == pytest.approx(0.0)
        assert layout.offset_y == pytest.approx((5.625 - 2.8125) / 2)

    def test_tall_root_pillarboxed(self):
        layout = compute_layout(Rect(x=0, y=0, width=960, height=1080))
        assert layout.scale == pytest.approx(0.5)
        assert layout.offset_x == pytest.approx(2.5)

    def test_root_origin_subtracted(self):
        layout = compute_layout(Rect(x=100, y=50, width=960, height=540))
        assert layout.to_x(100) == pytest.approx(0.0)
        assert layout.to_y(146) == pytest.approx(1.0)

    def test_custom_page(self):
        layout = compute_layout(Rect(width=1280, height=720), 13.333, 7.5)
        assert layout.scale == pytest.approx(1.0, rel=1e-3)

    def test_empty_root(self):
        layout = compute_layout(Rect(width=0, height=0))
        assert layout.scale == 1.0


@pytest.mark.unit
class TestElementGeometry:
    """Test target geometry of element boxes."""

    def test_plain_box(self, layout):
        node = element(x=96, y=48, width=192, height=96)
        geometry = element_geometry(node, layout)
        assert (geometry.x, geometry.y, geometry.w, geometry.h) == pytest.approx(
            (1.0, 0.5, 2.0, 1.0)
        )
        assert geometry.rotation == 0.0

    def test_rotated_box_centered_on_bounding_rect(self, layout):
        # A 96x48 box rotated 90deg reports a 48x96 bounding rect.
        node = element(
            x=120, y=0, width=48, height=96, transform="matrix(0, 1, -1, 0, 0, 0)"
        )
        node.offset_width = 96
        node.offset_height = 48
        geometry = element_geometry(node, layout)
        assert geometry.w == pytest.approx(1.0)
        assert geometry.h == pytest.approx(0.5)
        # Center stays at (144, 48) px = (1.5, 0.5) in.
        assert geometry.x + geometry.w / 2 == pytest.approx(1.5)
        assert geometry.y + geometry.h / 2 == pytest.approx(0.5)
        assert geometry.rotation == 90.0

    def test_rect_geometry(self, layout):
        geometry = rect_geometry(Rect(x=0, y=96, width=48, height=24), layout)
        assert (geometry.x, geometry.y, geometry.w, geometry.h) == pytest.approx(
            (0.0, 1.0, 0.5, 0.25)
        )
