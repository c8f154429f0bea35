"""Tests for the single-page fit scalers and page geometry."""

from __future__ import annotations

import pytest

from md2pdf.fit import SCALE_FLOOR, RasterFit, ReflowFit, compute_scale
from md2pdf.geometry import A4, PageGeometry
from md2pdf.pdf_export import raster_placement


class TestComputeScale:
    @pytest.mark.parametrize("measured", [0, 1, 500, 1022.9, 1023])
    def test_fits_without_scaling(self, measured):
        assert compute_scale(measured, 1023) == 1.0

    def test_floor_reached_exactly_at_twice_the_safe_height(self):
        assert compute_scale(2046, 1023) == 0.5

    def test_floor_holds_for_very_tall_content(self):
        assert compute_scale(10 * 1023, 1023) == SCALE_FLOOR

    def test_proportional_between_one_and_two_pages(self):
        assert compute_scale(1500, 1200) == pytest.approx(0.8)

    @pytest.mark.parametrize("measured", [1, 800, 1024, 1500, 2045, 4000, 1e6])
    def test_always_within_bounds(self, measured):
        assert 0.5 <= compute_scale(measured, 1023) <= 1.0

    def test_rejects_non_positive_target(self):
        with pytest.raises(ValueError):
            compute_scale(100, 0)


class TestReflowFit:
    def test_fit_result_carries_measurement(self):
        result = ReflowFit().fit(3000, 1000)
        assert result.measured_content_height_px == 3000
        assert result.scale_factor == 0.5


class TestRasterFit:
    def test_picks_the_smaller_ratio(self):
        scale = RasterFit(210, 297).fit_bitmap(1000, 3000)
        assert scale == pytest.approx(min(210 / 1000, 297 / 3000))
        assert scale != pytest.approx(210 / 1000)

    def test_wide_bitmap_is_width_bound(self):
        assert RasterFit(210, 297).fit_bitmap(2000, 500) == pytest.approx(210 / 2000)

    def test_placement_is_centered_and_top_aligned(self):
        place = raster_placement(1000, 3000)
        assert place.y == 0
        assert place.height == pytest.approx(297)
        assert place.x == pytest.approx((210 - place.width) / 2)
        assert place.x > 0


class TestPageGeometry:
    def test_a4_at_reference_resolution(self):
        assert (A4.width_px, A4.height_px) == (794, 1123)
        assert A4.safe_height_px == 1123 - A4.margin_px

    def test_margin_must_leave_positive_safe_height(self):
        with pytest.raises(ValueError):
            PageGeometry(margin_px=1123)
