"""Single-page fit scaling.

Two strategies share the ``FitScaler`` interface and must not be merged:

* ``ReflowFit`` scales live, reflowing content, so only height matters (the
  column layout already respects the page width). It never goes below
  ``SCALE_FLOOR``; content taller than twice the safe height overflows.
* ``RasterFit`` scales a captured bitmap whose aspect ratio is frozen, so it
  takes the smaller of the width and height ratios.
"""

from __future__ import annotations

from typing import Protocol

from .schemas import FitResult

SCALE_FLOOR = 0.5
SCALE_CEILING = 1.0


class FitScaler(Protocol):
    def compute_scale(self, measured: float, target: float) -> float: ...


def compute_scale(measured_height_px: float, target_safe_height_px: float) -> float:
    if target_safe_height_px <= 0:
        raise ValueError("target safe height must be > 0")
    if measured_height_px <= target_safe_height_px:
        return SCALE_CEILING
    return max(target_safe_height_px / measured_height_px, SCALE_FLOOR)


class ReflowFit:
    def compute_scale(self, measured: float, target: float) -> float:
        return compute_scale(measured, target)

    def fit(self, measured_height_px: float, target_safe_height_px: float) -> FitResult:
        return FitResult(
            measured_content_height_px=float(measured_height_px),
            scale_factor=self.compute_scale(measured_height_px, target_safe_height_px),
        )


class RasterFit:
    """Scale in page units per bitmap pixel (mm/px for an A4 page in mm)."""

    def __init__(self, page_width: float, page_height: float) -> None:
        if page_width <= 0 or page_height <= 0:
            raise ValueError("page dimensions must be > 0")
        self.page_width = page_width
        self.page_height = page_height

    def compute_scale(self, measured: float, target: float) -> float:
        if measured <= 0:
            raise ValueError("measured size must be > 0")
        return target / measured

    def fit_bitmap(self, bitmap_width: float, bitmap_height: float) -> float:
        width_ratio = self.compute_scale(bitmap_width, self.page_width)
        height_ratio = self.compute_scale(bitmap_height, self.page_height)
        return min(width_ratio, height_ratio)
