from __future__ import annotations

from dataclasses import dataclass

from .config import SAFE_MARGIN_PX

MM_PER_INCH = 25.4
REFERENCE_DPI = 96.0

A4_WIDTH_MM = 210.0
A4_HEIGHT_MM = 297.0


def mm_to_px(mm: float, dpi: float = REFERENCE_DPI) -> int:
    return int(round(mm / MM_PER_INCH * dpi))


@dataclass(frozen=True)
class PageGeometry:
    """Fixed A4 page at the 96 DPI CSS reference resolution.

    ``safe_height_px`` is the vertical budget content must fit into at scale
    1.0; it has to stay positive.
    """

    width_mm: float = A4_WIDTH_MM
    height_mm: float = A4_HEIGHT_MM
    margin_px: int = SAFE_MARGIN_PX
    dpi: float = REFERENCE_DPI

    def __post_init__(self) -> None:
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise ValueError("page dimensions must be > 0")
        if self.margin_px < 0:
            raise ValueError("margin_px must be >= 0")
        if self.safe_height_px <= 0:
            raise ValueError(
                f"safe height must be > 0 (page {self.height_px}px, margin {self.margin_px}px)"
            )

    @property
    def width_px(self) -> int:
        return mm_to_px(self.width_mm, self.dpi)

    @property
    def height_px(self) -> int:
        return mm_to_px(self.height_mm, self.dpi)

    @property
    def safe_height_px(self) -> int:
        return self.height_px - self.margin_px


A4 = PageGeometry()
