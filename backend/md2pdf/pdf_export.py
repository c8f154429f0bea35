from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Protocol

from fpdf import FPDF
from fpdf.errors import FPDFException
from PIL import Image, UnidentifiedImageError

from .errors import CaptureError, RenderError
from .fit import RasterFit, ReflowFit
from .geometry import A4, PageGeometry
from .logging_utils import get_logger
from .schemas import FitResult

log = get_logger(__name__)


class ReflowHost(Protocol):
    async def show(self, markup: str) -> None: ...

    async def measure_height(self) -> float: ...

    async def pdf(self, scale: float) -> bytes: ...


class CaptureSurface(Protocol):
    async def capture(self, element_id: str) -> bytes: ...


HostFactory = Callable[[], AbstractAsyncContextManager[ReflowHost]]


class PdfExporter:
    """Reflow path: measure at natural size, then print one A4 page at the fitted scale."""

    def __init__(self, host_factory: HostFactory, geometry: PageGeometry = A4) -> None:
        self.host_factory = host_factory
        self.geometry = geometry
        self.scaler = ReflowFit()

    async def render(self, markup: str) -> tuple[bytes, FitResult]:
        async with self.host_factory() as host:
            await host.show(markup)
            height = await host.measure_height()
            fit = self.scaler.fit(height, self.geometry.safe_height_px)
            log.info("[PDF Info] Height: %d, Scale: %.2f", fit.measured_content_height_px, fit.scale_factor)
            data = await host.pdf(fit.scale_factor)
        if not data:
            raise RenderError("Render host returned an empty PDF")
        return data, fit


@dataclass(frozen=True)
class RasterPlacement:
    x: float
    y: float
    width: float
    height: float
    scale: float


def raster_placement(bitmap_width: int, bitmap_height: int, geometry: PageGeometry = A4) -> RasterPlacement:
    """Centered horizontally, top aligned; sizes in page millimetres."""
    scale = RasterFit(geometry.width_mm, geometry.height_mm).fit_bitmap(bitmap_width, bitmap_height)
    width = bitmap_width * scale
    height = bitmap_height * scale
    return RasterPlacement(x=(geometry.width_mm - width) / 2, y=0.0, width=width, height=height, scale=scale)


def raster_to_pdf(png: bytes, *, title: str | None = None, geometry: PageGeometry = A4) -> bytes:
    try:
        with Image.open(BytesIO(png)) as img:
            img.load()
            if img.mode in ("RGBA", "LA", "P"):
                # Flatten transparency onto white, as the page background.
                rgba = img.convert("RGBA")
                flat = Image.new("RGB", rgba.size, (255, 255, 255))
                flat.paste(rgba, mask=rgba.getchannel("A"))
            else:
                flat = img.convert("RGB")
    except (UnidentifiedImageError, OSError) as e:
        raise CaptureError(f"Captured bitmap is not a readable image: {e}") from e

    width_px, height_px = flat.size
    if width_px <= 0 or height_px <= 0:
        raise CaptureError("Captured bitmap is empty")
    place = raster_placement(width_px, height_px, geometry)
    log.info("[PDF Info] Bitmap: %dx%d, Scale: %.4f mm/px", width_px, height_px, place.scale)

    pdf = FPDF(orientation="P", unit="mm", format=(geometry.width_mm, geometry.height_mm))
    pdf.set_auto_page_break(False)
    pdf.set_margins(0, 0, 0)
    if title:
        pdf.set_title(title)
    pdf.add_page()
    try:
        pdf.image(flat, x=place.x, y=place.y, w=place.width, h=place.height)
        output = pdf.output()
    except FPDFException as e:
        raise RenderError(f"Failed to build PDF: {e}") from e
    return bytes(output)


def write_pdf(out_dir: Path, filename: str, data: bytes) -> Path:
    target = out_dir / f"{filename}.pdf"
    try:
        out_dir.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as e:
        raise RenderError(f"Failed to write {target}: {e}") from e
    return target


class RasterExporter:
    """Raster path: capture the container bitmap and lay it onto one A4 page."""

    def __init__(self, surface: CaptureSurface, out_dir: Path, geometry: PageGeometry = A4) -> None:
        self.surface = surface
        self.out_dir = out_dir
        self.geometry = geometry

    async def export(self, element_id: str, filename: str, *, title: str | None = None) -> Path:
        png = await self.surface.capture(element_id)
        data = raster_to_pdf(png, title=title or filename, geometry=self.geometry)
        target = write_pdf(self.out_dir, filename, data)
        log.info("[Success] Wrote %s (%d bytes)", target, len(data))
        return target
