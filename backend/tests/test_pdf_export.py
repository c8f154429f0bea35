from __future__ import annotations

import asyncio
from io import BytesIO

import pytest
from PIL import Image

from conftest import FAKE_PDF, FakeHost, make_png
from md2pdf.errors import CaptureError, RenderError
from md2pdf.geometry import A4
from md2pdf.pdf_export import PdfExporter, RasterExporter, raster_to_pdf, write_pdf


class TestPdfExporter:
    def test_short_content_prints_at_full_scale(self, host_factory):
        factory = host_factory(height=400)
        data, fit = asyncio.run(PdfExporter(factory).render("<p>x</p>"))
        assert data == FAKE_PDF
        assert fit.scale_factor == 1.0
        assert factory.host.pdf_scales == [1.0]
        assert factory.host.shown == ["<p>x</p>"]

    def test_tall_content_is_scaled_down(self, host_factory):
        factory = host_factory(height=A4.safe_height_px * 1.25)
        _, fit = asyncio.run(PdfExporter(factory).render("<p>x</p>"))
        assert fit.scale_factor == pytest.approx(0.8)
        assert fit.measured_content_height_px == pytest.approx(A4.safe_height_px * 1.25)

    def test_very_tall_content_stops_at_floor(self, host_factory):
        factory = host_factory(height=A4.safe_height_px * 10)
        _, fit = asyncio.run(PdfExporter(factory).render("<p>x</p>"))
        assert fit.scale_factor == 0.5
        assert factory.host.pdf_scales == [0.5]

    @pytest.mark.parametrize("step", ["show", "measure", "pdf"])
    def test_host_released_on_failure(self, host_factory, step):
        factory = host_factory(fail_on=step)
        with pytest.raises(RenderError):
            asyncio.run(PdfExporter(factory).render("<p>x</p>"))
        assert factory.host.closed is True

    def test_host_released_on_success(self, host_factory):
        factory = host_factory()
        asyncio.run(PdfExporter(factory).render("<p>x</p>"))
        assert factory.host.closed is True


class TestRasterToPdf:
    def test_produces_single_page_pdf(self):
        data = raster_to_pdf(make_png(1000, 3000), title="readme")
        assert data.startswith(b"%PDF")
        assert b"/Count 1" in data

    def test_flattens_transparency(self):
        buf = BytesIO()
        Image.new("RGBA", (50, 80), (0, 0, 0, 0)).save(buf, format="PNG")
        assert raster_to_pdf(buf.getvalue()).startswith(b"%PDF")

    def test_unreadable_bitmap(self):
        with pytest.raises(CaptureError):
            raster_to_pdf(b"not an image")


class TestRasterExporter:
    def test_writes_named_pdf(self, out_dir):
        host = FakeHost(png=make_png(800, 1200))
        target = asyncio.run(RasterExporter(host, out_dir).export("markdown-container", "readme"))
        assert target == out_dir / "readme.pdf"
        assert target.read_bytes().startswith(b"%PDF")

    def test_missing_target_surfaces_capture_error(self, out_dir):
        host = FakeHost(fail_on="capture")
        with pytest.raises(CaptureError):
            asyncio.run(RasterExporter(host, out_dir).export("markdown-container", "readme"))
        assert not (out_dir / "readme.pdf").exists()


class TestWritePdf:
    def test_writes_into_new_directory(self, out_dir):
        target = write_pdf(out_dir / "nested", "readme", FAKE_PDF)
        assert target.read_bytes() == FAKE_PDF

    def test_os_error_becomes_render_error(self, tmp_path):
        blocked = tmp_path / "blocked"
        blocked.write_text("file")
        with pytest.raises(RenderError, match="Failed to write"):
            write_pdf(blocked, "readme", FAKE_PDF)
