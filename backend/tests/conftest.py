"""Shared fixtures: fake network transport and fake rendering hosts.

No test launches a browser or touches the network.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from io import BytesIO

import httpx
import pytest
from PIL import Image

# ---------------------------------------------------------------------------
# Configure verbose logging for test debugging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stderr,
    force=True,
)

SAMPLE_MARKDOWN = "# T\n\nbody"
FAKE_PDF = b"%PDF-1.4\n% fake\n%%EOF\n"


class RecordingTransport(httpx.MockTransport):
    """MockTransport that counts requests and serves fixed responses per URL."""

    def __init__(self, routes: dict[str, tuple[int, str] | Exception] | None = None) -> None:
        self.routes = dict(routes or {})
        self.calls: list[str] = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.calls.append(url)
        outcome = self.routes.get(url)
        if outcome is None:
            return httpx.Response(404, text="not found")
        if isinstance(outcome, Exception):
            raise outcome
        status, text = outcome
        return httpx.Response(status, text=text)


class FakeHost:
    """Stands in for HeadlessRenderHost on both export paths."""

    def __init__(
        self,
        *,
        height: float = 500.0,
        png: bytes | None = None,
        painted: bool = True,
        fail_on: str | None = None,
    ) -> None:
        self.height = height
        self.png = png
        self.painted = painted
        self.fail_on = fail_on
        self.shown: list[str] = []
        self.pdf_scales: list[float] = []
        self.paint_waits: list[float] = []
        self.closed = False

    async def __aenter__(self) -> FakeHost:
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.closed = True

    def _maybe_fail(self, step: str) -> None:
        if self.fail_on == step:
            from md2pdf.errors import CaptureError, RenderError

            if step == "capture":
                raise CaptureError("Render target #markdown-container not found")
            raise RenderError(f"{step} failed")

    async def show(self, markup: str) -> None:
        self._maybe_fail("show")
        self.shown.append(markup)

    async def measure_height(self) -> float:
        self._maybe_fail("measure")
        return self.height

    async def pdf(self, scale: float) -> bytes:
        self._maybe_fail("pdf")
        self.pdf_scales.append(scale)
        return FAKE_PDF

    async def wait_until_painted(self, timeout_s: float) -> bool:
        self.paint_waits.append(timeout_s)
        return self.painted

    async def capture(self, element_id: str) -> bytes:
        self._maybe_fail("capture")
        return self.png if self.png is not None else make_png(400, 600)


def make_png(width: int, height: int, color: tuple[int, int, int] = (200, 220, 240)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def md_url() -> str:
    return "https://x.com/a/b/readme.md"


@pytest.fixture
def transport(md_url: str) -> RecordingTransport:
    return RecordingTransport({md_url: (200, SAMPLE_MARKDOWN)})


@pytest.fixture
def loader(transport: RecordingTransport):
    from md2pdf.loader import ContentLoader

    return ContentLoader(transport=transport, timeout_s=1.0)


@pytest.fixture
def host_factory() -> Callable[..., Callable[[], FakeHost]]:
    """Build a factory returning one shared FakeHost so tests can inspect it."""

    def build(**kwargs) -> Callable[[], FakeHost]:
        host = FakeHost(**kwargs)

        def factory() -> FakeHost:
            return host

        factory.host = host  # type: ignore[attr-defined]
        return factory

    return build


@pytest.fixture
def out_dir(tmp_path):
    return tmp_path / "output"
