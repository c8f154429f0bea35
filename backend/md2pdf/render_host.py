"""Isolated headless Chromium page used to measure, capture and print markup.

One host serves one request's full lifecycle; use it as an async context
manager so the browser is released on every exit path.
"""

from __future__ import annotations

import asyncio
from types import TracebackType

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError

from .config import CHROMIUM_ARGS, RENDER_TIMEOUT_MS
from .errors import CaptureError, HostResourceError, RenderError
from .geometry import A4, PageGeometry
from .logging_utils import get_logger

log = get_logger(__name__)

# Resolves once web fonts are loaded and every <img> has finished (or failed).
_PAINT_READY_JS = """
async () => {
  if (document.fonts && document.fonts.ready) {
    await document.fonts.ready;
  }
  const pending = Array.from(document.images)
    .filter((img) => !img.complete)
    .map((img) => new Promise((resolve) => {
      img.addEventListener('load', resolve, { once: true });
      img.addEventListener('error', resolve, { once: true });
    }));
  await Promise.all(pending);
  await new Promise((resolve) => requestAnimationFrame(() => resolve()));
  return true;
}
"""

_ZERO_MARGINS = {"top": "0", "bottom": "0", "left": "0", "right": "0"}


class HeadlessRenderHost:
    def __init__(
        self,
        geometry: PageGeometry = A4,
        *,
        timeout_ms: int = RENDER_TIMEOUT_MS,
        chromium_args: list[str] | None = None,
        device_scale_factor: float = 1.0,
    ) -> None:
        self.geometry = geometry
        self.timeout_ms = timeout_ms
        self.chromium_args = list(CHROMIUM_ARGS if chromium_args is None else chromium_args)
        self.device_scale_factor = device_scale_factor
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._page: Page | None = None

    async def __aenter__(self) -> HeadlessRenderHost:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            await self.close()
        except HostResourceError:
            if exc is None:
                raise
            log.exception("Render host cleanup failed while handling %s", type(exc).__name__)

    @property
    def page(self) -> Page:
        if self._page is None:
            raise HostResourceError("Render host is not started")
        return self._page

    async def start(self) -> None:
        try:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(headless=True, args=self.chromium_args)
            self._page = await self._browser.new_page(
                viewport={"width": self.geometry.width_px, "height": self.geometry.height_px},
                device_scale_factor=self.device_scale_factor,
            )
        except PlaywrightError as e:
            try:
                await self.close()
            except HostResourceError:
                log.exception("Render host cleanup after failed start also failed")
            raise HostResourceError(f"Failed to start render host: {e}") from e
        log.debug("Render host started (%dpx wide)", self.geometry.width_px)

    async def close(self) -> None:
        page, browser, pw = self._page, self._browser, self._playwright
        self._page = None
        self._browser = None
        self._playwright = None
        errors: list[str] = []
        if page is not None and not page.is_closed():
            try:
                await page.close()
            except PlaywrightError as e:
                errors.append(f"page: {e}")
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as e:
                errors.append(f"browser: {e}")
        if pw is not None:
            try:
                await pw.stop()
            except PlaywrightError as e:
                errors.append(f"playwright: {e}")
        if errors:
            raise HostResourceError("Failed to stop render host: " + "; ".join(errors))

    async def show(self, markup: str) -> None:
        # 'load' instead of network idle: composed markup has no external CSS or fonts.
        try:
            await self.page.set_content(markup, wait_until="load", timeout=self.timeout_ms)
        except PlaywrightError as e:
            raise RenderError(f"Failed to load composed markup: {e}") from e

    async def measure_height(self) -> float:
        try:
            height = await self.page.evaluate("() => document.body.scrollHeight")
        except PlaywrightError as e:
            raise RenderError(f"Failed to measure content: {e}") from e
        return float(height or 0)

    async def wait_until_painted(self, timeout_s: float) -> bool:
        try:
            await asyncio.wait_for(self.page.evaluate(_PAINT_READY_JS), timeout=timeout_s)
        except asyncio.TimeoutError:
            return False
        except PlaywrightError as e:
            raise RenderError(f"Failed waiting for paint: {e}") from e
        return True

    async def capture(self, element_id: str) -> bytes:
        try:
            element = await self.page.query_selector(f"#{element_id}")
        except PlaywrightError as e:
            raise CaptureError(f"Failed to query #{element_id}: {e}") from e
        if element is None:
            raise CaptureError(f"Render target #{element_id} not found")
        try:
            return await element.screenshot(type="png", timeout=self.timeout_ms)
        except PlaywrightError as e:
            raise CaptureError(f"Failed to capture #{element_id}: {e}") from e

    async def pdf(self, scale: float) -> bytes:
        try:
            return await self.page.pdf(
                format="A4",
                print_background=True,
                scale=scale,
                margin=_ZERO_MARGINS,
                prefer_css_page_size=True,
            )
        except PlaywrightError as e:
            raise RenderError(f"Failed to export PDF: {e}") from e
