"""Fetch -> render -> measure -> scale -> export sequencing.

``render_reflow_pdf`` is the server path. ``PipelineController`` is the
interactive (raster) path: a small state machine driving a live rendering
surface, with a request-generation guard so a superseded load can never
overwrite the state of a newer one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from .composer import CONTAINER_ID, compose
from .config import OUTPUT_DIR, SETTLE_DELAY_S
from .errors import PipelineError
from .geometry import A4, PageGeometry
from .loader import ContentLoader
from .logging_utils import get_logger
from .markdown_render import document_title, markdown_to_html
from .pdf_export import HostFactory, PdfExporter, RasterExporter
from .schemas import FALLBACK_FILENAME, Document, FitResult, PipelineSnapshot, PipelineStatus, RenderOptions

log = get_logger(__name__)

WELCOME_MARKDOWN = """# Welcome to MD2PDF OnePage

This is a sample Markdown preview. Pass `?file=URL_TO_MARKDOWN` to load your own file.

## Features
- **One page**: content is scaled down so it fits on a single A4 page.
- **Columns**: use two or three columns to pack dense text.
- **Live preview**: see the page before you download it.

## Using the API
Add the `file` parameter to this address.
Example: `/?file=https://raw.githubusercontent.com/username/repo/main/README.md`
"""

WELCOME_DOCUMENT = Document(source_url="", raw_text=WELCOME_MARKDOWN, derived_filename=FALLBACK_FILENAME)

EXPORT_PROMPT = "Load a Markdown file before exporting."

_TRANSITIONS: dict[PipelineStatus, frozenset[PipelineStatus]] = {
    PipelineStatus.IDLE: frozenset({PipelineStatus.LOADING}),
    PipelineStatus.LOADING: frozenset({PipelineStatus.LOADING, PipelineStatus.SUCCESS, PipelineStatus.ERROR}),
    PipelineStatus.SUCCESS: frozenset({PipelineStatus.LOADING, PipelineStatus.EXPORTING}),
    PipelineStatus.EXPORTING: frozenset({PipelineStatus.LOADING, PipelineStatus.SUCCESS, PipelineStatus.ERROR}),
    PipelineStatus.ERROR: frozenset({PipelineStatus.LOADING, PipelineStatus.IDLE}),
}


class InvalidTransition(RuntimeError):
    pass


def compose_document(
    document: Document, options: RenderOptions, geometry: PageGeometry = A4
) -> tuple[str, str]:
    """Return ``(markup, title)`` for a document under the given options."""
    html = markdown_to_html(document.raw_text)
    title = document_title(html, document.derived_filename)
    return compose(html, options, title=title, geometry=geometry), title


async def render_reflow_pdf(
    url: str,
    options: RenderOptions,
    *,
    host_factory: HostFactory,
    loader: ContentLoader | None = None,
    geometry: PageGeometry = A4,
) -> tuple[bytes, Document, FitResult]:
    loader = loader or ContentLoader()
    document = await loader.load(url)
    markup, _ = compose_document(document, options, geometry)
    data, fit = await PdfExporter(host_factory, geometry).render(markup)
    return data, document, fit


class RenderSurface(Protocol):
    async def show(self, markup: str) -> None: ...

    async def wait_until_painted(self, timeout_s: float) -> bool: ...

    async def capture(self, element_id: str) -> bytes: ...


class PipelineController:
    def __init__(
        self,
        surface: RenderSurface,
        *,
        loader: ContentLoader | None = None,
        options: RenderOptions | None = None,
        geometry: PageGeometry = A4,
        out_dir: Path = OUTPUT_DIR,
        settle_delay_s: float = SETTLE_DELAY_S,
    ) -> None:
        if settle_delay_s < 0:
            raise ValueError("settle_delay_s must be >= 0")
        self.surface = surface
        self.loader = loader or ContentLoader()
        self.options = options or RenderOptions()
        self.geometry = geometry
        self.settle_delay_s = settle_delay_s
        self.exporter = RasterExporter(surface, out_dir, geometry)

        self.status = PipelineStatus.IDLE
        self.error: str | None = None
        self.notice: str | None = None
        self.document = WELCOME_DOCUMENT
        self.last_export: Path | None = None
        self._title = FALLBACK_FILENAME
        self._generation = 0

    def _transition(self, new: PipelineStatus) -> None:
        if new not in _TRANSITIONS[self.status]:
            raise InvalidTransition(f"{self.status.value} -> {new.value}")
        log.debug("Pipeline %s -> %s", self.status.value, new.value)
        self.status = new

    def _fail(self, message: str) -> None:
        log.error("[Error] %s", message)
        self.error = message
        self._transition(PipelineStatus.ERROR)

    def snapshot(self) -> PipelineSnapshot:
        return PipelineSnapshot(
            status=self.status,
            error=self.error,
            filename=self.document.derived_filename,
            source_url=self.document.source_url,
            options=self.options,
        )

    async def render(self) -> None:
        markup, self._title = compose_document(self.document, self.options, self.geometry)
        await self.surface.show(markup)

    async def set_options(self, options: RenderOptions) -> None:
        self.options = options
        if self.status is PipelineStatus.SUCCESS:
            await self.render()

    async def load(self, url: str, *, auto_export: bool = False) -> bool:
        self._generation += 1
        generation = self._generation
        self.error = None
        self.notice = None
        self._transition(PipelineStatus.LOADING)

        try:
            document = await self.loader.load(url)
        except PipelineError as e:
            if generation != self._generation:
                log.info("Ignoring failure of superseded load: %s", url)
                return False
            self._fail(str(e))
            return False

        if generation != self._generation:
            log.info("Discarding superseded load result: %s", url)
            return False

        self.document = document
        try:
            await self.render()
        except PipelineError as e:
            if generation == self._generation:
                self._fail(str(e))
            return False
        if generation != self._generation:
            return False
        self._transition(PipelineStatus.SUCCESS)

        if auto_export:
            await self._settle()
            if generation != self._generation or self.status is not PipelineStatus.SUCCESS:
                log.info("Auto-export skipped; a newer request took over")
                return True
            await self.export()
        return True

    async def _settle(self) -> None:
        # The settle delay only bounds the wait; the surface signals readiness itself.
        try:
            painted = await self.surface.wait_until_painted(self.settle_delay_s)
        except PipelineError as e:
            log.warning("Paint-ready check failed, exporting anyway: %s", e)
            return
        if not painted:
            log.info("No paint-ready signal within %.1fs; exporting anyway", self.settle_delay_s)

    async def export(self) -> Path | None:
        if self.status is not PipelineStatus.SUCCESS:
            log.warning("Export rejected in state %s", self.status.value)
            self.notice = EXPORT_PROMPT
            return None

        generation = self._generation
        self.notice = None
        self._transition(PipelineStatus.EXPORTING)
        try:
            path = await self.exporter.export(
                CONTAINER_ID, self.document.derived_filename, title=self._title
            )
        except PipelineError as e:
            if generation == self._generation:
                self._fail(f"Failed to create PDF: {e}")
            return None

        if generation != self._generation:
            return path
        self.last_export = path
        self._transition(PipelineStatus.SUCCESS)
        return path

    def dismiss(self) -> None:
        if self.status is not PipelineStatus.ERROR:
            return
        self.error = None
        self._transition(PipelineStatus.IDLE)
