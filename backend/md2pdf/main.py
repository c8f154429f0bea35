from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator

from fastapi import Depends, FastAPI, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, PlainTextResponse

from .config import FETCH_TIMEOUT_S, MAX_CONCURRENT_RENDERS, RENDER_TIMEOUT_MS
from .errors import PipelineError
from .fit import SCALE_FLOOR
from .geometry import A4
from .loader import ContentLoader
from .logging_utils import get_logger
from .pdf_export import HostFactory
from .pipeline import WELCOME_DOCUMENT, render_reflow_pdf
from .preview import STATUS_PAGE, render_preview_page
from .render_host import HeadlessRenderHost
from .schemas import FontSize, HealthResponse, PipelineStatus, RenderOptions
from .settings import initial_render_options

log = get_logger(__name__)

app = FastAPI(title="md2pdf-onepage")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["GET"],
    allow_headers=["*"],
)

DEFAULT_OPTIONS = initial_render_options()

_render_slots = asyncio.Semaphore(MAX_CONCURRENT_RENDERS)


@contextlib.asynccontextmanager
async def _admitted_host() -> AsyncIterator[HeadlessRenderHost]:
    async with _render_slots:
        async with HeadlessRenderHost(A4) as host:
            yield host


def get_host_factory() -> HostFactory:
    return _admitted_host


def get_loader() -> ContentLoader:
    return ContentLoader()


def get_options(
    font_size: FontSize | None = Query(default=None),
    columns: int | None = Query(default=None, ge=1, le=3),
    dark_mode: bool | None = Query(default=None),
) -> RenderOptions:
    return RenderOptions(
        font_size=font_size or DEFAULT_OPTIONS.font_size,
        columns=columns or DEFAULT_OPTIONS.columns,
        dark_mode=DEFAULT_OPTIONS.dark_mode if dark_mode is None else dark_mode,
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(
        status="ok",
        page_width_px=A4.width_px,
        page_height_px=A4.height_px,
        safe_height_px=A4.safe_height_px,
        scale_floor=SCALE_FLOOR,
        fetch_timeout_s=FETCH_TIMEOUT_S,
        render_timeout_ms=RENDER_TIMEOUT_MS,
        default_options=DEFAULT_OPTIONS,
    )


@app.get("/", response_model=None)
async def convert(
    file: str | None = Query(default=None),
    options: RenderOptions = Depends(get_options),
    loader: ContentLoader = Depends(get_loader),
    host_factory: HostFactory = Depends(get_host_factory),
) -> Response:
    if not file:
        return HTMLResponse(STATUS_PAGE)

    log.info("[Start] Request: %s", file)
    try:
        data, document, fit = await render_reflow_pdf(file, options, host_factory=host_factory, loader=loader)
    except PipelineError as e:
        log.error("[Error] %s: %s", type(e).__name__, e)
        return PlainTextResponse(f"Failed to process PDF: {e}", status_code=500)

    filename = f"{document.derived_filename}.pdf"
    log.info("[Success] Sent %s", filename)
    return Response(
        content=data,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Fit-Scale": f"{fit.scale_factor:.4f}",
        },
    )


@app.get("/preview", response_class=HTMLResponse)
async def preview(
    file: str | None = Query(default=None),
    options: RenderOptions = Depends(get_options),
    loader: ContentLoader = Depends(get_loader),
) -> HTMLResponse:
    if not file:
        return HTMLResponse(render_preview_page(WELCOME_DOCUMENT, options, status=PipelineStatus.IDLE))

    try:
        document = await loader.load(file)
    except PipelineError as e:
        log.warning("Preview load failed for %s: %s", file, e)
        page = render_preview_page(WELCOME_DOCUMENT, options, status=PipelineStatus.ERROR, error=str(e))
        return HTMLResponse(page)
    return HTMLResponse(render_preview_page(document, options, status=PipelineStatus.SUCCESS))
