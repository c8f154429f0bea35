"""Fit a remote Markdown file onto one A4 PDF page.

Usage:
    python -m cli.onepage export https://example.com/README.md
    python -m cli.onepage export https://example.com/README.md --mode raster --columns 2
    python -m cli.onepage serve --port 3000
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from md2pdf.config import OUTPUT_DIR, SETTLE_DELAY_S
from md2pdf.errors import PipelineError
from md2pdf.geometry import A4
from md2pdf.logging_utils import get_logger
from md2pdf.pdf_export import write_pdf
from md2pdf.pipeline import PipelineController, render_reflow_pdf
from md2pdf.render_host import HeadlessRenderHost
from md2pdf.schemas import PipelineStatus, RenderOptions
from md2pdf.settings import initial_render_options

log = get_logger(__name__)

# Bitmap captures at 2x so the raster page stays sharp after downscaling.
RASTER_DEVICE_SCALE = 2.0


def _options_from_args(args: argparse.Namespace) -> RenderOptions:
    defaults = initial_render_options()
    return RenderOptions(
        font_size=args.font_size or defaults.font_size,
        columns=args.columns or defaults.columns,
        dark_mode=bool(args.dark) or defaults.dark_mode,
    )


async def export_reflow(url: str, options: RenderOptions, out_dir: Path) -> Path:
    data, document, fit = await render_reflow_pdf(
        url, options, host_factory=lambda: HeadlessRenderHost(A4)
    )
    target = write_pdf(out_dir, document.derived_filename, data)
    log.info("Wrote %s at scale %.2f", target, fit.scale_factor)
    return target


async def export_raster(url: str, options: RenderOptions, out_dir: Path, settle_delay_s: float) -> Path:
    async with HeadlessRenderHost(A4, device_scale_factor=RASTER_DEVICE_SCALE) as host:
        controller = PipelineController(
            host, options=options, out_dir=out_dir, settle_delay_s=settle_delay_s
        )
        await controller.load(url, auto_export=True)
        if controller.status is PipelineStatus.ERROR:
            raise PipelineError(controller.error or "export failed")
        if controller.last_export is None:
            raise PipelineError(controller.notice or "export did not run")
        return controller.last_export


def _cmd_export(args: argparse.Namespace) -> int:
    options = _options_from_args(args)
    out_dir: Path = args.out_dir
    try:
        if args.mode == "raster":
            target = asyncio.run(export_raster(args.url, options, out_dir, float(args.settle_delay)))
        else:
            target = asyncio.run(export_reflow(args.url, options, out_dir))
    except PipelineError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    print(str(target))
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("md2pdf.main:app", host=args.host, port=int(args.port), log_level="info")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Convert a Markdown URL into a single-page A4 PDF.")
    sub = ap.add_subparsers(dest="command", required=True)

    ex = sub.add_parser("export", help="Fetch, fit and write <name>.pdf")
    ex.add_argument("url", help="http(s) URL of the Markdown file")
    ex.add_argument("--mode", choices=("reflow", "raster"), default="reflow", help="reflow = print live layout; raster = capture bitmap")
    ex.add_argument("--columns", type=int, choices=(1, 2, 3), default=None, help="Column count")
    ex.add_argument("--font-size", choices=("small", "medium", "large"), default=None, help="Font size tier")
    ex.add_argument("--dark", action="store_true", help="Dark theme")
    ex.add_argument("--out-dir", type=Path, default=OUTPUT_DIR, help="Directory for the generated PDF")
    ex.add_argument("--settle-delay", type=float, default=SETTLE_DELAY_S, help="Max seconds to wait for fonts/images before a raster capture")
    ex.set_defaults(func=_cmd_export)

    sv = sub.add_parser("serve", help="Run the HTTP service")
    sv.add_argument("--host", default="127.0.0.1")
    sv.add_argument("--port", type=int, default=3000)
    sv.set_defaults(func=_cmd_serve)
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
