"""Wraps rendered Markdown HTML in a styled, page-width container.

The composer trusts its input: the HTML fragment is inserted verbatim.
Margins are baked into the container padding, so exporters print with zero
page margins.
"""

from __future__ import annotations

from html import escape

from .geometry import A4, PageGeometry
from .schemas import RenderOptions

CONTAINER_ID = "markdown-container"

FONT_SIZES_PX = {"small": 9, "medium": 10, "large": 12}
HEADING_RATIOS = {1: 1.8, 2: 1.4, 3: 1.2, 4: 1.1, 5: 1.05, 6: 1.0}
SMALL_TEXT_RATIO = 0.9

PAGE_PADDING_MM = 15
COLUMN_GAP_MM = 10

_LIGHT = {
    "background": "#ffffff",
    "text": "#1a1a1a",
    "heading": "#000000",
    "accent": "#2563eb",
    "muted": "#475569",
    "code_bg": "#f1f5f9",
    "border": "#e2e8f0",
    "th_bg": "#f8fafc",
    "rule": "#333333",
}
_DARK = {
    "background": "#111827",
    "text": "#f3f4f6",
    "heading": "#ffffff",
    "accent": "#60a5fa",
    "muted": "#9ca3af",
    "code_bg": "#1f2937",
    "border": "#374151",
    "th_bg": "#1f2937",
    "rule": "#d1d5db",
}


def _px(value: float) -> str:
    return f"{value:.2f}".rstrip("0").rstrip(".") + "px"


def heading_sizes_px(font_size: str) -> dict[int, str]:
    base = FONT_SIZES_PX[font_size]
    return {level: _px(base * ratio) for level, ratio in HEADING_RATIOS.items()}


def _column_rules(columns: int) -> str:
    if columns <= 1:
        return ""
    return f"""
  #{CONTAINER_ID} .content {{
    column-count: {columns};
    column-gap: {COLUMN_GAP_MM}mm;
    column-fill: balance;
  }}
  #{CONTAINER_ID} .content h1 {{
    column-span: all;
  }}"""


def compose_styles(options: RenderOptions, geometry: PageGeometry = A4) -> str:
    palette = _DARK if options.dark_mode else _LIGHT
    base = FONT_SIZES_PX[options.font_size]
    small = _px(base * SMALL_TEXT_RATIO)
    headings = heading_sizes_px(options.font_size)
    heading_rules = "\n".join(
        f"  #{CONTAINER_ID} h{level} {{ font-size: {size}; }}" for level, size in headings.items()
    )
    return f"""
  #{CONTAINER_ID} {{
    width: {geometry.width_mm:g}mm;
    padding: {PAGE_PADDING_MM}mm;
    box-sizing: border-box;
    font-family: 'Helvetica', 'Arial', sans-serif;
    font-size: {_px(base)};
    line-height: 1.4;
    color: {palette["text"]};
    background: {palette["background"]};
  }}
  #{CONTAINER_ID} .content {{
    width: 100%;
    text-align: justify;
  }}
{heading_rules}
  #{CONTAINER_ID} h1, #{CONTAINER_ID} h2, #{CONTAINER_ID} h3,
  #{CONTAINER_ID} h4, #{CONTAINER_ID} h5, #{CONTAINER_ID} h6 {{
    color: {palette["heading"]};
    line-height: 1.25;
    margin: 0.8em 0 0.4em;
    break-after: avoid;
  }}
  #{CONTAINER_ID} h1 {{
    margin-top: 0;
    padding-bottom: 5px;
    border-bottom: 2px solid {palette["rule"]};
  }}
  #{CONTAINER_ID} h2 {{ color: {palette["accent"]}; }}
  #{CONTAINER_ID} p {{ margin: 0 0 8px; }}
  #{CONTAINER_ID} ul, #{CONTAINER_ID} ol {{ padding-left: 20px; margin: 0 0 8px; }}
  #{CONTAINER_ID} li {{ margin-bottom: 2px; }}
  #{CONTAINER_ID} li.task-list-item {{ list-style: none; }}
  #{CONTAINER_ID} pre {{
    background: {palette["code_bg"]};
    padding: 8px;
    border-radius: 4px;
    border: 1px solid {palette["border"]};
    font-family: 'Courier New', monospace;
    font-size: {small};
    white-space: pre-wrap;
    word-wrap: break-word;
    margin: 0 0 10px;
    break-inside: avoid;
    page-break-inside: avoid;
  }}
  #{CONTAINER_ID} code {{
    font-family: 'Courier New', monospace;
    background: {palette["code_bg"]};
    padding: 1px 3px;
    border-radius: 2px;
    font-size: 0.95em;
  }}
  #{CONTAINER_ID} pre code {{ padding: 0; background: none; }}
  #{CONTAINER_ID} blockquote {{
    border-left: 3px solid {palette["border"]};
    padding-left: 10px;
    margin: 0 0 10px;
    color: {palette["muted"]};
    font-style: italic;
  }}
  #{CONTAINER_ID} img {{
    max-width: 100%;
    height: auto;
    display: block;
    margin: 10px 0;
  }}
  #{CONTAINER_ID} a {{ color: {palette["accent"]}; text-decoration: none; }}
  #{CONTAINER_ID} table {{
    width: 100%;
    border-collapse: collapse;
    margin: 0 0 10px;
    font-size: {small};
  }}
  #{CONTAINER_ID} tr {{ break-inside: avoid; page-break-inside: avoid; }}
  #{CONTAINER_ID} th, #{CONTAINER_ID} td {{ border: 1px solid {palette["border"]}; padding: 4px; text-align: left; }}
  #{CONTAINER_ID} th {{ background: {palette["th_bg"]}; font-weight: 600; }}{_column_rules(options.columns)}
"""


def compose_container(html: str, options: RenderOptions) -> str:
    theme = "dark" if options.dark_mode else "light"
    return (
        f'<div id="{CONTAINER_ID}" class="page theme-{theme}">'
        f'<div class="content columns-{options.columns}">\n{html}\n</div>'
        "</div>"
    )


def compose(
    html: str,
    options: RenderOptions,
    *,
    title: str = "document",
    geometry: PageGeometry = A4,
) -> str:
    """Full standalone HTML document; needs no external resources to load."""
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{escape(title)}</title>
<style>
  @page {{ size: A4; margin: 0; }}
  html, body {{ margin: 0; padding: 0; }}
{compose_styles(options, geometry)}
</style>
</head>
<body>
{compose_container(html, options)}
</body>
</html>
"""
