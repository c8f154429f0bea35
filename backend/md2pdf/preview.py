from __future__ import annotations

from html import escape
from urllib.parse import urlencode

from .composer import compose_container, compose_styles
from .geometry import A4, PageGeometry
from .markdown_render import document_title, markdown_to_html
from .schemas import Document, PipelineStatus, RenderOptions

STATUS_PAGE = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>MD2PDF OnePage</title></head>
<body>
  <div style="font-family: sans-serif; text-align: center; padding: 50px;">
    <h1>MD2PDF Backend Ready</h1>
    <p>Usage: <code>/?file=URL_TO_MARKDOWN</code></p>
    <p>Options: <code>columns=1|2|3</code>, <code>font_size=small|medium|large</code>, <code>dark_mode=true</code></p>
    <p>Live preview: <a href="/preview">/preview</a></p>
    <p>Downloads are printed from the live layout (selectable text); use <code>cli.onepage export --mode raster</code> for a bitmap page.</p>
  </div>
</body>
</html>
"""

_FONT_LABELS = {"small": "Small", "medium": "Medium", "large": "Large"}

_UI_STYLES = """
  body { margin: 0; background: #f9fafb; font-family: sans-serif; display: flex; }
  .panel { width: 18rem; padding: 1.5rem; background: #fff; border-right: 1px solid #e5e7eb;
           min-height: 100vh; box-sizing: border-box; }
  .panel h1 { font-size: 1.1rem; margin: 0 0 0.25rem; }
  .panel p.hint { font-size: 0.8rem; color: #6b7280; margin: 0 0 1rem; }
  .panel fieldset { border: none; padding: 0; margin: 0 0 1rem; }
  .panel legend { font-size: 0.7rem; font-weight: 600; color: #6b7280; text-transform: uppercase; }
  .panel input[type=url] { width: 100%; box-sizing: border-box; padding: 0.4rem; }
  .panel .download { display: block; margin-top: 1.5rem; padding: 0.75rem; text-align: center;
                     background: #4f46e5; color: #fff; border-radius: 0.75rem; text-decoration: none; }
  main { flex: 1; padding: 2rem; overflow-y: auto; height: 100vh; box-sizing: border-box; }
  .error { max-width: 56rem; margin: 0 auto 1.5rem; background: #fef2f2; border: 1px solid #fecaca;
           border-radius: 0.75rem; padding: 1rem; color: #b91c1c; }
  .sheet { display: flex; justify-content: center; }
  .sheet > div { box-shadow: 0 2px 8px rgba(0, 0, 0, 0.08); min-height: 297mm; }
"""


def _query(source_url: str, options: RenderOptions) -> str:
    params: dict[str, str] = {}
    if source_url:
        params["file"] = source_url
    params["font_size"] = options.font_size
    params["columns"] = str(options.columns)
    params["dark_mode"] = "true" if options.dark_mode else "false"
    return urlencode(params)


def _radio(name: str, value: str, label: str, checked: bool) -> str:
    mark = " checked" if checked else ""
    return f'<label><input type="radio" name="{name}" value="{escape(value)}"{mark}> {escape(label)}</label>'


def _control_panel(document: Document, options: RenderOptions, status: PipelineStatus) -> str:
    fonts = " ".join(
        _radio("font_size", size, label, options.font_size == size) for size, label in _FONT_LABELS.items()
    )
    cols = " ".join(_radio("columns", str(n), str(n), options.columns == n) for n in (1, 2, 3))
    themes = " ".join(
        [
            _radio("dark_mode", "false", "Light", not options.dark_mode),
            _radio("dark_mode", "true", "Dark", options.dark_mode),
        ]
    )
    download = ""
    if status is PipelineStatus.SUCCESS and document.source_url:
        download = f'<a class="download" href="/?{escape(_query(document.source_url, options))}">Download PDF (1 page)</a>'
    return f"""<aside class="panel">
  <h1>PDF Settings</h1>
  <p class="hint">Adjust the layout so it fits on one page. The download keeps text selectable.</p>
  <form method="get" action="/preview">
    <fieldset><legend>Markdown URL</legend>
      <input type="url" name="file" placeholder="https://..." value="{escape(document.source_url)}">
    </fieldset>
    <fieldset><legend>Font size</legend>{fonts}</fieldset>
    <fieldset><legend>Columns</legend>{cols}</fieldset>
    <fieldset><legend>Theme</legend>{themes}</fieldset>
    <button type="submit">Load</button>
  </form>
  {download}
</aside>"""


def render_preview_page(
    document: Document,
    options: RenderOptions,
    *,
    status: PipelineStatus,
    error: str | None = None,
    geometry: PageGeometry = A4,
) -> str:
    html = markdown_to_html(document.raw_text)
    title = document_title(html, document.derived_filename)
    error_box = ""
    if status is PipelineStatus.ERROR and error:
        error_box = f"""<div class="error" role="alert">
  <strong>An error occurred</strong>
  <p>{escape(error)}</p>
  <a href="/preview?{escape(_query("", options))}">Dismiss</a>
</div>"""
    return f"""<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{escape(title)} - MD2PDF preview</title>
<style>
{_UI_STYLES}
{compose_styles(options, geometry)}
</style>
</head>
<body data-status="{status.value}">
{_control_panel(document, options, status)}
<main>
{error_box}
<div class="sheet">{compose_container(html, options)}</div>
</main>
</body>
</html>
"""
