from __future__ import annotations

from bs4 import BeautifulSoup
from markdown_it import MarkdownIt
from mdit_py_plugins.tasklists import tasklists_plugin


def _build_markdown_parser() -> MarkdownIt:
    md = MarkdownIt("commonmark", {"html": False, "linkify": False})
    md.enable("table")
    md.enable("strikethrough")
    md.use(tasklists_plugin)
    return md


_MD_PARSER: MarkdownIt | None = None


def _get_markdown_parser() -> MarkdownIt:
    global _MD_PARSER
    if _MD_PARSER is None:
        _MD_PARSER = _build_markdown_parser()
    return _MD_PARSER


def markdown_to_html(text: str) -> str:
    return _get_markdown_parser().render(str(text or "").replace("\r\n", "\n"))


def document_title(html: str, default: str) -> str:
    soup = BeautifulSoup(html or "", "html.parser")
    for level in ("h1", "h2", "h3"):
        heading = soup.find(level)
        if heading is not None:
            text = heading.get_text(" ", strip=True)
            if text:
                return text
    return default
