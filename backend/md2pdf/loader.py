from __future__ import annotations

import re
from urllib.parse import urlsplit

import httpx

from .config import FETCH_MAX_BYTES, FETCH_TIMEOUT_S
from .errors import EmptyContent, FetchError, InvalidUrl
from .logging_utils import get_logger
from .schemas import FALLBACK_FILENAME, Document

log = get_logger(__name__)

SUPPORTED_SCHEMES = ("http://", "https://")

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9_-]")
_USER_AGENT = "md2pdf-onepage/0.1 (+local)"


def is_supported_url(url: str) -> bool:
    return isinstance(url, str) and url.strip().lower().startswith(SUPPORTED_SCHEMES)


def derive_filename(url: str) -> str:
    """Filename stem for ``url``: last path segment without ``.md``.

    ``https://x.com/a/b/readme.md`` gives ``readme``; a trailing slash leaves
    an empty segment and yields the fallback ``document``.
    """
    parts = urlsplit(str(url or "").strip())
    path = parts.path if parts.scheme else str(url or "").split("?", 1)[0].split("#", 1)[0]
    last = path.split("/")[-1]
    if last.lower().endswith(".md"):
        last = last[: -len(".md")]
    last = _UNSAFE_FILENAME_RE.sub("", last)
    return last or FALLBACK_FILENAME


async def _read_limited(resp: httpx.Response, max_bytes: int) -> tuple[bytes, bool]:
    buf = bytearray()
    truncated = False
    async for chunk in resp.aiter_bytes():
        if not chunk:
            continue
        remaining = max_bytes - len(buf)
        if remaining <= 0:
            truncated = True
            break
        if len(chunk) > remaining:
            buf.extend(chunk[:remaining])
            truncated = True
            break
        buf.extend(chunk)
    return bytes(buf), truncated


class ContentLoader:
    """Fetches Markdown over HTTP(S). Every call re-fetches; nothing is cached."""

    def __init__(
        self,
        *,
        timeout_s: float = FETCH_TIMEOUT_S,
        max_bytes: int = FETCH_MAX_BYTES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")
        if max_bytes <= 0:
            raise ValueError("max_bytes must be > 0")
        self.timeout_s = timeout_s
        self.max_bytes = max_bytes
        self._transport = transport

    async def load(self, url: str) -> Document:
        if not is_supported_url(url):
            raise InvalidUrl("Invalid URL. Please use http:// or https://")
        url = url.strip()

        headers = {
            "user-agent": _USER_AGENT,
            "accept": "text/markdown,text/plain;q=0.9,*/*;q=0.1",
        }
        log.info("Fetching markdown: %s", url)
        async with httpx.AsyncClient(
            follow_redirects=True,
            timeout=httpx.Timeout(self.timeout_s),
            transport=self._transport,
        ) as client:
            try:
                async with client.stream("GET", url, headers=headers) as resp:
                    status = int(resp.status_code)
                    if not resp.is_success:
                        raise FetchError(f"Failed to fetch file ({status})", status=status)
                    data, truncated = await _read_limited(resp, self.max_bytes)
                    encoding = resp.encoding or "utf-8"
            except httpx.TimeoutException as e:
                raise FetchError(
                    f"Fetch timed out after {self.timeout_s:g}s: {url}", timeout=True
                ) from e
            except httpx.HTTPError as e:
                raise FetchError(f"Fetch failed: {type(e).__name__}: {e}") from e

        if truncated:
            log.warning("Markdown body truncated at %d bytes: %s", self.max_bytes, url)
        text = data.decode(encoding, errors="replace")
        if not text.strip():
            raise EmptyContent("Markdown file is empty")

        log.info("Fetched %d bytes (status %d) from %s", len(data), status, url)
        return Document(source_url=url, raw_text=text, derived_filename=derive_filename(url))
