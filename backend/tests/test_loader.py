from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import SAMPLE_MARKDOWN, RecordingTransport
from md2pdf.errors import EmptyContent, FetchError, InvalidUrl
from md2pdf.loader import ContentLoader, derive_filename, is_supported_url


class TestDeriveFilename:
    def test_strips_md_suffix(self):
        assert derive_filename("https://x.com/a/b/readme.md") == "readme"

    def test_trailing_slash_falls_back(self):
        assert derive_filename("https://x.com/") == "document"

    def test_bare_host_falls_back(self):
        assert derive_filename("https://x.com") == "document"

    def test_ignores_query_and_fragment(self):
        assert derive_filename("https://x.com/docs/guide.md?raw=1#top") == "guide"

    def test_keeps_non_markdown_names(self):
        assert derive_filename("https://x.com/notes.txt") == "notestxt"

    def test_drops_unsafe_characters(self):
        assert derive_filename("https://x.com/my%20file.md") == "my20file"

    def test_only_md_suffix_is_removed(self):
        assert derive_filename("https://x.com/intro.mdx") == "intromdx"


class TestIsSupportedUrl:
    @pytest.mark.parametrize("url", ["http://a.b/c.md", "https://a.b/c.md", "HTTPS://A.B/"])
    def test_accepts_http_schemes(self, url):
        assert is_supported_url(url)

    @pytest.mark.parametrize("url", ["ftp://a.b/c.md", "file:///etc/passwd", "a.b/c.md", ""])
    def test_rejects_other_schemes(self, url):
        assert not is_supported_url(url)


class TestContentLoader:
    def test_loads_document(self, loader, transport, md_url):
        document = asyncio.run(loader.load(md_url))
        assert document.raw_text == SAMPLE_MARKDOWN
        assert document.derived_filename == "readme"
        assert document.source_url == md_url
        assert transport.calls == [md_url]

    def test_invalid_scheme_never_touches_network(self, loader, transport):
        with pytest.raises(InvalidUrl):
            asyncio.run(loader.load("ftp://x.com/readme.md"))
        assert len(transport.calls) == 0

    def test_every_call_refetches(self, loader, transport, md_url):
        asyncio.run(loader.load(md_url))
        asyncio.run(loader.load(md_url))
        assert len(transport.calls) == 2

    def test_non_success_status(self, md_url):
        transport = RecordingTransport({md_url: (404, "missing")})
        with pytest.raises(FetchError) as info:
            asyncio.run(ContentLoader(transport=transport).load(md_url))
        assert info.value.status == 404
        assert info.value.timeout is False
        assert "404" in str(info.value)

    def test_timeout(self, md_url):
        transport = RecordingTransport({md_url: httpx.ReadTimeout("timed out")})
        with pytest.raises(FetchError) as info:
            asyncio.run(ContentLoader(transport=transport, timeout_s=0.5).load(md_url))
        assert info.value.timeout is True
        assert info.value.status is None

    def test_connection_failure(self, md_url):
        transport = RecordingTransport({md_url: httpx.ConnectError("refused")})
        with pytest.raises(FetchError):
            asyncio.run(ContentLoader(transport=transport).load(md_url))

    def test_empty_body(self, md_url):
        transport = RecordingTransport({md_url: (200, "  \n")})
        with pytest.raises(EmptyContent):
            asyncio.run(ContentLoader(transport=transport).load(md_url))

    def test_truncates_large_bodies(self, md_url):
        transport = RecordingTransport({md_url: (200, "# big\n" + "x" * 500)})
        document = asyncio.run(ContentLoader(transport=transport, max_bytes=64).load(md_url))
        assert len(document.raw_text) == 64

    def test_rejects_bad_limits(self):
        with pytest.raises(ValueError):
            ContentLoader(timeout_s=0)
        with pytest.raises(ValueError):
            ContentLoader(max_bytes=0)
