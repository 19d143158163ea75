from pathlib import Path

import httpx
import pytest
from selectolax.lexbor import LexborHTMLParser

from pivifeed.services.crawl.description import (
    MAX_DESCRIPTION_CHARS,
    TRUNCATION_MARKER,
    DescriptionResolver,
    extract_description,
    truncate_description,
)


def read_fixture(name: str) -> str:
    p = Path(__file__).parent / "fixtures" / name
    return p.read_text(encoding="utf-8")


@pytest.mark.parametrize(
    "fixture,expected",
    [
        ("detail_og.html", "Un juego de aventuras con mundo abierto."),
        ("detail_meta.html", "Descripción genérica del juego"),
        ("detail_entry_content.html", "Primer párrafo del contenido."),
        ("detail_gp_content.html", "Contenido alternativo."),
        ("detail_article.html", "Párrafo del artículo."),
        ("detail_none.html", ""),
    ],
)
def test_extract_description_fallback_order(fixture, expected):
    assert extract_description(LexborHTMLParser(read_fixture(fixture))) == expected


def test_long_description_is_truncated_with_marker():
    original = "palabra " * 200
    html = f'<html><head><meta property="og:description" content="{original}"></head></html>'
    desc = extract_description(LexborHTMLParser(html))
    normalized = original.strip()
    assert len(desc) == MAX_DESCRIPTION_CHARS + 1
    assert desc.endswith(TRUNCATION_MARKER)
    assert normalized.startswith(desc[:-1])


def test_truncate_description_leaves_short_text():
    assert truncate_description("x" * 800) == "x" * 800
    assert truncate_description("x" * 801) == "x" * 800 + TRUNCATION_MARKER


def _resolver(handler) -> DescriptionResolver:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return DescriptionResolver(client=client)


def test_resolve_fetches_detail_page():
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://pivigames.blog/juego-a/"
        return httpx.Response(200, text=read_fixture("detail_og.html"))

    assert _resolver(handler).resolve("https://pivigames.blog/juego-a/") == "Un juego de aventuras con mundo abierto."


def test_resolve_uses_ten_second_timeout():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["timeout"] = request.extensions.get("timeout")
        return httpx.Response(200, text=read_fixture("detail_og.html"))

    _resolver(handler).resolve("https://pivigames.blog/juego-a/")
    assert seen["timeout"]["read"] == 10.0


def test_resolve_returns_empty_on_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    assert _resolver(handler).resolve("https://pivigames.blog/juego-a/") == ""


def test_resolve_returns_empty_on_http_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    assert _resolver(handler).resolve("https://pivigames.blog/juego-a/") == ""


def test_resolve_returns_empty_when_nothing_found():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text=read_fixture("detail_none.html"))

    assert _resolver(handler).resolve("https://pivigames.blog/juego-a/") == ""
