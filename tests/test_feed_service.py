import xml.etree.ElementTree as ET
from pathlib import Path

import httpx

from pivifeed.config import Settings
from pivifeed.services.crawl.pipeline import FeedPipeline, ScrapeReport
from pivifeed.services.feed_service import (
    STATUS_INTERNAL_FAULT,
    STATUS_NO_ARTICLES,
    STATUS_OK,
    STATUS_ORIGIN_UNREACHABLE,
    generate_feed,
)

BASE = "https://pivigames.blog"


def read_fixture(name: str) -> str:
    p = Path(__file__).parent / "fixtures" / name
    return p.read_text(encoding="utf-8")


def _pipeline(settings: Settings, handler) -> FeedPipeline:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return FeedPipeline(settings, client=client)


def test_generate_feed_success_with_timeout_fallback():
    pages = {
        f"{BASE}/": read_fixture("listing_page1.html"),
        f"{BASE}/page/2": read_fixture("listing_page2.html"),
        f"{BASE}/page/3": read_fixture("listing_empty.html"),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url in pages:
            return httpx.Response(200, text=pages[url])
        if url == f"{BASE}/juego-d/":
            raise httpx.ReadTimeout("timed out", request=request)
        return httpx.Response(200, text=read_fixture("detail_og.html"))

    settings = Settings(base_url=BASE)
    result = generate_feed(settings, pipeline=_pipeline(settings, handler))
    assert result.status == STATUS_OK
    assert result.article_count == 7

    items = ET.fromstring(result.xml.encode("utf-8")).find("channel").findall("item")
    assert len(items) == 7
    by_link = {i.findtext("link"): i for i in items}
    fallback = by_link[f"{BASE}/juego-d/"].findtext("description")
    assert "juego-d.jpg" in fallback and f'href="{BASE}/juego-d/"' in fallback
    assert by_link[f"{BASE}/juego-a/"].findtext("description") == "Un juego de aventuras con mundo abierto."


def test_generate_feed_reports_no_articles():
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, text=read_fixture("listing_empty.html"))

    settings = Settings(base_url=BASE)
    result = generate_feed(settings, pipeline=_pipeline(settings, handler))
    assert result.status == STATUS_NO_ARTICLES
    assert result.xml is None
    assert requested == [f"{BASE}/"]


def test_generate_feed_reports_unreachable_origin():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    settings = Settings(base_url=BASE)
    result = generate_feed(settings, pipeline=_pipeline(settings, handler))
    assert result.status == STATUS_ORIGIN_UNREACHABLE
    assert result.xml is None


def test_generate_feed_reports_internal_fault(monkeypatch):
    from pivifeed.services import feed_service

    class _Pipeline:
        def run(self):
            from pivifeed.services.crawl.base import EnrichedArticle

            return ScrapeReport(articles=[EnrichedArticle(title="t", link="https://x.test/", img=None, description="d")])

    def _boom(*args, **kwargs):
        raise RuntimeError("serializer exploded")

    monkeypatch.setattr(feed_service, "generate_rss", _boom)
    result = generate_feed(Settings(), pipeline=_Pipeline())
    assert result.status == STATUS_INTERNAL_FAULT
    assert result.xml is None
    assert "serializer exploded" in result.error


def test_generate_feed_output_parses_with_control_characters_in_title():
    listing = (
        '<div class="gp-post-item">'
        '<h2 class="gp-loop-title"><a href="/juego-x/">Juego\x01 X</a></h2>'
        "</div>"
    )

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == f"{BASE}/":
            return httpx.Response(200, text=listing)
        if "/page/" in url:
            return httpx.Response(200, text=read_fixture("listing_empty.html"))
        return httpx.Response(200, text=read_fixture("detail_none.html"))

    settings = Settings(base_url=BASE)
    result = generate_feed(settings, pipeline=_pipeline(settings, handler))
    assert result.status == STATUS_OK
    item = ET.fromstring(result.xml.encode("utf-8")).find("channel").find("item")
    assert item.findtext("title") == "Juego X"
    assert item.findtext("link") == f"{BASE}/juego-x/"
