from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import httpx

from pivifeed.config import Settings
from pivifeed.services.rss_builder import fallback_content

from .base import ArticleSummary, EnrichedArticle, make_client
from .description import DescriptionResolver
from .spiders.listing_spider import ListingSpider

logger = logging.getLogger(__name__)


def ensure_dir(path: str) -> None:
    if path:
        os.makedirs(path, exist_ok=True)


def dedupe_by_link(articles: Iterable[ArticleSummary]) -> List[ArticleSummary]:
    """Keep the first article seen for each link, preserving order."""
    seen: set = set()
    out: List[ArticleSummary] = []
    for article in articles:
        if article.link in seen:
            continue
        seen.add(article.link)
        out.append(article)
    return out


def write_feed_file(xml: str, path: str) -> Optional[str]:
    """Persist the rendered feed as UTF-8.

    Returns the absolute path written, or None when the write failed (the
    error is logged; callers keep serving the document).
    """
    target = os.path.abspath(path)
    try:
        ensure_dir(os.path.dirname(target))
        with open(target, "w", encoding="utf-8") as f:
            f.write(xml)
    except OSError:
        logger.exception("Failed to save RSS file to %s", target)
        return None
    logger.info("RSS file saved locally at %s", target)
    return target


@dataclass
class ScrapeReport:
    articles: List[EnrichedArticle] = field(default_factory=list)
    pages_fetched: int = 0
    raw_count: int = 0
    first_page_failed: bool = False


class FeedPipeline:
    """Walk the listing pages, dedupe, and attach descriptions.

    Spider, resolver or a ready httpx client can be injected (tests). By
    default spider and resolver share one client opened for the duration of
    ``run()``; an injected client is left open.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        spider: Optional[ListingSpider] = None,
        resolver: Optional[DescriptionResolver] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.settings = settings
        self.spider = spider
        self.resolver = resolver
        self.client = client

    def run(self) -> ScrapeReport:
        with ExitStack() as stack:
            spider, resolver = self.spider, self.resolver
            if spider is None or resolver is None:
                client = self.client
                if client is None:
                    client = stack.enter_context(
                        make_client(user_agent=self.settings.user_agent, timeout=self.settings.listing_timeout)
                    )
                if spider is None:
                    spider = ListingSpider(
                        base_url=self.settings.base_url,
                        timeout=self.settings.listing_timeout,
                        user_agent=self.settings.user_agent,
                        client=client,
                    )
                if resolver is None:
                    resolver = DescriptionResolver(
                        timeout=self.settings.description_timeout,
                        user_agent=self.settings.user_agent,
                        client=client,
                    )
            report = ScrapeReport()
            summaries = self._scrape_pages(spider, report)
            unique = dedupe_by_link(summaries)
            logger.info("Total unique articles scraped: %d", len(unique))
            report.articles = self._enrich(unique, resolver)
            return report

    def _scrape_pages(self, spider: ListingSpider, report: ScrapeReport) -> List[ArticleSummary]:
        collected: List[ArticleSummary] = []
        for page in range(1, self.settings.max_pages + 1):
            html = spider.fetch_page(page)
            report.pages_fetched += 1
            if html is None:
                if page == 1:
                    report.first_page_failed = True
                articles: List[ArticleSummary] = []
            else:
                articles = list(spider.parse_listing(html))
                logger.info("Page %d scraped with %d articles", page, len(articles))
            if not articles:
                logger.info("No more articles found on page %d, stopping", page)
                break
            collected.extend(articles)
        report.raw_count = len(collected)
        return collected

    def _enrich(self, summaries: List[ArticleSummary], resolver: DescriptionResolver) -> List[EnrichedArticle]:
        links = [s.link for s in summaries]
        workers = max(1, self.settings.description_concurrency)
        if workers == 1 or len(links) <= 1:
            descriptions = [resolver.resolve(link) for link in links]
        else:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                descriptions = list(pool.map(resolver.resolve, links))

        enriched: List[EnrichedArticle] = []
        for summary, description in zip(summaries, descriptions):
            if not description and summary.img:
                description = fallback_content(summary.title, summary.link, summary.img)
            enriched.append(EnrichedArticle.from_summary(summary, description))
        return enriched
