"""Feed generation entrypoint shared by the HTTP endpoint and the CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pivifeed.config import Settings, get_settings
from pivifeed.services.crawl.pipeline import FeedPipeline
from pivifeed.services.rss_builder import generate_rss

logger = logging.getLogger(__name__)

STATUS_OK = "ok"
STATUS_NO_ARTICLES = "no_articles"
STATUS_ORIGIN_UNREACHABLE = "origin_unreachable"
STATUS_INTERNAL_FAULT = "internal_fault"


@dataclass
class FeedResult:
    status: str
    xml: Optional[str] = None
    article_count: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


def generate_feed(
    settings: Optional[Settings] = None,
    *,
    pipeline: Optional[FeedPipeline] = None,
    now: Optional[datetime] = None,
) -> FeedResult:
    """Scrape the site and render the RSS document.

    Never raises: failures are reported through ``FeedResult.status``.
    """
    settings = settings or get_settings()
    pipeline = pipeline or FeedPipeline(settings)
    try:
        report = pipeline.run()
        if not report.articles:
            if report.first_page_failed:
                logger.error("Listing site unreachable, no articles scraped")
                return FeedResult(status=STATUS_ORIGIN_UNREACHABLE, error="origin unreachable")
            logger.warning("No articles found to build the RSS feed")
            return FeedResult(status=STATUS_NO_ARTICLES)
        xml = generate_rss(report.articles, settings, now=now)
    except Exception as exc:
        logger.exception("Error generating RSS feed")
        return FeedResult(status=STATUS_INTERNAL_FAULT, error=str(exc))
    return FeedResult(status=STATUS_OK, xml=xml, article_count=len(report.articles))
