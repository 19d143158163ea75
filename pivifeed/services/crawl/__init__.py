"""Listing-site crawler behind the RSS feed.

Structure:
- base.py: records, fetch errors and the httpx/selectolax document helpers
- spiders/listing_spider.py: listing page fetching and article extraction
- description.py: detail-page description lookup with ordered fallbacks
- pipeline.py: pagination, dedupe, enrichment and the feed file writer
- runner.py: tiny CLI entrypoint for manual runs and serving

Fetching is sequential by default to keep load on the origin site low.
"""

from .base import ArticleSummary, CrawlError, EnrichedArticle, FetchFailure

__all__ = [
    "ArticleSummary",
    "CrawlError",
    "EnrichedArticle",
    "FetchFailure",
]
