from __future__ import annotations

import logging
from typing import Iterator, Optional
from urllib.parse import urljoin

import httpx
from selectolax.lexbor import LexborHTMLParser, LexborNode

from pivifeed.config import BROWSER_USER_AGENT, DEFAULT_BASE_URL

from ..base import ArticleSummary, FetchFailure, fetch_text, make_client

logger = logging.getLogger(__name__)


class ListingSpider:
    """Spider for the paginated post listing of pivigames.blog.

    Selectors (CSS):
      - item_sel: one node per post in the listing grid
      - title_link_sel: anchor inside the item carrying the title text and href
      - image_sel: first image inside the item (optional)

    A shared ``httpx.Client`` may be injected; otherwise a short-lived one is
    opened per request.
    """

    name = "pivigames_listing"

    def __init__(
        self,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 15.0,
        user_agent: str = BROWSER_USER_AGENT,
        client: Optional[httpx.Client] = None,
        item_sel: str = ".gp-post-item",
        title_link_sel: str = ".gp-loop-title a",
        image_sel: str = "img",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.user_agent = user_agent
        self.client = client
        self.item_sel = item_sel
        self.title_link_sel = title_link_sel
        self.image_sel = image_sel

    # --- Public API ---
    def page_url(self, page_number: int) -> str:
        if page_number < 1:
            raise ValueError(f"page numbers start at 1, got {page_number}")
        if page_number == 1:
            return self.base_url + "/"
        return f"{self.base_url}/page/{page_number}"

    def fetch_page(self, page_number: int) -> Optional[str]:
        """Return the listing HTML for ``page_number`` or None when it can't be fetched."""
        url = self.page_url(page_number)
        logger.info("Scraping page %d: %s", page_number, url)
        try:
            return self._get(url)
        except FetchFailure as exc:
            logger.error("Failed to fetch listing page %d: %s", page_number, exc)
            return None

    def parse_listing(self, html: str) -> Iterator[ArticleSummary]:
        """Yield one ArticleSummary per complete post item, in document order."""
        doc = LexborHTMLParser(html)
        for item in doc.css(self.item_sel):
            record = self._parse_item(item)
            if record is None:
                logger.debug("Skipping listing item without title or link")
                continue
            yield record

    # --- Internals ---
    def _get(self, url: str) -> str:
        if self.client is not None:
            return fetch_text(self.client, url, timeout=self.timeout)
        with make_client(user_agent=self.user_agent, timeout=self.timeout) as client:
            return fetch_text(client, url)

    def _parse_item(self, item: LexborNode) -> Optional[ArticleSummary]:
        anchor = item.css_first(self.title_link_sel)
        if anchor is None:
            return None
        title = (anchor.text(deep=True) or "").strip()
        link = (anchor.attributes.get("href") or "").strip()
        if not title or not link:
            return None
        img = None
        img_node = item.css_first(self.image_sel)
        if img_node is not None:
            img = (img_node.attributes.get("src") or "").strip() or None
        if img:
            img = urljoin(self.base_url + "/", img)
        return ArticleSummary(title=title, link=urljoin(self.base_url + "/", link), img=img)
