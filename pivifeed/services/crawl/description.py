"""Detail-page description lookup.

The description of an article is taken from the first source that yields text,
in this order:

1. ``<meta property="og:description">``
2. ``<meta name="description">``
3. first paragraph of ``.entry-content``
4. first paragraph of ``.gp-post-content``
5. first paragraph of any ``article``

Failures (network, HTTP status, parsing) are logged and produce an empty
description; they never abort a feed run.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional, Sequence, Tuple

import httpx
from selectolax.lexbor import LexborHTMLParser

from pivifeed.config import BROWSER_USER_AGENT

from .base import FetchFailure, fetch_document, make_client

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_CHARS = 800
TRUNCATION_MARKER = "…"

Strategy = Callable[[LexborHTMLParser], Optional[str]]

_WS_RE = re.compile(r"\s+")


def _meta_content(selector: str) -> Strategy:
    def _probe(doc: LexborHTMLParser) -> Optional[str]:
        node = doc.css_first(selector)
        if node is None:
            return None
        return node.attributes.get("content")

    return _probe


def _first_paragraph(selector: str) -> Strategy:
    def _probe(doc: LexborHTMLParser) -> Optional[str]:
        node = doc.css_first(selector)
        if node is None:
            return None
        return node.text(deep=True)

    return _probe


DESCRIPTION_STRATEGIES: Tuple[Tuple[str, Strategy], ...] = (
    ("og:description", _meta_content('meta[property="og:description"]')),
    ("meta description", _meta_content('meta[name="description"]')),
    ("entry-content", _first_paragraph(".entry-content p")),
    ("gp-post-content", _first_paragraph(".gp-post-content p")),
    ("article", _first_paragraph("article p")),
)


def normalize_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def truncate_description(text: str, limit: int = MAX_DESCRIPTION_CHARS) -> str:
    if len(text) > limit:
        return text[:limit] + TRUNCATION_MARKER
    return text


def extract_description(doc: LexborHTMLParser, strategies: Sequence[Tuple[str, Strategy]] = DESCRIPTION_STRATEGIES) -> str:
    """Return the first non-empty normalized description found in ``doc``, or ''."""
    for name, probe in strategies:
        text = normalize_whitespace(probe(doc) or "")
        if text:
            logger.debug("Description found via %s", name)
            return truncate_description(text)
    return ""


class DescriptionResolver:
    """Fetch an article's detail page and pull a short description out of it."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        user_agent: str = BROWSER_USER_AGENT,
        client: Optional[httpx.Client] = None,
        strategies: Sequence[Tuple[str, Strategy]] = DESCRIPTION_STRATEGIES,
    ) -> None:
        self.timeout = float(timeout)
        self.user_agent = user_agent
        self.client = client
        self.strategies = tuple(strategies)

    def resolve(self, link: str) -> str:
        try:
            doc = self._fetch(link)
            return extract_description(doc, self.strategies)
        except FetchFailure as exc:
            logger.warning("Could not fetch description from %s: %s", link, exc.reason)
        except Exception as exc:
            logger.warning("Could not parse description from %s: %s", link, exc)
        return ""

    def _fetch(self, link: str) -> LexborHTMLParser:
        if self.client is not None:
            return fetch_document(self.client, link, timeout=self.timeout)
        with make_client(user_agent=self.user_agent, timeout=self.timeout) as client:
            return fetch_document(client, link)
