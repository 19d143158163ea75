from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from selectolax.lexbor import LexborHTMLParser


class CrawlError(Exception):
    """Base error for the crawling subsystem."""


class FetchFailure(CrawlError):
    """A page could not be retrieved (transport error, timeout or non-2xx status)."""

    def __init__(self, url: str, reason: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code


@dataclass(frozen=True)
class ArticleSummary:
    title: str
    link: str
    img: Optional[str] = None


@dataclass(frozen=True)
class EnrichedArticle:
    title: str
    link: str
    img: Optional[str]
    description: str

    @classmethod
    def from_summary(cls, summary: ArticleSummary, description: str) -> "EnrichedArticle":
        return cls(title=summary.title, link=summary.link, img=summary.img, description=description or "")


def make_client(*, user_agent: str, timeout: float) -> httpx.Client:
    headers: Dict[str, str] = {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml",
    }
    return httpx.Client(timeout=timeout, headers=headers, follow_redirects=True)


def fetch_text(client: httpx.Client, url: str, *, timeout: Optional[float] = None) -> str:
    """GET ``url`` and return the body, raising FetchFailure on any transport problem."""
    try:
        if timeout is None:
            resp = client.get(url)
        else:
            resp = client.get(url, timeout=timeout)
    except httpx.TimeoutException as exc:
        raise FetchFailure(url, "timed out") from exc
    except httpx.HTTPError as exc:
        raise FetchFailure(url, f"HTTP error: {exc}") from exc
    if not resp.is_success:
        raise FetchFailure(url, f"HTTP {resp.status_code}", status_code=resp.status_code)
    return resp.text


def fetch_document(client: httpx.Client, url: str, *, timeout: Optional[float] = None) -> LexborHTMLParser:
    """Fetch ``url`` and return it as a queryable selectolax document."""
    return LexborHTMLParser(fetch_text(client, url, timeout=timeout))
