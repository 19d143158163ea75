"""RSS 2.0 document assembly.

Entry content is chosen per article:
- the resolved description, verbatim, when there is one
- otherwise an image followed by a linked title, when an image was captured
- otherwise just the linked title

Every entry is stamped with the generation time; the listing site does not
expose publish dates.
"""

from __future__ import annotations

import html
import mimetypes
import re
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Iterable, Optional
from urllib.parse import urlparse

from pivifeed.config import Settings
from pivifeed.models.feed import FeedChannel, FeedDocument, FeedEntry

ATOM_NS = "http://www.w3.org/2005/Atom"
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>\n'

# Characters outside the XML 1.0 Char production
_INVALID_XML_CHARS = re.compile("[^\x09\x0A\x0D\x20-\uD7FF\uE000-\uFFFD\U00010000-\U0010FFFF]")

ET.register_namespace("atom", ATOM_NS)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def fallback_content(title: str, link: str, img: Optional[str] = None) -> str:
    """HTML used when no description could be resolved."""
    anchor = f'<p><a href="{html.escape(link)}">{html.escape(title, quote=False)}</a></p>'
    if img:
        return f'<img src="{html.escape(img)}" alt="{html.escape(title)}" />{anchor}'
    return anchor


def entry_content(article) -> str:
    if article.description:
        return article.description
    return fallback_content(article.title, article.link, article.img)


def guess_enclosure_type(url: str) -> str:
    mime, _ = mimetypes.guess_type(urlparse(url).path)
    return mime or "image/jpeg"


def channel_from_settings(settings: Settings, *, now: Optional[datetime] = None) -> FeedChannel:
    return FeedChannel(
        title=settings.feed_title,
        description=settings.feed_description,
        feed_url=settings.feed_url,
        site_url=settings.site_url,
        language=settings.language,
        ttl=settings.ttl,
        last_build_date=_as_utc(now or _now_utc()),
    )


def build_feed(articles: Iterable, channel: FeedChannel, *, now: Optional[datetime] = None) -> FeedDocument:
    """Turn enriched articles into a FeedDocument, one entry per article."""
    stamp = _as_utc(now or channel.last_build_date)
    entries = []
    for article in articles:
        entries.append(
            FeedEntry(
                title=article.title,
                url=article.link,
                guid=article.link,
                published_at=stamp,
                content=entry_content(article),
                enclosure_url=article.img or None,
                enclosure_type=guess_enclosure_type(article.img) if article.img else None,
            )
        )
    return FeedDocument(channel=channel, entries=entries)


def xml_safe(value: str) -> str:
    return _INVALID_XML_CHARS.sub("", value)


def _sub(parent: ET.Element, tag: str, text: Optional[str] = None, **attrs: str) -> ET.Element:
    el = ET.SubElement(parent, tag, {k: xml_safe(v) for k, v in attrs.items()})
    if text is not None:
        el.text = xml_safe(text)
    return el


def render_rss(document: FeedDocument) -> str:
    """Serialize ``document`` as a pretty-printed RSS 2.0 string."""
    ch = document.channel
    rss = ET.Element("rss", {"version": "2.0"})
    channel = _sub(rss, "channel")
    _sub(channel, "title", ch.title)
    _sub(channel, "description", ch.description)
    _sub(channel, "link", ch.site_url)
    _sub(channel, "generator", ch.generator)
    _sub(channel, "lastBuildDate", format_datetime(_as_utc(ch.last_build_date), usegmt=True))
    _sub(channel, f"{{{ATOM_NS}}}link", href=ch.feed_url, rel="self", type="application/rss+xml")
    _sub(channel, "language", ch.language)
    _sub(channel, "ttl", str(ch.ttl))

    for entry in document.entries:
        item = _sub(channel, "item")
        _sub(item, "title", entry.title)
        _sub(item, "description", entry.content)
        _sub(item, "link", entry.url)
        _sub(item, "guid", entry.guid, isPermaLink="true")
        _sub(item, "pubDate", format_datetime(_as_utc(entry.published_at), usegmt=True))
        if entry.enclosure_url:
            _sub(
                item,
                "enclosure",
                url=entry.enclosure_url,
                length="0",
                type=entry.enclosure_type or "image/jpeg",
            )

    ET.indent(rss, space="  ")
    return XML_DECLARATION + ET.tostring(rss, encoding="unicode") + "\n"


def generate_rss(articles: Iterable, settings: Settings, *, now: Optional[datetime] = None) -> str:
    channel = channel_from_settings(settings, now=now)
    return render_rss(build_feed(articles, channel, now=now))
