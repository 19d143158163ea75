from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class FeedChannel(BaseModel):
    title: str
    description: str
    feed_url: str
    site_url: str
    language: str = "es"
    ttl: int = Field(60, description="Minutes readers may cache the feed")
    generator: str = "pivifeed"
    last_build_date: datetime


class FeedEntry(BaseModel):
    title: str
    url: str
    guid: str
    published_at: datetime
    content: str
    enclosure_url: Optional[str] = None
    enclosure_type: Optional[str] = None


class FeedDocument(BaseModel):
    channel: FeedChannel
    entries: List[FeedEntry] = []
