"""Scrapes pivigames.blog and republishes its latest posts as an RSS feed."""

__version__ = "0.1.0"
