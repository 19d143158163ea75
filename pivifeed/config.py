"""Runtime settings for the feed service.

Configuration via environment variables (a ``.env`` file at the project root is
also honoured for variables not already set):

- PIVIFEED_BASE_URL: listing site root (default https://pivigames.blog)
- PIVIFEED_MAX_PAGES: listing pages to walk at most (default 3)
- PIVIFEED_LISTING_TIMEOUT / PIVIFEED_DESCRIPTION_TIMEOUT: seconds per request
- PIVIFEED_DESCRIPTION_CONCURRENCY: worker cap for detail-page fetches (default 1)
- PIVIFEED_OUTPUT_PATH: where the generated feed is written (default pivigames.xml)
- PIVIFEED_LANGUAGE / PIVIFEED_TTL: channel language and TTL in minutes
- PIVIFEED_LOG_LEVEL / PIVIFEED_LOG_JSON: logging setup
- PIVIFEED_HOST / PIVIFEED_PORT: bind address for ``serve``
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://pivigames.blog"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/115.0.0.0 Safari/537.36"
)


class Settings(BaseModel):
    base_url: str = Field(DEFAULT_BASE_URL, description="Root of the listing site")
    max_pages: int = Field(3, ge=1, description="Upper bound on listing pages per run")
    listing_timeout: float = Field(15.0, gt=0, description="Seconds per listing page request")
    description_timeout: float = Field(10.0, gt=0, description="Seconds per detail page request")
    description_concurrency: int = Field(1, ge=1, description="Concurrent detail page fetches")
    user_agent: str = BROWSER_USER_AGENT
    output_path: str = Field("pivigames.xml", description="Feed file written after each generation")
    feed_title: str = "Pivigames - Últimos juegos"
    feed_description: str = "Juegos gratis publicados en Pivigames.blog"
    language: str = "es"
    ttl: int = Field(60, ge=0, description="Channel TTL in minutes")
    log_level: str = "INFO"
    log_json: bool = False
    host: str = "127.0.0.1"
    port: int = 3000

    @property
    def site_url(self) -> str:
        return self.base_url.rstrip("/")

    @property
    def feed_url(self) -> str:
        return f"{self.site_url}/rss.xml"


def _load_env_from_file(env_path: Optional[str] = None) -> None:
    """Load KEY=value pairs from a .env file at the project root if present.

    Only sets variables that aren't already present in the process environment.
    """
    if env_path is None:
        root_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
        env_path = os.path.join(root_dir, ".env")
    if not os.path.isfile(env_path):
        return
    try:
        with open(env_path, "r", encoding="utf-8") as f:
            lines = f.read().splitlines()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable env file %s: %s", env_path, exc)
        return
    for line in lines:
        s = line.strip()
        if not s or s.startswith("#") or "=" not in s:
            continue
        key, val = s.split("=", 1)
        key = key.strip()
        val = val.strip().strip('"').strip("'")
        if key and not os.environ.get(key):
            os.environ[key] = val


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    """Build Settings from the environment, applying defaults."""
    _load_env_from_file()
    return Settings(
        base_url=os.getenv("PIVIFEED_BASE_URL") or DEFAULT_BASE_URL,
        max_pages=_env_int("PIVIFEED_MAX_PAGES", 3),
        listing_timeout=_env_float("PIVIFEED_LISTING_TIMEOUT", 15.0),
        description_timeout=_env_float("PIVIFEED_DESCRIPTION_TIMEOUT", 10.0),
        description_concurrency=_env_int("PIVIFEED_DESCRIPTION_CONCURRENCY", 1),
        output_path=os.getenv("PIVIFEED_OUTPUT_PATH") or "pivigames.xml",
        language=os.getenv("PIVIFEED_LANGUAGE") or "es",
        ttl=_env_int("PIVIFEED_TTL", 60),
        log_level=os.getenv("PIVIFEED_LOG_LEVEL") or "INFO",
        log_json=_env_bool("PIVIFEED_LOG_JSON", False),
        host=os.getenv("PIVIFEED_HOST") or "127.0.0.1",
        port=_env_int("PIVIFEED_PORT", 3000),
    )


@lru_cache()
def get_settings() -> Settings:
    return load_settings()


def reset_settings_cache() -> None:
    """Forget cached settings (used by tests after changing the environment)."""
    get_settings.cache_clear()
