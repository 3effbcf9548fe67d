"""Central configuration for the Nikkei article fetcher."""

import logging
import os
import re
from dataclasses import dataclass, field
from datetime import timedelta

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# --- Storage Config ---
DB_PATH = os.getenv("DB_PATH", "data")
CORPUS_FILENAME = "articles.json"

# --- Fetch Config ---
DEFAULT_TIMEOUT = timedelta(minutes=1)
STALE_AFTER = timedelta(days=3)  # 超过 3 天的文章标记为过期 (stale window)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ns|us|µs|ms|s|m|h)")
_DURATION_UNITS = {
    "ns": timedelta(microseconds=0.001),
    "us": timedelta(microseconds=1),
    "µs": timedelta(microseconds=1),
    "ms": timedelta(milliseconds=1),
    "s": timedelta(seconds=1),
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
}


def parse_duration(text: str) -> timedelta:
    """
    解析 Go 风格的时长字符串 (Parse a Go-style duration string).
    e.g. "90s", "1m", "1h30m", "500ms"
    """
    raw = (text or "").strip()
    if raw == "0":
        return timedelta(0)
    if not raw or _DURATION_PART.sub("", raw):
        raise ValueError(f"invalid duration {text!r}")
    total = timedelta(0)
    for amount, unit in _DURATION_PART.findall(raw):
        total += float(amount) * _DURATION_UNITS[unit]
    return total


def site_timeout(raw: str | None, title: str) -> timedelta:
    """Parse a site timeout, falling back to DEFAULT_TIMEOUT on bad input."""
    try:
        return parse_duration(raw or "")
    except ValueError as e:
        logger.warning("[%s] timeout init error: %s", title, e)
        return DEFAULT_TIMEOUT


# --- Site Definitions ---
@dataclass
class SiteConfig:
    site_id: str
    domain: str
    title: str
    timeout: timedelta = DEFAULT_TIMEOUT
    content_tag: str = "div"
    content_id: str = "contentDiv"  # 正文容器 id
    title_noise: tuple[str, ...] = field(default_factory=tuple)


class UnknownSiteError(KeyError):
    """Raised when a site id has no registered configuration."""


def _nikkei() -> SiteConfig:
    title = os.getenv("NIKKEI_TITLE", "日经中文网")
    return SiteConfig(
        site_id="nikkei",
        domain=os.getenv("NIKKEI_DOMAIN", "cn.nikkei.com"),
        title=title,
        timeout=site_timeout(os.getenv("NIKKEI_TIMEOUT", "1m"), title),
        title_noise=("  日经中文网", " - 日经中文网"),
    )


SITES: dict[str, SiteConfig] = {
    "nikkei": _nikkei(),
}


def get_site(site_id: str) -> SiteConfig:
    """按 id 查找站点配置 (Look up site configuration by id)."""
    try:
        return SITES[site_id]
    except KeyError:
        raise UnknownSiteError(site_id) from None
