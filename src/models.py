"""Article data models used across the pipeline."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from config import SiteConfig
    from src.scrapers.errors import StaleArticle


_FRACTION = re.compile(r"\.(\d+)")


def md5_hex(text: str) -> str:
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def article_id(raw_url: str) -> str:
    """文章 id = 原始 URL 的 MD5 (Article id is the MD5 of the raw URL text)."""
    return md5_hex(raw_url)


def _parse_timestamp(value: Any) -> datetime:
    # RFC3339 string, or a protobuf-style {"seconds": .., "nanos": ..} object
    if isinstance(value, dict):
        seconds = int(value.get("seconds", 0))
        nanos = int(value.get("nanos", 0))
        return datetime.fromtimestamp(seconds + nanos / 1e9, tz=timezone.utc)
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat takes at most microseconds; nanosecond stamps are truncated
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Article:
    """
    文章数据模型 (Article Model)
    一次抓取流程内构建完成，content 最后写入。
    """
    id: str = ""                # MD5(source_url)
    title: str = ""             # 清洗后的标题
    content: str = ""           # 最终 Markdown 文档
    site_id: str = ""           # MD5(site_domain)
    site_domain: str = ""       # e.g. "cn.nikkei.com"
    site_title: str = ""        # e.g. "日经中文网"
    update_time: datetime | None = None
    source_url: str = ""

    @classmethod
    def for_site(cls, site: SiteConfig) -> Article:
        return cls(
            site_id=md5_hex(site.domain),
            site_domain=site.domain,
            site_title=site.title,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "websiteId": self.site_id,
            "websiteDomain": self.site_domain,
            "websiteTitle": self.site_title,
            "updateTime": self.update_time.isoformat() if self.update_time else None,
            "sourceUrl": self.source_url,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Article:
        raw_time = data.get("updateTime")
        return cls(
            id=data.get("id", ""),
            title=data.get("title", ""),
            content=data.get("content", ""),
            site_id=data.get("websiteId", ""),
            site_domain=data.get("websiteDomain", ""),
            site_title=data.get("websiteTitle", ""),
            update_time=_parse_timestamp(raw_time) if raw_time else None,
            source_url=data.get("sourceUrl", ""),
        )


@dataclass
class FetchResult:
    """
    抓取结果 (Fetch Result)
    文章总是完整构建；warning 为非致命提示 (e.g. 过期文章)。
    """
    article: Article
    warning: StaleArticle | None = None

    @property
    def stale(self) -> bool:
        return self.warning is not None


def sort_by_update_time(articles: list[Article]) -> list[Article]:
    """Return articles ordered by update time, oldest first."""
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(articles, key=lambda a: a.update_time or epoch)
