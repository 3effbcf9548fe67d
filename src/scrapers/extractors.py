"""
文章字段提取器 (Article Field Extractors)
从文档树与 URL 中提取标题、发布时间与正文节点。
"""

import re
import unicodedata
from datetime import datetime, timedelta, timezone

from bs4 import BeautifulSoup

from config import STALE_AFTER
from src.scrapers.errors import NoContentMatched, NoTitleElement, RenderFailed, TimeParseError

SHANGHAI = timezone(timedelta(hours=8))

# e.g. https://cn.nikkei.com/politicsaeconomy/1234-2024-05-01-09-30-00.html?start=0
URL_TIME_PATTERN = re.compile(r".+?/\d+-(.+?).html\?.+")
URL_TIME_FORMAT = "%Y-%m-%d-%H-%M-%S"

_ZERO_WIDTH = {"\u200b", "\u200c", "\u200d", "\u2060", "\ufeff"}


def to_shanghai(value: datetime) -> datetime:
    """转换为固定 UTC+8 时区 (Shift into a fixed UTC+8 offset)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(SHANGHAI)


def sanitize_text(text: str) -> str:
    """
    去除不可显示/不可存储的字符 (Drop characters unsafe for display or storage):
    control characters, U+FFFD, lone surrogates and zero-width marks.
    """
    kept = []
    for ch in text:
        if ch == "\ufffd" or ch in _ZERO_WIDTH:
            continue
        category = unicodedata.category(ch)
        if category in ("Cc", "Cs"):
            continue
        kept.append(ch)
    return "".join(kept)


def extract_title(doc: BeautifulSoup, noise: tuple[str, ...] = ()) -> str:
    """取第一个 <title> 元素的文本 (Text of the first <title> element)."""
    node = doc.find("title")
    if node is None:
        raise NoTitleElement("there is no element <title>")
    title = node.get_text()
    for fragment in noise:
        title = title.replace(fragment, "")
    return sanitize_text(title.strip())


def extract_update_time(url: str, now: datetime | None = None) -> tuple[datetime, bool]:
    """
    从 URL 中解析发布时间 (Derive publish time from the URL).

    URL 不匹配时返回当前时间；返回值第二项表示是否早于 3 天窗口 (stale)。
    """
    now = now or datetime.now(tz=timezone.utc)
    published = now
    match = URL_TIME_PATTERN.match(url)
    if match:
        try:
            published = datetime.strptime(match.group(1), URL_TIME_FORMAT).replace(tzinfo=timezone.utc)
        except ValueError as e:
            raise TimeParseError(f"no matched published time in url: {e}") from e
    return published, published < now - STALE_AFTER


def extract_content(doc: BeautifulSoup, tag: str = "div", element_id: str = "contentDiv") -> str:
    """
    选取正文容器并渲染回 HTML (Select body containers and render them back to markup).
    多个匹配时只保留最后一个节点 (last matched node wins).
    """
    nodes = doc.find_all(tag, id=element_id)
    if not nodes:
        raise NoContentMatched("no article content matched")
    body = ""
    for node in nodes:
        try:
            body = str(node)
        except (RecursionError, ValueError) as e:
            raise RenderFailed(f"node render to bytes fail: {e}") from e
    return body
