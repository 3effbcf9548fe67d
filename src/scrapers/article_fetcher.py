"""
单篇文章抓取流水线 (Single Article Fetch Pipeline)

Fetch -> Title -> Time -> Content -> Rewrite -> Assemble
"""

import logging
from datetime import datetime, timezone
from typing import Callable
from urllib.parse import unquote, urlsplit

import requests

from config import SiteConfig
from src.formatters.document import format_content
from src.formatters.markup import rewrite_markup
from src.models import Article, FetchResult, article_id
from src.scrapers import extractors, web_scraper
from src.scrapers.errors import ArticleFetchError, FetchFailed, InvalidURL, StaleArticle

logger = logging.getLogger(__name__)


class ArticleFetcher:
    """Builds one Article per call; holds no state between calls beyond config."""

    def __init__(
        self,
        site: SiteConfig,
        session: requests.Session | None = None,
        get_raw_and_doc: Callable = web_scraper.get_raw_and_doc,
        clock: Callable[[], datetime] | None = None,
    ):
        self.site = site
        self.session = session
        self._get_raw_and_doc = get_raw_and_doc
        self._clock = clock or (lambda: datetime.now(tz=timezone.utc))

    def _wrap(self, error: ArticleFetchError, url: str) -> ArticleFetchError:
        return error.with_context(self.site.title, url)

    def parse_url(self, raw_url: str) -> str:
        try:
            parts = urlsplit(raw_url.strip())
        except ValueError as e:
            raise self._wrap(InvalidURL(f"invalid url: {e}"), raw_url) from e
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise self._wrap(InvalidURL("invalid url"), raw_url)
        return parts.geturl()

    def degraded(self, raw_url: str, url: str) -> FetchResult:
        """响应头异常时返回最小文章 (Minimal article when the response header is malformed)."""
        article = Article.for_site(self.site)
        article.id = article_id(raw_url)
        article.source_url = url
        article.title = unquote(urlsplit(url).path)
        article.update_time = self._clock()
        article.content = format_content(article, "")
        return FetchResult(article=article)

    def fetch(self, raw_url: str) -> FetchResult:
        """
        抓取并构建文章 (Fetch a URL and build its Article).

        Raises:
            ArticleFetchError: any fatal step failure, prefixed with the site title.
        """
        url = self.parse_url(raw_url)
        logger.info(f"[FETCH] [{self.site.title}] Fetching: {url}")

        try:
            _, doc = self._get_raw_and_doc(url, self.site.timeout, session=self.session)
        except Exception as e:
            if web_scraper.is_invalid_header_error(e):
                logger.warning(f"[FETCH] [{self.site.title}] Invalid header, degraded article: {url}")
                return self.degraded(raw_url, url)
            logger.error(f"[FETCH] [{self.site.title}] Failed to fetch {url}: {e}")
            raise self._wrap(FetchFailed(f"fetch failed: {e}"), url) from e

        article = Article.for_site(self.site)
        article.id = article_id(raw_url)
        article.source_url = url
        warning = None
        try:
            article.title = extractors.extract_title(doc, self.site.title_noise)
            article.update_time, stale = extractors.extract_update_time(url, now=self._clock())
            if stale:
                warning = self._wrap(StaleArticle("article update time out of range"), url)
                logger.warning(f"[FETCH] {warning}")
            body = extractors.extract_content(doc, self.site.content_tag, self.site.content_id)
        except ArticleFetchError as e:
            raise self._wrap(e, url) from e

        # content must be the last field populated
        article.content = format_content(article, rewrite_markup(body))
        logger.info(f"[FETCH] [{self.site.title}] Done: {article.title[:50]}")
        return FetchResult(article=article, warning=warning)
