"""
JSON 文件语料库 (Flat JSON article corpus)

整库读写：每次保存都会覆盖整个文件。只支持单进程写入；
transaction() 仅在进程内加锁。
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager
from typing import Iterator

from config import SiteConfig
from src.models import Article

logger = logging.getLogger(__name__)


class CorpusError(Exception):
    """Corpus I/O failure with operation and site context."""


class NotFound(CorpusError):
    """No stored article matches the requested id."""


class ArticleCorpus:
    """Load, save and query the persisted article list."""

    def __init__(self, path: str, site: SiteConfig):
        self.path = path
        self.site = site
        self._lock = threading.RLock()

    def load_all(self) -> list[Article]:
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CorpusError(f"[{self.site.title}] load error: {e}") from e
        if not isinstance(data, list):
            raise CorpusError(f"[{self.site.title}] load error: expected a JSON array in {self.path}")
        try:
            return [Article.from_dict(item) for item in data]
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise CorpusError(f"[{self.site.title}] load error: bad record in {self.path}: {e}") from e

    def save_all(self, articles: list[Article]) -> None:
        """Write to a sibling temp file, then rename over the corpus."""
        logger.info(f"[{self.site.title}] Storage ...")
        try:
            payload = json.dumps([a.to_dict() for a in articles], ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise CorpusError(f"[{self.site.title}] storage marshal error: {e}") from e
        directory = os.path.dirname(self.path)
        tmp_path = None
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=directory or ".", suffix=".tmp", delete=False
            ) as f:
                tmp_path = f.name
                f.write(payload)
            os.replace(tmp_path, self.path)
        except OSError as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise CorpusError(f"[{self.site.title}] storage WriteFile error: {e}") from e
        logger.info(f"[{self.site.title}] Storage Done.")

    def list(self) -> list[Article]:
        return self.load_all()

    def get(self, article_id: str) -> Article:
        for article in self.load_all():
            if article.id == article_id:
                return article
        raise NotFound(f"[{self.site.title}] no article with id: {article_id}")

    def search(self, *keywords: str) -> list[Article]:
        """
        关键词搜索 (Keyword search), case-insensitive.
        id / site id must match exactly; title, content, domain and site title
        match by substring. One hit per matching keyword, no dedupe.
        """
        found: list[Article] = []
        for article in self.load_all():
            for keyword in keywords:
                v = keyword.strip().lower()
                if (
                    article.id == v
                    or article.site_id == v
                    or v in article.title.lower()
                    or v in article.content.lower()
                    or v in article.site_domain.lower()
                    or v in article.site_title.lower()
                ):
                    found.append(article)
        return found

    @contextmanager
    def transaction(self) -> Iterator[list[Article]]:
        """Load, let the caller mutate the list, then save it back on success."""
        with self._lock:
            articles = self.load_all()
            yield articles
            self.save_all(articles)

    def add(self, article: Article) -> None:
        """Insert or replace by id, then rewrite the whole corpus."""
        with self.transaction() as articles:
            for i, existing in enumerate(articles):
                if existing.id == article.id:
                    articles[i] = article
                    break
            else:
                articles.append(article)
