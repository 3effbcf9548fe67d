#!/usr/bin/env python3
"""命令行入口: 抓取 -> 存储 -> 查询 (Fetch -> Store -> Query)."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

import config
from src.models import sort_by_update_time
from src.scrapers.article_fetcher import ArticleFetcher
from src.scrapers.errors import ArticleFetchError
from src.scrapers.web_scraper import build_session
from src.storage.corpus import ArticleCorpus, CorpusError

logger = logging.getLogger(__name__)


class JsonFormatter(logging.Formatter):
    """
    简单的 JSON 日志格式化器 (Simple JSON Log Formatter)
    用于生成机器可读的日志。
    """

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(log_format: str) -> None:
    """配置日志系统 (Configure Logging)"""
    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.INFO)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """解析命令行参数 (Parse Command Line Arguments)"""
    parser = argparse.ArgumentParser(description="Nikkei article fetcher")
    parser.add_argument("--site", default="nikkei", help="站点 id (default: nikkei)")
    parser.add_argument(
        "--db-path",
        default=config.DB_PATH,
        help="语料库目录 (default: $DB_PATH or data)",
    )
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="日志格式 (text|json)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    fetch = sub.add_parser("fetch", help="抓取文章 (Fetch articles by URL)")
    fetch.add_argument("urls", nargs="+")
    fetch.add_argument("--save", action="store_true", help="写入语料库 (Persist to the corpus)")
    fetch.add_argument(
        "--keep-stale",
        action="store_true",
        help="保存超过 3 天的文章 (Also persist stale articles)",
    )

    sub.add_parser("list", help="列出全部文章 (List stored articles)")

    get = sub.add_parser("get", help="按 id 输出文章 (Print a stored article)")
    get.add_argument("id")

    search = sub.add_parser("search", help="关键词搜索 (Keyword search)")
    search.add_argument("keywords", nargs="+")
    return parser.parse_args(argv)


def run_fetch(args: argparse.Namespace, site: config.SiteConfig, corpus: ArticleCorpus) -> int:
    fetcher = ArticleFetcher(site, session=build_session())
    failed = 0
    try:
        for url in args.urls:
            try:
                result = fetcher.fetch(url)
            except ArticleFetchError as exc:
                logger.error("[FETCH] %s (%s)", exc, exc.category)
                failed += 1
                continue

            if not args.save:
                print(result.article.content)
                continue
            if result.stale and not args.keep_stale:
                logger.info("[STORE] Skip stale article: %s", result.article.title[:50])
                continue
            corpus.add(result.article)
    finally:
        fetcher.session.close()
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> int:
    """程序入口点：解析参数，执行命令，处理异常。"""
    args = parse_args(argv)
    configure_logging(args.log_format)

    try:
        site = config.get_site(args.site)
    except config.UnknownSiteError:
        logger.error("Unknown site: %s", args.site)
        return 2
    corpus = ArticleCorpus(os.path.join(args.db_path, config.CORPUS_FILENAME), site)

    try:
        if args.command == "fetch":
            return run_fetch(args, site, corpus)
        if args.command == "list":
            for article in sort_by_update_time(corpus.list()):
                stamp = article.update_time.isoformat() if article.update_time else "-"
                print(f"{article.id}\t{stamp}\t{article.title}")
        elif args.command == "get":
            print(corpus.get(args.id).content)
        elif args.command == "search":
            for article in corpus.search(*args.keywords):
                print(f"{article.id}\t{article.title}")
    except CorpusError as exc:
        logger.error("[STORE] %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
