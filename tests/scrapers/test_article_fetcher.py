import http.client
import unittest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import requests
from bs4 import BeautifulSoup
from urllib3.exceptions import ProtocolError

from config import SiteConfig
from src.models import article_id
from src.scrapers.article_fetcher import ArticleFetcher
from src.scrapers.errors import (
    FetchFailed,
    InvalidURL,
    NoContentMatched,
    NoTitleElement,
    TimeParseError,
)

URL = "https://cn.nikkei.com/japan/economy/55555-2024-05-01-09-30-00.html?start=0"
PAGE = (
    "<html><head><title>日本央行维持利率  日经中文网</title></head><body>"
    '<div id="contentDiv"><p>第一段</p><p><a href="http://x/y">链接</a></p></div>'
    "</body></html>"
)


def _site() -> SiteConfig:
    return SiteConfig(
        site_id="nikkei",
        domain="cn.nikkei.com",
        title="日经中文网",
        timeout=timedelta(seconds=30),
        title_noise=("  日经中文网",),
    )


def _returning(html: str) -> MagicMock:
    return MagicMock(return_value=(html.encode("utf-8"), BeautifulSoup(html, "html.parser")))


def _raising(exc: Exception) -> MagicMock:
    return MagicMock(side_effect=exc)


class TestArticleFetcher(unittest.TestCase):

    def setUp(self):
        self.now = datetime(2024, 5, 2, 0, 0, 0, tzinfo=timezone.utc)

    def _fetcher(self, get_raw_and_doc, now=None):
        now = now or self.now
        return ArticleFetcher(_site(), get_raw_and_doc=get_raw_and_doc, clock=lambda: now)

    def test_full_pipeline(self):
        get = _returning(PAGE)
        result = self._fetcher(get).fetch(URL)
        article = result.article

        get.assert_called_once_with(URL, timedelta(seconds=30), session=None)
        self.assertFalse(result.stale)
        self.assertIsNone(result.warning)
        self.assertEqual(article.id, article_id(URL))
        self.assertEqual(article.title, "日本央行维持利率")
        self.assertEqual(article.site_domain, "cn.nikkei.com")
        self.assertEqual(article.site_title, "日经中文网")
        self.assertEqual(article.update_time, datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc))
        self.assertEqual(
            article.content,
            "# 日本央行维持利率\n\n"
            "LastUpdate: 2024-05-01T17:30:00+08:00"
            " @ [日经中文网](/list/?v=cn.nikkei.com): [cn.nikkei.com](http://cn.nikkei.com)\n\n"
            "---\n"
            "第一段  \n[链接](http://x/y)  \n\n\n"
            f"原文链接[{URL}]({URL})",
        )

    def test_id_is_deterministic(self):
        first = self._fetcher(_returning(PAGE)).fetch(URL).article.id
        second = self._fetcher(_returning(PAGE)).fetch(URL).article.id
        self.assertEqual(first, second)

    def test_stale_article_is_built_and_flagged(self):
        result = self._fetcher(_returning(PAGE), now=datetime(2024, 5, 10, tzinfo=timezone.utc)).fetch(URL)
        self.assertTrue(result.stale)
        self.assertEqual(result.warning.category, "STALE")
        self.assertIn("日经中文网", str(result.warning))
        self.assertIn("第一段", result.article.content)

    def test_invalid_header_degrades(self):
        get = _raising(
            requests.exceptions.ConnectionError(
                ProtocolError("Connection aborted.", http.client.BadStatusLine("HTTP/1.1 2x0 OK"))
            )
        )
        result = self._fetcher(get).fetch(URL)
        article = result.article

        self.assertFalse(result.stale)
        self.assertEqual(article.title, "/japan/economy/55555-2024-05-01-09-30-00.html")
        self.assertEqual(article.update_time, self.now)
        self.assertEqual(article.id, article_id(URL))
        self.assertTrue(article.content.startswith("# /japan/economy/"))
        self.assertIn("---\n\n\n原文链接", article.content)

    def test_degraded_title_is_decoded_path(self):
        get = _raising(http.client.LineTooLong("header line"))
        result = self._fetcher(get).fetch("https://cn.nikkei.com/china/%E6%97%A5%E7%BB%8F.html")
        self.assertEqual(result.article.title, "/china/日经.html")

    def test_invalid_header_detected_from_message(self):
        get = _raising(requests.exceptions.ConnectionError("net/http: invalid header field name"))
        result = self._fetcher(get).fetch(URL)
        self.assertEqual(result.article.title, "/japan/economy/55555-2024-05-01-09-30-00.html")

    def test_other_transport_error_fails(self):
        get = _raising(requests.exceptions.Timeout("read timed out"))
        with self.assertRaises(FetchFailed) as cm:
            self._fetcher(get).fetch(URL)
        message = str(cm.exception)
        self.assertTrue(message.startswith("[日经中文网]"))
        self.assertTrue(message.endswith(URL))
        self.assertIsInstance(cm.exception.__cause__, requests.exceptions.Timeout)

    def test_invalid_urls(self):
        get = _returning(PAGE)
        for bad in ("not a url", "ftp://cn.nikkei.com/a.html", "http://[::1/a"):
            with self.subTest(url=bad):
                with self.assertRaises(InvalidURL):
                    self._fetcher(get).fetch(bad)
        get.assert_not_called()

    def test_missing_title(self):
        html = '<html><body><div id="contentDiv"><p>x</p></div></body></html>'
        with self.assertRaises(NoTitleElement) as cm:
            self._fetcher(_returning(html)).fetch(URL)
        self.assertEqual(
            str(cm.exception),
            f"[日经中文网] there is no element <title>: {URL}",
        )

    def test_missing_content(self):
        html = "<html><head><title>T</title></head><body><div id='other'>x</div></body></html>"
        with self.assertRaises(NoContentMatched):
            self._fetcher(_returning(html)).fetch(URL)

    def test_bad_time_token(self):
        url = "https://cn.nikkei.com/japan/55555-2024-02-30-09-30-00.html?start=0"
        with self.assertRaises(TimeParseError):
            self._fetcher(_returning(PAGE)).fetch(url)

    def test_last_content_node_wins(self):
        html = (
            "<html><head><title>T</title></head><body>"
            '<div id="contentDiv"><p>first</p></div>'
            '<div id="contentDiv"><p>second</p></div>'
            "</body></html>"
        )
        content = self._fetcher(_returning(html)).fetch(URL).article.content
        self.assertIn("second", content)
        self.assertNotIn("first", content)


if __name__ == "__main__":
    unittest.main()
