"""Static page fetcher using Requests and BeautifulSoup4."""
"""
静态网页抓取器 (Static Web Fetcher)
使用 Requests 下载单篇文章页面，并用 BeautifulSoup4 解析为文档树。
"""

import http.client
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from datetime import timedelta

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.exceptions import HeaderParsingError

logger = logging.getLogger(__name__)

# User-Agent to avoid being blocked (设置 UA 防止被反爬)
HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
}
CHUNK_SIZE = 8192


def build_session() -> requests.Session:
    """创建 HTTP 会话，不自动重试 (Build a session; timeouts are not retried)."""
    session = requests.Session()
    session.headers.update(HEADERS)
    adapter = HTTPAdapter(max_retries=0)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _causes(exc: BaseException):
    """Walk an exception, its chain and any exceptions nested in its args."""
    seen: set[int] = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        stack.extend(a for a in current.args if isinstance(a, BaseException))
        for linked in (current.__cause__, current.__context__):
            if linked is not None:
                stack.append(linked)


def is_invalid_header_error(exc: BaseException) -> bool:
    """
    判断是否为响应头格式错误 (Server sent a malformed status line or header block).

    http.client raises BadStatusLine / LineTooLong while reading the response
    head; requests surfaces them wrapped in ConnectionError(ProtocolError(...)).
    RemoteDisconnected is a closed socket, not a bad header.
    """
    for cause in _causes(exc):
        if isinstance(cause, http.client.RemoteDisconnected):
            continue
        if isinstance(cause, (http.client.BadStatusLine, http.client.LineTooLong, HeaderParsingError)):
            return True
        if "invalid header" in str(cause).lower():
            return True
    return False


def _download(req, url: str, seconds: float, holder: dict, cancelled: threading.Event) -> bytes:
    deadline = time.monotonic() + seconds
    resp = req.get(url, headers=HEADERS, timeout=seconds, stream=True)
    holder["resp"] = resp
    try:
        resp.raise_for_status()
        chunks = []
        for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
            if cancelled.is_set() or time.monotonic() > deadline:
                raise requests.exceptions.Timeout(f"read exceeded {seconds}s deadline: {url}")
            chunks.append(chunk)
        return b"".join(chunks)
    finally:
        resp.close()


def get_raw_and_doc(url: str, timeout: timedelta,
                    session: requests.Session | None = None) -> tuple[bytes, BeautifulSoup]:
    """
    下载页面并解析 (Download a page and parse it).

    The timeout is an overall deadline for connect + headers + body; once it
    passes the response is closed and requests.exceptions.Timeout is raised.

    Returns:
        (raw bytes, parsed document tree)
    """
    req = session or requests
    seconds = timeout.total_seconds()
    logger.debug(f"[WEB] GET {url} (timeout={seconds}s)")

    holder: dict = {}
    cancelled = threading.Event()
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(_download, req, url, seconds, holder, cancelled)
        try:
            raw = future.result(timeout=seconds)
        except FutureTimeout:
            cancelled.set()
            resp = holder.get("resp")
            if resp is not None:
                resp.close()  # unblocks a read stuck in the worker
            raise requests.exceptions.Timeout(f"fetch exceeded {seconds}s deadline: {url}") from None
    finally:
        executor.shutdown(wait=False)
    return raw, BeautifulSoup(raw, "html.parser")
