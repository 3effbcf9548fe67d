"""Final document assembly: title, metadata line, body and source link."""

import re
from urllib.parse import unquote_plus

from src.models import Article
from src.scrapers.extractors import to_shanghai

SOURCE_LINK_LABEL = "原文链接"
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def query_unescape(text: str) -> str:
    """
    严格的查询串反转义 (Strict query unescape).
    "+" becomes a space; a "%" not followed by two hex digits is an error.
    """
    bad = _BAD_ESCAPE.search(text)
    if bad:
        raise ValueError(f"invalid URL escape {text[bad.start():bad.start() + 3]!r}")
    return unquote_plus(text)


def source_link(url: str) -> str:
    try:
        unescaped = query_unescape(url)
    except ValueError as e:
        unescaped = url + "\n\nunescape url error:\n" + str(e)
    target = unescaped.split("?tmpl=")[0]
    return f"[{target}]({target})"


def format_content(article: Article, body: str) -> str:
    """
    组装最终文档 (Assemble the final document):

        # <title>

        LastUpdate: <UTC+8 RFC3339> @ [<site title>](/list/?v=<domain>): [<domain>](http://<domain>)

        ---
        <body>

        原文链接[<url>](<url>)
    """
    last_update = to_shanghai(article.update_time).isoformat(timespec="seconds")
    site = (
        f" @ [{article.site_title}](/list/?v={article.site_domain}): "
        f"[{article.site_domain}](http://{article.site_domain})"
    )
    return (
        f"# {article.title}\n\n"
        f"LastUpdate: {last_update}{site}\n\n"
        "---\n"
        f"{body}\n\n"
        f"{SOURCE_LINK_LABEL}{source_link(article.source_url)}"
    )
