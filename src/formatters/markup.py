"""
HTML 片段转 Markdown (Embedded HTML to lightweight Markdown)

逐条正则替换，顺序即语义：后面的规则作用于前面规则的输出。
This is a lossy textual transform, not a tree conversion; nested or
malformed markup may leave residual tags behind.
"""

import re

# (pattern, replacement) applied top to bottom.
# "." never crosses a newline; "[^^]" does, so div/table shells may span lines.
REWRITE_RULES: list[tuple[re.Pattern, str]] = [
    (re.compile(r"<div.*?>([^^]*?)</div>", re.M), r"\1"),
    (re.compile(r"<table.*?>([^^]*?)</table>", re.M), ""),
    (re.compile(r"<div.*?>", re.M), ""),  # unclosed div residue
    (re.compile(r"<p.*?>(.*?)</p>", re.M), "\\1  \n"),
    (re.compile(r"<span.*?>(.*?)</span>", re.M), r"\1"),
    (re.compile(r"<h1>(?P<h1>.*?)</h1>", re.M), r"# \g<h1>"),
    (re.compile(r"<h2>(?P<h2>.*?)</h2>", re.M), r"## \g<h2>"),
    (re.compile(r"<h3>(?P<h3>.*?)</h3>", re.M), r"### \g<h3>"),
    (re.compile(r"<span.*?>(.*?)</span>", re.M), r"\1"),  # spans nested in headings
    (re.compile(r"<em>(.*?)</em>", re.M), r"*\1*"),
    (re.compile(r"<b.*?>(.*?)</b>", re.M), r"**\1**"),
    (re.compile(r"<strong>(.*?)</strong>", re.M), r"**\1**"),
    (re.compile(r'<a .*?href="(?P<href>.*?)".*?>(?P<x>.*?)</a>', re.M), r"[\g<x>](\g<href>)"),
    (re.compile(r"<img .*?>", re.M), ""),
]

# Literal replacements for platform artifacts, applied in one pass.
# At each position the first listed key that matches wins.
ARTIFACT_REPLACEMENTS: dict[str, str] = {
    "「": "“",
    "」": "”",
    "■": "",
    "</div>": "",
    "\n\n": "\n",
}

_ARTIFACT_PATTERN = re.compile("|".join(re.escape(k) for k in ARTIFACT_REPLACEMENTS))


def replace_artifacts(text: str) -> str:
    return _ARTIFACT_PATTERN.sub(lambda m: ARTIFACT_REPLACEMENTS[m.group(0)], text)


def rewrite_markup(html: str) -> str:
    """按固定顺序应用全部替换规则 (Apply every rewrite rule in order)."""
    text = html
    for pattern, replacement in REWRITE_RULES:
        text = pattern.sub(replacement, text)
    return replace_artifacts(text)
