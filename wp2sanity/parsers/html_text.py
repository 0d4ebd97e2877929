from __future__ import annotations

import re
from html import unescape

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")


def strip_html(html: str) -> str:
    """Drop every tag, decode entities and turn ``&nbsp;`` into a plain space."""
    if not html:
        return ""
    text = unescape(_TAG_RE.sub("", html))
    return text.replace("\xa0", " ").strip()


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", (text or "").replace("\xa0", " ")).strip()


def truncate(text: str, limit: int, suffix: str = "...") -> str:
    """Cut ``text`` to ``limit`` characters, appending ``suffix`` only when cut."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + suffix
