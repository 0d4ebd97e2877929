"""
Inline HTML → spans with marks.

The fragment is tokenized left to right.  Formatting tags push and pop marks
on a stack, anchors push link definitions on a second stack, and every run of
text becomes a span carrying the marks active at that point.  Tags are not
required to nest properly: a closing tag removes the most recent matching
mark and a stray closing tag is ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from html.parser import HTMLParser
from typing import Callable, List, Optional, Tuple

from ..models.portable_text import LinkMarkDef, Span, TextBlock, new_key
from .html_text import strip_html

MARK_TAGS = {
    "strong": "strong",
    "b": "strong",
    "em": "em",
    "i": "em",
    "u": "underline",
    "strike": "strike-through",
    "s": "strike-through",
    "del": "strike-through",
    "code": "code",
}

# Block-level tags that can still show up inside a fragment (a <p> inside a
# <blockquote> or <li>); they separate text with a newline.
_BREAK_TAGS = {
    "p", "div", "li", "ul", "ol", "blockquote", "pre", "figure", "figcaption",
    "h1", "h2", "h3", "h4", "h5", "h6", "tr", "table", "section", "article",
}
_SKIP_TAGS = {"script", "style", "template"}

_WS_RE = re.compile(r"[ \t\r\n\f\v]+")
_NL_RE = re.compile(r" *\n *")
_CR_RE = re.compile(r"\r\n?")


@dataclass(frozen=True)
class InlineContent:
    children: Tuple[Span, ...]
    mark_defs: Tuple[LinkMarkDef, ...]


class _InlineTokenizer(HTMLParser):
    def __init__(self, key_factory: Callable[[], str], preserve_whitespace: bool = False) -> None:
        super().__init__(convert_charrefs=True)
        self._new_key = key_factory
        self._preserve = preserve_whitespace
        self._marks: List[str] = []
        self._links: List[Optional[LinkMarkDef]] = []
        self._skip = 0
        self._buffer: List[str] = []
        self.runs: List[Tuple[str, Tuple[str, ...]]] = []
        self.mark_defs: List[LinkMarkDef] = []

    # -- state ---------------------------------------------------------------

    def _active_marks(self) -> Tuple[str, ...]:
        marks = list(dict.fromkeys(self._marks))
        link = next((l for l in reversed(self._links) if l is not None), None)
        if link is not None:
            marks.append(link.key)
        return tuple(marks)

    def _flush(self) -> None:
        if self._buffer:
            self.runs.append(("".join(self._buffer), self._active_marks()))
            self._buffer = []

    def _last_char(self) -> str:
        for chunk in reversed(self._buffer):
            if chunk:
                return chunk[-1]
        for text, _ in reversed(self.runs):
            if text:
                return text[-1]
        return ""

    def _break(self) -> None:
        last = self._last_char()
        if last and last != "\n":
            self._buffer.append("\n")

    # -- HTMLParser hooks ----------------------------------------------------

    def handle_starttag(self, tag, attrs):
        if tag in _SKIP_TAGS:
            self._skip += 1
            return
        if tag == "br":
            self._buffer.append("\n")
        elif tag in MARK_TAGS:
            self._flush()
            self._marks.append(MARK_TAGS[tag])
        elif tag == "a":
            self._flush()
            attributes = dict(attrs)
            href = (attributes.get("href") or "").strip()
            if href:
                mark_def = LinkMarkDef(
                    key=self._new_key(),
                    href=href,
                    open_in_new_tab=(attributes.get("target") or "").lower() == "_blank",
                )
                self.mark_defs.append(mark_def)
                self._links.append(mark_def)
            else:
                self._links.append(None)
        elif tag in _BREAK_TAGS:
            self._break()

    def handle_startendtag(self, tag, attrs):
        if tag == "br":
            self._buffer.append("\n")

    def handle_endtag(self, tag):
        if tag in _SKIP_TAGS:
            self._skip = max(0, self._skip - 1)
        elif tag in MARK_TAGS:
            mark = MARK_TAGS[tag]
            if mark in self._marks:
                self._flush()
                idx = len(self._marks) - 1 - self._marks[::-1].index(mark)
                del self._marks[idx]
        elif tag == "a":
            if self._links:
                self._flush()
                self._links.pop()
        elif tag in _BREAK_TAGS:
            self._break()

    def handle_data(self, data):
        if self._skip:
            return
        if self._preserve:
            self._buffer.append(_CR_RE.sub("\n", data))
            return
        text = _WS_RE.sub(" ", data.replace("\xa0", " "))
        if text.startswith(" ") and self._last_char() in ("", " ", "\n"):
            text = text[1:]
        self._buffer.append(text)

    def finish(self) -> List[Tuple[str, Tuple[str, ...]]]:
        self.close()
        self._flush()
        return self.runs


def _normalize_runs(
    runs: List[Tuple[str, Tuple[str, ...]]], preserve_whitespace: bool = False
) -> List[Tuple[str, Tuple[str, ...]]]:
    merged: List[Tuple[str, Tuple[str, ...]]] = []
    for text, marks in runs:
        if not text:
            continue
        if merged and merged[-1][1] == marks:
            merged[-1] = (merged[-1][0] + text, marks)
        else:
            merged.append((text, marks))
    if not preserve_whitespace:
        merged = [(_NL_RE.sub("\n", text), marks) for text, marks in merged]

    # Trim the fragment as a whole, not each span.  Preformatted text keeps
    # its indentation and only loses the surrounding blank lines.
    while merged and not merged[0][0].strip():
        merged.pop(0)
    while merged and not merged[-1][0].strip():
        merged.pop()
    if merged:
        head = merged[0][0]
        if preserve_whitespace:
            head = head[head.rfind("\n", 0, len(head) - len(head.lstrip())) + 1:]
        else:
            head = head.lstrip()
        merged[0] = (head, merged[0][1])
        merged[-1] = (merged[-1][0].rstrip(), merged[-1][1])
    return merged


def parse_inline_html(
    html: str,
    *,
    key_factory: Callable[[], str] = new_key,
    preserve_whitespace: bool = False,
) -> InlineContent:
    """Convert an inline fragment into spans and the link definitions they reference.

    With ``preserve_whitespace`` (``<pre>`` content) line breaks and
    indentation are kept as written.
    """
    tokenizer = _InlineTokenizer(key_factory, preserve_whitespace)
    tokenizer.feed(html or "")
    runs = _normalize_runs(tokenizer.finish(), preserve_whitespace)

    children = [
        Span(key=key_factory(), text=text, marks=list(marks) or None)
        for text, marks in runs
    ]
    if not children:
        stripped = strip_html(html)
        if stripped:
            children.append(Span(key=key_factory(), text=stripped))

    # Only keep definitions some span still points at.
    used = {m for child in children for m in (child.marks or [])}
    mark_defs = [d for d in tokenizer.mark_defs if d.key in used]
    return InlineContent(children=tuple(children), mark_defs=tuple(mark_defs))


def create_block_with_inline_content(
    html: str,
    style: str = "normal",
    *,
    list_item: Optional[str] = None,
    level: Optional[int] = None,
    key_factory: Callable[[], str] = new_key,
    preserve_whitespace: bool = False,
) -> TextBlock:
    """Build a text block from an inline fragment; an empty fragment keeps one empty span."""
    inline = parse_inline_html(html, key_factory=key_factory, preserve_whitespace=preserve_whitespace)
    children = list(inline.children) or [Span(key=key_factory(), text="")]
    return TextBlock(
        key=key_factory(),
        style=style,
        list_item=list_item,
        level=level,
        children=children,
        mark_defs=list(inline.mark_defs),
    )
