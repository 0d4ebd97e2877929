"""
HTML body → ordered portable block content.

Parsing is interval scheduling over the BeautifulSoup tree.  Every node gets
its document-order position and every tag covers the positions of its
descendants.  Each recognised construct (embed comment ranges, media figures,
standalone media, paragraphs, headings, quotes, list items, line breaks)
becomes a candidate interval with a priority.  Candidates are accepted
greedily in priority order; a candidate that overlaps an accepted one is
dropped, except for two kinds of nesting that are allowed:

* a text construct around accepted media (``<p><img></p>``): the media
  element becomes its own block and is cut out of the paragraph's text;
* list items around list items (nested lists).

Accepted candidates are emitted in document order.  Text that no accepted
candidate covers is emitted as ``normal`` blocks, keeping its inline
formatting and split into paragraphs on blank lines.

If anything goes wrong the whole body degrades to a single plain-text block,
so one malformed post cannot stop a batch.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from html import escape
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import PageElement, PreformattedString

from ..models.portable_text import (
    AudioBlock,
    Block,
    ImageBlock,
    MediaReference,
    Span,
    TextBlock,
    VideoBlock,
    new_key,
)
from ..utils.logs import log_message
from .html_text import collapse_whitespace, strip_html, truncate
from .inline import MARK_TAGS, create_block_with_inline_content

# Priorities: lower wins.
_EMBED, _FIGURE, _AV, _ELEMENT, _TEXT, _BREAK = range(6)

_MEDIA_KINDS = {"embed", "figure", "audio", "video", "img", "iframe"}
_TEXT_KINDS = {"text", "li"}

_HEADINGS = {f"h{n}" for n in range(1, 7)}
_PARAGRAPHS = {"p", "pre"}

# Nearest ancestor from this set separates runs of loose text.
_BLOCK_LEVEL = {
    "address", "article", "aside", "blockquote", "body", "dd", "details", "dialog",
    "div", "dl", "dt", "fieldset", "figcaption", "figure", "footer", "form",
    "header", "hgroup", "html", "li", "main", "nav", "ol", "section", "summary",
    "table", "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
}

_EMBED_OPEN_RE = re.compile(r"^\s*wp:(?:core-)?embed(?:/[\w-]+)?\s+(\{.*\})\s*/?\s*$", re.DOTALL)
_EMBED_CLOSE_RE = re.compile(r"^\s*/wp:(?:core-)?embed(?:/[\w-]+)?\s*$")
_SHORTCODE_RE = re.compile(r"\[/?caption[^\]]*\]", re.IGNORECASE)
_URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)
_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t\r\f\v]*\n")

# Tags kept around loose text; the rest carry no marks.
_INLINE_MARKUP = set(MARK_TAGS) | {"a"}


@dataclass(frozen=True)
class ParserContext:
    """Reusable settings for :func:`html_to_block_content`.

    Holds no per-document state, so one instance can be shared by every call
    and every worker thread.
    """

    features: str = "html.parser"
    fallback_length: int = 500
    key_factory: Callable[[], str] = new_key


@dataclass
class _Candidate:
    start: int
    end: int
    priority: int
    kind: str
    node: PageElement
    data: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_media(self) -> bool:
        return self.kind in _MEDIA_KINDS

    @property
    def is_text(self) -> bool:
        return self.kind in _TEXT_KINDS

    def overlaps(self, other: "_Candidate") -> bool:
        return self.start <= other.end and other.start <= self.end

    def contains(self, other: "_Candidate") -> bool:
        return self.start <= other.start and other.end <= self.end


def video_type_for(url: str) -> str:
    try:
        host = urlparse(url).netloc.lower() or url.lower()
    except ValueError:
        host = url.lower()
    if "youtube.com" in host or "youtu.be" in host:
        return "youtube"
    if "vimeo.com" in host:
        return "vimeo"
    return "url"


def _attr(el: Tag, name: str) -> str:
    value = el.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def _media_src(el: Tag) -> str:
    src = _attr(el, "src")
    if not src and el.name in ("audio", "video"):
        source = el.find("source", src=True)
        if isinstance(source, Tag):
            src = _attr(source, "src")
    return src


def _compatible(cand: _Candidate, accepted: _Candidate) -> bool:
    if not cand.overlaps(accepted):
        return True
    if cand.is_text and accepted.is_media and cand.contains(accepted):
        return True
    if cand.kind == "li" and accepted.kind == "li":
        return True
    return False


def schedule(candidates: List[_Candidate]) -> List[_Candidate]:
    """Greedy interval scheduling: best priority first, then earliest and widest."""
    accepted: List[_Candidate] = []
    for cand in sorted(candidates, key=lambda c: (c.priority, c.start, -c.end)):
        if all(_compatible(cand, other) for other in accepted):
            accepted.append(cand)
    accepted.sort(key=lambda c: c.start)
    return accepted


def _open_tag(tag: Tag) -> str:
    if tag.name != "a":
        return f"<{tag.name}>"
    attrs = "".join(
        f' {name}="{escape(_attr(tag, name))}"' for name in ("href", "target") if _attr(tag, name)
    )
    return f"<a{attrs}>"


class _LooseRun:
    """Markup rebuilt from text no block covers.

    Only formatting and link tags around the text are carried over, so the
    fragments can go through the inline parser like any paragraph.  A blank
    line inside the text starts a new fragment, the way ``wpautop`` splits
    classic-editor bodies into paragraphs.
    """

    def __init__(self, start: int) -> None:
        self.start = start
        self.fragments: List[str] = []
        self._parts: List[str] = []
        self._open: List[Tag] = []

    def _close(self, keep: int) -> None:
        while len(self._open) > keep:
            self._parts.append(f"</{self._open.pop().name}>")

    def add(self, chain: List[Tag], text: str) -> None:
        keep = 0
        while keep < min(len(chain), len(self._open)) and chain[keep] is self._open[keep]:
            keep += 1
        self._close(keep)
        for tag in chain[keep:]:
            self._parts.append(_open_tag(tag))
            self._open.append(tag)
        for i, piece in enumerate(_PARAGRAPH_BREAK_RE.split(text)):
            if i:
                self.flush()
            self._parts.append(escape(piece, quote=False))

    def flush(self) -> None:
        still_open = list(self._open)
        self._close(0)
        self.fragments.append("".join(self._parts))
        self._parts = [_open_tag(tag) for tag in still_open]
        self._open = still_open


class _BlockParser:
    """Single-use parser for one document."""

    def __init__(self, context: ParserContext, media_map: Mapping[str, MediaReference]) -> None:
        self.context = context
        self.media_map = media_map
        self.pos: Dict[int, int] = {}
        self.order: List[PageElement] = []

    # -- indexing ------------------------------------------------------------

    def _index(self, soup: BeautifulSoup) -> None:
        self.order = list(soup.descendants)
        self.pos = {id(node): i for i, node in enumerate(self.order)}

    def _end(self, node: PageElement) -> int:
        last = node
        while isinstance(last, Tag) and last.contents:
            last = last.contents[-1]
        return self.pos[id(last)]

    def _candidate(self, node: PageElement, priority: int, kind: str, **data: Any) -> _Candidate:
        return _Candidate(self.pos[id(node)], self._end(node), priority, kind, node, data)

    # -- candidate discovery -------------------------------------------------

    def _embed_candidate(self, comment: Comment) -> Optional[_Candidate]:
        match = _EMBED_OPEN_RE.match(str(comment))
        if not match:
            return None
        try:
            attrs = json.loads(match.group(1))
        except ValueError as e:
            log_message(f"Failed to parse embed attributes: {e}", level="WARNING")
            return None
        url = attrs.get("url") if isinstance(attrs, dict) else None
        if not isinstance(url, str) or not url.strip():
            return None
        nodes: List[PageElement] = [comment]
        closing: Optional[PageElement] = None
        for sibling in comment.next_siblings:
            nodes.append(sibling)
            if isinstance(sibling, Comment) and _EMBED_CLOSE_RE.match(str(sibling)):
                closing = sibling
                break
        if closing is None:
            nodes = [comment]
        end = self._end(nodes[-1])
        return _Candidate(self.pos[id(comment)], end, _EMBED, "embed", comment,
                          {"url": url.strip(), "nodes": nodes})

    def _figure_candidate(self, figure: Tag) -> Optional[_Candidate]:
        if figure.find("figure") is not None:
            # Galleries: the inner figures are the candidates.
            return None
        media = [el for el in figure.find_all(["img", "audio", "video", "iframe"]) if _media_src(el)]
        if len(media) == 1:
            return self._candidate(figure, _FIGURE, "figure", media=media[0])
        if not media and "wp-block-embed" in _attr(figure, "class").split():
            url = collapse_whitespace(figure.get_text(" "))
            caption = figure.find("figcaption")
            if isinstance(caption, Tag):
                url = collapse_whitespace(url.replace(collapse_whitespace(caption.get_text(" ")), ""))
            if _URL_RE.match(url):
                return self._candidate(figure, _FIGURE, "figure", url=url)
        return None

    def _collect(self) -> List[_Candidate]:
        candidates: List[_Candidate] = []
        for node in self.order:
            if isinstance(node, Comment):
                cand = self._embed_candidate(node)
                if cand:
                    candidates.append(cand)
                continue
            if not isinstance(node, Tag):
                continue
            name = node.name
            if name == "figure":
                cand = self._figure_candidate(node)
                if cand:
                    candidates.append(cand)
            elif name in ("audio", "video"):
                if _media_src(node):
                    candidates.append(self._candidate(node, _AV, name))
            elif name in ("img", "iframe"):
                if _media_src(node):
                    candidates.append(self._candidate(node, _ELEMENT, name))
            elif name in _PARAGRAPHS:
                candidates.append(self._candidate(node, _TEXT, "text", style="normal", preserve=name == "pre"))
            elif name in _HEADINGS:
                candidates.append(self._candidate(node, _TEXT, "text", style=name))
            elif name == "blockquote":
                candidates.append(self._candidate(node, _TEXT, "text", style="blockquote"))
            elif name == "li":
                candidates.append(self._candidate(node, _TEXT, "li"))
            elif name == "br":
                candidates.append(self._candidate(node, _BREAK, "br"))
        return candidates

    # -- block builders ------------------------------------------------------

    def _local_path(self, url: str) -> Optional[str]:
        ref = self.media_map.get(url)
        if ref is not None and ref.found and ref.local_path:
            return ref.local_path
        return None

    def _media_block(self, el: Tag, caption: Optional[str]) -> Block:
        key = self.context.key_factory()
        src = _media_src(el)
        if el.name == "img":
            return ImageBlock(key=key, alt=_attr(el, "alt"), url=src, local_path=self._local_path(src))
        if el.name == "audio":
            return AudioBlock(
                key=key,
                url=src,
                local_path=self._local_path(src),
                title=caption or None,
                show_controls=el.has_attr("controls"),
                autoplay=el.has_attr("autoplay"),
            )
        if el.name == "iframe":
            caption = caption or _attr(el, "title")
        return VideoBlock(
            key=key,
            video_type=video_type_for(src),
            url=src,
            local_path=self._local_path(src),
            title=caption or None,
        )

    def _build_figure(self, cand: _Candidate) -> Block:
        figure = cand.node
        caption_el = figure.find("figcaption")
        caption = collapse_whitespace(caption_el.get_text()) if isinstance(caption_el, Tag) else ""
        media = cand.data.get("media")
        if media is not None:
            return self._media_block(media, caption)
        url = cand.data["url"]
        return VideoBlock(
            key=self.context.key_factory(),
            video_type=video_type_for(url),
            url=url,
            title=caption or None,
        )

    def _build_text(self, cand: _Candidate, holds_media: bool) -> Optional[TextBlock]:
        node = cand.node
        list_item: Optional[str] = None
        level: Optional[int] = None
        style = cand.data.get("style", "normal")
        nested_lists = False
        if cand.kind == "li":
            lists = node.find_parents(["ul", "ol"])
            list_item = "number" if lists and lists[0].name == "ol" else "bullet"
            level = max(1, len(lists))
            for sub in node.find_all(["ul", "ol"]):
                nested_lists = True
                sub.extract()
        block = create_block_with_inline_content(
            node.decode_contents(),
            style,
            list_item=list_item,
            level=level,
            key_factory=self.context.key_factory,
            preserve_whitespace=cand.data.get("preserve", False),
        )
        if (holds_media or nested_lists) and not block.text.strip():
            return None
        return block

    def _build(self, cand: _Candidate, holds_media: bool) -> List[Block]:
        kind = cand.kind
        if kind == "embed":
            url = cand.data["url"]
            return [VideoBlock(key=self.context.key_factory(), video_type=video_type_for(url), url=url)]
        if kind == "figure":
            return [self._build_figure(cand)]
        if kind in ("audio", "video", "img", "iframe"):
            return [self._media_block(cand.node, None)]
        if kind in _TEXT_KINDS:
            block = self._build_text(cand, holds_media)
            return [block] if block is not None else []
        if kind == "br":
            return [TextBlock(key=self.context.key_factory(), children=[Span(key=self.context.key_factory(), text="")])]
        raise ValueError(f"Unknown candidate kind: {kind}")

    @staticmethod
    def _detach(cand: _Candidate) -> None:
        for node in cand.data.get("nodes") or [cand.node]:
            node.extract()

    # -- loose text ----------------------------------------------------------

    @staticmethod
    def _block_ancestor(node: PageElement) -> int:
        parent = node.parent
        while parent is not None and parent.name not in _BLOCK_LEVEL:
            parent = parent.parent
        return id(parent)

    @staticmethod
    def _mark_chain(node: PageElement) -> List[Tag]:
        chain: List[Tag] = []
        parent = node.parent
        while parent is not None and parent.name not in _BLOCK_LEVEL:
            if parent.name in _INLINE_MARKUP:
                chain.append(parent)
            parent = parent.parent
        chain.reverse()
        return chain

    def _loose_text(self, covered: List[bool]) -> List[_LooseRun]:
        runs: List[_LooseRun] = []
        current: Optional[_LooseRun] = None
        prev = -1
        ancestor = None
        for i, node in enumerate(self.order):
            if covered[i] or not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
                continue
            node_ancestor = self._block_ancestor(node)
            interrupted = prev >= 0 and (any(covered[prev + 1:i]) or node_ancestor != ancestor)
            if current is None or interrupted:
                current = _LooseRun(i)
                runs.append(current)
            current.add(self._mark_chain(node), str(node))
            prev = i
            ancestor = node_ancestor
        for run in runs:
            run.flush()
        return runs

    # -- entry point ---------------------------------------------------------

    def parse(self, html: str) -> List[Block]:
        soup = BeautifulSoup(_SHORTCODE_RE.sub("", html), self.context.features)
        for bad in soup.find_all(["script", "style", "template"]):
            bad.decompose()
        self._index(soup)

        accepted = schedule(self._collect())

        covered = [False] * len(self.order)
        for cand in accepted:
            for i in range(cand.start, cand.end + 1):
                covered[i] = True
        loose = self._loose_text(covered)

        texts = [c for c in accepted if c.is_text]
        placed: List[Tuple[int, List[Block]]] = []
        # Innermost first, so nested media and nested list items are built
        # before they are cut out of the block that encloses them.
        for cand in reversed(accepted):
            holders = [t for t in texts if t is not cand and t.contains(cand)]
            holds_media = cand.is_text and any(
                m.is_media and cand.contains(m) for m in accepted
            )
            placed.append((cand.start, self._build(cand, holds_media)))
            if holders and cand.is_media:
                self._detach(cand)

        for run in loose:
            blocks = [
                create_block_with_inline_content(fragment, "normal", key_factory=self.context.key_factory)
                for fragment in run.fragments
            ]
            blocks = [b for b in blocks if b.text.strip()]
            if blocks:
                placed.append((run.start, blocks))

        placed.sort(key=lambda item: item[0])
        return [block for _, blocks in placed for block in blocks]


def fallback_block(html: str, context: Optional[ParserContext] = None) -> TextBlock:
    """Plain-text stand-in for a body that could not be parsed."""
    context = context or ParserContext()
    text = strip_html(html)
    text = truncate(text, context.fallback_length) if text else "Content conversion failed"
    key = context.key_factory
    return TextBlock(key=key(), children=[Span(key=key(), text=text)])


def html_to_block_content(
    html: str,
    media_map: Optional[Mapping[str, MediaReference]] = None,
    context: Optional[ParserContext] = None,
) -> List[Block]:
    """Convert a WordPress HTML body into ordered blocks.

    ``media_map`` maps source URLs to resolved references; blocks for media
    found locally carry its ``localPath``.  Never raises.
    """
    context = context or ParserContext()
    if not html or not html.strip():
        return []
    try:
        blocks = _BlockParser(context, media_map or {}).parse(html)
    except Exception as e:
        log_message(f"Falling back to plain text, block parsing failed: {e}", level="WARNING")
        return [fallback_block(html, context)]
    if not blocks:
        # Markup without any recognisable content still yields one block.
        key = context.key_factory
        blocks = [TextBlock(key=key(), children=[Span(key=key(), text=strip_html(html))])]
    return blocks
