"""
Block content → HTML for previewing a prepared migration.

The output is meant for a reviewer's eyes, not for round-tripping: each block
becomes one line, marks are re-wrapped in a fixed order and consecutive list
items are not merged into one list.
"""

from __future__ import annotations

from html import escape
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote

from ..models.portable_text import (
    AudioBlock,
    ImageBlock,
    LinkMarkDef,
    Span,
    TextBlock,
    VideoBlock,
    coerce_blocks,
    unsupported_block,
)

MEDIA_URL_PREFIX = "/api/serve-media?path="

# Innermost first; links are applied last so they end up outermost.
_MARK_ORDER = (
    ("code", "code"),
    ("strike-through", "s"),
    ("underline", "u"),
    ("em", "em"),
    ("strong", "strong"),
)

_STYLE_TAGS = {
    "normal": "p",
    "blockquote": "blockquote",
    **{f"h{n}": f"h{n}" for n in range(1, 7)},
}


def _attr(value: str) -> str:
    return escape(value or "", quote=True)


def media_src(url: str, local_path: Optional[str], prefix: str = MEDIA_URL_PREFIX) -> str:
    """Preview ``src``: the media-serving route for local files, the remote URL otherwise."""
    if local_path:
        return prefix + quote(local_path, safe="")
    return url or ""


def _render_span(span: Span, links: Dict[str, LinkMarkDef]) -> str:
    text = escape(span.text or "", quote=False)
    marks = span.marks or []
    for mark, tag in _MARK_ORDER:
        if mark in marks:
            text = f"<{tag}>{text}</{tag}>"
    for mark in marks:
        link = links.get(mark)
        if link is not None:
            target = ' target="_blank"' if link.open_in_new_tab else ""
            text = f'<a href="{_attr(link.href or "#")}"{target}>{text}</a>'
            break
    return text


def _render_text(block: TextBlock) -> str:
    links = {d.key: d for d in block.mark_defs}
    inner = "".join(_render_span(child, links) for child in block.children)
    if block.list_item:
        list_tag = "ol" if block.list_item == "number" else "ul"
        return f"<{list_tag}><li>{inner}</li></{list_tag}>"
    tag = _STYLE_TAGS.get(block.style, "p")
    return f"<{tag}>{inner}</{tag}>"


def _render_image(block: ImageBlock, prefix: str) -> str:
    src = media_src(block.url, block.local_path, prefix)
    return (
        f'<figure><img src="{_attr(src)}" alt="{_attr(block.alt)}" '
        f'style="max-width: 100%; height: auto;" /></figure>'
    )


def _render_audio(block: AudioBlock, prefix: str) -> str:
    src = media_src(block.url, block.local_path, prefix)
    flags = "".join(
        f" {name}" for name, on in (("controls", block.show_controls), ("autoplay", block.autoplay)) if on
    )
    caption = f"<figcaption>{escape(block.title, quote=False)}</figcaption>" if block.title else ""
    return f'<figure><audio{flags}><source src="{_attr(src)}" /></audio>{caption}</figure>'


def _render_video(block: VideoBlock, prefix: str) -> str:
    caption = f"<figcaption>{escape(block.title, quote=False)}</figcaption>" if block.title else ""
    if block.video_type in ("youtube", "vimeo") and not block.local_path:
        title = f' title="{_attr(block.title)}"' if block.title else ""
        return (
            f'<figure><iframe src="{_attr(block.url)}"{title} allowfullscreen></iframe>'
            f"{caption}</figure>"
        )
    src = media_src(block.url, block.local_path, prefix)
    return f'<figure><video controls src="{_attr(src)}"></video>{caption}</figure>'


def render_block(block: Any, media_url_prefix: str = MEDIA_URL_PREFIX) -> str:
    if isinstance(block, TextBlock):
        return _render_text(block)
    if isinstance(block, ImageBlock):
        return _render_image(block, media_url_prefix)
    if isinstance(block, AudioBlock):
        return _render_audio(block, media_url_prefix)
    if isinstance(block, VideoBlock):
        return _render_video(block, media_url_prefix)
    unsupported_block(block)


def block_content_to_html(
    blocks: Optional[Iterable[Any]], media_url_prefix: str = MEDIA_URL_PREFIX
) -> str:
    """Render ``blocks`` (models or raw dictionaries) as one HTML line per block.

    Empty text blocks are kept as ``<p></p>`` so that spacing paragraphs stay
    visible in the preview.
    """
    return "\n".join(render_block(b, media_url_prefix) for b in coerce_blocks(blocks))
