from __future__ import annotations

from typing import Any, Iterable, Optional

from ..models.portable_text import TextBlock, coerce_blocks

EXCERPT_LENGTH = 150

# Styles followed by a blank line in the plain-text rendering.
_PARAGRAPH_STYLES = {"normal", "blockquote"}


def extract_plain_text(blocks: Iterable[Any]) -> str:
    """Concatenate the span text of every text block.

    Paragraphs, quotes and list items are followed by a blank line, headings
    by a single newline.  Media blocks and empty blocks contribute
    nothing.
    """
    parts = []
    for block in coerce_blocks(blocks):
        if not isinstance(block, TextBlock):
            continue
        text = block.text
        if not text:
            continue
        separator = "\n\n" if block.style in _PARAGRAPH_STYLES else "\n"
        parts.append(text + separator)
    return "".join(parts).strip()


def get_text_from_block_content(blocks: Iterable[Any]) -> str:
    """Single-line text of ``blocks`` for previews."""
    texts = (b.text for b in coerce_blocks(blocks) if isinstance(b, TextBlock))
    return " ".join(t for t in texts if t.strip()).strip()


def build_excerpt(
    source_excerpt: Optional[str], body_text: str, max_length: int = EXCERPT_LENGTH
) -> Optional[str]:
    if source_excerpt and source_excerpt.strip():
        return source_excerpt
    if not body_text or not body_text.strip():
        return None
    if len(body_text) <= max_length:
        return body_text
    return body_text[:max_length].strip() + "..."


def get_word_count(text: str) -> int:
    return len((text or "").split())
