"""
One-call conversion of a WordPress body: extract media references, resolve
them against the local uploads copy, then parse the HTML into blocks that
point at the resolved files.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..models.portable_text import Block, MediaReference, dump_blocks
from ..utils.logs import log_message
from .block_content import ParserContext, fallback_block, html_to_block_content
from .media import build_media_map, extract_media_from_content, map_media_to_local_paths


@dataclass
class TransformResult:
    content: List[Block] = field(default_factory=list)
    media: List[MediaReference] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": dump_blocks(self.content),
            "media": [m.to_dict() for m in self.media],
        }


def transform(html: str, media_root: str, context: Optional[ParserContext] = None) -> TransformResult:
    """Convert ``html`` into blocks and the media references it mentions.

    Never raises: a failure at any stage yields a single plain-text block and
    whatever media was resolved before the failure.
    """
    context = context or ParserContext()
    media: List[MediaReference] = []
    try:
        media = map_media_to_local_paths(extract_media_from_content(html), media_root)
        content = html_to_block_content(html, build_media_map(media), context)
    except Exception as e:
        log_message(f"Transformation failed, using plain-text fallback: {e}", level="WARNING")
        content = [fallback_block(html, context)] if html and html.strip() else []
    return TransformResult(content=content, media=media)
