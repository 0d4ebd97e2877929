"""
Parsers and converters used by the migration pipeline.

The subpackage turns WordPress HTML into Sanity block content
(:func:`transform`, :func:`html_to_block_content`), derives plain text and
excerpts from blocks, and renders blocks back to HTML for previews.
"""

from .block_content import ParserContext, html_to_block_content
from .inline import InlineContent, create_block_with_inline_content, parse_inline_html
from .media import (
    MediaStats,
    build_media_map,
    extract_media_from_content,
    find_local_path,
    generate_media_stats,
    map_media_to_local_paths,
    replace_media_urls,
)
from .plain_text import build_excerpt, extract_plain_text, get_text_from_block_content
from .portable_text_parser import TransformResult, transform
from .render import block_content_to_html

__all__ = [
    "InlineContent",
    "MediaStats",
    "ParserContext",
    "TransformResult",
    "block_content_to_html",
    "build_excerpt",
    "build_media_map",
    "create_block_with_inline_content",
    "extract_media_from_content",
    "extract_plain_text",
    "find_local_path",
    "generate_media_stats",
    "get_text_from_block_content",
    "html_to_block_content",
    "map_media_to_local_paths",
    "parse_inline_html",
    "replace_media_urls",
    "transform",
]
