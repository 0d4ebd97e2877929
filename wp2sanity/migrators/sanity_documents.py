"""
Mapping of WordPress records to Sanity documents.

:func:`to_sanity_post` converts the body into block content and derives the
plain-text ``body`` and ``excerpt`` from it.  :func:`to_sanity_page` keeps
pages lightweight: only the media references of the body are resolved, the
body itself is not converted.  :func:`transform_post` picks one of the two.

The helpers at the bottom summarise the media of an already transformed
document for the preparation report.
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Dict, List, Optional

from ..models.portable_text import Block, MediaReference
from ..models.sanity_content import (
    CoverImage,
    SanityContent,
    SanityPageContent,
    SanityPostContent,
    WordPressPost,
)
from ..parsers.block_content import ParserContext, fallback_block
from ..parsers.media import extract_media_from_content, map_media_to_local_paths
from ..parsers.plain_text import build_excerpt, extract_plain_text, get_word_count as _count_words
from ..parsers.portable_text_parser import transform
from ..utils.errors import report_error


def to_sanity_post(
    post: WordPressPost,
    media_root: str,
    context: Optional[ParserContext] = None,
    *,
    report_dir: Optional[str] = None,
) -> SanityPostContent:
    """Build a ``post`` document from ``post``.

    A conversion failure never propagates: the body is replaced by a single
    plain-text block and the failure is recorded as ``CONTENT_CONVERSION``.
    """
    context = context or ParserContext()
    try:
        result = transform(post.post_content, media_root, context)
        content, media = result.content, result.media
    except Exception as e:
        report_error("CONTENT_CONVERSION", post, e, report_dir=report_dir)
        content = [fallback_block(post.post_content, context)]
        media = []

    body = extract_plain_text(content)
    return SanityPostContent(
        title=post.post_title,
        slug={"current": post.post_name, "source": "title"},
        content=content,
        excerpt=build_excerpt(post.post_excerpt, body),
        cover_image=CoverImage(alt=f"Cover image for {post.post_title}"),
        date=post.post_date or None,
        media=media,
        body=body,
    )


def to_sanity_page(post: WordPressPost, media_root: str) -> SanityPageContent:
    media = map_media_to_local_paths(extract_media_from_content(post.post_content), media_root)
    return SanityPageContent(
        name=post.post_title,
        slug={"current": post.post_name, "source": "name"},
        heading=post.post_title,
        subheading=post.post_excerpt or None,
        media=media,
    )


def transform_post(
    post: WordPressPost,
    media_root: str,
    treat_as_post: bool = False,
    context: Optional[ParserContext] = None,
    *,
    report_dir: Optional[str] = None,
) -> SanityContent:
    """Posts (and pages when ``treat_as_post`` is set) become posts, other pages become pages."""
    if post.post_type == "post" or treat_as_post:
        return to_sanity_post(post, media_root, context, report_dir=report_dir)
    return to_sanity_page(post, media_root)


def from_data(
    title: str,
    slug: str,
    content: Optional[List[Block]] = None,
    excerpt: Optional[str] = None,
    date: Optional[str] = None,
    media: Optional[List[MediaReference]] = None,
    body: Optional[str] = None,
) -> SanityPostContent:
    """Assemble a post document from already processed parts."""
    return SanityPostContent(
        title=title,
        slug={"current": slug, "source": "title"},
        content=content,
        excerpt=excerpt,
        cover_image=CoverImage(alt=f"Cover image for {title}"),
        date=date,
        media=media or [],
        body=body,
    )


def get_media_summary(content: SanityContent) -> Dict[str, Any]:
    by_type = Counter(item.type for item in content.media)
    found = sum(1 for item in content.media if item.found)
    return {
        "total": len(content.media),
        "byType": dict(by_type),
        "found": found,
        "missing": len(content.media) - found,
    }


def get_missing_media_urls(content: SanityContent) -> List[str]:
    return [item.url for item in content.media if not item.found]


def has_media(content: SanityContent) -> bool:
    return bool(content.media)


def get_word_count(content: SanityContent) -> int:
    # Pages carry no body.
    if isinstance(content, SanityPostContent):
        return _count_words(content.body or extract_plain_text(content.content or []))
    return 0
