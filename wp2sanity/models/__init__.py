"""
Value models shared by the parsers and the migration driver.

:mod:`wp2sanity.models.portable_text` holds the block content union and the
media reference record; :mod:`wp2sanity.models.sanity_content` holds the
WordPress source record and the Sanity post/page documents built from it.
"""

from .portable_text import (
    AudioBlock,
    Block,
    BlockContent,
    ImageBlock,
    LinkMarkDef,
    MediaReference,
    Span,
    TextBlock,
    VideoBlock,
    coerce_blocks,
    dump_blocks,
    new_key,
)
from .sanity_content import (
    CoverImage,
    MigrationRecord,
    SanityContent,
    SanityPageContent,
    SanityPostContent,
    Slug,
    WordPressPost,
)

__all__ = [
    "AudioBlock",
    "Block",
    "BlockContent",
    "CoverImage",
    "ImageBlock",
    "LinkMarkDef",
    "MediaReference",
    "MigrationRecord",
    "SanityContent",
    "SanityPageContent",
    "SanityPostContent",
    "Slug",
    "Span",
    "TextBlock",
    "VideoBlock",
    "WordPressPost",
    "coerce_blocks",
    "dump_blocks",
    "new_key",
]
