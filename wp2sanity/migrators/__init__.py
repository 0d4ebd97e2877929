"""
WordPress record → Sanity document mapping.

Posts become ``post`` documents with converted block content, plain-text
body and excerpt; pages become lightweight ``page`` documents.
"""

from .sanity_documents import to_sanity_page, to_sanity_post, transform_post

__all__ = ["to_sanity_page", "to_sanity_post", "transform_post"]
