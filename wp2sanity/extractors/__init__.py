"""
Extractors for WordPress export files.

This subpackage parses CSV and XML (WXR) exports from WordPress into
:class:`~wp2sanity.models.WordPressPost` records, the shape of a
``wp_posts`` row that the rest of the pipeline works from.
"""

from .wordpress_extractor import extract_posts_from_csv, extract_posts_from_xml

__all__ = ["extract_posts_from_csv", "extract_posts_from_xml"]
