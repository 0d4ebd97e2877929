"""
Inventory of the HTML tags used across a set of WordPress bodies.

Used before a migration to spot media the converter does not pick up, e.g. an
``<object>`` embed or an ``<svg>`` with an external ``src``.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set

from bs4 import BeautifulSoup
from pydantic import BaseModel

# Already handled by the media extractor.
COVERED_TAGS = {"img", "audio", "video", "source"}

NON_MEDIA_TAGS = {
    "p", "div", "span", "h1", "h2", "h3", "h4", "h5", "h6",
    "a", "strong", "b", "em", "i", "u", "strike", "del",
    "blockquote", "ul", "ol", "li", "table", "tr", "td", "th",
    "thead", "tbody", "tfoot", "br", "hr", "pre", "code",
    "form", "input", "textarea", "button", "select", "option",
    "label", "fieldset", "legend", "nav", "header", "footer",
    "section", "article", "aside", "main", "figure", "figcaption",
    "time", "mark", "small", "sub", "sup", "abbr", "cite",
    "q", "dfn", "kbd", "samp", "var", "details", "summary",
}

POTENTIAL_MEDIA_TAGS = {
    "embed", "object", "iframe", "track", "area", "map",
    "picture", "canvas", "svg", "use", "image", "foreignobject",
}

_TAG_RE = re.compile(r"</?([a-zA-Z][a-zA-Z0-9]*)\b[^>]*>")


@dataclass
class TagAnalysis:
    all_tags: Set[str] = field(default_factory=set)
    media_tags: Set[str] = field(default_factory=set)
    uncovered_media_tags: Set[str] = field(default_factory=set)
    # Number of documents each tag appears in.
    tag_frequency: Counter = field(default_factory=Counter)
    media_with_src: Dict[str, List[str]] = field(default_factory=dict)


def extract_all_tags(content: str) -> Set[str]:
    return {m.group(1).lower() for m in _TAG_RE.finditer(content or "")}


def extract_tags_with_src(content: str) -> Dict[str, List[str]]:
    found: Dict[str, List[str]] = {}
    soup = BeautifulSoup(content or "", "html.parser")
    for el in soup.find_all(src=True):
        src = el.get("src")
        if isinstance(src, str) and src:
            found.setdefault(el.name.lower(), []).append(src)
    return found


def _content_of(record: Any) -> str:
    if isinstance(record, str):
        return record
    if isinstance(record, BaseModel):
        record = record.model_dump(by_alias=True)
    original = record.get("original", record)
    if isinstance(original, BaseModel):
        return getattr(original, "post_content", "") or ""
    return original.get("post_content") or ""


def analyze_html_tags(records: Iterable[Any]) -> TagAnalysis:
    """Analyze the bodies of ``records``.

    ``records`` may be migration records (``{"original": {...}}``), WordPress
    records, or raw HTML strings.
    """
    analysis = TagAnalysis()
    sources: Dict[str, Set[str]] = {}

    for record in records:
        content = _content_of(record)
        tags = extract_all_tags(content)
        analysis.all_tags |= tags
        analysis.tag_frequency.update(tags)
        for tag, srcs in extract_tags_with_src(content).items():
            sources.setdefault(tag, set()).update(srcs)

    analysis.media_with_src = {tag: sorted(srcs) for tag, srcs in sources.items()}
    analysis.media_tags = {
        tag for tag in analysis.all_tags if tag in POTENTIAL_MEDIA_TAGS or tag in sources
    }
    analysis.uncovered_media_tags = {
        tag for tag in analysis.media_tags if tag not in COVERED_TAGS and tag not in NON_MEDIA_TAGS
    }
    return analysis


def generate_tag_report(analysis: TagAnalysis) -> str:
    lines = ["# HTML Tag Analysis Report", ""]
    lines.append("## Summary")
    lines.append(f"- Total unique tags: {len(analysis.all_tags)}")
    lines.append(f"- Media-related tags: {len(analysis.media_tags)}")
    lines.append(f"- Uncovered media tags: {len(analysis.uncovered_media_tags)}")
    lines.append("")

    if analysis.uncovered_media_tags:
        lines.append("## Uncovered Media Tags")
        for tag in sorted(analysis.uncovered_media_tags):
            urls = analysis.media_with_src.get(tag, [])
            lines.append(f"- <{tag}> in {analysis.tag_frequency[tag]} document(s)")
            for url in urls[:5]:
                lines.append(f"  - {url}")
            if len(urls) > 5:
                lines.append(f"  - ... and {len(urls) - 5} more")
        lines.append("")

    lines.append("## Tag Frequency")
    for tag, count in sorted(analysis.tag_frequency.items(), key=lambda x: (-x[1], x[0])):
        lines.append(f"- {tag}: {count}")
    return "\n".join(lines)
