"""
Media reference extraction and local resolution.

WordPress bodies point at uploads through absolute URLs
(``https://site/wp-content/uploads/2020/01/photo.jpg``).  The migration works
from a copy of the uploads directory, so every reference is matched by file
name against that local tree.  Nothing here raises: unparseable HTML yields no
references and an unresolvable URL yields ``found=False``.
"""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup

from ..models.portable_text import MediaReference
from ..utils.logs import log_message

_MEDIA_TAGS = {"img": "image", "audio": "audio", "video": "video"}


@dataclass(frozen=True)
class MediaStats:
    total_images: int = 0
    total_audio: int = 0
    total_video: int = 0
    total_found: int = 0
    total_missing: int = 0

    def __add__(self, other: "MediaStats") -> "MediaStats":
        return MediaStats(
            self.total_images + other.total_images,
            self.total_audio + other.total_audio,
            self.total_video + other.total_video,
            self.total_found + other.total_found,
            self.total_missing + other.total_missing,
        )


def extract_media_from_content(content: str) -> List[MediaReference]:
    """Return one unresolved reference per media-bearing element, in document order.

    Covered: ``img[src]``, ``audio[src]``, ``video[src]`` and ``source[src]``
    nested in an ``audio`` or ``video`` element.
    """
    if not content or not content.strip():
        return []
    try:
        soup = BeautifulSoup(content, "html.parser")
        refs: List[MediaReference] = []
        for el in soup.find_all(["img", "audio", "video", "source"]):
            src = el.get("src")
            if not isinstance(src, str) or not src.strip():
                continue
            if el.name == "source":
                owner = el.find_parent(["audio", "video"])
                if owner is None:
                    continue
                media_type = _MEDIA_TAGS[owner.name]
            else:
                media_type = _MEDIA_TAGS[el.name]
            refs.append(MediaReference(url=src.strip(), type=media_type))
        return refs
    except Exception as e:
        log_message(f"Could not extract media references: {e}", level="WARNING")
        return []


def filename_from_url(url: str) -> str:
    """Final path segment of ``url``; the last ``/`` token if it will not parse."""
    try:
        path = urlparse(url).path
        return posixpath.basename(unquote(path))
    except ValueError:
        return url.split("/")[-1]


def _walk(root: str) -> Iterable[os.DirEntry]:
    """Depth-first walk yielding regular files.

    Unreadable directories are skipped.  Symlinked directories are not
    followed and broken links are not files.
    """
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError:
        return
    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                yield from _walk(entry.path)
            elif entry.is_file():
                yield entry
        except OSError:
            continue


def search_file_recursively(directory: str, filename: str) -> Optional[str]:
    if not filename or not os.path.isdir(directory):
        return None
    for entry in _walk(directory):
        if entry.name == filename:
            return os.path.abspath(entry.path)
    return None


def find_local_path(url: str, media_root: str) -> Optional[str]:
    """Absolute path of the first file under ``media_root`` named like ``url``'s file."""
    try:
        return search_file_recursively(media_root, filename_from_url(url))
    except Exception as e:
        log_message(f"Media lookup failed for {url}: {e}", level="WARNING")
        return None


def _index_media_root(media_root: str) -> Dict[str, str]:
    index: Dict[str, str] = {}
    if not os.path.isdir(media_root):
        return index
    for entry in _walk(media_root):
        index.setdefault(entry.name, os.path.abspath(entry.path))
    return index


def map_media_to_local_paths(
    media_refs: Iterable[MediaReference], media_root: str
) -> List[MediaReference]:
    """Return resolved copies of ``media_refs``.

    The media root is walked once per call; each reference then gets the same
    first match :func:`find_local_path` would return.
    """
    refs = list(media_refs)
    if not refs:
        return []
    try:
        index = _index_media_root(media_root)
    except Exception as e:
        log_message(f"Could not index media root {media_root}: {e}", level="WARNING")
        index = {}
    resolved: List[MediaReference] = []
    for ref in refs:
        local_path = index.get(filename_from_url(ref.url)) if index else None
        resolved.append(
            ref.model_copy(update={"local_path": local_path or "", "found": local_path is not None})
        )
    return resolved


def build_media_map(media_refs: Iterable[MediaReference]) -> Dict[str, MediaReference]:
    """URL → reference lookup; a URL seen twice keeps its first reference."""
    media_map: Dict[str, MediaReference] = {}
    for ref in media_refs:
        media_map.setdefault(ref.url, ref)
    return media_map


def replace_media_urls(
    content: str, media_refs: Iterable[MediaReference], *, base_dir: Optional[str] = None
) -> str:
    """Swap every found URL in ``content`` for its path relative to ``base_dir``."""
    updated = content or ""
    base = base_dir or os.getcwd()
    for ref in media_refs:
        if ref.found and ref.local_path:
            relative = os.path.relpath(ref.local_path, base).replace(os.sep, "/")
            updated = updated.replace(ref.url, relative)
    return updated


def generate_media_stats(media_refs: Iterable[MediaReference]) -> MediaStats:
    refs = list(media_refs)
    found = sum(1 for r in refs if r.found)
    return MediaStats(
        total_images=sum(1 for r in refs if r.type == "image"),
        total_audio=sum(1 for r in refs if r.type == "audio"),
        total_video=sum(1 for r in refs if r.type == "video"),
        total_found=found,
        total_missing=len(refs) - found,
    )
