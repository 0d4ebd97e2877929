"""
High-level orchestration of the WordPress → Sanity migration preparation.

This module defines a :class:`SanityMigrationTool` class that ties together
the extractors, parsers, migrators and utilities into a complete pipeline.
It reads WordPress records from CSV or XML exports, converts every published
post and page into a Sanity document, resolves the media they reference
against a local copy of the uploads directory, writes the migration
artifact (``input/sanity-migration.json``) consumed by the importer and a
CSV of media that could not be found.

Configuration is supplied via a JSON file path or directly as a dictionary.
All settings live under the ``migration`` key; missing values are filled
from environment variables or defaults.
"""

from __future__ import annotations

import json
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .extractors.wordpress_extractor import extract_posts_from_csv, extract_posts_from_xml
from .migrators.sanity_documents import transform_post
from .models.sanity_content import MigrationRecord, SanityPageContent, WordPressPost
from .parsers.block_content import ParserContext
from .parsers.media import MediaStats, generate_media_stats
from .utils.errors import MigrationConfigError, MigrationFileError, report_error, report_ok
from .utils.logs import log_message as _log
from .utils.media_report import generate_missing_media_csv

MIGRATION_FILE_PATH = os.path.join("input", "sanity-migration.json")


@dataclass
class PreparationResult:
    records: List[MigrationRecord] = field(default_factory=list)
    missing_media: List[Dict[str, str]] = field(default_factory=list)
    media_stats: MediaStats = field(default_factory=MediaStats)
    output_path: Optional[str] = None
    cancelled: bool = False

    @property
    def post_count(self) -> int:
        return sum(1 for r in self.records if r.transformed.type == "post")

    @property
    def page_count(self) -> int:
        return sum(1 for r in self.records if r.transformed.type == "page")


class SanityMigrationTool:
    """
    Encapsulates the state and behavior required to prepare a set of
    WordPress records for import into Sanity.  This class is responsible for
    reading configuration, extracting records, transforming them and writing
    the migration artifact.  Per-record outcomes are recorded using the
    :mod:`wp2sanity.utils.errors` module.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, *, config_file: Optional[str] = None) -> None:
        if config_file and os.path.exists(config_file):
            try:
                with open(config_file, "r", encoding="utf-8") as f:
                    config = json.load(f)
            except json.JSONDecodeError as e:
                raise MigrationConfigError(
                    "Invalid JSON in configuration file", {"path": config_file, "error": str(e)}
                ) from e
        elif config is None:
            # Default configuration
            config = {}

        config.setdefault("migration", {})
        migration = config["migration"]
        migration.setdefault("media_root", os.getenv("WP_MEDIA_ROOT", os.path.join("input", "uploads")))
        migration.setdefault("output_file", os.getenv("SANITY_MIGRATION_OUTPUT", MIGRATION_FILE_PATH))
        migration.setdefault("dry_run", False)
        migration.setdefault("limit", None)
        migration.setdefault("workers", int(os.getenv("MIGRATION_WORKERS", "4")))
        migration.setdefault("treat_pages_as_posts", False)
        migration.setdefault("missing_media_report", os.path.join("reports", "missing_media.csv"))
        migration.setdefault("report_dir", os.path.join("reports", "migration"))

        self.config = config
        self.report_dir: str = migration["report_dir"]
        self.log_file = os.path.join(self.report_dir, "migration.log")
        self.context = ParserContext()

    def log_message(self, message: str, level: str = "INFO") -> None:
        _log(message, level, log_file=self.log_file)

    def extract_posts(self, csv_path: Optional[str] = None, xml_path: Optional[str] = None) -> List[WordPressPost]:
        posts: List[WordPressPost] = []
        if csv_path and os.path.exists(csv_path):
            self.log_message(f"Extracting posts from CSV {csv_path}")
            try:
                posts.extend(extract_posts_from_csv(csv_path))
            except Exception as e:
                self.log_message(f"Error extracting CSV: {e}", "ERROR")
        if xml_path and os.path.exists(xml_path):
            self.log_message(f"Extracting posts from XML {xml_path}")
            try:
                posts.extend(extract_posts_from_xml(xml_path))
            except Exception as e:
                self.log_message(f"Error extracting XML: {e}", "ERROR")
        return posts

    def _log_page_hierarchy(self, pages: List[WordPressPost]) -> None:
        by_id = {page.id: page for page in pages}
        children = [page for page in pages if page.post_parent > 0]
        self.log_message("Page hierarchy analysis:")
        self.log_message(f"- Top-level pages: {len(pages) - len(children)}")
        self.log_message(f"- Child pages: {len(children)}")
        for child in children:
            parent = by_id.get(child.post_parent)
            if parent is not None:
                self.log_message(f'  └─ "{child.post_title}" is child of "{parent.post_title}"')
            else:
                self.log_message(
                    f'  └─ "{child.post_title}" has missing parent ID: {child.post_parent}', "WARNING"
                )

    def _transform(self, post: WordPressPost, cancel_event: Optional[threading.Event]) -> Optional[MigrationRecord]:
        # Cancellation is only honoured between records, never mid-parse.
        if cancel_event is not None and cancel_event.is_set():
            return None
        migration = self.config["migration"]
        transformed = transform_post(
            post,
            migration["media_root"],
            treat_as_post=migration["treat_pages_as_posts"],
            context=self.context,
            report_dir=self.report_dir,
        )
        return MigrationRecord(original=post, transformed=transformed)

    def prepare_migration(
        self, posts: List[WordPressPost], *, cancel_event: Optional[threading.Event] = None
    ) -> PreparationResult:
        """
        Transform ``posts`` into migration records and write the artifact.

        Only published posts and pages are kept, in input order, up to the
        configured ``limit``.  Records are transformed on a pool of
        ``workers`` threads.  When ``cancel_event`` is set, records not yet
        started are skipped and no artifact is written.  If ``dry_run`` is
        enabled only the log lines and reports are produced.

        :param posts: WordPress records from :meth:`extract_posts`.
        :param cancel_event: Optional event checked before each record.
        :return: The records, missing media list and media totals.
        """
        migration = self.config["migration"]
        dry_run: bool = migration["dry_run"]
        limit: Optional[int] = migration["limit"]

        items = [p for p in posts if p.post_status == "publish" and p.post_type in ("post", "page")]
        if limit is not None:
            items = items[:limit]
        pages = [p for p in items if p.post_type == "page"]
        self.log_message(f"Found {len(items)} items to migrate")
        self.log_message(f"- Posts: {len(items) - len(pages)}")
        self.log_message(f"- Pages: {len(pages)}")
        if pages:
            self._log_page_hierarchy(pages)

        result = PreparationResult()
        workers = max(1, int(migration["workers"] or 1))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [executor.submit(self._transform, post, cancel_event) for post in items]
            outcomes = []
            for post, future in zip(items, futures):
                try:
                    outcomes.append((post, future.result()))
                except Exception as e:
                    self.log_message(f"Failed to transform {post.post_type} '{post.post_title}': {e}", "ERROR")
                    report_error("CONTENT_CONVERSION", post, e, report_dir=self.report_dir)

        for post, record in outcomes:
            if record is None:
                result.cancelled = True
                report_error("CANCELLED", post, report_dir=self.report_dir)
                continue
            self.log_message(f"Processed {post.post_type}: {post.post_title}")
            media = record.transformed.media
            stats = generate_media_stats(media)
            result.media_stats = result.media_stats + stats
            if media:
                self.log_message(
                    f"  - Found {len(media)} media references "
                    f"({stats.total_found} found, {stats.total_missing} missing)"
                )
            for ref in media:
                if not ref.found:
                    result.missing_media.append(
                        {"url": ref.url, "foundIn": f"{post.post_type}: {post.post_title}", "type": ref.type}
                    )
            code = "PAGE_TRANSFORMED" if isinstance(record.transformed, SanityPageContent) else "POST_TRANSFORMED"
            report_ok(code, post, {"media": len(media)}, report_dir=self.report_dir)
            result.records.append(record)

        totals = result.media_stats
        self.log_message("Media Processing Summary:")
        self.log_message(f"- Images: {totals.total_images}")
        self.log_message(f"- Audio: {totals.total_audio}")
        self.log_message(f"- Video: {totals.total_video}")
        self.log_message(f"- Found locally: {totals.total_found}")
        self.log_message(f"- Missing: {totals.total_missing}")

        if result.cancelled:
            self.log_message("Migration preparation cancelled. No files written.", "WARNING")
            return result

        if dry_run:
            self.log_message("Dry run completed. No files written.")
        else:
            result.output_path = write_migration_file(result.records, migration["output_file"])
            self.log_message(f"Migration data written to {result.output_path}")

        if result.missing_media:
            path = generate_missing_media_csv(result.missing_media, out_path=migration["missing_media_report"])
            self.log_message(f"Missing media report generated with {len(result.missing_media)} entries: {path}")
        return result


def write_migration_file(records: List[MigrationRecord], path: str = MIGRATION_FILE_PATH) -> str:
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump([r.to_dict() for r in records], f, indent=2, ensure_ascii=False)
    return path


def read_migration_file(path: str = MIGRATION_FILE_PATH) -> Tuple[Any, str]:
    """Return the parsed artifact and its raw text.

    Raises :class:`MigrationFileError` when the file is missing, unreadable
    or not valid JSON.
    """
    if not os.path.exists(path):
        raise MigrationFileError(
            "Migration file not found",
            {"message": "The migration file does not exist", "path": path, "cwd": os.getcwd()},
        )
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
    except OSError as e:
        raise MigrationFileError(
            "Failed to read migration file", {"path": path, "error": str(e)}
        ) from e
    try:
        return json.loads(raw), raw
    except json.JSONDecodeError as e:
        raise MigrationFileError(
            "Invalid JSON in migration file", {"path": path, "error": str(e)}
        ) from e


def get_migration_file_preview(content: str, lines: int = 20) -> str:
    return "\n".join(content.split("\n")[:lines])
