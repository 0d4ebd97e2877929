"""
Structured reporting of migration events and the driver's exception types.

Each event is appended to a JSON Lines file under ``reports/migration`` so
that the outcome of a batch can be reviewed or parsed after a run.

``report_error``
    Record a failure for a source record.  An optional exception is
    serialized into the entry.

``report_ok``
    Record a successful step for a source record.  Extra key/value pairs can
    be attached via ``extra``.

The ``ERRORS`` dictionary maps event codes to human readable messages.  Codes
not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel

ERRORS: Dict[str, str] = {
    "CONTENT_CONVERSION": "Failed to convert HTML to block content",
    "MEDIA_MISSING": "Referenced media not found under the media root",
    "RECORD_INVALID": "Source record could not be read",
    "CANCELLED": "Migration cancelled before the record was processed",
    "POST_TRANSFORMED": "Post transformed successfully",
    "PAGE_TRANSFORMED": "Page transformed successfully",
}

_REPORT_DIR = os.path.join("reports", "migration")
_ERROR_LOG = "errors.jsonl"
_OK_LOG = "success.jsonl"

Record = Union[BaseModel, Dict[str, Any]]


class MigrationError(Exception):
    """Base error for the migration driver, carrying structured details."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details or {}


class MigrationFileError(MigrationError):
    """The migration artifact is missing, unreadable or not valid JSON."""


class MigrationConfigError(MigrationError):
    """The configuration file could not be loaded."""


def _identify(record: Record) -> Dict[str, Any]:
    if isinstance(record, BaseModel):
        record = record.model_dump(by_alias=True)
    return {
        "id": record.get("ID"),
        "slug": record.get("post_name"),
        "title": record.get("post_title"),
    }


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def report_error(
    code: str,
    record: Record,
    exc: Optional[BaseException] = None,
    *,
    report_dir: Optional[str] = None,
) -> Dict[str, Any]:
    """Log an error event for ``record``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`ERRORS` its value will be used as the message.
    record:
        The WordPress record (model or dictionary) the error belongs to.  Only
        its ``ID``, ``post_name`` and ``post_title`` are referenced.
    exc:
        Optional exception that triggered the error.
    report_dir:
        Directory holding the JSON Lines files, ``reports/migration`` by
        default.

    Returns
    -------
    dict
        The entry that was written.
    """
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {"code": code, "message": message, **_identify(record)}
    if exc is not None:
        entry["error"] = str(exc)
    print(f"[ERROR] {message} - {entry.get('slug') or ''}")
    _write_jsonl(os.path.join(report_dir or _REPORT_DIR, _ERROR_LOG), entry)
    return entry


def report_ok(
    code: str,
    record: Record,
    extra: Optional[Dict[str, Any]] = None,
    *,
    report_dir: Optional[str] = None,
) -> Dict[str, Any]:
    """Log a successful event for ``record``; ``extra`` is merged into the entry."""
    message = ERRORS.get(code, code)
    entry: Dict[str, Any] = {"code": code, "message": message, **_identify(record)}
    if extra:
        entry.update(extra)
    print(f"[OK] {message} - {entry.get('slug') or ''}")
    _write_jsonl(os.path.join(report_dir or _REPORT_DIR, _OK_LOG), entry)
    return entry
