"""
Utility helpers used by the migration tool.

This subpackage exposes console/file logging, structured event reports and
the missing-media CSV generator.
"""

from .errors import ERRORS, MigrationError, MigrationFileError, report_error, report_ok
from .logs import log_message
from .media_report import generate_missing_media_csv

__all__ = [
    "ERRORS",
    "MigrationError",
    "MigrationFileError",
    "generate_missing_media_csv",
    "log_message",
    "report_error",
    "report_ok",
]
