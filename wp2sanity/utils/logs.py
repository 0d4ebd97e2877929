"""
Console and file logging used across the migration.

Messages are printed as ``[LEVEL] message``.  When ``log_file`` is given the
line is also appended to that file as ``LEVEL: message`` so a run can be
reviewed afterwards.
"""

from __future__ import annotations

import os
from typing import Optional


def log_message(message: str, level: str = "INFO", *, log_file: Optional[str] = None) -> None:
    print(f"[{level}] {message}")
    if log_file:
        os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
        with open(log_file, "a", encoding="utf-8") as f:
            f.write(f"{level}: {message}\n")
