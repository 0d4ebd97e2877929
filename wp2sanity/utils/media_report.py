"""
CSV listing of media referenced by WordPress bodies but absent locally.

The file is handed to whoever owns the uploads backup so that missing files
can be recovered before the import is run again.
"""

from __future__ import annotations

import csv
import os
from typing import Dict, Iterable


def generate_missing_media_csv(
    missing: Iterable[Dict[str, str]], *, out_path: str = "reports/missing_media.csv"
) -> str:
    """Write the missing-media list to ``out_path``.

    Parameters
    ----------
    missing:
        Iterable of dictionaries with ``url``, ``foundIn`` and ``type`` keys.
    out_path:
        Location of the CSV file to be written.  The parent directory is
        created automatically.

    Returns
    -------
    str
        The path of the generated CSV file.
    """
    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["URL", "FoundIn", "Type"])
        for item in missing:
            writer.writerow([item.get("url", ""), item.get("foundIn", ""), item.get("type", "")])
    return out_path
