import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import json

from wp2sanity.models import WordPressPost
from wp2sanity.utils.errors import ERRORS, report_error, report_ok
from wp2sanity.utils.logs import log_message
from wp2sanity.utils.media_report import generate_missing_media_csv


def read_jsonl(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f]


def test_report_error_writes_entry_for_model(tmp_path, capsys):
    post = WordPressPost(ID=4, post_title="Título", post_name="titulo")
    entry = report_error("CONTENT_CONVERSION", post, ValueError("bad html"), report_dir=str(tmp_path))

    assert entry == {
        "code": "CONTENT_CONVERSION",
        "message": ERRORS["CONTENT_CONVERSION"],
        "id": 4,
        "slug": "titulo",
        "title": "Título",
        "error": "bad html",
    }
    assert read_jsonl(tmp_path / "errors.jsonl") == [entry]
    assert "[ERROR]" in capsys.readouterr().out


def test_report_ok_accepts_dicts_and_unknown_codes(tmp_path):
    entry = report_ok("CUSTOM", {"ID": 1, "post_name": "x"}, {"media": 2}, report_dir=str(tmp_path))
    assert entry["message"] == "CUSTOM"
    assert entry["media"] == 2
    assert entry["title"] is None
    report_ok("POST_TRANSFORMED", {"ID": 2}, report_dir=str(tmp_path))
    assert [e["id"] for e in read_jsonl(tmp_path / "success.jsonl")] == [1, 2]


def test_log_message_appends_to_file(tmp_path, capsys):
    log_file = tmp_path / "logs" / "migration.log"
    log_message("first", log_file=str(log_file))
    log_message("second", "WARNING", log_file=str(log_file))
    assert log_file.read_text(encoding="utf-8") == "INFO: first\nWARNING: second\n"
    assert "[WARNING] second" in capsys.readouterr().out


def test_missing_media_csv(tmp_path):
    out = generate_missing_media_csv(
        [{"url": "https://ex.com/a.jpg", "foundIn": "post: A", "type": "image"}],
        out_path=str(tmp_path / "r" / "missing.csv"),
    )
    with open(out, encoding="utf-8") as f:
        assert f.read().splitlines() == ["URL,FoundIn,Type", "https://ex.com/a.jpg,post: A,image"]
