import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import csv
import json
import threading

import pytest
pytest.importorskip("bs4")

from wp2sanity.migration_tool import (
    SanityMigrationTool,
    get_migration_file_preview,
    read_migration_file,
)
from wp2sanity.models import WordPressPost
from wp2sanity.utils.errors import MigrationConfigError, MigrationFileError


@pytest.fixture
def tool(tmp_path):
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    (uploads / "here.jpg").write_bytes(b"x")
    config = {
        "migration": {
            "media_root": str(uploads),
            "output_file": str(tmp_path / "input" / "sanity-migration.json"),
            "missing_media_report": str(tmp_path / "reports" / "missing_media.csv"),
            "report_dir": str(tmp_path / "reports" / "migration"),
            "workers": 2,
        }
    }
    return SanityMigrationTool(config)


def records():
    return [
        WordPressPost(
            ID=1, post_title="Hello", post_name="hello", post_type="post",
            post_content='<p>Hi</p><img src="https://ex.com/here.jpg"><img src="https://ex.com/gone.jpg">',
        ),
        WordPressPost(ID=2, post_title="Draft", post_status="draft", post_content="<p>x</p>"),
        WordPressPost(ID=3, post_title="About", post_name="about", post_type="page", post_content="<p>About us</p>"),
        WordPressPost(ID=4, post_title="Team", post_type="page", post_parent=3, post_content=""),
        WordPressPost(ID=5, post_title="Second", post_name="second", post_content="<h2>Two</h2>"),
    ]


def test_defaults_are_filled():
    tool = SanityMigrationTool({})
    migration = tool.config["migration"]
    for key in ("media_root", "output_file", "dry_run", "limit", "workers", "treat_pages_as_posts", "missing_media_report"):
        assert key in migration
    assert migration["dry_run"] is False


def test_invalid_config_file_raises(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(MigrationConfigError):
        SanityMigrationTool(config_file=str(path))


def test_prepare_migration_writes_artifact_in_input_order(tool, tmp_path):
    result = tool.prepare_migration(records())

    assert [r.original.id for r in result.records] == [1, 3, 4, 5]
    assert (result.post_count, result.page_count) == (2, 2)
    assert result.media_stats.total_images == 2
    assert result.media_stats.total_found == 1
    assert result.missing_media == [
        {"url": "https://ex.com/gone.jpg", "foundIn": "post: Hello", "type": "image"}
    ]

    data, raw = read_migration_file(result.output_path)
    assert len(data) == 4
    assert data[0]["original"]["ID"] == 1
    assert data[0]["transformed"]["_type"] == "post"
    assert data[1]["transformed"]["_type"] == "page"
    assert data[3]["transformed"]["slug"]["current"] == "second"

    with open(tmp_path / "reports" / "missing_media.csv", encoding="utf-8", newline="") as f:
        rows = list(csv.reader(f))
    assert rows == [["URL", "FoundIn", "Type"], ["https://ex.com/gone.jpg", "post: Hello", "image"]]

    with open(tmp_path / "reports" / "migration" / "success.jsonl", encoding="utf-8") as f:
        codes = [json.loads(line)["code"] for line in f]
    assert codes == ["POST_TRANSFORMED", "PAGE_TRANSFORMED", "PAGE_TRANSFORMED", "POST_TRANSFORMED"]
    assert os.path.exists(tmp_path / "reports" / "migration" / "migration.log")


def test_limit_and_treat_pages_as_posts(tool):
    tool.config["migration"]["limit"] = 2
    tool.config["migration"]["treat_pages_as_posts"] = True
    result = tool.prepare_migration(records())
    assert [r.original.id for r in result.records] == [1, 3]
    assert result.page_count == 0


def test_dry_run_writes_no_artifact(tool, tmp_path):
    tool.config["migration"]["dry_run"] = True
    result = tool.prepare_migration(records())
    assert result.output_path is None
    assert not os.path.exists(tmp_path / "input" / "sanity-migration.json")
    assert len(result.records) == 4


def test_cancelled_run_skips_records_and_writes_nothing(tool, tmp_path):
    event = threading.Event()
    event.set()
    result = tool.prepare_migration(records(), cancel_event=event)
    assert result.cancelled is True
    assert result.records == []
    assert not os.path.exists(tmp_path / "input" / "sanity-migration.json")
    with open(tmp_path / "reports" / "migration" / "errors.jsonl", encoding="utf-8") as f:
        assert {json.loads(line)["code"] for line in f} == {"CANCELLED"}


def test_extract_posts_reads_exports(tool, tmp_path):
    path = tmp_path / "posts.csv"
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["ID", "post_title", "post_content", "post_type"])
        writer.writerow(["9", "From CSV", "<p>x</p>", "post"])
    posts = tool.extract_posts(csv_path=str(path), xml_path=str(tmp_path / "missing.xml"))
    assert [p.post_title for p in posts] == ["From CSV"]


def test_read_migration_file_errors(tmp_path):
    with pytest.raises(MigrationFileError) as info:
        read_migration_file(str(tmp_path / "missing.json"))
    assert info.value.message == "Migration file not found"

    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2", encoding="utf-8")
    with pytest.raises(MigrationFileError) as info:
        read_migration_file(str(bad))
    assert info.value.message == "Invalid JSON in migration file"
    assert info.value.details["path"] == str(bad)


def test_migration_file_preview():
    text = "\n".join(str(i) for i in range(50))
    assert get_migration_file_preview(text).split("\n") == [str(i) for i in range(20)]
    assert get_migration_file_preview(text, lines=3) == "0\n1\n2"
