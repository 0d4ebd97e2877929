import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import json

import pytest
pytest.importorskip("bs4")

from wp2sanity.migrators import sanity_documents
from wp2sanity.migrators.sanity_documents import (
    from_data,
    get_media_summary,
    get_missing_media_urls,
    get_word_count,
    has_media,
    to_sanity_page,
    to_sanity_post,
    transform_post,
)
from wp2sanity.models import SanityPageContent, SanityPostContent, WordPressPost


def make_post(**overrides):
    data = {
        "ID": 7,
        "post_title": "Hello World",
        "post_content": "<h2>Intro</h2><p>First paragraph.</p><img src=\"https://ex.com/a.jpg\">",
        "post_excerpt": "",
        "post_date": "2024-01-02 10:00:00",
        "post_name": "hello-world",
        "post_type": "post",
    }
    data.update(overrides)
    return WordPressPost(**data)


def test_post_document_fields(tmp_path):
    doc = to_sanity_post(make_post(), str(tmp_path))
    data = doc.to_dict()
    assert data["_type"] == "post"
    assert data["title"] == "Hello World"
    assert data["slug"] == {"_type": "slug", "current": "hello-world", "source": "title"}
    assert data["coverImage"] == {"_type": "image", "alt": "Cover image for Hello World"}
    assert data["date"] == "2024-01-02 10:00:00"
    assert data["body"] == "Intro\nFirst paragraph."
    assert data["excerpt"] == "Intro\nFirst paragraph."
    assert [b["_type"] for b in data["content"]] == ["block", "block", "image"]
    assert data["media"][0]["url"] == "https://ex.com/a.jpg"
    json.dumps(data)


def test_slug_is_derived_from_title_when_missing(tmp_path):
    doc = to_sanity_post(make_post(post_name="", post_title="Olá, Mundo!"), str(tmp_path))
    assert doc.slug.current == "olá-mundo"


def test_source_excerpt_is_kept_and_empty_body_has_no_excerpt(tmp_path):
    doc = to_sanity_post(make_post(post_excerpt="Custom"), str(tmp_path))
    assert doc.excerpt == "Custom"
    empty = to_sanity_post(make_post(post_content=""), str(tmp_path))
    assert empty.excerpt is None
    assert "excerpt" not in empty.to_dict()
    assert empty.content == []


def test_conversion_failure_is_reported_and_replaced(monkeypatch, tmp_path):
    def boom(*args, **kwargs):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(sanity_documents, "transform", boom)
    report_dir = tmp_path / "reports"
    doc = to_sanity_post(make_post(post_content="<p>Body text</p>"), str(tmp_path), report_dir=str(report_dir))

    assert len(doc.content) == 1
    assert doc.content[0].text == "Body text"
    assert doc.media == []
    with open(report_dir / "errors.jsonl", encoding="utf-8") as f:
        entry = json.loads(f.readline())
    assert entry["code"] == "CONTENT_CONVERSION"
    assert entry["id"] == 7
    assert entry["error"] == "unexpected"


def test_page_document_is_lightweight(tmp_path):
    page = make_post(post_type="page", post_name="about", post_title="About", post_excerpt="Who we are")
    doc = to_sanity_page(page, str(tmp_path))
    data = doc.to_dict()
    assert data["_type"] == "page"
    assert data["name"] == "About"
    assert data["heading"] == "About"
    assert data["subheading"] == "Who we are"
    assert data["slug"] == {"_type": "slug", "current": "about", "source": "name"}
    assert "content" not in data
    assert len(data["media"]) == 1

    no_excerpt = to_sanity_page(make_post(post_type="page"), str(tmp_path))
    assert "subheading" not in no_excerpt.to_dict()


def test_transform_post_dispatches_on_type(tmp_path):
    page = make_post(post_type="page")
    assert isinstance(transform_post(make_post(), str(tmp_path)), SanityPostContent)
    assert isinstance(transform_post(page, str(tmp_path)), SanityPageContent)
    assert isinstance(transform_post(page, str(tmp_path), treat_as_post=True), SanityPostContent)


def test_media_helpers(tmp_path):
    (tmp_path / "found.jpg").write_bytes(b"x")
    html = '<img src="https://ex.com/found.jpg"><img src="https://ex.com/lost.jpg"><audio src="https://ex.com/a.mp3"></audio>'
    doc = to_sanity_post(make_post(post_content=html), str(tmp_path))
    assert has_media(doc)
    assert get_media_summary(doc) == {
        "total": 3,
        "byType": {"image": 2, "audio": 1},
        "found": 1,
        "missing": 2,
    }
    assert get_missing_media_urls(doc) == ["https://ex.com/lost.jpg", "https://ex.com/a.mp3"]


def test_word_count(tmp_path):
    doc = to_sanity_post(make_post(), str(tmp_path))
    assert get_word_count(doc) == 3
    assert get_word_count(to_sanity_page(make_post(post_type="page"), str(tmp_path))) == 0
    assert not has_media(from_data(title="T", slug="t"))


def test_from_data():
    doc = from_data(title="Title", slug="", body="b")
    assert doc.slug.current == "title"
    assert doc.cover_image.alt == "Cover image for Title"
    assert doc.media == []
