import os
import sys

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import pytest
pytest.importorskip("bs4")

from wp2sanity.models import AudioBlock, ImageBlock, LinkMarkDef, Span, TextBlock, VideoBlock
from wp2sanity.parsers.block_content import html_to_block_content
from wp2sanity.parsers.render import block_content_to_html, render_block


def paragraph(*spans, **kwargs):
    return TextBlock(children=list(spans), **kwargs)


def test_spacing_round_trip_keeps_empty_paragraph():
    blocks = html_to_block_content("<p>First</p><p></p><p>Second</p>", {})
    lines = block_content_to_html(blocks).split("\n")
    assert lines == ["<p>First</p>", "<p></p>", "<p>Second</p>"]


def test_empty_and_missing_input():
    assert block_content_to_html([]) == ""
    assert block_content_to_html(None) == ""


def test_local_image_goes_through_media_route():
    block = ImageBlock(url="https://ex.com/test.jpg", local_path="input/uploads/test.jpg", alt="A test")
    html = block_content_to_html([block])
    assert html == (
        '<figure><img src="/api/serve-media?path=input%2Fuploads%2Ftest.jpg" alt="A test" '
        'style="max-width: 100%; height: auto;" /></figure>'
    )


def test_remote_image_uses_original_url():
    html = block_content_to_html([ImageBlock(url="https://ex.com/a.jpg?x=1&y=2")])
    assert 'src="https://ex.com/a.jpg?x=1&amp;y=2"' in html


def test_custom_media_prefix():
    block = ImageBlock(url="u", local_path="/srv/a b.jpg")
    html = block_content_to_html([block], media_url_prefix="/media?p=")
    assert 'src="/media?p=%2Fsrv%2Fa%20b.jpg"' in html


def test_marks_rewrap_in_fixed_order():
    link = LinkMarkDef(key="lnk", href="https://ex.com", open_in_new_tab=True)
    block = paragraph(
        Span(text="x", marks=["code", "strike-through", "lnk", "underline", "em", "strong"]),
        mark_defs=[link],
    )
    assert block_content_to_html([block]) == (
        '<p><a href="https://ex.com" target="_blank">'
        "<strong><em><u><s><code>x</code></s></u></em></strong></a></p>"
    )


def test_bold_and_italic_paragraph():
    block = paragraph(
        Span(text="This is "), Span(text="bold", marks=["strong"]),
        Span(text=" and "), Span(text="italic", marks=["em"]),
    )
    assert block_content_to_html([block]) == "<p>This is <strong>bold</strong> and <em>italic</em></p>"


def test_text_is_escaped():
    block = paragraph(Span(text="1 < 2 & <b>"))
    assert block_content_to_html([block]) == "<p>1 &lt; 2 &amp; &lt;b&gt;</p>"


def test_styles_and_list_items():
    blocks = [
        paragraph(Span(text="H"), style="h2"),
        paragraph(Span(text="Q"), style="blockquote"),
        paragraph(Span(text="B"), list_item="bullet", level=1),
        paragraph(Span(text="N"), list_item="number", level=1),
    ]
    assert block_content_to_html(blocks).split("\n") == [
        "<h2>H</h2>",
        "<blockquote>Q</blockquote>",
        "<ul><li>B</li></ul>",
        "<ol><li>N</li></ol>",
    ]


def test_audio_preview():
    block = AudioBlock(url="http://example.com/audio.mp3", title="Test Audio", show_controls=True)
    html = block_content_to_html([block])
    assert "<audio controls>" in html
    assert 'src="http://example.com/audio.mp3"' in html
    assert "<figcaption>Test Audio</figcaption>" in html
    assert "autoplay" not in html


def test_local_audio_uses_media_route():
    block = AudioBlock(url="http://ex.com/a.wav", local_path="input/uploads/2023/03/audio.wav", show_controls=True)
    html = block_content_to_html([block])
    assert "/api/serve-media?path=input%2Fuploads%2F2023%2F03%2Faudio.wav" in html


def test_video_previews():
    youtube = VideoBlock(video_type="youtube", url="https://www.youtube.com/embed/abc")
    plain = VideoBlock(video_type="url", url="https://ex.com/clip.mp4", title="Clip")
    lines = block_content_to_html([youtube, plain]).split("\n")
    assert lines[0].startswith('<figure><iframe src="https://www.youtube.com/embed/abc"')
    assert lines[1] == '<figure><video controls src="https://ex.com/clip.mp4"></video><figcaption>Clip</figcaption></figure>'


def test_accepts_raw_dictionaries():
    raw = [
        {"_type": "block", "style": "normal", "children": [{"_type": "span", "text": "Hi"}], "markDefs": []},
        {"_type": "image", "url": "https://ex.com/a.jpg", "alt": ""},
    ]
    lines = block_content_to_html(raw).split("\n")
    assert lines[0] == "<p>Hi</p>"
    assert lines[1].startswith('<figure><img src="https://ex.com/a.jpg"')


def test_unknown_block_raises_type_error():
    with pytest.raises(TypeError):
        render_block(object())
