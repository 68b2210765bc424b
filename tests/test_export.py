"""
Tests for the Word document export.
"""
from ebook_kilat.export import (
    UTF8_BOM,
    build_word_document,
    clean_markdown_for_export,
    export_filename,
    markdown_to_html,
)
from ebook_kilat.models import Chapter, ChapterStatus, Ebook

MARKER = "> **[IMAGE PROMPT]:** A farmer in a rooftop garden"


def test_leading_heading_removed():
    assert clean_markdown_for_export("# Chapter 1\nBody text", {}) == "Body text"
    assert clean_markdown_for_export("**Chapter 1**\nBody text", {}) == "Body text"
    assert clean_markdown_for_export("Intro\n# Later heading", {}) == "Intro\n# Later heading"


def test_marker_replaced_by_registered_image():
    content = f"Para one.\n\n{MARKER}\n\nPara two."
    cleaned = clean_markdown_for_export(content, {MARKER: "data:image/png;base64,AAA"})

    assert "[IMAGE PROMPT]" not in cleaned
    assert '<img src="data:image/png;base64,AAA"' in cleaned


def test_marker_without_image_removed():
    cleaned = clean_markdown_for_export(f"Text\n{MARKER}\nMore", {})
    assert "IMAGE PROMPT" not in cleaned
    assert "Text" in cleaned and "More" in cleaned


def test_markdown_to_html():
    html = markdown_to_html("## Section\n\nSome **bold** text.")
    assert "<h2>Section</h2>" in html
    assert "<strong>bold</strong>" in html


def test_build_word_document():
    ebook = Ebook(
        title="Urban <Farming>",
        subtitle="Grow food",
        outline=[
            Chapter(id="a", title="Soil", status=ChapterStatus.COMPLETED, content="# Soil\nRich soil."),
            Chapter(id="b", title="Water"),
        ],
    )
    document = build_word_document(ebook)

    assert document.startswith(UTF8_BOM)
    html = document[len(UTF8_BOM):].decode("utf-8")
    assert "xmlns:w='urn:schemas-microsoft-com:office:word'" in html
    assert '<div class="main-title">Urban &lt;Farming&gt;</div>' in html
    assert "<h1>Soil</h1>" in html
    assert "<h1>Water</h1>" not in html
    assert html.count("<h1>") == 1
    assert html.endswith("</body></html>")


def test_export_filename():
    assert export_filename("Buku Saya: Edisi 2!") == "buku_saya__edisi_2_.doc"
    assert export_filename("") == "ebook.doc"
