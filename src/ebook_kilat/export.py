"""
Word document export.

The document is Word-compatible HTML (Office namespaces, print CSS)
prefixed with a UTF-8 BOM, served as application/msword. Chapters are
converted from Markdown with the markdown library; image prompt markers are
swapped for the generated illustrations.
"""
import html
import logging
import re
from typing import Dict

import markdown

from .generation.images import IMAGE_PROMPT_PATTERN
from .models import Ebook

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"
DOC_MIMETYPE = "application/msword"

_LEADING_HEADING = re.compile(r"^#\s+.*(\r\n|\r|\n)")
_LEADING_BOLD_TITLE = re.compile(r"^\*\*.*\*\*(\r\n|\r|\n)")

CSS_STYLES = """
<style>
  @page { size: 21cm 29.7cm; margin: 2.5cm 2cm; }
  body { font-family: 'Georgia', serif; font-size: 12pt; line-height: 1.6; color: #1e293b; }
  h1 { page-break-before: always; font-size: 24pt; color: #312e81; text-align: center; margin-bottom: 24pt; }
  h2 { font-size: 18pt; color: #4338ca; margin-top: 18pt; }
  h3 { font-size: 14pt; color: #1e293b; margin-top: 14pt; }
  p { text-align: justify; margin-bottom: 12pt; }
  blockquote { border-left: 4px solid #6366f1; background-color: #f5f7ff; padding: 12px 16px; font-style: italic; color: #3730a3; }
  .title-page { text-align: center; margin-top: 200pt; page-break-after: always; }
  .main-title { font-size: 32pt; font-weight: bold; color: #312e81; }
  .sub-title { font-size: 16pt; color: #64748b; margin-top: 16pt; }
  .image-container { text-align: center; margin: 24px 0; }
</style>
"""

HEADER_TEMPLATE = (
    "<html xmlns:o='urn:schemas-microsoft-com:office:office' "
    "xmlns:w='urn:schemas-microsoft-com:office:word' "
    "xmlns='http://www.w3.org/TR/REC-html40'>\n"
    "<head>\n<meta charset='utf-8'>\n<title>{title}</title>\n{css}</head>\n<body>\n"
)
FOOTER = "</body></html>"


def clean_markdown_for_export(content: str, images: Dict[str, str]) -> str:
    """
    Prepare chapter Markdown for export.

    Drops a leading ``# Title`` or ``**Title**`` line (the chapter heading is
    rendered separately) and replaces each image prompt marker with the
    registered illustration, or removes it when none was generated.
    """
    clean = content or ""
    clean = _LEADING_HEADING.sub("", clean, count=1)
    clean = _LEADING_BOLD_TITLE.sub("", clean, count=1)

    def _inject(match: re.Match) -> str:
        data_uri = images.get(match.group(0).strip())
        if not data_uri:
            return ""
        return (
            '\n<div class="image-container">'
            f'<img src="{data_uri}" width="500" alt="Illustration" />'
            "</div>\n"
        )

    return IMAGE_PROMPT_PATTERN.sub(_inject, clean)


def markdown_to_html(text: str) -> str:
    return markdown.markdown(text, extensions=["extra", "sane_lists"])


def build_word_document(ebook: Ebook) -> bytes:
    """
    Assemble the whole book as a Word-compatible document.

    Args:
        ebook: Project with its chapters and image registry

    Returns:
        bytes: UTF-8 BOM followed by the HTML document
    """
    title = html.escape(ebook.title or "Untitled")
    parts = [
        HEADER_TEMPLATE.format(title=title, css=CSS_STYLES),
        '<div class="title-page">\n'
        f'<div class="main-title">{title}</div>\n'
        f'<div class="sub-title">{html.escape(ebook.subtitle or "")}</div>\n'
        "</div>\n",
    ]

    exported = 0
    for chapter in ebook.outline:
        if not chapter.content:
            continue
        body = markdown_to_html(clean_markdown_for_export(chapter.content, ebook.images))
        parts.append(f"<h1>{html.escape(chapter.title)}</h1>\n{body}\n")
        exported += 1

    parts.append(FOOTER)
    logger.info(f"Exported '{ebook.title}' with {exported} chapters")
    return UTF8_BOM + "".join(parts).encode("utf-8")


def export_filename(title: str) -> str:
    """File name for the download, e.g. 'My Book!' -> 'my_book_.doc'."""
    return re.sub(r"[^a-z0-9]", "_", title or "ebook", flags=re.IGNORECASE).lower() + ".doc"
