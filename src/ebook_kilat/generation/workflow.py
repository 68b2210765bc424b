"""
Chapter generation workflow.

Each chapter moves through pending -> generating -> completed|error.
error -> generating (retry) and completed -> generating (regenerate) are
allowed; nothing else is. Table-of-contents chapters are synthesised locally
from the outline instead of calling the AI.
"""
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from ..errors import ChapterNotFoundError, InvalidTransitionError, MalformedResponseError
from ..models import Chapter, ChapterStatus, Ebook

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[ChapterStatus, FrozenSet[ChapterStatus]] = {
    ChapterStatus.PENDING: frozenset({ChapterStatus.GENERATING}),
    ChapterStatus.GENERATING: frozenset({ChapterStatus.COMPLETED, ChapterStatus.ERROR}),
    ChapterStatus.ERROR: frozenset({ChapterStatus.GENERATING}),
    ChapterStatus.COMPLETED: frozenset({ChapterStatus.GENERATING}),
}

TOC_PHRASES = (
    "daftar isi",
    "table of contents",
    "contents page",
    "mokuji",
    "目次",
    "목차",
    "目录",
    "índice",
    "indice",
    "table des matières",
    "sommaire",
    "inhaltsverzeichnis",
    "جدول المحتويات",
    "فهرس المحتويات",
)

TOC_INTROS = {
    "id": "Berikut adalah daftar isi lengkap untuk buku ini:",
    "ja": "本書の目次は以下のとおりです：",
    "ko": "이 책의 전체 목차는 다음과 같습니다:",
    "zh": "以下是本书的完整目录：",
    "es": "A continuación se muestra el índice completo de este libro:",
    "fr": "Voici la table des matières complète de ce livre :",
    "de": "Hier ist das vollständige Inhaltsverzeichnis dieses Buches:",
    "ar": "فيما يلي جدول المحتويات الكامل لهذا الكتاب:",
}
DEFAULT_TOC_INTRO = "Here is the complete table of contents for this book:"


def transition(chapter: Chapter, status: ChapterStatus, content: Optional[str] = None) -> Chapter:
    """
    Return a copy of ``chapter`` in ``status``.

    Raises:
        InvalidTransitionError: The move is not allowed from the current status
    """
    if status not in ALLOWED_TRANSITIONS[chapter.status]:
        raise InvalidTransitionError(
            f"Chapter '{chapter.id}' cannot move from {chapter.status.value} to {status.value}"
        )
    data = chapter.model_dump()
    data["status"] = status
    if content is not None:
        data["content"] = content
    # Re-validate so a completed chapter always carries content
    return Chapter.model_validate(data)


def is_table_of_contents(title: str) -> bool:
    lowered = (title or "").lower()
    return any(phrase in lowered for phrase in TOC_PHRASES)


def build_table_of_contents(outline: List[Chapter], exclude_id: str, language: str = "id") -> str:
    """Markdown list of every other chapter with its sub-points nested."""
    lines = [TOC_INTROS.get(language, DEFAULT_TOC_INTRO), ""]
    for chapter in outline:
        if chapter.id == exclude_id:
            continue
        lines.append(f"- **{chapter.title}**")
        for point in chapter.subpoints:
            lines.append(f"  - {point}")
    return "\n".join(lines) + "\n"


def previous_context(outline: List[Chapter], index: int) -> str:
    if index > 0:
        previous = outline[index - 1]
        if previous.content:
            return f'Previous section: "{previous.title}" has been completed.'
    return "Beginning of the book."


def update_chapter_content(ebook: Ebook, chapter_id: str, content: str) -> Ebook:
    """Apply a manual edit to a chapter's content."""
    index = ebook.find_chapter(chapter_id)
    if index == -1:
        raise ChapterNotFoundError(f"Chapter '{chapter_id}' not found")
    chapter = ebook.outline[index]
    if chapter.status == ChapterStatus.COMPLETED and not content.strip():
        raise InvalidTransitionError("A completed chapter cannot be emptied; regenerate it instead")
    return ebook.replace_chapter(index, chapter.model_copy(update={"content": content}))


@dataclass
class ChapterOutcome:
    """Result of one generation attempt; ``error`` is set when it failed."""
    ebook: Ebook
    chapter: Chapter
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ChapterGenerator:
    """Drives a single chapter through the generation state machine."""

    def __init__(self, client: Any, toc_delay: float = 0.8,
                 sleep: Callable[[float], Any] = time.sleep):
        """
        Args:
            client: Object exposing generate_chapter_content(chapter, ebook_title, prev_context, language)
            toc_delay: Pause before a synthesised table of contents is shown
            sleep: Sleep function (injectable for tests)
        """
        self.client = client
        self.toc_delay = toc_delay
        self.sleep = sleep

    def generate(self, ebook: Ebook, chapter_id: str, language: str = "id") -> ChapterOutcome:
        """
        Generate (or regenerate) one chapter.

        The returned outcome's chapter is always completed or error, never
        generating. Errors from the AI call are captured in the outcome
        instead of being raised so the caller keeps the updated state.
        """
        index = ebook.find_chapter(chapter_id)
        if index == -1:
            raise ChapterNotFoundError(f"Chapter '{chapter_id}' not found")

        chapter = transition(ebook.outline[index], ChapterStatus.GENERATING)
        ebook = ebook.replace_chapter(index, chapter)

        if is_table_of_contents(chapter.title):
            logger.info(f"Synthesising table of contents for '{chapter.title}'")
            self.sleep(self.toc_delay)
            content = build_table_of_contents(ebook.outline, chapter.id, language)
            done = transition(chapter, ChapterStatus.COMPLETED, content)
            return ChapterOutcome(ebook=ebook.replace_chapter(index, done), chapter=done)

        try:
            content = self.client.generate_chapter_content(
                chapter, ebook.title, previous_context(ebook.outline, index), language
            )
            if not (content or "").strip():
                raise MalformedResponseError("The model returned an empty chapter")
        except Exception as e:
            logger.error(f"Section generation failed ({chapter.title}): {e}")
            failed = transition(chapter, ChapterStatus.ERROR)
            return ChapterOutcome(ebook=ebook.replace_chapter(index, failed), chapter=failed, error=e)

        done = transition(chapter, ChapterStatus.COMPLETED, content)
        logger.info(f"Chapter '{chapter.title}' completed ({len(content)} chars)")
        return ChapterOutcome(ebook=ebook.replace_chapter(index, done), chapter=done)
