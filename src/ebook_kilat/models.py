"""
Data model for ebook projects.

Pydantic models shared by the generation workflow, the storage layer and the
web API. A project row in the database keeps the outline and the image
registry inside a single JSON column (``content_json``).
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, model_validator


class SectionType(str, Enum):
    """Where a chapter sits in the book."""
    FRONT = "front"
    BODY = "body"
    BACK = "back"


class ChapterStatus(str, Enum):
    """Generation status of a single chapter."""
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    ERROR = "error"


SUPPORTED_LANGUAGES = ("id", "en-US", "en-UK", "ja", "ko", "zh", "es", "fr", "de", "ar")


def utc_now() -> str:
    """ISO-8601 timestamp used for created_at/updated_at."""
    return datetime.now(timezone.utc).isoformat()


class Chapter(BaseModel):
    """
    One outline entry.

    Fields:
        id: Stable id inside the outline (e.g. "sec-3")
        title: Chapter heading
        section_type: front, body or back matter
        subpoints: Ordered discussion points from the outline
        status: Generation status
        content: Generated (or edited) Markdown
    """
    id: str
    title: str
    section_type: SectionType = SectionType.BODY
    subpoints: List[str] = Field(default_factory=list)
    status: ChapterStatus = ChapterStatus.PENDING
    content: Optional[str] = None

    @model_validator(mode="after")
    def _completed_has_content(self) -> "Chapter":
        if self.status == ChapterStatus.COMPLETED and not (self.content or "").strip():
            raise ValueError(f"Chapter '{self.id}' cannot be completed without content")
        return self

    def for_storage(self) -> "Chapter":
        """Return a copy safe to persist; 'generating' is never stored."""
        if self.status != ChapterStatus.GENERATING:
            return self
        if (self.content or "").strip():
            return self.model_copy(update={"status": ChapterStatus.COMPLETED})
        return self.model_copy(update={"status": ChapterStatus.PENDING})


class EbookConfig(BaseModel):
    """User input for outline generation."""
    topic: str = Field(min_length=1)
    chapter_count: int = Field(default=5, ge=1, le=50)
    target_audience: str = "General"
    tone: str = "Formal Professional"
    goal: str = ""
    language: str = "id"

    @model_validator(mode="after")
    def _known_language(self) -> "EbookConfig":
        if self.language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {self.language}")
        return self


class Ebook(BaseModel):
    """An ebook project as the workspace sees it."""
    id: Optional[str] = None
    title: str = ""
    subtitle: str = ""
    outline: List[Chapter] = Field(default_factory=list)
    # Map: image prompt marker line -> data URI
    images: Dict[str, str] = Field(default_factory=dict)
    last_updated: Optional[str] = None

    def find_chapter(self, chapter_id: str) -> int:
        """Index of a chapter in the outline, or -1."""
        for index, chapter in enumerate(self.outline):
            if chapter.id == chapter_id:
                return index
        return -1

    def replace_chapter(self, index: int, chapter: Chapter) -> "Ebook":
        outline = list(self.outline)
        outline[index] = chapter
        return self.model_copy(update={"outline": outline})

    @property
    def completed_count(self) -> int:
        return sum(1 for c in self.outline if c.status == ChapterStatus.COMPLETED)

    @property
    def is_complete(self) -> bool:
        return bool(self.outline) and self.completed_count == len(self.outline)


class ProjectRow(BaseModel):
    """A row of the ``projects`` table (remote or local)."""
    id: str
    user_id: str
    title: str = ""
    description: str = ""
    content_json: Dict[str, Any] = Field(default_factory=dict)
    status: str = "draft"
    created_at: str = Field(default_factory=utc_now)
    updated_at: str = Field(default_factory=utc_now)
    is_local: bool = False
    # Set when a local row shadows a remote record whose write failed
    remote_id: Optional[str] = None

    @staticmethod
    def payload_from_ebook(user_id: str, ebook: Ebook, status: str = "active",
                           timestamp: Optional[str] = None) -> Dict[str, Any]:
        """Column values for an insert/update, without the id."""
        timestamp = timestamp or utc_now()
        return {
            "user_id": user_id,
            "title": ebook.title or "Untitled Project",
            "description": ebook.subtitle or "",
            "content_json": {
                "outline": [c.for_storage().model_dump(mode="json") for c in ebook.outline],
                "images": dict(ebook.images),
            },
            "status": status,
            "updated_at": timestamp,
        }

    def to_ebook(self) -> Ebook:
        content = self.content_json or {}
        return Ebook(
            id=self.id,
            title=self.title or "Untitled",
            subtitle=self.description or "",
            outline=[Chapter.model_validate(c).for_storage() for c in content.get("outline", [])],
            images=dict(content.get("images") or {}),
            last_updated=self.updated_at,
        )
