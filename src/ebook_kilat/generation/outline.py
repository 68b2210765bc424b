"""
Outline normalisation.

The outline call answers with JSON text. It is cleaned, then validated
against a strict schema; the result is either a ParsedOutline or an
OutlineParseError, never a best-effort guess.
"""
import json
import logging
import re
from dataclasses import dataclass, field
from typing import List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..models import Chapter, ChapterStatus, SectionType

logger = logging.getLogger(__name__)

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


class OutlineSection(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = Field(min_length=1)
    type: SectionType
    points: List[str]


class OutlinePayload(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    title: str = ""
    subtitle: str = ""
    sections: List[OutlineSection] = Field(min_length=1)


@dataclass(frozen=True)
class ParsedOutline:
    title: str
    subtitle: str
    chapters: List[Chapter] = field(default_factory=list)


@dataclass(frozen=True)
class OutlineParseError:
    reason: str
    raw: str = ""


OutlineResult = Union[ParsedOutline, OutlineParseError]


def clean_json(text: str) -> str:
    """Strip code fences and any prose around the outermost JSON object."""
    if not text:
        return "{}"
    cleaned = _FENCE.sub("", text)
    first = cleaned.find("{")
    last = cleaned.rfind("}")
    if first != -1 and last != -1:
        cleaned = cleaned[first:last + 1]
    return cleaned.strip()


def parse_outline(text: str, fallback_title: str = "") -> OutlineResult:
    """
    Parse the outline response.

    Args:
        text: Raw model output
        fallback_title: Used when the model left the book title blank

    Returns:
        ParsedOutline with pending chapters (ids sec-1..n), or OutlineParseError
    """
    cleaned = clean_json(text)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse outline JSON: {e}")
        return OutlineParseError(reason="Received invalid JSON format from model.", raw=cleaned)

    try:
        payload = OutlinePayload.model_validate(data)
    except ValidationError as e:
        logger.error(f"Outline did not match the expected structure: {e}")
        return OutlineParseError(reason=f"Invalid outline structure: {e.error_count()} error(s)",
                                 raw=cleaned)

    chapters = [
        Chapter(
            id=f"sec-{index}",
            title=section.title,
            section_type=section.type,
            subpoints=[p for p in section.points if p],
            status=ChapterStatus.PENDING,
        )
        for index, section in enumerate(payload.sections, start=1)
    ]
    return ParsedOutline(
        title=payload.title or fallback_title,
        subtitle=payload.subtitle,
        chapters=chapters,
    )
