"""
Illustration support.

Chapters embed image prompts as ``> **[IMAGE PROMPT]:** description`` lines.
The full marker line is the key into the project's image registry so an
illustration is generated at most once per prompt.
"""
import logging
import re
from typing import Any, List, Tuple

from ..models import ChapterStatus, Ebook

logger = logging.getLogger(__name__)

IMAGE_PROMPT_PATTERN = re.compile(r"^>\s*\*\*\[IMAGE PROMPT\]:\*\*(.*?)$", re.MULTILINE | re.IGNORECASE)


def find_image_prompts(markdown: str) -> List[str]:
    """Marker lines in order of appearance, without duplicates."""
    seen = []
    for match in IMAGE_PROMPT_PATTERN.finditer(markdown or ""):
        key = match.group(0).strip()
        if key not in seen:
            seen.append(key)
    return seen


def clean_image_prompt(marker: str) -> str:
    """Bare description from a marker line."""
    cleaned = re.sub(r"^>\s*", "", marker)
    cleaned = cleaned.replace("**", "")
    cleaned = re.sub(r"\[IMAGE PROMPT\]:", "", cleaned, flags=re.IGNORECASE)
    cleaned = cleaned.strip()
    if not cleaned:
        raise ValueError("Empty image prompt")
    return cleaned


class IllustrationService:
    """Fills the image registry for every completed chapter."""

    def __init__(self, client: Any):
        """
        Args:
            client: Object exposing generate_illustration(prompt, api_key) -> data URI
        """
        self.client = client

    def illustrate(self, ebook: Ebook, api_key: str) -> Tuple[Ebook, List[str]]:
        """
        Generate the missing illustrations of a project.

        Returns:
            (ebook with the registry extended, marker lines that failed)
        """
        images = dict(ebook.images)
        failed: List[str] = []
        for chapter in ebook.outline:
            if chapter.status != ChapterStatus.COMPLETED:
                continue
            for marker in find_image_prompts(chapter.content or ""):
                if marker in images:
                    continue
                try:
                    images[marker] = self.client.generate_illustration(clean_image_prompt(marker), api_key)
                    logger.info(f"Illustration generated for chapter '{chapter.title}'")
                except Exception as e:
                    logger.warning(f"Auto image generation failed for '{chapter.title}': {e}")
                    failed.append(marker)
        return ebook.model_copy(update={"images": images}), failed
