"""
Generation layer: outline normalisation, the chapter state machine and
illustrations.
"""
from .outline import OutlineParseError, ParsedOutline, clean_json, parse_outline
from .workflow import (
    ChapterGenerator,
    ChapterOutcome,
    build_table_of_contents,
    is_table_of_contents,
    transition,
    update_chapter_content,
)
from .images import IllustrationService, clean_image_prompt, find_image_prompts

__all__ = [
    "OutlineParseError", "ParsedOutline", "clean_json", "parse_outline",
    "ChapterGenerator", "ChapterOutcome", "build_table_of_contents",
    "is_table_of_contents", "transition", "update_chapter_content",
    "IllustrationService", "clean_image_prompt", "find_image_prompts",
]
