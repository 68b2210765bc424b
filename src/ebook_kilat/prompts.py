"""
Prompt templates for outline and section generation.
"""
from typing import Any, Dict

from .models import Chapter, EbookConfig

LANGUAGE_NAMES = {
    "id": "Bahasa Indonesia (Indonesian)",
    "en-US": "English (United States)",
    "en-UK": "English (United Kingdom)",
    "ja": "Japanese (日本語)",
    "ko": "Korean (한국어)",
    "zh": "Chinese Simplified (简体中文)",
    "es": "Spanish (Español)",
    "fr": "French (Français)",
    "de": "German (Deutsch)",
    "ar": "Arabic (العربية)",
}

IMAGE_PROMPT_MARKER = "> **[IMAGE PROMPT]:**"


def language_name(code: str) -> str:
    return LANGUAGE_NAMES.get(code, LANGUAGE_NAMES["id"])


def system_persona(language: str) -> str:
    lang = language_name(language)
    return f"""You are "Pro Ebook Kilat AI", a world-class professional ebook writing assistant.
REQUIRED OUTPUT LANGUAGE: {lang}.

GLOBAL INSTRUCTIONS:
1. All content, titles, subtitles and explanations MUST be written in {lang}.
2. Use a professional, flowing style that follows the literary conventions of that language.
3. You MUST include visual illustration ideas.

VISUAL INSTRUCTIONS (IMAGE PROMPT):
In every chapter include an image prompt in exactly this format (the description may be in English for accuracy):
{IMAGE_PROMPT_MARKER} Detailed visual description relevant to the topic. Style: Minimalist/Photorealistic/Vector.

BOOK STRUCTURE:
- Front Matter
- Body Chapters
- Back Matter (Conclusion, Glossary, References)
"""


def outline_prompt(config: EbookConfig) -> str:
    lang = language_name(config.language)
    return f"""OUTPUT LANGUAGE: {lang}
BOOK TOPIC: {config.topic}
SPECIFICATION:
- Number of body chapters: {config.chapter_count}
- Target readers: {config.target_audience}
- Writing tone: {config.tone}
- Goal of the book: {config.goal}

TASK:
Create a COMPLETE book structure (outline) as valid JSON.
All titles and points must be in {lang}.

The JSON must contain "title", "subtitle" and "sections" (array of objects).
Each section object must have:
- "title": Section title (in {lang})
- "type": One of "front", "body" or "back"
- "points": Array of strings with in-depth discussion points.

REQUIRED STRUCTURE (use the terms of the target language):
1. [Type: front] Title Page
2. [Type: front] Preface/Foreword
3. [Type: front] Table of Contents
4. [Type: front] Introduction
5. [Type: front] About the Author
6. [Type: body] Chapter 1... through Chapter {config.chapter_count}
7. [Type: back] Conclusion/Closing
8. [Type: back] Glossary (required)
9. [Type: back] References/Bibliography
"""


def section_prompt(chapter: Chapter, ebook_title: str, prev_context: str, language: str) -> str:
    lang = language_name(language)
    points = ", ".join(chapter.subpoints)
    return f"""OUTPUT LANGUAGE: {lang}
BOOK TITLE: {ebook_title}
CURRENT SECTION: {chapter.title}
SECTION TYPE: {chapter.section_type.value.upper()}
MAIN POINTS: {points}

PREVIOUS CONTEXT: {prev_context}

WRITING INSTRUCTIONS:
1. Write the COMPLETE content of the section "{chapter.title}" in {lang}.
2. Use Markdown formatting (headings #, ##, bold, etc.).
3. Focus ONLY on the topic of this section.
4. Include at least one image prompt at a relevant position.
   Format: {IMAGE_PROMPT_MARKER} [Visual description]

LANGUAGE GUIDE ({lang}):
- Grammar, spelling and technical terms must follow the rules of {lang}.
- For non-Latin target languages (Japanese/Korean/Arabic/Chinese) use the native script, not romanisation.

Do NOT include meta-commentary. Write the book content directly.
"""


# Gemini structured-output schema for the outline call.
OUTLINE_RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "title": {"type": "STRING"},
        "subtitle": {"type": "STRING"},
        "sections": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "title": {"type": "STRING"},
                    "type": {"type": "STRING", "description": "One of: front, body, back"},
                    "points": {"type": "ARRAY", "items": {"type": "STRING"}},
                },
                "required": ["title", "type", "points"],
            },
        },
    },
    "required": ["title", "sections"],
}
