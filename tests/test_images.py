"""
Tests for image prompt extraction and the illustration registry.
"""
import pytest

from conftest import FakeGenerationClient
from ebook_kilat.generation.images import IllustrationService, clean_image_prompt, find_image_prompts
from ebook_kilat.models import Chapter, ChapterStatus, Ebook

FIELD = "> **[IMAGE PROMPT]:** A green field"
CITY = ">**[IMAGE PROMPT]:** A rooftop garden at dusk"


def test_find_image_prompts_in_order_without_duplicates():
    text = f"Intro\n{FIELD}\nMiddle\n{CITY}\n{FIELD}\n"
    assert find_image_prompts(text) == [FIELD, CITY]
    assert find_image_prompts("") == []


def test_clean_image_prompt():
    assert clean_image_prompt(FIELD) == "A green field"
    with pytest.raises(ValueError):
        clean_image_prompt("> **[IMAGE PROMPT]:**   ")


def test_illustrate_fills_missing_entries_only():
    client = FakeGenerationClient()
    ebook = Ebook(
        outline=[
            Chapter(id="a", title="A", status=ChapterStatus.COMPLETED, content=f"x\n{FIELD}\n{CITY}"),
            Chapter(id="b", title="B", status=ChapterStatus.PENDING),
        ],
        images={FIELD: "data:image/png;base64,OLD"},
    )

    updated, failed = IllustrationService(client).illustrate(ebook, "user-key")

    assert failed == []
    assert client.image_calls == [("A rooftop garden at dusk", "user-key")]
    assert updated.images[FIELD] == "data:image/png;base64,OLD"
    assert updated.images[CITY] == "data:image/png;base64,AAAA"


def test_failed_prompt_is_skipped():
    client = FakeGenerationClient()
    client.error = RuntimeError("image model down")
    ebook = Ebook(outline=[Chapter(id="a", title="A", status=ChapterStatus.COMPLETED, content=FIELD)])

    updated, failed = IllustrationService(client).illustrate(ebook, "k")

    assert failed == [FIELD]
    assert updated.images == {}
