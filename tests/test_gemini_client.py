"""
Tests for the Gemini REST client (no network: fake requests session).
"""
import pytest

from conftest import FakeResponse, FakeSession
from ebook_kilat.errors import GenerationAPIError, MalformedResponseError, MissingCredentialError
from ebook_kilat.gemini_client import GeminiClient


def _text_response(text):
    return FakeResponse(200, {"candidates": [{"content": {"parts": [{"text": text}]}}]})


def test_missing_key_rejected():
    with pytest.raises(MissingCredentialError):
        GeminiClient("")


def test_generate_content_json_mode():
    session = FakeSession([_text_response('{"title": "X"}')])
    client = GeminiClient("k", model="gemini-test", api_base="https://api.test/v1", session=session)

    text = client.generate_content("prompt", system_instruction="persona", response_schema={"type": "OBJECT"})

    assert text == '{"title": "X"}'
    method, url, kwargs = session.requests[0]
    assert url == "https://api.test/v1/models/gemini-test:generateContent"
    assert kwargs["headers"]["x-goog-api-key"] == "k"
    payload = kwargs["json"]
    assert payload["generationConfig"]["responseMimeType"] == "application/json"
    assert payload["systemInstruction"]["parts"][0]["text"] == "persona"


def test_vendor_error_carries_status():
    body = {"error": {"code": 429, "message": "Resource exhausted", "status": "RESOURCE_EXHAUSTED"}}
    client = GeminiClient("k", session=FakeSession([FakeResponse(429, body, reason="Too Many Requests")]))

    with pytest.raises(GenerationAPIError) as exc_info:
        client.generate_content("prompt")
    assert exc_info.value.status_code == 429
    assert exc_info.value.status == "RESOURCE_EXHAUSTED"
    assert str(exc_info.value) == "Resource exhausted"


def test_unexpected_shape_is_malformed():
    client = GeminiClient("k", session=FakeSession([FakeResponse(200, {"candidates": []})]))
    with pytest.raises(MalformedResponseError):
        client.generate_content("prompt")


def test_generate_image_returns_data_uri():
    response = FakeResponse(200, {"candidates": [{"content": {"parts": [
        {"text": "Here is your image"},
        {"inlineData": {"mimeType": "image/jpeg", "data": "QUJD"}},
    ]}}]})
    client = GeminiClient("k", session=FakeSession([response]))

    assert client.generate_image("a cat") == "data:image/jpeg;base64,QUJD"


def test_generate_image_without_image_part():
    client = GeminiClient("k", session=FakeSession([_text_response("sorry")]))
    with pytest.raises(MalformedResponseError):
        client.generate_image("a cat")


def test_validate_key():
    client = GeminiClient("k", session=FakeSession([FakeResponse(200, {"models": []}), FakeResponse(400, {})]))
    assert client.validate_key() is True
    assert client.validate_key() is False
