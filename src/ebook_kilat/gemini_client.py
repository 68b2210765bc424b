"""
Gemini API client used by the relay (text) and by the workspace (images).
Talks to the Gemini REST API directly through a requests session.
"""
import logging
from typing import Any, Dict, List, Optional

import requests

from .errors import GenerationAPIError, MalformedResponseError, MissingCredentialError

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"


class GeminiClient:
    """Client for Google Gemini text and image generation."""

    def __init__(self, api_key: Optional[str], model: str = "gemini-3-flash-preview",
                 image_model: str = "gemini-2.5-flash-image",
                 api_base: str = DEFAULT_API_BASE, timeout: int = 120,
                 session: Optional[requests.Session] = None):
        """Initialize the client for a specific Gemini model."""
        if not api_key:
            raise MissingCredentialError("A Google AI API key is required.")

        self.api_key = api_key
        self.model = model
        self.image_model = image_model
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _post(self, model: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.api_base}/models/{model}:generateContent"
        response = self.session.post(
            url, json=payload, headers={"x-goog-api-key": self.api_key}, timeout=self.timeout
        )
        if response.status_code >= 400:
            message, status = self._error_details(response)
            logger.error(f"API request failed for model {model}: {response.status_code} {message}")
            raise GenerationAPIError(message, status_code=response.status_code, status=status)
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(f"Invalid JSON from {model}: {e}")

    @staticmethod
    def _error_details(response: requests.Response):
        """Vendor error message and status string from an error response."""
        try:
            error = response.json().get("error", {})
            return error.get("message") or response.reason, error.get("status")
        except (ValueError, AttributeError):
            return response.text or response.reason, None

    @staticmethod
    def _parts(result: Dict[str, Any], model: str) -> List[Dict[str, Any]]:
        try:
            return result["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"Unexpected API response structure for model {model}")
            raise MalformedResponseError(f"Invalid response from {model}: {e}")

    def generate_content(self, prompt: str, system_instruction: Optional[str] = None,
                         response_schema: Optional[Dict[str, Any]] = None,
                         temperature: float = 0.7) -> str:
        """
        Generate text with the configured model.

        Args:
            prompt: User prompt
            system_instruction: Optional system persona
            response_schema: When given, the model answers in JSON matching it

        Returns:
            The generated text (JSON text when a schema was supplied)
        """
        generation_config: Dict[str, Any] = {"temperature": temperature}
        if response_schema:
            generation_config["responseMimeType"] = "application/json"
            generation_config["responseSchema"] = response_schema

        payload: Dict[str, Any] = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }
        if system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": system_instruction}]}

        result = self._post(self.model, payload)
        parts = self._parts(result, self.model)
        return "".join(part.get("text", "") for part in parts).strip()

    def generate_image(self, prompt: str) -> str:
        """Generate an illustration and return it as a data URI."""
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"responseModalities": ["IMAGE"]},
        }
        result = self._post(self.image_model, payload)
        for part in self._parts(result, self.image_model):
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and inline.get("data"):
                mime_type = inline.get("mimeType") or inline.get("mime_type") or "image/png"
                return f"data:{mime_type};base64,{inline['data']}"
        raise MalformedResponseError(f"No image returned by {self.image_model}")

    def validate_key(self) -> bool:
        """Check the API key against the model listing endpoint."""
        try:
            response = self.session.get(
                f"{self.api_base}/models",
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
            return response.status_code == 200
        except requests.exceptions.RequestException as e:
            logger.warning(f"API key validation request failed: {e}")
            return False
