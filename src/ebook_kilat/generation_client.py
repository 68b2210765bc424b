"""
Client for the generation relay.

Outline and chapter text are produced through the relay, which holds the
server-side Gemini credential. Illustrations are generated directly with the
user's own API key. Every outbound call goes through with_retry.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from .errors import GenerationAPIError, MalformedResponseError
from .gemini_client import GeminiClient
from .generation.outline import OutlineParseError, parse_outline
from .models import Chapter, EbookConfig
from .prompts import OUTLINE_RESPONSE_SCHEMA, outline_prompt, section_prompt, system_persona
from .service_utils import with_retry

logger = logging.getLogger(__name__)


class GenerationClient:
    """
    Front-end side of the relay.

    Usage:
        client = GenerationClient("http://localhost:3002")
        outline = client.generate_outline(EbookConfig(topic="Urban farming"))
    """

    def __init__(self, base_url: str = "http://localhost:3002", timeout: int = 120,
                 max_attempts: int = 3, base_delay: float = 2.0,
                 sleep: Callable[[float], Any] = time.sleep,
                 session: Optional[requests.Session] = None,
                 image_client_factory: Optional[Callable[[str], Any]] = None):
        """
        Initialize the relay client.

        Args:
            base_url: Relay root URL (e.g., "http://localhost:3002")
            timeout: Request timeout in seconds
            max_attempts: Attempts per call, passed to with_retry
            base_delay: First backoff delay in seconds
            sleep: Sleep function (injectable for tests)
            session: Optional requests session
            image_client_factory: Builds an image-capable client from an API key
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.sleep = sleep
        self.session = session or requests.Session()
        self.image_client_factory = image_client_factory or (lambda api_key: GeminiClient(api_key))

    # --- Relay plumbing ---

    def _retry(self, fn):
        return with_retry(fn, max_attempts=self.max_attempts,
                          base_delay=self.base_delay, sleep=self.sleep)

    def _post(self, path: str, payload: Dict[str, Any]) -> str:
        """POST to the relay and return the generated text."""
        response = self.session.post(f"{self.base_url}{path}", json=payload, timeout=self.timeout)
        try:
            data = response.json()
        except ValueError:
            if response.status_code >= 400:
                raise GenerationAPIError(response.text or response.reason,
                                         status_code=response.status_code)
            raise MalformedResponseError(f"Relay returned a non-JSON body for {path}")

        if response.status_code >= 400 or not data.get("success"):
            message = data.get("error") or f"Relay request to {path} failed"
            raise GenerationAPIError(message, status_code=data.get("status") or response.status_code)

        text = data.get("text")
        if not isinstance(text, str):
            raise MalformedResponseError(f"Relay response for {path} has no text")
        return text

    def check_backend(self) -> bool:
        """Return True when the relay answers a preflight request."""
        try:
            response = self.session.options(f"{self.base_url}/api/generate-outline", timeout=5)
            return response.ok
        except requests.exceptions.RequestException as e:
            logger.warning(f"Relay not reachable at {self.base_url}: {e}")
            return False

    # --- Generation ---

    def generate_outline(self, config: EbookConfig):
        """
        Generate and normalise a book outline.

        Returns:
            ParsedOutline

        Raises:
            MalformedResponseError: The response did not match the outline schema
        """
        payload = {
            "prompt": outline_prompt(config),
            "systemInstruction": system_persona(config.language),
            "responseSchema": OUTLINE_RESPONSE_SCHEMA,
        }
        text = self._retry(lambda: self._post("/api/generate-outline", payload))
        result = parse_outline(text, fallback_title=config.topic)
        if isinstance(result, OutlineParseError):
            raise MalformedResponseError(result.reason)
        logger.info(f"Outline generated: {len(result.chapters)} sections")
        return result

    def generate_chapter_content(self, chapter: Chapter, ebook_title: str,
                                 prev_context: str, language: str) -> str:
        payload = {
            "prompt": section_prompt(chapter, ebook_title, prev_context, language),
            "systemInstruction": system_persona(language),
        }
        return self._retry(lambda: self._post("/api/generate-chapter", payload))

    def generate_illustration(self, prompt: str, api_key: str) -> str:
        """Generate one illustration with the user's key; returns a data URI."""
        client = self.image_client_factory(api_key)
        return self._retry(lambda: client.generate_image(prompt))
