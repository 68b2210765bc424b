"""
Thin generation relay.

Forwards outline and chapter prompts to Gemini using the server-held
GEMINI_API_KEY so the key never reaches the browser. Vendor HTTP errors keep
their status code so the caller can still tell quota (429) and overload
(503) apart from other failures.
"""
import logging
from typing import Any, Callable, Optional

from flask import Flask, jsonify, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from ..config import Settings
from ..errors import GenerationAPIError
from ..gemini_client import GeminiClient

logger = logging.getLogger(__name__)


def create_relay_app(settings: Optional[Settings] = None,
                     client_factory: Optional[Callable[[str], Any]] = None) -> Flask:
    """
    Create the relay application.

    Args:
        settings: Runtime settings; read from the environment when omitted
        client_factory: Builds a text client from the server API key
    """
    settings = settings or Settings.from_env()
    client_factory = client_factory or (lambda api_key: GeminiClient(
        api_key, model=settings.text_model, api_base=settings.gemini_api_base,
        timeout=settings.gemini_timeout,
    ))

    app = Flask(__name__)
    CORS(app)

    # --- Rate Limiting (per client IP on the generation endpoints) ---
    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=[],
        storage_uri="memory://",
    )

    def _fail(message: str, status: int, /, **extra):
        return jsonify({"success": False, "error": message, **extra}), status

    def _generate(label: str, with_schema: bool):
        if not settings.gemini_api_key:
            return _fail("GEMINI_API_KEY not found in environment variables", 500)

        body = request.get_json(silent=True) or {}
        prompt = body.get("prompt")
        if not prompt:
            return _fail("Missing required field: prompt", 400)

        try:
            client = client_factory(settings.gemini_api_key)
            text = client.generate_content(
                prompt,
                system_instruction=body.get("systemInstruction"),
                response_schema=body.get("responseSchema") if with_schema else None,
            )
        except GenerationAPIError as e:
            status = e.status_code or 500
            logger.error(f"{label} generation error ({status}): {e}")
            return _fail(str(e), status, status=status)
        except Exception as e:
            logger.error(f"{label} generation error: {e}", exc_info=True)
            return _fail(str(e) or "Internal server error", 500)

        return jsonify({"success": True, "text": text}), 200

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"success": True, "message": "Backend API is running"}), 200

    @app.route("/api/generate-outline", methods=["POST"])
    @limiter.limit(settings.relay_rate_limit)
    def generate_outline():
        return _generate("Outline", with_schema=True)

    @app.route("/api/generate-chapter", methods=["POST"])
    @limiter.limit(settings.relay_rate_limit)
    def generate_chapter():
        return _generate("Chapter", with_schema=False)

    @app.errorhandler(429)
    def handle_rate_limit(e):
        logger.warning(f"Rate limit exceeded for {get_remote_address()}: {e.description}")
        return _fail("Too many requests, slow down", 429, status=429)

    return app
