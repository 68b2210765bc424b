"""
Workspace API: Flask application factory.

Collaborators (repository, generation client, API key store, token
verifier) are injected; when omitted they are built from Settings against
Firebase and the relay.
"""
import logging
from typing import Any, Callable, Dict, Optional

import requests
from flask import Flask, g, jsonify
from flask_cors import CORS
from pydantic import ValidationError

from ..config import Settings
from ..errors import (
    ChapterNotFoundError,
    EbookError,
    GenerationAPIError,
    InvalidTransitionError,
    MalformedResponseError,
    MissingCredentialError,
    NotAuthenticatedError,
    ProjectNotFoundError,
    QuotaExhaustedError,
)
from ..gemini_client import GeminiClient
from ..generation_client import GenerationClient
from ..workspace import QUOTA_MESSAGE, user_message
from .projects import projects_bp

logger = logging.getLogger(__name__)

MISSING_KEY_MESSAGE = "Please configure your Google AI API key in Settings first."


def _default_services(settings: Settings) -> Dict[str, Any]:
    """Production wiring: Firebase Auth + Firestore, local SQLite fallback."""
    from firebase_admin import auth
    from ..storage import LocalProjectStore, ProjectRepository
    from ..storage.api_keys import ApiKeyStore
    from ..storage.firestore_store import FirestoreProjectStore, init_firebase

    init_firebase(settings.google_credentials_base64, settings.firebase_credentials_path)
    return {
        "repository": ProjectRepository(
            FirestoreProjectStore(collection=settings.projects_collection),
            LocalProjectStore(settings.local_store_path),
        ),
        "api_keys": ApiKeyStore(collection=settings.api_keys_collection),
        "token_verifier": auth.verify_id_token,
    }


def create_app(settings: Optional[Settings] = None, repository=None, generation_client=None,
               api_keys=None, token_verifier: Optional[Callable[[str], Dict[str, Any]]] = None,
               key_validator: Optional[Callable[[str], bool]] = None) -> Flask:
    """Create and configure the workspace API."""
    settings = settings or Settings.from_env()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.secret_key
    if settings.secret_key == Settings.secret_key:
        logger.warning("SECURITY WARNING: Using default SECRET_KEY. Set the FLASK_SECRET_KEY environment variable.")
    CORS(app)

    if repository is None or api_keys is None or token_verifier is None:
        defaults = _default_services(settings)
        repository = repository or defaults["repository"]
        api_keys = api_keys or defaults["api_keys"]
        token_verifier = token_verifier or defaults["token_verifier"]

    app.settings = settings
    app.repository = repository
    app.api_keys = api_keys
    app.token_verifier = token_verifier
    app.generation_client = generation_client or GenerationClient(
        settings.relay_base_url,
        timeout=settings.relay_timeout,
        max_attempts=settings.retry_attempts,
        base_delay=settings.retry_base_delay,
        image_client_factory=lambda key: GeminiClient(
            key, model=settings.text_model, image_model=settings.image_model,
            api_base=settings.gemini_api_base, timeout=settings.gemini_timeout,
        ),
    )
    app.key_validator = key_validator or (
        lambda key: GeminiClient(key, api_base=settings.gemini_api_base).validate_key()
    )

    # --- Register Blueprints ---
    app.register_blueprint(projects_bp, url_prefix="/api")

    @app.route("/api/health", methods=["GET"])
    def health():
        return jsonify({"success": True, "status": "ok"}), 200

    # --- Error Handlers ---
    def _error(message: str, status: int):
        return jsonify({"success": False, "error": message}), status

    @app.errorhandler(QuotaExhaustedError)
    def handle_quota(e):
        user_id = getattr(g, "user_id", None)
        if user_id:
            app.api_keys.mark_quota_exceeded(user_id)
        return _error(QUOTA_MESSAGE, 429)

    @app.errorhandler(MissingCredentialError)
    def handle_missing_credential(e):
        return _error(str(e) or MISSING_KEY_MESSAGE, 400)

    @app.errorhandler(NotAuthenticatedError)
    def handle_not_authenticated(e):
        return _error(str(e), 401)

    @app.errorhandler(ProjectNotFoundError)
    @app.errorhandler(ChapterNotFoundError)
    def handle_not_found(e):
        return _error(str(e), 404)

    @app.errorhandler(InvalidTransitionError)
    def handle_conflict(e):
        return _error(str(e), 409)

    @app.errorhandler(MalformedResponseError)
    @app.errorhandler(GenerationAPIError)
    @app.errorhandler(requests.exceptions.RequestException)
    def handle_generation_failure(e):
        logger.error(f"Generation failed: {e}")
        return _error(user_message(e), 502)

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return _error(f"Invalid request: {e.error_count()} error(s)", 400)

    @app.errorhandler(EbookError)
    def handle_ebook_error(e):
        logger.error(f"Unhandled application error: {e}", exc_info=True)
        return _error(user_message(e), 500)

    @app.errorhandler(404)
    def handle_not_found_route(e):
        return _error("Not found", 404)

    @app.errorhandler(500)
    def handle_internal_server_error(e):
        logger.error(f"Internal Server Error: {e}", exc_info=True)
        return _error("Something went wrong on our end. Please try again later.", 500)

    return app
