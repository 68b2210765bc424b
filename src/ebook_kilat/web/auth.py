import logging
from functools import wraps

from flask import current_app, g, jsonify, request

from ..context import AppContext

logger = logging.getLogger(__name__)

LANGUAGE_HEADER = "X-Ebook-Language"


def require_auth(f):
    """
    Decorator to verify the Firebase ID token from the Authorization header.

    Passes the verified ``user_id`` to the view as a keyword argument and
    builds the request's AppContext in ``g.context`` (session, stored API key
    and the language requested through the X-Ebook-Language header).

    Usage:
        @projects_bp.route('/projects', methods=['GET'])
        @require_auth
        def list_projects(user_id):
            ...

    Returns:
        401 Unauthorized if the token is missing, invalid, or verification fails
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            logger.warning(f"Unauthorized attempt to {request.path}: missing/invalid auth header from {request.remote_addr}")
            return jsonify({"success": False, "error": "Unauthorized - missing or invalid token"}), 401

        token = auth_header.split("Bearer ")[1]
        try:
            decoded_token = current_app.token_verifier(token)
        except Exception as e:
            logger.warning(f"Token verification failed for {request.path}: {e}")
            return jsonify({"success": False, "error": "Unauthorized - invalid token"}), 401

        user_id = decoded_token.get("uid")
        if not user_id:
            logger.warning(f"Firebase token missing UID from {request.remote_addr}")
            return jsonify({"success": False, "error": "Unauthorized - invalid token"}), 401

        context = AppContext(current_app.settings)
        context.sign_in(
            user_id,
            email=decoded_token.get("email", ""),
            display_name=decoded_token.get("name"),
            api_key=current_app.api_keys.get_api_key(user_id),
        )
        language = request.headers.get(LANGUAGE_HEADER)
        if language:
            try:
                context.language = language
            except ValueError:
                logger.warning(f"Ignoring unsupported language '{language}'")
        g.context = context
        g.user_id = user_id

        return f(*args, user_id=user_id, **kwargs)

    return wrapper
