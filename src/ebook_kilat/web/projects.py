"""
Project endpoints of the workspace API.

All routes require a Firebase ID token. Projects are addressed by the id
returned from the last write; a project saved through the local fallback
comes back with a ``local-`` id.
"""
import logging
from io import BytesIO

from flask import Blueprint, current_app, g, jsonify, request, send_file

from ..errors import MissingCredentialError
from ..export import DOC_MIMETYPE
from ..models import Ebook, EbookConfig
from ..workspace import EbookWorkspace
from .auth import require_auth

logger = logging.getLogger(__name__)

projects_bp = Blueprint("projects", __name__)


def _workspace() -> EbookWorkspace:
    return EbookWorkspace(g.context, current_app.repository, current_app.generation_client)


def _ebook_json(ebook: Ebook):
    return ebook.model_dump(mode="json")


def _body() -> dict:
    return request.get_json(silent=True) or {}


# --- Projects ---

@projects_bp.route("/projects", methods=["GET"])
@require_auth
def list_projects(user_id):
    rows = _workspace().list()
    projects = []
    for row in rows:
        item = row.model_dump(exclude={"content_json"})
        item["chapter_count"] = len((row.content_json or {}).get("outline", []))
        projects.append(item)
    return jsonify({"success": True, "projects": projects}), 200


@projects_bp.route("/projects", methods=["POST"])
@require_auth
def create_project(user_id):
    ebook = _workspace().create_new()
    return jsonify({"success": True, "project": _ebook_json(ebook)}), 201


@projects_bp.route("/projects/<project_id>", methods=["GET"])
@require_auth
def get_project(user_id, project_id):
    ebook = _workspace().open(project_id)
    return jsonify({"success": True, "project": _ebook_json(ebook)}), 200


@projects_bp.route("/projects/<project_id>", methods=["PUT"])
@require_auth
def save_project(user_id, project_id):
    workspace = _workspace()
    current = workspace.open(project_id)
    data = current.model_dump()
    data.update({k: v for k, v in _body().items() if k in ("title", "subtitle", "outline", "images")})
    ebook = workspace.save(Ebook.model_validate(data))
    return jsonify({"success": True, "project": _ebook_json(ebook)}), 200


@projects_bp.route("/projects/<project_id>", methods=["DELETE"])
@require_auth
def delete_project(user_id, project_id):
    _workspace().delete(project_id)
    return jsonify({"success": True}), 200


# --- Generation ---

@projects_bp.route("/projects/<project_id>/outline", methods=["POST"])
@require_auth
def generate_outline(user_id, project_id):
    body = _body()
    overwrite = bool(body.pop("overwrite", False))
    config = EbookConfig.model_validate({"language": g.context.language, **body})
    g.context.language = config.language

    workspace = _workspace()
    ebook = workspace.start(workspace.open(project_id), config, overwrite=overwrite)
    return jsonify({"success": True, "project": _ebook_json(ebook)}), 200


@projects_bp.route("/projects/<project_id>/chapters/<chapter_id>/generate", methods=["POST"])
@require_auth
def generate_chapter(user_id, project_id, chapter_id):
    workspace = _workspace()
    outcome = workspace.generate_chapter(workspace.open(project_id), chapter_id)
    if not outcome.ok:
        # The chapter is already stored with status "error"
        raise outcome.error
    return jsonify({
        "success": True,
        "chapter": outcome.chapter.model_dump(mode="json"),
        "project": _ebook_json(outcome.ebook),
    }), 200


@projects_bp.route("/projects/<project_id>/chapters/<chapter_id>", methods=["PUT"])
@require_auth
def update_chapter(user_id, project_id, chapter_id):
    content = _body().get("content")
    if not isinstance(content, str):
        return jsonify({"success": False, "error": "Field 'content' is required"}), 400
    workspace = _workspace()
    ebook = workspace.update_chapter(workspace.open(project_id), chapter_id, content)
    return jsonify({"success": True, "project": _ebook_json(ebook)}), 200


@projects_bp.route("/projects/<project_id>/illustrations", methods=["POST"])
@require_auth
def illustrate_project(user_id, project_id):
    workspace = _workspace()
    ebook, failed = workspace.illustrate(workspace.open(project_id))
    return jsonify({"success": True, "project": _ebook_json(ebook), "failed": failed}), 200


@projects_bp.route("/projects/<project_id>/export", methods=["GET"])
@require_auth
def export_project(user_id, project_id):
    workspace = _workspace()
    filename, document = workspace.export(workspace.open(project_id))
    return send_file(BytesIO(document), mimetype=DOC_MIMETYPE,
                     as_attachment=True, download_name=filename)


# --- Settings ---

@projects_bp.route("/settings/api-key", methods=["GET"])
@require_auth
def api_key_status(user_id):
    return jsonify({
        "success": True,
        "configured": bool(g.context.api_key),
        "quota_exceeded": current_app.api_keys.is_quota_exceeded(user_id),
    }), 200


@projects_bp.route("/settings/api-key", methods=["PUT"])
@require_auth
def save_api_key(user_id):
    api_key = (_body().get("api_key") or "").strip()
    if not api_key:
        raise MissingCredentialError("Field 'api_key' is required")
    if not current_app.key_validator(api_key):
        return jsonify({"success": False, "error": "The API key was rejected by Google AI"}), 400
    if not current_app.api_keys.save_api_key(user_id, api_key, is_valid=True):
        return jsonify({"success": False, "error": "Could not save the API key"}), 500
    return jsonify({"success": True}), 200


@projects_bp.route("/settings/api-key", methods=["DELETE"])
@require_auth
def delete_api_key(user_id):
    if not current_app.api_keys.delete_api_key(user_id):
        return jsonify({"success": False, "error": "Could not delete the API key"}), 500
    g.context.api_key = None
    return jsonify({"success": True}), 200
