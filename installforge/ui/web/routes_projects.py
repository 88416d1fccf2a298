"""
Project routes — CRUD, assets, preview and export.

GET  /api/projects                  → project list
POST /api/projects                  → create project with starter recipe
GET  /api/projects/<id>             → recipe
PUT  /api/projects/<id>             → replace recipe, returns {recipe, issues}
GET  /api/projects/<id>/assets      → uploaded files
POST /api/projects/<id>/assets      → upload (multipart field "files")
POST /api/projects/<id>/generate    → render preview
POST /api/projects/<id>/export      → write bundle (refused on error issues)
"""

from __future__ import annotations

import logging
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request
from pydantic import ValidationError

from installforge.core.models.recipe import Recipe
from installforge.core.persistence.store import (
    InvalidNameError,
    ProjectNotFoundError,
    ProjectStore,
    StoreError,
)

logger = logging.getLogger(__name__)

projects_bp = Blueprint("projects", __name__)


def _store() -> ProjectStore:
    return ProjectStore(Path(current_app.config["DATA_ROOT"]))


def _export_root() -> Path | None:
    p = current_app.config.get("EXPORT_ROOT")
    return Path(p) if p else None


def _not_found():  # type: ignore[no-untyped-def]
    return jsonify({"error": "not found"}), 404


# ── Projects ─────────────────────────────────────────────────────────


@projects_bp.route("/projects", methods=["GET"])
def list_projects():  # type: ignore[no-untyped-def]
    """All projects with a readable recipe."""
    try:
        projects = _store().list_projects()
    except OSError as e:
        return jsonify({"error": str(e)}), 500
    return jsonify([p.model_dump(mode="json") for p in projects])


@projects_bp.route("/projects", methods=["POST"])
def create_project():  # type: ignore[no-untyped-def]
    """Create a project from {name, description, target}."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "invalid json"}), 400

    targets = data.get("target") or []
    if not isinstance(targets, list):
        return jsonify({"error": "target must be a list"}), 400

    try:
        recipe = _store().create_project(
            name=str(data.get("name", "")),
            description=str(data.get("description", "")),
            targets=[str(t) for t in targets],
        )
    except StoreError as e:
        return jsonify({"error": str(e)}), 500
    return jsonify(recipe.to_dict())


@projects_bp.route("/projects/<project_id>", methods=["GET"])
def get_project(project_id: str):  # type: ignore[no-untyped-def]
    try:
        recipe = _store().load_recipe(project_id)
    except StoreError:
        return _not_found()
    return jsonify(recipe.to_dict())


@projects_bp.route("/projects/<project_id>", methods=["PUT"])
def save_project(project_id: str):  # type: ignore[no-untyped-def]
    """Replace the recipe wholesale; the URL id wins over the body's."""
    from installforge.core.services.validator import validate

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "invalid json"}), 400

    try:
        recipe = Recipe.model_validate(data)
    except ValidationError as e:
        return jsonify({"error": "invalid recipe", "details": e.errors(include_url=False, include_context=False)}), 400

    recipe.project.id = project_id
    try:
        stored = _store().save_recipe(recipe)
    except InvalidNameError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError as e:
        return jsonify({"error": str(e)}), 500

    issues = validate(stored)
    return jsonify({
        "recipe": stored.to_dict(),
        "issues": [i.to_dict() for i in issues],
    })


# ── Assets ───────────────────────────────────────────────────────────


@projects_bp.route("/projects/<project_id>/assets", methods=["GET"])
def list_assets(project_id: str):  # type: ignore[no-untyped-def]
    try:
        assets = _store().list_assets(project_id)
    except StoreError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify(assets)


@projects_bp.route("/projects/<project_id>/assets", methods=["POST"])
def upload_assets(project_id: str):  # type: ignore[no-untyped-def]
    """Save every file sent in the multipart field ``files``."""
    if not request.mimetype or not request.mimetype.startswith("multipart/"):
        return jsonify({"error": "invalid form"}), 400

    store = _store()
    for upload in request.files.getlist("files"):
        try:
            store.save_asset(project_id, upload.filename or "", upload.stream)
        except InvalidNameError as e:
            return jsonify({"error": str(e)}), 400
        except StoreError as e:
            return jsonify({"error": str(e)}), 500
    return jsonify({"status": "ok"})


# ── Generate / Export ────────────────────────────────────────────────


@projects_bp.route("/projects/<project_id>/generate", methods=["POST"])
def generate_preview(project_id: str):  # type: ignore[no-untyped-def]
    """Render install.sh, README and pretty recipe without writing anything."""
    from installforge.core.services.render import RenderError, render

    try:
        recipe = _store().load_recipe(project_id)
    except StoreError:
        return _not_found()

    try:
        result = render(recipe)
    except RenderError as e:
        return jsonify({"error": str(e)}), 500
    return jsonify(result.to_dict())


@projects_bp.route("/projects/<project_id>/export", methods=["POST"])
def export_project(project_id: str):  # type: ignore[no-untyped-def]
    """Write the bundle; 400 with issues if validation errors block it."""
    from installforge.core.use_cases.export import EXPORT_FORMATS, export_bundle

    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "invalid json"}), 400

    fmt = data.get("format") or "dir"
    if fmt not in EXPORT_FORMATS:
        return jsonify({"error": f"unsupported format: {fmt}"}), 400

    try:
        result = export_bundle(
            _store(), project_id, fmt=fmt, export_root=_export_root(),
        )
    except ProjectNotFoundError:
        return _not_found()
    except StoreError as e:
        return jsonify({"error": str(e)}), 500

    if result.refused:
        return jsonify({"issues": [i.to_dict() for i in result.issues]}), 400
    if result.error:
        return jsonify({"error": result.error}), 500
    return jsonify({"path": str(result.path)})
