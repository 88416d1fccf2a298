"""
Recipe routes — stateless validation and rendering.

POST /api/validate  → {"issues": [...], "valid": bool}
POST /api/render    → RenderResult

Both take a full recipe as the JSON body; nothing is stored.
"""

from __future__ import annotations

import logging

from flask import Blueprint, jsonify, request
from pydantic import ValidationError

from installforge.core.models.recipe import Recipe, has_errors

logger = logging.getLogger(__name__)

recipes_bp = Blueprint("recipes", __name__)


def _recipe_from_request() -> Recipe | tuple:
    """Parse the request body into a Recipe, or an error response tuple."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "invalid json"}), 400
    try:
        return Recipe.model_validate(data)
    except ValidationError as e:
        return (
            jsonify({"error": "invalid recipe", "details": e.errors(include_url=False, include_context=False)}),
            400,
        )


@recipes_bp.route("/validate", methods=["POST"])
def validate_recipe():  # type: ignore[no-untyped-def]
    from installforge.core.services.validator import validate

    recipe = _recipe_from_request()
    if not isinstance(recipe, Recipe):
        return recipe

    issues = validate(recipe)
    return jsonify({
        "valid": not has_errors(issues),
        "issues": [i.to_dict() for i in issues],
    })


@recipes_bp.route("/render", methods=["POST"])
def render_recipe():  # type: ignore[no-untyped-def]
    from installforge.core.services.render import RenderError, render

    recipe = _recipe_from_request()
    if not isinstance(recipe, Recipe):
        return recipe

    try:
        result = render(recipe)
    except RenderError as e:
        logger.error("Render failed: %s", e)
        return jsonify({"error": str(e)}), 500
    return jsonify(result.to_dict())
