"""
Render service — compile a recipe into bundle artifacts.

``render()`` is a pure function of the recipe (plus the generation
timestamp embedded in the script banner).  It validates for reporting
only: issues are attached to the result, never used to refuse output.
Whether errors block an export is decided by the caller
(see ``core.use_cases.export``).
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from pydantic import ValidationError

from installforge.core.models.recipe import Recipe, RenderResult, pretty_json
from installforge.core.services.generators.install_script import generate_install_script
from installforge.core.services.generators.readme import generate_readme
from installforge.core.services.validator import validate

logger = logging.getLogger(__name__)


class RenderError(Exception):
    """Raised when a recipe cannot be compiled at all."""


def render(recipe: Recipe, generated_at: datetime | None = None) -> RenderResult:
    """Compile ``recipe`` into install.sh, README.txt and pretty recipe JSON.

    Args:
        recipe: The recipe to compile.  Not modified.
        generated_at: Timestamp for the script banner (default: now, UTC).

    Returns:
        RenderResult with the three artifacts and the validation issues.

    Raises:
        RenderError: If a step config cannot be interpreted.
    """
    issues = validate(recipe)
    stamp = generated_at or datetime.now(UTC)

    try:
        install_sh = generate_install_script(recipe, stamp)
        recipe_json = pretty_json(recipe)
    except ValidationError as e:
        raise RenderError(f"Cannot compile recipe '{recipe.project.name}': {e}") from e
    except (TypeError, ValueError) as e:
        raise RenderError(f"Cannot serialize recipe '{recipe.project.name}': {e}") from e

    logger.info(
        "Rendered recipe '%s' (%d steps, %d issues)",
        recipe.project.name, len(recipe.steps), len(issues),
    )
    return RenderResult(
        install_sh=install_sh,
        readme=generate_readme(recipe),
        recipe_json_pretty=recipe_json,
        issues=issues,
    )
