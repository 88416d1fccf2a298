"""
Domain models — Pydantic types for recipes and compiled artifacts.

All models are re-exported here for convenient access:

    from installforge.core.models import Recipe, Step, Issue, RenderResult
"""

from installforge.core.models.recipe import (
    Issue,
    ProjectMeta,
    Recipe,
    RenderResult,
    Step,
    has_errors,
    new_empty_recipe,
    pretty_json,
)
from installforge.core.models.steps import STEP_CONFIG_MODELS, StepConfig, parse_step_config

__all__ = [
    # recipe.py
    "Issue",
    "ProjectMeta",
    "Recipe",
    "RenderResult",
    # steps.py
    "STEP_CONFIG_MODELS",
    "Step",
    "StepConfig",
    "has_errors",
    "new_empty_recipe",
    "parse_step_config",
    "pretty_json",
]
