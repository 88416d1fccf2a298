"""
Recipe model — the declarative description of an installation.

A recipe is persisted as ``recipe.json`` in its project directory and
compiled into a bundle by the render service.  Field names on the wire
are fixed (``schema_version``, ``updatedAt``, ``stepId``…), so aliases are
used wherever the Python name differs.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

SCHEMA_VERSION = "1.0"

DEFAULT_TARGETS = ["oracle_linux_6_9", "kylinsec_3_4"]
DEFAULT_INSTALL_ROOT = "/opt/demo"
DEFAULT_LOG_DIR = "/var/log/asg"


def _now() -> datetime:
    return datetime.now(UTC)


class ProjectMeta(BaseModel):
    """Identity of the project a recipe belongs to."""

    id: str = ""
    name: str = ""
    description: str = ""
    target: list[str] = Field(default_factory=list)

    @field_validator("target", mode="before")
    @classmethod
    def _null_target(cls, v: Any) -> Any:
        return [] if v is None else v


class Step(BaseModel):
    """One instruction.  ``config`` keys are interpreted per ``type``."""

    id: str = ""
    name: str = ""
    type: str = ""
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("config", mode="before")
    @classmethod
    def _null_config(cls, v: Any) -> Any:
        return {} if v is None else v


class Recipe(BaseModel):
    """The unit of compilation."""

    model_config = ConfigDict(populate_by_name=True)

    schema_version: str = SCHEMA_VERSION
    project: ProjectMeta = Field(default_factory=ProjectMeta)
    vars: dict[str, str] = Field(default_factory=dict)
    steps: list[Step] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=_now, alias="updatedAt")

    @field_validator("vars", "steps", mode="before")
    @classmethod
    def _null_collections(cls, v: Any, info: ValidationInfo) -> Any:
        if v is None:
            return {} if info.field_name == "vars" else []
        return v

    def to_dict(self) -> dict[str, Any]:
        """Wire form (JSON-safe, aliased field names)."""
        return self.model_dump(mode="json", by_alias=True)


class Issue(BaseModel):
    """A validator finding."""

    model_config = ConfigDict(populate_by_name=True)

    level: Literal["error", "warn"]
    step_id: str = Field(default="", alias="stepId")
    message: str

    @property
    def blocking(self) -> bool:
        return self.level == "error"

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class RenderResult(BaseModel):
    """Artifacts produced by compiling a recipe."""

    model_config = ConfigDict(populate_by_name=True)

    install_sh: str = Field(alias="installSh")
    readme: str
    recipe_json_pretty: str = Field(alias="recipeJsonPretty")
    issues: list[Issue] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def has_errors(issues: list[Issue]) -> bool:
    """True when any issue blocks export."""
    return any(issue.blocking for issue in issues)


def new_empty_recipe(project_id: str, name: str) -> Recipe:
    """Starter recipe for a freshly created project."""
    return Recipe(
        schema_version=SCHEMA_VERSION,
        project=ProjectMeta(id=project_id, name=name, target=list(DEFAULT_TARGETS)),
        vars={"INSTALL_ROOT": DEFAULT_INSTALL_ROOT, "LOG_DIR": DEFAULT_LOG_DIR},
        steps=[],
    )


def pretty_json(recipe: Recipe) -> str:
    """Canonical indented serialization used for audit and diffs.

    Declared field order is kept.  ``vars`` keep the author's order, since
    later vars may reference earlier ones.  Every step ``config`` is
    key-sorted so equal recipes always serialize to identical bytes.
    """
    data = recipe.to_dict()
    for step in data["steps"]:
        step["config"] = dict(sorted(step["config"].items()))
    return json.dumps(data, indent=2, ensure_ascii=False)
