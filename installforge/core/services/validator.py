"""Recipe validation — per-step-type rule sets.

Each step is checked on its own against the rule registered for its
``type``: required keys first, then an optional mode whitelist, then any
advisory checks.  Findings are returned as ``Issue`` values in step order;
nothing here raises for bad data.

The rules operate on the raw ``config`` mapping rather than the typed
models in ``core.models.steps``, so a new step type only needs an entry
in ``STEP_RULES``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from installforge.core.models.recipe import Issue, Recipe, Step
from installforge.core.models.steps import as_flag, stringify

logger = logging.getLogger(__name__)

# An advisory check receives the raw config and returns (level, message) pairs
Check = Callable[[Mapping[str, Any]], list[tuple[str, str]]]


@dataclass(frozen=True)
class StepRule:
    """Validation contract for one step type."""

    required: tuple[str, ...] = ()
    modes: tuple[str, ...] = ()
    mode_message: str = ""
    checks: tuple[Check, ...] = field(default_factory=tuple)


# ── Advisory checks ─────────────────────────────────────────────


def _check_creates(config: Mapping[str, Any]) -> list[tuple[str, str]]:
    if "creates" not in config:
        return [("warn", "creates is not set; idempotency may be improved")]
    return []


def _check_backup(config: Mapping[str, Any]) -> list[tuple[str, str]]:
    if "backup" in config and not as_flag(config["backup"]):
        return [("warn", "backup is disabled; risk of data loss")]
    return []


def _check_cwd(config: Mapping[str, Any]) -> list[tuple[str, str]]:
    if "cwd" not in config:
        return [("warn", "cwd is not set; command will run from script directory")]
    return []


# ── Rule registry ───────────────────────────────────────────────

_EDIT_MODES = ("fixed", "regex")
_EDIT_MODE_MSG = "mode must be fixed or regex"

STEP_RULES: dict[str, StepRule] = {
    "mkdir": StepRule(required=("path",)),
    "copy": StepRule(required=("src", "dest")),
    "chmod": StepRule(required=("path", "mode")),
    "chown": StepRule(required=("path", "owner")),
    "extract_tar_gz": StepRule(required=("src", "dest"), checks=(_check_creates,)),
    "extract_zip": StepRule(required=("src", "dest"), checks=(_check_creates,)),
    "rpm_install": StepRule(
        required=("rpms", "mode"),
        modes=("upgrade", "install"),
        mode_message="mode must be upgrade or install",
    ),
    "append_lines": StepRule(required=("file", "lines"), checks=(_check_backup,)),
    "delete_lines": StepRule(
        required=("file", "match", "mode"),
        modes=_EDIT_MODES,
        mode_message=_EDIT_MODE_MSG,
        checks=(_check_backup,),
    ),
    "replace": StepRule(
        required=("file", "pattern", "replacement", "mode"),
        modes=_EDIT_MODES,
        mode_message=_EDIT_MODE_MSG,
        checks=(_check_backup,),
    ),
    "run_cmd": StepRule(required=("cmd",), checks=(_check_cwd,)),
    "service_sysv": StepRule(required=("src", "name")),
    "service_systemd": StepRule(required=("src", "name")),
    "auto_service": StepRule(required=("name", "sysv_src", "systemd_src")),
}


def known_step_types() -> list[str]:
    """All step types that have a rule set."""
    return sorted(STEP_RULES)


# ── Validation ──────────────────────────────────────────────────


def validate_step(step: Step) -> list[Issue]:
    """Check one step in isolation."""
    rule = STEP_RULES.get(step.type)
    if rule is None:
        return [Issue(level="warn", step_id=step.id, message=f"unknown step type {step.type}")]

    config = step.config
    issues: list[Issue] = []

    for key in rule.required:
        if key not in config or stringify(config[key]) == "":
            issues.append(Issue(level="error", step_id=step.id, message=f"{key} is required"))

    # Evaluated even when mode is absent: the missing value stringifies to ""
    # and fails the whitelist, yielding a second error next to "mode is required".
    if rule.modes:
        mode = stringify(config.get("mode")).lower()
        if mode not in rule.modes:
            issues.append(Issue(level="error", step_id=step.id, message=rule.mode_message))

    for check in rule.checks:
        for level, message in check(config):
            issues.append(Issue(level=level, step_id=step.id, message=message))

    return issues


def validate(recipe: Recipe) -> list[Issue]:
    """Validate every step of a recipe, preserving step order.

    Step ids are not checked for uniqueness; duplicates validate and
    render independently.
    """
    issues: list[Issue] = []
    for step in recipe.steps:
        issues.extend(validate_step(step))

    logger.debug(
        "Validated recipe '%s': %d steps, %d issues",
        recipe.project.name, len(recipe.steps), len(issues),
    )
    return issues
