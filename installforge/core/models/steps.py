"""
Typed step configurations — the generator-side view of a step.

Recipes carry each step's ``config`` as a loosely-typed mapping.  The
validator works on that raw mapping; the script generator converts it
into one of the models below first, so every fragment builder receives
named, coerced fields instead of poking at a dict.

Coercion is deliberately forgiving: a recipe that has not been validated
still renders (missing strings become ``""``), because deciding whether
validation errors block export is the caller's job.
"""

from __future__ import annotations

import json
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict

_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0", ""})


def stringify(value: Any) -> str:
    """Render a loosely-typed config value as text.

    ``None`` → ``""``, booleans → ``true``/``false``, lists → ``[a b]``.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return "[" + " ".join(stringify(v) for v in value) + "]"
    if isinstance(value, dict):
        return json.dumps(value, sort_keys=True)
    return str(value)


def as_flag(value: Any, default: bool = False) -> bool:
    """Interpret a config value as a boolean switch."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
        return default
    return bool(value)


def as_words(value: Any) -> list[str]:
    """A list of strings; a single string is split on whitespace."""
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    if isinstance(value, (list, tuple)):
        return [stringify(v) for v in value if stringify(v)]
    return [stringify(value)]


def as_lines(value: Any) -> list[str]:
    """A list of text lines; a single string is split on newlines."""
    if value is None:
        return []
    if isinstance(value, str):
        return value.splitlines()
    if isinstance(value, (list, tuple)):
        return [stringify(v) for v in value]
    return [stringify(value)]


LooseStr = Annotated[str, BeforeValidator(stringify)]
LooseBool = Annotated[bool, BeforeValidator(as_flag)]
LooseTrue = Annotated[bool, BeforeValidator(lambda v: as_flag(v, default=True))]
Words = Annotated[list[str], BeforeValidator(as_words)]
Lines = Annotated[list[str], BeforeValidator(as_lines)]


class StepConfig(BaseModel):
    """Base for all typed step configs; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class MkdirConfig(StepConfig):
    path: LooseStr = ""


class CopyConfig(StepConfig):
    src: LooseStr = ""
    dest: LooseStr = ""
    overwrite: LooseBool = False
    mode: LooseStr = ""


class ChmodConfig(StepConfig):
    path: LooseStr = ""
    mode: LooseStr = ""


class ChownConfig(StepConfig):
    path: LooseStr = ""
    owner: LooseStr = ""
    group: LooseStr = ""


class ExtractConfig(StepConfig):
    """Shared by ``extract_tar_gz`` and ``extract_zip``."""

    src: LooseStr = ""
    dest: LooseStr = ""
    creates: LooseStr = ""


class RpmInstallConfig(StepConfig):
    rpms: Words = []
    mode: LooseStr = ""
    nodeps: LooseBool = False


class AppendLinesConfig(StepConfig):
    file: LooseStr = ""
    lines: Lines = []
    unique: LooseBool = False
    backup: LooseTrue = True


class DeleteLinesConfig(StepConfig):
    file: LooseStr = ""
    match: LooseStr = ""
    mode: LooseStr = ""
    backup: LooseTrue = True


class ReplaceConfig(StepConfig):
    file: LooseStr = ""
    pattern: LooseStr = ""
    replacement: LooseStr = ""
    mode: LooseStr = ""
    backup: LooseTrue = True


class RunCmdConfig(StepConfig):
    cmd: LooseStr = ""
    cwd: LooseStr = ""


class ServiceConfig(StepConfig):
    """Shared by ``service_sysv`` and ``service_systemd``."""

    src: LooseStr = ""
    name: LooseStr = ""
    start: LooseTrue = True


class AutoServiceConfig(StepConfig):
    name: LooseStr = ""
    sysv_src: LooseStr = ""
    systemd_src: LooseStr = ""
    start: LooseTrue = True


# Step type tag → typed config model
STEP_CONFIG_MODELS: dict[str, type[StepConfig]] = {
    "mkdir": MkdirConfig,
    "copy": CopyConfig,
    "chmod": ChmodConfig,
    "chown": ChownConfig,
    "extract_tar_gz": ExtractConfig,
    "extract_zip": ExtractConfig,
    "rpm_install": RpmInstallConfig,
    "append_lines": AppendLinesConfig,
    "delete_lines": DeleteLinesConfig,
    "replace": ReplaceConfig,
    "run_cmd": RunCmdConfig,
    "service_sysv": ServiceConfig,
    "service_systemd": ServiceConfig,
    "auto_service": AutoServiceConfig,
}


def parse_step_config(step_type: str, config: dict[str, Any]) -> StepConfig | None:
    """Build the typed config for a step, or None for an unknown type."""
    model = STEP_CONFIG_MODELS.get(step_type)
    if model is None:
        return None
    return model.model_validate(config or {})
