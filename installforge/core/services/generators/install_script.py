"""
Installer script generator — assemble ``install.sh`` from a recipe.

Section order is fixed:

    1. shebang + strict mode
    2. SCRIPT_DIR / ASSET_DIR
    3. recipe variables, LOG_DIR, log file tee
    4. root check
    5. preflight command check
    6. steps, in recipe order, each behind a progress line
    7. summary
"""

from __future__ import annotations

import logging
from datetime import datetime

from installforge.core.models.recipe import DEFAULT_LOG_DIR, Recipe
from installforge.core.services.generators.fragments import Fragment, build_fragment
from installforge.core.services.generators.shell import dq, is_shell_name, sq

logger = logging.getLogger(__name__)

_PREAMBLE = """\
#!/bin/bash
set -eu

SCRIPT_DIR="$(cd "$(dirname "$0")" && pwd)"
ASSET_DIR="$SCRIPT_DIR/assets"
"""

_LOGGING = """\
LOG_FILE="$LOG_DIR/install-$(date +%Y%m%d-%H%M%S).log"
mkdir -p "$LOG_DIR"
exec > >(tee -a "$LOG_FILE") 2>&1
"""

_ROOT_CHECK = """\
if [ "$(id -u)" -ne 0 ]; then
  echo "Please run as root (sudo ./install.sh)" >&2
  exit 1
fi
"""


def _vars_section(variables: dict[str, str]) -> str:
    """Recipe vars as env-overridable shell variables, in recipe order.

    Later vars may reference earlier ones.  LOG_DIR is appended with its
    default when the recipe does not set it.
    """
    merged = dict(variables)
    merged.setdefault("LOG_DIR", DEFAULT_LOG_DIR)
    lines = []
    for name in merged:
        if not is_shell_name(name):
            logger.warning("Skipping recipe var with invalid shell name: %r", name)
            continue
        lines.append(f'[ -n "${{{name}:-}}" ] || {name}={dq(merged[name])}')
        lines.append(f"export {name}")
    return "\n".join(lines) + "\n"


def _preflight_section(commands: list[str]) -> str:
    lines = ["# Preflight checks", "missing=()"]
    for cmd in commands:
        lines += [
            f"if ! command -v {cmd} >/dev/null 2>&1; then",
            f'  missing+=("{cmd}")',
            "fi",
        ]
    lines += [
        "if [ ${#missing[@]} -ne 0 ]; then",
        '  echo "Missing required commands: ${missing[*]}" >&2',
        "  exit 1",
        "fi",
    ]
    return "\n".join(lines) + "\n"


def _step_section(index: int, total: int, step_id: str, step_type: str,
                  name: str, frag: Fragment) -> str:
    progress = f"[{index}/{total}] step={step_id} type={step_type} name={name}"
    lines = [f"# ── Step {index}/{total} ──", f"echo {sq(progress)}", *frag.lines]
    return "\n".join(lines) + "\n"


def generate_install_script(recipe: Recipe, generated_at: datetime) -> str:
    """Compile a recipe into the full installer script text."""
    fragments = [build_fragment(step) for step in recipe.steps]

    commands: set[str] = set()
    for frag in fragments:
        commands |= frag.requires

    total = len(recipe.steps)
    banner = f"[InstallForge] project={recipe.project.name} generated at {generated_at.isoformat()}"

    sections = [
        _PREAMBLE,
        _vars_section(recipe.vars),
        _LOGGING,
        f"echo {sq(banner)}\n",
        _ROOT_CHECK,
        _preflight_section(sorted(commands)),
        f"total={total}\n",
    ]
    for index, (step, frag) in enumerate(zip(recipe.steps, fragments), start=1):
        sections.append(
            _step_section(index, total, step.id, step.type, step.name, frag)
        )
    sections.append('echo "Completed $total steps"\n')

    logger.debug(
        "Generated install.sh: %d steps, preflight=%s", total, sorted(commands),
    )
    return "\n".join(sections)
