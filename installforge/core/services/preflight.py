"""
Preflight inference — external commands a generated installer needs.

The installer checks all of them up front and aborts before touching
the system if any are missing.
"""

from __future__ import annotations

from collections.abc import Iterable

from installforge.core.models.recipe import Step

# Step type → commands its shell fragment invokes
PREFLIGHT_COMMANDS: dict[str, tuple[str, ...]] = {
    "extract_zip": ("unzip",),
    "extract_tar_gz": ("tar",),
    "rpm_install": ("rpm",),
    "append_lines": ("sed", "grep"),
    "delete_lines": ("sed", "grep"),
    "replace": ("sed", "grep"),
    "service_systemd": ("systemctl",),
    "auto_service": ("systemctl",),
    "service_sysv": ("chkconfig",),
}


def commands_for(step_type: str) -> frozenset[str]:
    """Commands required by a single step type (empty if none)."""
    return frozenset(PREFLIGHT_COMMANDS.get(step_type, ()))


def required_commands(steps: Iterable[Step]) -> list[str]:
    """De-duplicated commands required by a step list.

    The result is a set; it is returned sorted only so generated
    scripts are reproducible.
    """
    needed: set[str] = set()
    for step in steps:
        needed |= commands_for(step.type)
    return sorted(needed)
