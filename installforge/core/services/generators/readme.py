"""
README generator — fixed-format usage notes shipped with every bundle.
"""

from __future__ import annotations

from installforge.core.models.recipe import DEFAULT_LOG_DIR, Recipe

_README = """\
InstallForge bundle
===================

Project: {name}
Targets: {targets}

Usage:
  chmod +x install.sh
  sudo ./install.sh

Logs are written under $LOG_DIR (default {log_dir}).
"""


def generate_readme(recipe: Recipe) -> str:
    """Render README.txt; depends only on project name and targets."""
    return _README.format(
        name=recipe.project.name,
        targets=", ".join(recipe.project.target) or "(none)",
        log_dir=DEFAULT_LOG_DIR,
    )
