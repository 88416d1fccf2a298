"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from installforge.core.models.recipe import ProjectMeta, Recipe, Step
from installforge.core.persistence.store import ProjectStore


@pytest.fixture
def make_recipe() -> Callable[..., Recipe]:
    """Build a recipe from plain step dicts.

    ``make_recipe({"id": "s1", "type": "mkdir", "config": {"path": "/x"}})``
    """

    def _make(*steps: dict[str, Any], variables: dict[str, str] | None = None,
              name: str = "demo") -> Recipe:
        return Recipe(
            project=ProjectMeta(id="p1", name=name, target=["oracle_linux_6_9"]),
            vars=variables if variables is not None else {
                "INSTALL_ROOT": "/opt/demo",
                "LOG_DIR": "/var/log/asg",
            },
            steps=[Step(**s) for s in steps],
        )

    return _make


@pytest.fixture
def store(tmp_path: Path) -> ProjectStore:
    """A project store rooted in a temp directory."""
    return ProjectStore(tmp_path / "projects")
