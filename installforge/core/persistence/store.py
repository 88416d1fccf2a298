"""
Project store — recipes and uploaded assets on the local filesystem.

Layout under the store root::

    <root>/<project id>/recipe.json
    <root>/<project id>/assets/<file>

Recipe writes are atomic (write to temp file, then rename) so a crash
mid-write never leaves a truncated recipe.json behind.
"""

from __future__ import annotations

import json
import logging
import secrets
import shutil
import tempfile
from datetime import UTC, datetime
from pathlib import Path
from typing import BinaryIO

from pydantic import ValidationError

from installforge.core.models.recipe import ProjectMeta, Recipe, new_empty_recipe, pretty_json

logger = logging.getLogger(__name__)

RECIPE_FILE = "recipe.json"
ASSETS_DIR = "assets"

_COPY_CHUNK = 1024 * 1024


class StoreError(Exception):
    """Raised when the store cannot read or write project data."""


class ProjectNotFoundError(StoreError):
    """Raised when a project id has no recipe on disk."""


class InvalidNameError(StoreError):
    """Raised for project ids or asset names that could escape the store."""


def read_recipe(path: Path) -> Recipe:
    """Load a recipe JSON file.

    Raises:
        ProjectNotFoundError: If the file does not exist.
        StoreError: If the file is not a valid recipe.
    """
    if not path.is_file():
        raise ProjectNotFoundError(f"Recipe not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise StoreError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise StoreError(f"Invalid JSON in {path}: {e}") from e
    try:
        return Recipe.model_validate(data)
    except ValidationError as e:
        raise StoreError(f"Invalid recipe in {path}: {e}") from e


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".recipe_", suffix=".tmp")
    tmp = Path(tmp_name)
    try:
        with open(fd, "w", encoding="utf-8") as f:
            f.write(content)
        tmp.replace(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def _check_name(filename: str) -> None:
    if not filename or ".." in filename or "/" in filename or "\\" in filename:
        raise InvalidNameError(f"invalid filename: {filename!r}")


def _random_id() -> str:
    return secrets.token_hex(16)


class ProjectStore:
    """Filesystem-backed store keyed by project id."""

    def __init__(self, root: Path | str):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def project_dir(self, project_id: str) -> Path:
        _check_name(project_id)
        return self._root / project_id

    def ensure_project_dir(self, project_id: str) -> Path:
        """Create the project directory (and its assets/) if needed."""
        path = self.project_dir(project_id)
        (path / ASSETS_DIR).mkdir(parents=True, exist_ok=True)
        return path

    # ── Recipes ─────────────────────────────────────────────────

    def list_projects(self) -> list[ProjectMeta]:
        """Metadata of every readable project; broken entries are skipped."""
        if not self._root.is_dir():
            return []
        projects: list[ProjectMeta] = []
        for entry in sorted(self._root.iterdir()):
            if not entry.is_dir():
                continue
            try:
                projects.append(read_recipe(entry / RECIPE_FILE).project)
            except StoreError as e:
                logger.debug("Skipping %s: %s", entry, e)
        return projects

    def load_recipe(self, project_id: str) -> Recipe:
        return read_recipe(self.project_dir(project_id) / RECIPE_FILE)

    def save_recipe(self, recipe: Recipe) -> Recipe:
        """Persist a recipe, stamping ``updatedAt``.  Returns the stored copy."""
        if not recipe.project.id:
            raise StoreError("recipe has no project id")
        stored = recipe.model_copy(update={"updated_at": datetime.now(UTC)})
        path = self.ensure_project_dir(stored.project.id) / RECIPE_FILE
        try:
            _atomic_write(path, pretty_json(stored) + "\n")
        except OSError as e:
            logger.error("Failed to save recipe to %s: %s", path, e)
            raise StoreError(f"Cannot write {path}: {e}") from e
        logger.debug("Recipe saved to %s", path)
        return stored

    def create_project(
        self,
        name: str,
        description: str = "",
        targets: list[str] | None = None,
    ) -> Recipe:
        """Create a project with a starter recipe and a fresh random id."""
        recipe = new_empty_recipe(_random_id(), name)
        recipe.project.description = description
        if targets:
            recipe.project.target = list(targets)
        stored = self.save_recipe(recipe)
        logger.info("Created project '%s' (%s)", name, stored.project.id)
        return stored

    # ── Assets ──────────────────────────────────────────────────

    def assets_dir(self, project_id: str) -> Path:
        return self.project_dir(project_id) / ASSETS_DIR

    def list_assets(self, project_id: str) -> list[dict]:
        """Uploaded files as ``{"filename", "size"}`` dicts."""
        assets = self.assets_dir(project_id)
        if not assets.is_dir():
            raise ProjectNotFoundError(f"No assets directory for project {project_id}")
        return [
            {"filename": p.name, "size": p.stat().st_size}
            for p in sorted(assets.iterdir())
            if p.is_file()
        ]

    def save_asset(self, project_id: str, filename: str, src: BinaryIO) -> Path:
        """Write an uploaded file into the project's assets/ directory."""
        _check_name(filename)
        dest = self.ensure_project_dir(project_id) / ASSETS_DIR / filename
        try:
            with open(dest, "wb") as out:
                shutil.copyfileobj(src, out, _COPY_CHUNK)
        except OSError as e:
            raise StoreError(f"Cannot write asset {dest}: {e}") from e
        logger.info("Saved asset %s for project %s", filename, project_id)
        return dest

    # ── Bundles ─────────────────────────────────────────────────

    def write_bundle(self, recipe: Recipe, target_dir: Path, recipe_json: str | None = None) -> None:
        """Write recipe.json and copy assets/ into ``target_dir``."""
        bundle_assets = target_dir / ASSETS_DIR
        try:
            bundle_assets.mkdir(parents=True, exist_ok=True)
            (target_dir / RECIPE_FILE).write_text(
                recipe_json if recipe_json is not None else pretty_json(recipe),
                encoding="utf-8",
            )
            source = self._root / recipe.project.id / ASSETS_DIR
            if source.is_dir():
                for asset in sorted(source.iterdir()):
                    if asset.is_file():
                        shutil.copy2(asset, bundle_assets / asset.name)
        except OSError as e:
            raise StoreError(f"Cannot write bundle to {target_dir}: {e}") from e
        logger.debug("Bundle files written to %s", target_dir)
