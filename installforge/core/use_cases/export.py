"""
Export use case — validate, render and write an installer bundle.

Ties together the project store, the validator and the render service.
Export is refused when the recipe has any ``error`` issue; ``warn``
issues never block.

Bundle layout::

    <target>/recipe.json
    <target>/install.sh      (mode 0755)
    <target>/README.txt
    <target>/assets/...
"""

from __future__ import annotations

import logging
import re
import shutil
import tarfile
import tempfile
from dataclasses import dataclass, field
from pathlib import Path

from installforge.core.models.recipe import Issue, has_errors
from installforge.core.persistence.store import ProjectStore, StoreError
from installforge.core.services.render import RenderError, render
from installforge.core.services.validator import validate

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ("dir", "tar.gz")

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class ExportResult:
    """Result of an export attempt."""

    ok: bool = False
    path: Path | None = None
    issues: list[Issue] = field(default_factory=list)
    error: str | None = None

    @property
    def refused(self) -> bool:
        """True when validation errors blocked the export."""
        return not self.ok and self.error is None and has_errors(self.issues)

    def to_dict(self) -> dict:
        result: dict = {"ok": self.ok}
        if self.error:
            result["error"] = self.error
        if self.path is not None:
            result["path"] = str(self.path)
        result["issues"] = [issue.to_dict() for issue in self.issues]
        return result


def default_bundle_dir(project_name: str, root: Path | None = None) -> Path:
    """``<root>/bundle_<name>`` with the name reduced to safe characters.

    ``root`` defaults to the system temp directory.
    """
    safe = _UNSAFE_CHARS.sub("_", project_name).strip("._") or "project"
    return (root or Path(tempfile.gettempdir())) / f"bundle_{safe}"


def _replaceable(target: Path) -> bool:
    """True if ``target`` may be wiped: absent, empty, or a previous bundle."""
    if not target.exists():
        return True
    if not target.is_dir():
        return False
    if not any(target.iterdir()):
        return True
    return (target / "install.sh").is_file() and (target / "recipe.json").is_file()


def _pack(bundle_dir: Path) -> Path:
    archive = bundle_dir.with_name(bundle_dir.name + ".tar.gz")
    with tarfile.open(archive, "w:gz") as tar:
        tar.add(bundle_dir, arcname=bundle_dir.name)
    return archive


def export_bundle(
    store: ProjectStore,
    project_id: str,
    target_dir: Path | None = None,
    fmt: str = "dir",
    export_root: Path | None = None,
) -> ExportResult:
    """Export a project's recipe as an installer bundle.

    Args:
        store: Project store holding the recipe and its assets.
        project_id: Project to export.
        target_dir: Bundle directory (default: ``default_bundle_dir()``).
            Replaced only if it is empty or holds a previous bundle.
        fmt: ``dir`` or ``tar.gz`` (also pack the directory).
        export_root: Parent for the default bundle directory.

    Returns:
        ExportResult.  On refusal ``ok`` is False and ``issues`` holds the
        blocking findings.

    Raises:
        ProjectNotFoundError: If the project does not exist.
    """
    if fmt not in EXPORT_FORMATS:
        return ExportResult(error=f"unsupported format {fmt!r} (expected one of {', '.join(EXPORT_FORMATS)})")

    recipe = store.load_recipe(project_id)

    issues = validate(recipe)
    if has_errors(issues):
        logger.info(
            "Export of '%s' refused: %d blocking issues",
            recipe.project.name, sum(1 for i in issues if i.blocking),
        )
        return ExportResult(issues=issues)

    target = target_dir or default_bundle_dir(recipe.project.name, export_root)
    if not _replaceable(target):
        logger.error("Refusing to overwrite %s: not a bundle directory", target)
        return ExportResult(issues=issues, error="target exists and is not a bundle")

    try:
        rendered = render(recipe)
    except RenderError as e:
        logger.error("Render failed for '%s': %s", recipe.project.name, e)
        return ExportResult(issues=issues, error=str(e))

    try:
        if target.exists():
            shutil.rmtree(target)
        store.write_bundle(recipe, target, rendered.recipe_json_pretty)
        install_sh = target / "install.sh"
        install_sh.write_text(rendered.install_sh, encoding="utf-8")
        install_sh.chmod(0o755)
        readme = target / "README.txt"
        readme.write_text(rendered.readme, encoding="utf-8")
        readme.chmod(0o644)
        path = _pack(target) if fmt == "tar.gz" else target
    except (OSError, StoreError, tarfile.TarError) as e:
        logger.error("Cannot write bundle to %s: %s", target, e)
        return ExportResult(issues=issues, error=str(e))

    logger.info("Exported '%s' to %s", recipe.project.name, path)
    return ExportResult(ok=True, path=path, issues=issues)
