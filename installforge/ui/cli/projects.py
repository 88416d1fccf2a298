"""
CLI commands for stored projects.

Thin wrappers over ``installforge.core.persistence.store`` and
``installforge.core.use_cases.export``.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click


def _store(ctx: click.Context):  # type: ignore[no-untyped-def]
    from installforge.core.persistence.store import ProjectStore

    return ProjectStore(ctx.obj["settings"].data_root)


@click.group()
def projects() -> None:
    """Projects — list, create, show, export."""


@projects.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """List stored projects."""
    items = _store(ctx).list_projects()

    if as_json:
        click.echo(json.dumps([p.model_dump(mode="json") for p in items], indent=2))
        return

    if not items:
        click.secho("No projects found.", fg="yellow")
        return

    click.secho(f"📁 Projects ({len(items)}):", fg="cyan", bold=True)
    for p in items:
        targets = ", ".join(p.target) if p.target else "-"
        click.echo(f"   {p.id}  {p.name:<24} [{targets}]")


@projects.command("create")
@click.argument("name")
@click.option("--description", "-d", default="", help="Project description.")
@click.option("--target", "-t", "targets", multiple=True, help="Target platform (repeatable).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def create_cmd(
    ctx: click.Context,
    name: str,
    description: str,
    targets: tuple[str, ...],
    as_json: bool,
) -> None:
    """Create a project with a starter recipe."""
    from installforge.core.persistence.store import StoreError

    try:
        recipe = _store(ctx).create_project(name, description, list(targets))
    except StoreError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(recipe.to_dict(), indent=2))
        return

    click.secho(f"✅ Created {recipe.project.name}", fg="green", bold=True)
    click.echo(f"   id: {recipe.project.id}")


@projects.command("show")
@click.argument("project_id")
@click.pass_context
def show_cmd(ctx: click.Context, project_id: str) -> None:
    """Print a project's recipe as pretty JSON."""
    from installforge.core.models.recipe import pretty_json
    from installforge.core.persistence.store import StoreError

    try:
        recipe = _store(ctx).load_recipe(project_id)
    except StoreError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    click.echo(pretty_json(recipe))


@projects.command("export")
@click.argument("project_id")
@click.option(
    "--out", "-o", "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Bundle directory (default: <tmp>/bundle_<name>).",
)
@click.option(
    "--format", "fmt",
    type=click.Choice(["dir", "tar.gz"]),
    default="dir",
    show_default=True,
    help="Bundle format.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def export_cmd(
    ctx: click.Context,
    project_id: str,
    out_dir: Path | None,
    fmt: str,
    as_json: bool,
) -> None:
    """Validate and export a project bundle; refused on error issues."""
    from installforge.core.persistence.store import StoreError
    from installforge.core.use_cases.export import export_bundle

    try:
        result = export_bundle(_store(ctx), project_id, target_dir=out_dir, fmt=fmt)
    except StoreError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.refused:
        click.secho("❌ Export refused — fix these errors first:", fg="red", bold=True)
        for issue in result.issues:
            if issue.level == "error":
                click.echo(f"   • [{issue.step_id or '-'}] {issue.message}")
        sys.exit(1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"📦 Bundle written to {result.path}", fg="green", bold=True)
    warnings = [i for i in result.issues if i.level == "warn"]
    if warnings and not ctx.obj.get("quiet"):
        click.secho(f"⚠️  Warnings ({len(warnings)}):", fg="yellow")
        for issue in warnings:
            click.echo(f"   • [{issue.step_id or '-'}] {issue.message}")
