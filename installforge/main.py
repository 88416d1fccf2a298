"""
InstallForge — CLI entrypoint.

Usage:
    installforge --help
    installforge validate recipe.json
    installforge render recipe.json --out build/
    installforge web --port 8080
    installforge projects list
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from installforge import __version__
from installforge.core.observability.logging_config import resolve_level, setup_logging


def _load_recipe_or_exit(path: Path):  # type: ignore[no-untyped-def]
    from installforge.core.persistence.store import StoreError, read_recipe

    try:
        return read_recipe(path)
    except StoreError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="installforge")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to installforge.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """InstallForge — compile install recipes into shell installers."""
    from installforge.core.config.loader import ConfigError, load_settings

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    try:
        settings = load_settings(Path(config_path) if config_path else None)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)
    ctx.obj["settings"] = settings

    level = resolve_level(
        debug=debug,
        verbose=verbose,
        quiet=quiet,
        fallback=settings.log_level,
    )
    setup_logging(
        level=level,
        log_file=settings.log_file,
        log_file_level=os.environ.get("INSTALLFORGE_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


@cli.command()
@click.argument("recipe_file", type=click.Path(path_type=Path))
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def validate(ctx: click.Context, recipe_file: Path, as_json: bool) -> None:
    """Validate a recipe file; exits 1 if any error issue is found."""
    from installforge.core.models.recipe import has_errors
    from installforge.core.services.validator import validate as validate_recipe

    recipe = _load_recipe_or_exit(recipe_file)
    issues = validate_recipe(recipe)
    failed = has_errors(issues)

    if as_json:
        click.echo(json.dumps({
            "valid": not failed,
            "issues": [i.to_dict() for i in issues],
        }, indent=2))
        sys.exit(1 if failed else 0)

    if not issues:
        click.secho(f"✅ {recipe.project.name or recipe_file.name}: no issues", fg="green", bold=True)
        return

    errors = [i for i in issues if i.level == "error"]
    warnings = [i for i in issues if i.level == "warn"]

    if errors:
        click.secho(f"❌ Errors ({len(errors)}):", fg="red", bold=True)
        for issue in errors:
            click.echo(f"   • [{issue.step_id or '-'}] {issue.message}")
    if warnings and not ctx.obj.get("quiet"):
        click.secho(f"⚠️  Warnings ({len(warnings)}):", fg="yellow")
        for issue in warnings:
            click.echo(f"   • [{issue.step_id or '-'}] {issue.message}")

    if failed:
        sys.exit(1)


@cli.command()
@click.argument("recipe_file", type=click.Path(path_type=Path))
@click.option(
    "--out", "-o", "out_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Write install.sh, README.txt and recipe.json here instead of printing.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def render(recipe_file: Path, out_dir: Path | None, as_json: bool) -> None:
    """Render a recipe; prints install.sh unless --out or --json is given.

    Validation issues are reported but never stop rendering.
    """
    from installforge.core.services.render import RenderError
    from installforge.core.services.render import render as render_recipe

    recipe = _load_recipe_or_exit(recipe_file)
    try:
        result = render_recipe(recipe)
    except RenderError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    if out_dir is None:
        click.echo(result.install_sh, nl=False)
        return

    out_dir.mkdir(parents=True, exist_ok=True)
    install_sh = out_dir / "install.sh"
    install_sh.write_text(result.install_sh, encoding="utf-8")
    install_sh.chmod(0o755)
    (out_dir / "README.txt").write_text(result.readme, encoding="utf-8")
    (out_dir / "recipe.json").write_text(result.recipe_json_pretty, encoding="utf-8")

    click.secho(f"📦 Rendered to {out_dir}", fg="cyan", bold=True)
    for issue in result.issues:
        color = "red" if issue.level == "error" else "yellow"
        click.secho(f"   {issue.level}: [{issue.step_id or '-'}] {issue.message}", fg=color)


@cli.command()
@click.option("--host", default=None, help="Bind address (default: settings, 127.0.0.1).")
@click.option("--port", "-p", default=None, type=int, help="Port number (default: $PORT or 8080).")
@click.pass_context
def web(ctx: click.Context, host: str | None, port: int | None) -> None:
    "Start the JSON API server."
    from installforge.ui.web.server import create_app, run_server

    settings = ctx.obj["settings"]
    host = host or settings.host
    port = port or settings.port

    app = create_app(data_root=settings.data_root)

    click.echo()
    click.secho("⚡ InstallForge — API server", bold=True)
    click.echo(f"   Listening: http://{host}:{port}")
    click.echo(f"   Data root: {settings.data_root}")
    click.echo()

    run_server(app, host=host, port=port, debug=ctx.obj.get("debug", False))


# ── Register sub-command groups from installforge/ui/cli/ ──────────

from installforge.ui.cli.projects import projects  # noqa: E402

cli.add_command(projects)


if __name__ == "__main__":
    cli()
