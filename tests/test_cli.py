"""
Tests for the click CLI.
"""

import json

import pytest
from click.testing import CliRunner

from installforge import __version__
from installforge.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Empty cwd with a settings file pointing the store into tmp."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("INSTALLFORGE_DATA_ROOT", raising=False)
    (tmp_path / "installforge.yml").write_text("data_root: projects\n")
    return tmp_path


def _write_recipe(path, *steps):
    path.write_text(json.dumps({"project": {"name": "demo"}, "steps": list(steps)}))
    return path


class TestTopLevel:
    def test_help(self, runner, workspace):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in ("validate", "render", "web", "projects"):
            assert name in result.output

    def test_version(self, runner, workspace):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_config_file(self, runner, workspace):
        result = runner.invoke(cli, ["-c", "nope.yml", "projects", "list"])
        assert result.exit_code == 1
        assert "Config file not found" in result.output


class TestValidate:
    def test_clean(self, runner, workspace):
        path = _write_recipe(workspace / "r.json", {"id": "a", "type": "mkdir", "config": {"path": "/x"}})
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 0
        assert "no issues" in result.output

    def test_errors_exit_1(self, runner, workspace):
        path = _write_recipe(workspace / "r.json", {"id": "a", "type": "mkdir"})
        result = runner.invoke(cli, ["validate", str(path)])
        assert result.exit_code == 1
        assert "path is required" in result.output

    def test_json(self, runner, workspace):
        path = _write_recipe(workspace / "r.json", {"id": "a", "type": "run_cmd", "config": {"cmd": "ls"}})
        result = runner.invoke(cli, ["validate", str(path), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["valid"] is True
        assert data["issues"][0]["level"] == "warn"

    def test_missing_file(self, runner, workspace):
        result = runner.invoke(cli, ["validate", "missing.json"])
        assert result.exit_code == 1
        assert "Recipe not found" in result.output


class TestRender:
    def test_prints_script(self, runner, workspace):
        path = _write_recipe(workspace / "r.json", {"id": "a", "type": "mkdir", "config": {"path": "/x"}})
        result = runner.invoke(cli, ["render", str(path)])
        assert result.exit_code == 0
        assert result.output.startswith("#!/bin/bash")

    def test_out_dir(self, runner, workspace):
        path = _write_recipe(workspace / "r.json", {"id": "a", "type": "mkdir"})
        out = workspace / "build"
        result = runner.invoke(cli, ["render", str(path), "--out", str(out)])
        assert result.exit_code == 0
        assert (out / "install.sh").is_file()
        assert (out / "README.txt").is_file()
        assert (out / "recipe.json").is_file()
        assert "path is required" in result.output


class TestProjects:
    def test_create_list_show_export(self, runner, workspace):
        result = runner.invoke(cli, ["projects", "create", "demo", "--json"])
        assert result.exit_code == 0
        pid = json.loads(result.output)["project"]["id"]
        assert (workspace / "projects" / pid / "recipe.json").is_file()

        result = runner.invoke(cli, ["projects", "list"])
        assert pid in result.output

        result = runner.invoke(cli, ["projects", "show", pid])
        assert json.loads(result.output)["project"]["name"] == "demo"

        out = workspace / "bundle"
        result = runner.invoke(cli, ["projects", "export", pid, "--out", str(out)])
        assert result.exit_code == 0
        assert (out / "install.sh").is_file()

    def test_list_empty(self, runner, workspace):
        result = runner.invoke(cli, ["projects", "list"])
        assert result.exit_code == 0
        assert "No projects found" in result.output

    def test_show_missing(self, runner, workspace):
        result = runner.invoke(cli, ["projects", "show", "missing"])
        assert result.exit_code == 1

    def test_export_refused(self, runner, workspace):
        pid = json.loads(runner.invoke(cli, ["projects", "create", "demo", "--json"]).output)["project"]["id"]
        recipe_path = workspace / "projects" / pid / "recipe.json"
        data = json.loads(recipe_path.read_text())
        data["steps"] = [{"id": "s1", "type": "chown", "config": {"path": "/x"}}]
        recipe_path.write_text(json.dumps(data))

        result = runner.invoke(cli, ["projects", "export", pid, "--out", str(workspace / "b")])
        assert result.exit_code == 1
        assert "Export refused" in result.output
        assert "owner is required" in result.output

    def test_export_keeps_foreign_directory(self, runner, workspace):
        pid = json.loads(runner.invoke(cli, ["projects", "create", "demo", "--json"]).output)["project"]["id"]
        result = runner.invoke(cli, ["projects", "export", pid, "--out", str(workspace)])
        assert result.exit_code == 1
        assert "not a bundle" in result.output
        assert (workspace / "installforge.yml").is_file()
