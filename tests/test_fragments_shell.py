"""
Generated shell executed under ``bash -c 'set -eu; ...'`` against temp files.

Complements test_fragments.py: there the lines are inspected, here they
run and the resulting files are checked.
"""

import os
import shutil
import subprocess
import tarfile

import pytest

from installforge.core.models.recipe import Step
from installforge.core.services.generators.fragments import build_fragment
from installforge.core.services.generators.install_script import _vars_section

BASH = shutil.which("bash")

pytestmark = pytest.mark.skipif(BASH is None, reason="bash not available")


def _run(script: str, cwd, env: dict[str, str] | None = None) -> subprocess.CompletedProcess:
    return subprocess.run(
        [BASH, "-c", "set -eu\n" + script],
        cwd=cwd,
        env={**os.environ, **(env or {})},
        capture_output=True,
        text=True,
        timeout=30,
    )


def _fragment(step_type: str, **config) -> str:
    return build_fragment(Step(id="s", type=step_type, config=config)).text


class TestVarsSection:
    def test_later_var_references_earlier(self, tmp_path):
        section = _vars_section({
            "INSTALL_ROOT": "/opt/demo",
            "APP_HOME": "$INSTALL_ROOT/app",
            "LOG_DIR": "/l",
        })
        result = _run(section + 'echo "$APP_HOME"\n', tmp_path,
                      env={"INSTALL_ROOT": "", "APP_HOME": ""})
        assert result.returncode == 0, result.stderr
        assert result.stdout == "/opt/demo/app\n"

    def test_environment_overrides_flow_through(self, tmp_path):
        section = _vars_section({"INSTALL_ROOT": "/opt/demo", "APP_HOME": "$INSTALL_ROOT/app"})
        result = _run(section + 'echo "$APP_HOME $LOG_DIR"\n', tmp_path,
                      env={"INSTALL_ROOT": "/srv", "APP_HOME": "", "LOG_DIR": ""})
        assert result.returncode == 0, result.stderr
        assert result.stdout == "/srv/app /var/log/asg\n"


class TestAppendLines:
    def test_unique_skips_existing_lines(self, tmp_path):
        target = tmp_path / "hosts"
        target.write_text("a\n")
        script = _fragment("append_lines", file=str(target), lines=["a", "b"],
                           unique=True, backup=False)

        for _ in range(2):
            result = _run(script, tmp_path)
            assert result.returncode == 0, result.stderr

        assert target.read_text() == "a\nb\n"

    def test_not_unique_appends_every_time(self, tmp_path):
        target = tmp_path / "hosts"
        target.write_text("a\n")
        script = _fragment("append_lines", file=str(target), lines=["a"], backup=False)
        assert _run(script, tmp_path).returncode == 0
        assert target.read_text() == "a\na\n"

    def test_backup_taken(self, tmp_path):
        target = tmp_path / "hosts"
        target.write_text("a\n")
        result = _run(_fragment("append_lines", file=str(target), lines=["b"]), tmp_path)
        assert result.returncode == 0, result.stderr
        backups = list(tmp_path.glob("hosts.bak.*"))
        assert len(backups) == 1
        assert backups[0].read_text() == "a\n"


class TestDeleteLines:
    def test_deleting_every_line_succeeds(self, tmp_path):
        target = tmp_path / "conf"
        target.write_text("x\nx\n")
        script = _fragment("delete_lines", file=str(target), match="x", mode="fixed", backup=False)
        result = _run(script, tmp_path)
        assert result.returncode == 0, result.stderr
        assert target.read_text() == ""

    def test_fixed_is_literal_substring(self, tmp_path):
        target = tmp_path / "conf"
        target.write_text("a.c\nabc\nza.cz\n")
        script = _fragment("delete_lines", file=str(target), match="a.c", mode="fixed", backup=False)
        assert _run(script, tmp_path).returncode == 0
        assert target.read_text() == "abc\n"

    def test_regex(self, tmp_path):
        target = tmp_path / "conf"
        target.write_text("foo1\nbar\nfoo22\n")
        script = _fragment("delete_lines", file=str(target), match="^foo[0-9]+$", mode="regex", backup=False)
        assert _run(script, tmp_path).returncode == 0
        assert target.read_text() == "bar\n"

    def test_keeps_file_mode(self, tmp_path):
        target = tmp_path / "conf"
        target.write_text("a\nb\n")
        target.chmod(0o600)
        script = _fragment("delete_lines", file=str(target), match="a", mode="fixed", backup=False)
        assert _run(script, tmp_path).returncode == 0
        assert target.stat().st_mode & 0o777 == 0o600

    def test_failed_filter_leaves_no_temp_file(self, tmp_path):
        target = tmp_path / "conf"
        target.write_text("a\n")
        script = _fragment("delete_lines", file=str(target), match="(", mode="regex", backup=False)
        result = _run(script, tmp_path)
        assert result.returncode != 0
        assert target.read_text() == "a\n"
        assert list(tmp_path.glob("conf.tmp.*")) == []


class TestReplace:
    def test_fixed_is_literal(self, tmp_path):
        target = tmp_path / "conf"
        target.write_text("path=/usr/lib.*\nkeep=/usr/libx\n")
        script = _fragment("replace", file=str(target), pattern="/usr/lib.*",
                           replacement="/opt/&lib", mode="fixed", backup=False)
        result = _run(script, tmp_path)
        assert result.returncode == 0, result.stderr
        assert target.read_text() == "path=/opt/&lib\nkeep=/usr/libx\n"

    def test_regex_with_groups(self, tmp_path):
        target = tmp_path / "conf"
        target.write_text("v1 v22\n")
        script = _fragment("replace", file=str(target), pattern="v([0-9]+)",
                           replacement="n\\1", mode="regex", backup=False)
        result = _run(script, tmp_path)
        assert result.returncode == 0, result.stderr
        assert target.read_text() == "n1 n22\n"


@pytest.mark.skipif(shutil.which("tar") is None, reason="tar not available")
class TestExtractCreatesGuard:
    def test_second_run_is_skipped(self, tmp_path):
        payload = tmp_path / "app"
        payload.mkdir()
        (payload / "hello.txt").write_text("hello")
        archive = tmp_path / "app.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            tar.add(payload, arcname="app")

        dest = tmp_path / "dest"
        script = _fragment("extract_tar_gz", src=str(archive), dest=str(dest),
                           creates=str(dest / "app"))

        first = _run(script, tmp_path)
        assert first.returncode == 0, first.stderr
        extracted = dest / "app" / "hello.txt"
        assert extracted.read_text() == "hello"

        extracted.write_text("changed")
        second = _run(script, tmp_path)
        assert second.returncode == 0, second.stderr
        assert "skip extract_tar_gz" in second.stdout
        assert extracted.read_text() == "changed"
