"""
Tests for preflight command inference.
"""

import pytest

from installforge.core.models.recipe import Step
from installforge.core.services.preflight import commands_for, required_commands


class TestCommandsFor:
    @pytest.mark.parametrize("step_type,expected", [
        ("extract_zip", {"unzip"}),
        ("extract_tar_gz", {"tar"}),
        ("rpm_install", {"rpm"}),
        ("append_lines", {"sed", "grep"}),
        ("delete_lines", {"sed", "grep"}),
        ("replace", {"sed", "grep"}),
        ("service_systemd", {"systemctl"}),
        ("auto_service", {"systemctl"}),
        ("service_sysv", {"chkconfig"}),
    ])
    def test_mapping(self, step_type, expected):
        assert commands_for(step_type) == expected

    @pytest.mark.parametrize("step_type", ["mkdir", "copy", "chmod", "chown", "run_cmd", "bogus"])
    def test_no_commands(self, step_type):
        assert commands_for(step_type) == frozenset()


class TestRequiredCommands:
    def test_empty(self):
        assert required_commands([]) == []

    def test_deduplicated(self):
        steps = [
            Step(id="1", type="replace"),
            Step(id="2", type="delete_lines"),
            Step(id="3", type="append_lines"),
        ]
        assert required_commands(steps) == ["grep", "sed"]

    def test_union(self):
        steps = [
            Step(id="1", type="extract_zip"),
            Step(id="2", type="auto_service"),
            Step(id="3", type="service_systemd"),
            Step(id="4", type="mkdir"),
        ]
        assert set(required_commands(steps)) == {"unzip", "systemctl"}
