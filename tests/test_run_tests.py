"""Tests for the command-line test runner."""

import importlib.util
import sys
from pathlib import Path

import pytest

RUNNER_PATH = Path(__file__).parent.parent / "run_tests.py"


@pytest.fixture
def runner():
    spec = importlib.util.spec_from_file_location("run_tests", RUNNER_PATH)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestRunner:
    """Test suite for run_tests.py."""

    def test_build_command_passes_extra_args(self, runner):
        cmd = runner.build_command(["-k", "snapshot"])

        assert cmd[:3] == [sys.executable, "-m", "pytest"]
        assert "tests/" in cmd
        assert "--strict-markers" in cmd
        assert cmd[-2:] == ["-k", "snapshot"]

    def test_nothing_missing_in_test_environment(self, runner):
        assert runner.missing_dependencies() == []

    def test_install_commands(self, runner):
        """Test requirements are installed once and the package is installed editable."""
        commands = runner.install_commands(['pytest', 'httpx', 'spotify_scraper'])

        assert len(commands) == 2
        assert commands[0][-2:] == ["-r", str(runner.PROJECT_ROOT / "requirements-test.txt")]
        assert commands[1][-2:] == ["-e", str(runner.PROJECT_ROOT)]

    def test_no_install_when_nothing_missing(self, runner):
        assert runner.install_commands([]) == []
