"""
CLI Tests
=========

Tests for the droidsync command-line interface (stress and config).

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import json

import click
import pytest
from click.testing import CliRunner

from droidsync import IdleTimeoutError, __version__
from droidsync.cli.errors import ExitCode, handle_cli_exception
from droidsync.cli.main import main


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def no_env(monkeypatch):
    for var in (
        "DROIDSYNC_TIMEOUT",
        "DROIDSYNC_POLL_INTERVAL",
        "DROIDSYNC_RESOURCES",
        "DROIDSYNC_STRICT",
        "DROIDSYNC_LOG_ACTIONS",
    ):
        monkeypatch.delenv(var, raising=False)


# =============================================================================
# Group
# =============================================================================

class TestMain:
    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "stress" in result.output
        assert "config" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output


# =============================================================================
# stress
# =============================================================================

class TestStress:
    def test_balanced_run_ends_idle(self, runner):
        result = runner.invoke(main, ["stress", "--threads", "4", "--rounds", "10"])
        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Peak count:         40 (expected 40)" in result.output
        assert "Final count:        0" in result.output
        assert "Idle:               True" in result.output
        assert "Ignored decrements: 0" in result.output

    def test_extra_decrements_ignored(self, runner):
        """Decrements past zero are counted, not applied."""
        result = runner.invoke(
            main, ["stress", "-t", "2", "-r", "5", "--extra-decrements", "3"]
        )
        assert result.exit_code == ExitCode.SUCCESS, result.output
        assert "Final count:        0" in result.output
        assert "Ignored decrements: 3" in result.output

    def test_custom_counter_name(self, runner):
        result = runner.invoke(main, ["stress", "-t", "1", "-r", "1", "-n", "database"])
        assert result.exit_code == 0
        assert "Counter:            database" in result.output

    def test_invalid_thread_count(self, runner):
        result = runner.invoke(main, ["stress", "--threads", "0"])
        assert result.exit_code == ExitCode.INVALID_ARGS


# =============================================================================
# config
# =============================================================================

class TestConfigCommand:
    def test_plain(self, runner):
        result = runner.invoke(main, ["config"])
        assert result.exit_code == 0
        assert "idle_timeout: 10.0" in result.output
        assert "default_resources: network, database" in result.output

    def test_json(self, runner):
        result = runner.invoke(main, ["config", "--json"])
        assert result.exit_code == 0
        values = json.loads(result.output)
        assert values["poll_interval"] == 0.05
        assert values["default_resources"] == ["network", "database"]

    def test_reads_environment(self, runner, monkeypatch):
        monkeypatch.setenv("DROIDSYNC_TIMEOUT", "2")
        result = runner.invoke(main, ["config"])
        assert "idle_timeout: 2.0" in result.output


# =============================================================================
# Error handling
# =============================================================================

class TestErrorHandling:
    def test_droidsync_error_exit_code(self, capsys):
        error = IdleTimeoutError("not idle", timeout=1.0, busy_resources=["network"], elapsed=1.0)
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(error)
        assert exc_info.value.code == ExitCode.NOT_IDLE
        assert "not idle" in capsys.readouterr().err

    def test_bad_parameter_exit_code(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(click.BadParameter("bad"))
        assert exc_info.value.code == ExitCode.INVALID_ARGS

    def test_internal_error_exit_code(self):
        with pytest.raises(SystemExit) as exc_info:
            handle_cli_exception(RuntimeError("boom"))
        assert exc_info.value.code == ExitCode.INTERNAL_ERROR
