"""Unit tests for global CLI options and entrypoint in main.py.

Tests:
- --version and --help output
- --config option for specifying a custom config file
- --verbose / --quiet precedence for the log level
- Configuration errors reported before any command runs
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from filesort import __version__
from filesort.main import cli


def test_version(cli_runner: CliRunner, isolated_config: Path) -> None:
    result = cli_runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_no_command_shows_help(cli_runner: CliRunner, isolated_config: Path) -> None:
    result = cli_runner.invoke(cli, [])
    assert result.exit_code == 0
    assert "render" in result.output
    assert "check" in result.output
    assert "functions" in result.output


def test_config_option_loads_custom_file(
    cli_runner: CliRunner, isolated_config: Path
) -> None:
    """Strict function checking from a custom config makes check fail early."""
    custom = isolated_config / "custom.yaml"
    custom.write_text("templates:\n  strict_functions: true\n")

    result = cli_runner.invoke(cli, ["--config", str(custom), "check", "{{ nope() }}"])

    assert result.exit_code == 1
    assert "Unknown function 'nope'" in result.output


def test_missing_config_file_is_an_error(
    cli_runner: CliRunner, isolated_config: Path
) -> None:
    result = cli_runner.invoke(cli, ["-c", "missing.yaml", "functions"])
    assert result.exit_code == 1
    assert "Config file not found" in result.output


def test_invalid_config_reports_field(
    cli_runner: CliRunner, isolated_config: Path
) -> None:
    (isolated_config / "filesort.yaml").write_text("workers: 0\n")

    result = cli_runner.invoke(cli, ["functions"])

    assert result.exit_code == 1
    assert "Error: Invalid configuration" in result.output
    assert "Field: workers" in result.output


@pytest.mark.parametrize(
    ("args", "config_yaml", "level"),
    [
        ([], "", logging.WARNING),
        ([], "verbosity: debug\n", logging.DEBUG),
        (["-v"], "", logging.INFO),
        (["-vv"], "", logging.DEBUG),
        (["-q"], "verbosity: debug\n", logging.ERROR),
        (["-q", "-vv"], "", logging.ERROR),
    ],
)
def test_log_level_precedence(
    cli_runner: CliRunner,
    isolated_config: Path,
    args: list[str],
    config_yaml: str,
    level: int,
) -> None:
    """Quiet beats verbose, which beats the configured verbosity."""
    (isolated_config / "filesort.yaml").write_text(config_yaml)

    result = cli_runner.invoke(cli, [*args, "functions"])

    assert result.exit_code == 0
    assert logging.getLogger().level == level
