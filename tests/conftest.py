from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Generator, Iterator
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from click.testing import CliRunner

    from filesort.templates.engine import TemplateEngine


@pytest.fixture(autouse=True)
def configure_test_logging() -> Generator[None, None, None]:
    """Configure structlog for test environment.

    Runs automatically for all tests so log output goes to stderr at WARNING
    level and never mixes with rendered output on stdout.
    """
    from filesort.logging import configure_logging

    configure_logging(level=logging.WARNING)
    yield


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for test files.

    Also saves and restores the current working directory to prevent
    tests that use os.chdir() from affecting other tests.
    """
    original_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()
    os.chdir(original_cwd)


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Remove all FILESORT_ environment variables for clean testing."""
    original_env = os.environ.copy()
    for key in list(os.environ.keys()):
        if key.startswith("FILESORT_"):
            del os.environ[key]
    yield
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def isolated_config(
    clean_env: None, temp_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> Path:
    """Run in an empty directory with no user or project config.

    Returns:
        The temporary working directory.
    """
    monkeypatch.chdir(temp_dir)
    monkeypatch.setattr(Path, "home", lambda: temp_dir / "home")
    return temp_dir


@pytest.fixture
def sample_config_yaml() -> str:
    """Return sample filesort.yaml content for testing."""
    return """
templates:
  cache_size: 32
  strict_functions: true

context:
  include_metadata: false

variables:
  - kind: regex
    name: show
    pattern: '(?P<title>[^.]+)\\.S(?P<season>\\d+)E(?P<episode>\\d+)'
    input: "{{ stem }}"
  - kind: template
    name: folder
    value: "{{ show.title }}/Season {{ show.season }}"

workers: 2
verbosity: "info"
"""


@pytest.fixture
def engine() -> TemplateEngine:
    """A template engine with the built-in functions."""
    from filesort.templates.engine import TemplateEngine

    return TemplateEngine()


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner.

    Example:
        >>> def test_version(cli_runner):
        ...     from filesort.main import cli
        ...     result = cli_runner.invoke(cli, ["--version"])
        ...     assert result.exit_code == 0
    """
    from click.testing import CliRunner

    return CliRunner()
