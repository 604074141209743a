"""Shared test fixtures for proctor.

Provides reusable fixtures for configurations, a mocked config loader,
isolated config directories, output state and the CLI runner. These
fixtures are discovered by pytest and available to all test modules.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from proctor.config import CONFIG_KEYS, ConfigLoader
from proctor.models import ProctorConfig
from proctor.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams and the
    test finishes, the cached references become stale.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def proctor_config() -> ProctorConfig:
    """A complete configuration for the example daemon."""
    return ProctorConfig(
        host="proctor.example.com",
        email="proctor@example.com",
        access_token="access-token",
    )


def _mock_loader(config: ProctorConfig) -> MagicMock:
    loader = MagicMock(spec=ConfigLoader)
    loader.load.return_value = config
    return loader


@pytest.fixture
def make_loader():
    """Factory building a config loader mock that returns the given config."""
    return _mock_loader


@pytest.fixture
def config_loader(proctor_config: ProctorConfig) -> MagicMock:
    """A mocked :class:`ConfigLoader` returning :func:`proctor_config`."""
    return _mock_loader(proctor_config)


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points PROCTOR_CONFIG_DIR at a subdirectory of tmp_path and clears the
    environment overrides so tests never touch the real ``~/.proctor``.

    Returns:
        The config directory (not yet created).
    """
    config_dir = tmp_path / "proctor"
    monkeypatch.setenv("PROCTOR_CONFIG_DIR", str(config_dir))
    for var in CONFIG_KEYS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return config_dir


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager as the global output."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True, no_color=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
