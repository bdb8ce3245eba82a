"""
Pytest configuration and fixtures for installer tests.
"""

import io
import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from rich.console import Console

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Host settings must not leak into tests
for _var in list(os.environ):
    if _var.startswith("HAPPY_"):
        del os.environ[_var]

from src.core.reporter import StepReporter  # noqa: E402
from src.domain.models import InstallConfig  # noqa: E402


def _completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def completed():
    """Factory for CompletedProcess results like CommandRunner.run returns."""
    return _completed


@pytest.fixture
def quiet_console():
    """Console that writes into a buffer instead of the terminal."""
    return Console(file=io.StringIO(), width=120, force_terminal=False)


@pytest.fixture
def reporter(quiet_console):
    return StepReporter(out=quiet_console)


@pytest.fixture
def mock_runner():
    """CommandRunner double: every command succeeds with empty output."""
    runner = MagicMock()
    runner.run.return_value = _completed()
    runner.which.return_value = True
    return runner


@pytest.fixture
def install_config(tmp_path):
    """Config whose filesystem targets all live under tmp_path."""
    return InstallConfig(
        domain="api.example.com",
        require_root=False,
        clone_dir=tmp_path / "clone",
        source_candidates=[tmp_path / "root-happy", tmp_path / "etc-happy"],
        caddyfile_path=tmp_path / "caddy" / "Caddyfile",
        cert_dir=tmp_path / "ssl",
        record_dir=tmp_path / "records",
    )


@pytest.fixture
def mock_docker_client():
    """Mock Docker client for testing."""
    client = MagicMock()
    client.ping.return_value = True

    container = MagicMock()
    container.short_id = "abc123"
    client.containers.run.return_value = container
    client.api.build.return_value = iter([{"stream": "Step 1/3 : FROM node:20\n"}])

    return client


@pytest.fixture
def happy_source(tmp_path):
    """A directory that looks like a Happy checkout."""
    source = tmp_path / "happy-src"
    source.mkdir()
    (source / "Dockerfile").write_text("FROM node:20\n")
    (source / "package.json").write_text("{}\n")
    return source
