"""
Shared test fixtures and configuration.
"""

import logging
from pathlib import Path

import pytest

from hostprep.adapters.mock import ScriptedExecutor, ScriptedRelay
from hostprep.core.models.environment import ExecutionContext

PROXY = "http://proxy:8080"


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch) -> Path:
    """Point the default config location into the test's tmp dir."""
    path = tmp_path / "hostprep" / "config.yml"
    monkeypatch.setenv("HOSTPREP_CONFIG", str(path))
    return path


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """The CLI reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def context() -> ExecutionContext:
    return ExecutionContext()


@pytest.fixture
def proxy_context() -> ExecutionContext:
    return ExecutionContext(proxy_url=PROXY)


@pytest.fixture
def executor() -> ScriptedExecutor:
    return ScriptedExecutor()


@pytest.fixture
def relay() -> ScriptedRelay:
    return ScriptedRelay()
