"""Shared pytest fixtures for tunnelify tests."""

import stat
from unittest.mock import AsyncMock, Mock

import pytest

from tunnelify.context import ResourceLeakDetector


@pytest.fixture
def mock_process():
    """Create a mock asyncio process that exits with code 0.

    Returns:
        Mock: Mock process; set ``wait.return_value`` to change the exit code
    """
    process = Mock()
    process.pid = 12345
    process.wait = AsyncMock(return_value=0)
    return process


@pytest.fixture
def mock_exec(monkeypatch, mock_process):
    """Mock asyncio.create_subprocess_exec for testing tunnels without ssh.

    Returns:
        AsyncMock: Mocked create_subprocess_exec returning ``mock_process``
    """
    mock = AsyncMock(return_value=mock_process)
    monkeypatch.setattr("asyncio.create_subprocess_exec", mock)
    return mock


@pytest.fixture
def mock_run(monkeypatch):
    """Mock subprocess.run for the blocking code paths.

    Returns:
        Mock: Mocked run returning a completed process with returncode 0
    """
    mock = Mock(return_value=Mock(returncode=0))
    monkeypatch.setattr("subprocess.run", mock)
    return mock


@pytest.fixture
def fake_ssh(tmp_path):
    """Factory for a stand-in ssh executable.

    The script appends its arguments to ``calls.log`` and exits with the
    requested code.

    Returns:
        Callable: ``make(exit_code=0) -> (binary_path, log_path)``
    """

    def make(exit_code: int = 0):
        log_path = tmp_path / "calls.log"
        binary_path = tmp_path / f"ssh-{exit_code}"
        binary_path.write_text(
            f'#!/bin/sh\necho "$@" >> "{log_path}"\nexit {exit_code}\n'
        )
        binary_path.chmod(binary_path.stat().st_mode | stat.S_IXUSR)
        return binary_path, log_path

    return make


@pytest.fixture(autouse=True)
def reset_leak_detector():
    """Forget tunnels opened by a test so nothing is closed at exit."""
    yield
    with ResourceLeakDetector._lock:
        ResourceLeakDetector._active_resources.clear()
