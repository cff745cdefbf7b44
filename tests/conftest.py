"""
Shared pytest fixtures for gcollect tests.

These fixtures provide loggers, sample configs and a fake perf launcher so the
lifecycle can be exercised without perf, root or a real collector.
"""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from tests.fixtures.mock_executor import MockCommandExecutor
from tests.fixtures.mock_logger import RecordingLogger
from tests.fixtures.sample_data import SAMPLE_LSCPU, create_sample_args, create_sample_config

FAKE_SAMPLER = Path(__file__).parent / "fixtures" / "fake_sampler.py"


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def fixtures_dir() -> Path:
    """Return path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def cmdline_file(tmp_path):
    """
    Factory writing a fake /proc/cmdline.

    Usage:
        def test_something(cmdline_file):
            path = cmdline_file("ro isolcpus=2-5 quiet")
    """
    def _write(content: str) -> str:
        path = tmp_path / "cmdline"
        path.write_text(content)
        return str(path)
    return _write


# =============================================================================
# Logger Fixtures
# =============================================================================

@pytest.fixture
def mock_logger():
    """
    Create a mock logger that captures all log calls.

    Usage:
        def test_something(mock_logger):
            some_function(logger=mock_logger)
            mock_logger.info.assert_called_with("expected message")
    """
    logger = MagicMock()
    for level in ['debug', 'info', 'warning', 'error', 'critical',
                  'status', 'verbose', 'result']:
        setattr(logger, level, MagicMock())
    return logger


@pytest.fixture
def capturing_logger():
    """A RecordingLogger keeping records in memory."""
    return RecordingLogger()


# =============================================================================
# Config Fixtures
# =============================================================================

@pytest.fixture
def sample_args():
    return create_sample_args()


@pytest.fixture
def run_config(tmp_path):
    """RunConfig writing into tmp_path, system-wide cores, no turbostat."""
    return create_sample_config(str(tmp_path))


@pytest.fixture
def mock_executor():
    executor = MockCommandExecutor({
        r'^lscpu': (SAMPLE_LSCPU, '', 0),
        r'^uname -a': ('Linux testhost 6.5.0-14-generic #14-Ubuntu SMP x86_64 GNU/Linux\n', '', 0),
        r'^perf --version': ('perf version 6.5.13\n', '', 0),
    })
    return executor


# =============================================================================
# Fake Sampler Fixtures
# =============================================================================

@pytest.fixture
def fake_popen():
    """
    Factory for a Popen replacement that runs tests/fixtures/fake_sampler.py
    with the perf arguments instead of perf itself.

    Usage:
        popen = fake_popen("crash:1")
        LifecycleController(config, logger, popen=popen)
    """
    def _factory(mode: str = "record"):
        def _popen(command, **kwargs):
            env = dict(os.environ, FAKE_SAMPLER_MODE=mode)
            return subprocess.Popen([sys.executable, str(FAKE_SAMPLER), *command[1:]], env=env, **kwargs)
        return _popen
    return _factory


# =============================================================================
# Environment Variable Fixtures
# =============================================================================

@pytest.fixture
def clean_env(monkeypatch):
    """Remove gcollect-related environment variables."""
    for var in ("GCOLLECT_UPLOAD_TOKEN", "GCOLLECT_UPLOAD_URL", "GCOLLECT_DEBUG"):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
