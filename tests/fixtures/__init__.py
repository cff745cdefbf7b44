"""
Test fixtures package for gcollect tests.

This package provides reusable mock classes, sample data and the fake perf
sampler used by the integration tests.
"""

from tests.fixtures.mock_logger import RecordingLogger, create_recording_logger
from tests.fixtures.mock_executor import MockCommandExecutor
from tests.fixtures.mock_sampler import MockSampler
from tests.fixtures.sample_data import (
    SAMPLE_CMDLINE_ISOLATED,
    SAMPLE_CMDLINE_FLAGGED,
    SAMPLE_CMDLINE_PLAIN,
    SAMPLE_PROC_STATUS_ROOTLESS,
    SAMPLE_PROC_STATUS_PERFMON,
    SAMPLE_LSCPU,
    create_sample_args,
    create_sample_config,
)

__all__ = [
    # Mock classes
    'RecordingLogger',
    'create_recording_logger',
    'MockCommandExecutor',
    'MockSampler',
    # Sample data
    'SAMPLE_CMDLINE_ISOLATED',
    'SAMPLE_CMDLINE_FLAGGED',
    'SAMPLE_CMDLINE_PLAIN',
    'SAMPLE_PROC_STATUS_ROOTLESS',
    'SAMPLE_PROC_STATUS_PERFMON',
    'SAMPLE_LSCPU',
    'create_sample_args',
    'create_sample_config',
]
