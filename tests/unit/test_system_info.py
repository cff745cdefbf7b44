"""
Tests for the info file writer in gcollect.system_info.
"""

from datetime import datetime

import pytest

from gcollect.artifacts import RunArtifacts
from gcollect.config import TOOL_NAME, VERSION
from gcollect.cores import CoreSet, ALL_CORES
from gcollect.system_info import InfoFile, display_time
from tests.fixtures.mock_executor import MockCommandExecutor
from tests.fixtures.sample_data import SAMPLE_CMDLINE_ISOLATED, SAMPLE_LSCPU, create_sample_config

MOMENT = datetime(2025, 1, 15, 14, 30, 22)


@pytest.fixture
def artifacts(tmp_path):
    return RunArtifacts.generate(str(tmp_path), label="run1", hostname="du01", now=MOMENT)


@pytest.fixture
def info_file(artifacts, mock_executor, capturing_logger, cmdline_file):
    return InfoFile(artifacts.info_file, mock_executor, capturing_logger,
                    cmdline_path=cmdline_file(SAMPLE_CMDLINE_ISOLATED))


def read(path):
    with open(path) as f:
        return f.read()


class TestWriteHeader:

    def test_header_contents(self, info_file, artifacts, tmp_path):
        config = create_sample_config(str(tmp_path), duration=60, label="run1")

        info_file.write_header(config, artifacts, CoreSet("1-30,33-62"), started=MOMENT)

        content = read(artifacts.info_file)
        assert f"Tool Version: {VERSION}" in content
        assert f"# {TOOL_NAME} System Information and Configuration" in content
        assert "Hostname: du01" in content
        assert "Collection Duration: 60s (timed)" in content
        assert "Target Cores: 1-30,33-62" in content
        assert f"Performance Data: {artifacts.perf_file}" in content
        assert f"Bundle: {artifacts.bundle_file}" in content

    def test_no_bundle_line_when_disabled(self, info_file, artifacts, tmp_path):
        config = create_sample_config(str(tmp_path), create_bundle=False)

        info_file.write_header(config, artifacts, ALL_CORES)

        content = read(artifacts.info_file)
        assert f"Bundle: {artifacts.bundle_file}" not in content
        assert "Create Bundle: no" in content
        assert "Target Cores: all (system-wide)" in content


class TestCollectSystemInfo:

    def test_all_sections(self, info_file, artifacts, tmp_path, mock_executor):
        config = create_sample_config(str(tmp_path), include_turbostat=True, turbostat_iterations=3)
        mock_executor.add_response(r'^turbostat', 'Core\tCPU\tAvg_MHz\n-\t-\t2201\n', 'turbostat version 2022.10.04', 0)

        failed = info_file.collect_system_info(config)

        assert failed == []
        content = read(artifacts.info_file)
        assert "KERNEL COMMAND LINE" in content
        assert "isolcpus=1-30,33-62" in content
        assert SAMPLE_LSCPU.splitlines()[0] in content
        assert "TURBOSTAT OUTPUT (3 samples)" in content
        assert "turbostat version 2022.10.04" in content
        mock_executor.assert_command_executed(r'turbostat -i 0.001 -n 3')

    def test_turbostat_skipped_when_disabled(self, info_file, artifacts, tmp_path, mock_executor):
        info_file.collect_system_info(create_sample_config(str(tmp_path), include_turbostat=False))

        mock_executor.assert_command_not_executed('turbostat')
        assert "TURBOSTAT" not in read(artifacts.info_file)

    def test_failing_section_writes_marker(self, info_file, artifacts, tmp_path, mock_executor, capturing_logger):
        config = create_sample_config(str(tmp_path), include_turbostat=True)
        mock_executor.add_response(r'^turbostat', '', 'turbostat: no MSR access', 1)

        failed = info_file.collect_system_info(config)

        assert failed == ["TURBOSTAT OUTPUT (5 samples)"]
        content = read(artifacts.info_file)
        assert "Turbostat Output collection failed: turbostat -i 0.001 -n 5: turbostat: no MSR access" in content
        assert "PERF VERSION" in content
        capturing_logger.assert_logged('warning', 'collection failed')

    def test_missing_tool_writes_marker(self, artifacts, tmp_path, capturing_logger, cmdline_file):
        executor = MockCommandExecutor({r'^lscpu': ('', '', None)})
        info_file = InfoFile(artifacts.info_file, executor, capturing_logger,
                             cmdline_path=cmdline_file("ro quiet"))

        failed = info_file.collect_system_info(create_sample_config(str(tmp_path)))

        assert failed == ["CPU INFORMATION (lscpu)"]
        assert "Cpu Information collection failed: Command not found: lscpu" in read(artifacts.info_file)

    def test_unreadable_cmdline(self, artifacts, tmp_path, mock_executor, capturing_logger):
        info_file = InfoFile(artifacts.info_file, mock_executor, capturing_logger,
                             cmdline_path=str(tmp_path / "missing"))

        failed = info_file.collect_system_info(create_sample_config(str(tmp_path)))

        assert failed == ["KERNEL COMMAND LINE"]


class TestAppendSummary:

    def test_appends_block(self, info_file, artifacts, tmp_path):
        info_file.write_header(create_sample_config(str(tmp_path)), artifacts, ALL_CORES)

        assert info_file.append_summary(MOMENT, "collection duration reached", 3723, 0) is True

        content = read(artifacts.info_file)
        assert "Stop Reason: collection duration reached" in content
        assert "Elapsed: 1h02m03s" in content
        assert "Perf Exit Code: 0" in content

    def test_missing_file(self, info_file):
        assert info_file.append_summary(MOMENT, "stopped by signal", None, None) is False


def test_display_time_is_timezone_aware():
    rendered = display_time(MOMENT)
    assert rendered.startswith("2025-01-15 14:30:22")
