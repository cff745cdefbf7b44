"""
End-to-end collection runs against a fake perf process.

tests/fixtures/fake_sampler.py stands in for `perf record`; everything else
(start-up checks, waiting, signal handling, finalization and bundling) is the
real code path. Privilege and tool checks are patched to pass.
"""

import os
import signal
import tarfile
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from gcollect.config import EXIT_CODE
from gcollect.errors import CrashError, StartError, StartFailure
from gcollect.finalize import StopReason
from gcollect.lifecycle import LifecycleController, RunPhase
from gcollect.main import main
from gcollect.supervisor import StartupTiming
from tests.fixtures.sample_data import create_sample_config

pytestmark = pytest.mark.integration

FAST_STARTUP = StartupTiming(liveness_delay=0.3, output_delay=0.3)


@pytest.fixture(autouse=True)
def preflight_ok():
    with patch('gcollect.lifecycle.has_perf_privileges', return_value=True), \
            patch('gcollect.lifecycle.validate_collection_dependencies',
                  side_effect=lambda config, logger=None: config), \
            patch('gcollect.lifecycle.check_disk_space', return_value=None):
        yield


def make_controller(config, logger, executor, popen):
    return LifecycleController(config, logger, executor=executor, timing=FAST_STARTUP, popen=popen)


def send_sigint_when_collecting(controller, count=1, timeout=10.0):
    def _send():
        deadline = time.monotonic() + timeout
        while controller.state.phase is not RunPhase.COLLECTING:
            if time.monotonic() > deadline:
                return
            time.sleep(0.05)
        time.sleep(0.3)
        for _ in range(count):
            os.kill(os.getpid(), signal.SIGINT)
            time.sleep(0.05)

    thread = threading.Thread(target=_send, daemon=True)
    thread.start()
    return thread


def bundle_members(path):
    with tarfile.open(path, "r:gz") as tar:
        return sorted(os.path.basename(name) for name in tar.getnames())


def read_member(bundle, path):
    with tarfile.open(bundle, "r:gz") as tar:
        return tar.extractfile(os.path.basename(path)).read()


class TestTimedCollection:

    def test_runs_to_duration_and_bundles(self, tmp_path, capturing_logger, mock_executor, fake_popen):
        config = create_sample_config(str(tmp_path), duration=2, label="smoke")
        controller = make_controller(config, capturing_logger, mock_executor, fake_popen("record"))

        result = controller.run()

        assert result == EXIT_CODE.SUCCESS
        report = controller.state.report
        assert report.stop_reason is StopReason.DURATION_REACHED
        assert report.sampler_exit_code == 0
        assert controller.state.phase is RunPhase.DONE

        artifacts = controller.state.artifacts
        assert bundle_members(report.bundle_path) == sorted(
            os.path.basename(path) for path in (artifacts.perf_file, artifacts.info_file))
        assert not os.path.exists(artifacts.perf_file)
        data = read_member(report.bundle_path, artifacts.perf_file)
        assert b"-a" in data
        assert data.endswith(b"samples flushed\n")
        assert not [name for name in os.listdir(tmp_path) if name.endswith(".partial")]
        assert capturing_logger.has_message("info", "Collection duration reached (2s)")

    def test_sigint_stops_early(self, tmp_path, capturing_logger, mock_executor, fake_popen):
        config = create_sample_config(str(tmp_path), duration=30)
        controller = make_controller(config, capturing_logger, mock_executor, fake_popen("record"))
        send_sigint_when_collecting(controller)

        started = time.monotonic()
        result = controller.run()

        assert result == EXIT_CODE.SUCCESS
        assert time.monotonic() - started < 20
        assert controller.state.report.stop_reason is StopReason.INTERRUPTED
        assert controller.state.report.bundle_path

    def test_signal_handlers_restored(self, tmp_path, capturing_logger, mock_executor, fake_popen):
        before = signal.getsignal(signal.SIGINT)
        config = create_sample_config(str(tmp_path), duration=1, create_bundle=False)
        controller = make_controller(config, capturing_logger, mock_executor, fake_popen("record"))

        controller.run()

        assert signal.getsignal(signal.SIGINT) is before


class TestManualCollection:

    def test_double_sigint_finalizes_once(self, tmp_path, capturing_logger, mock_executor, fake_popen):
        config = create_sample_config(str(tmp_path), duration=0)
        controller = make_controller(config, capturing_logger, mock_executor, fake_popen("record"))
        send_sigint_when_collecting(controller, count=2)

        with patch.object(controller, 'finalize', wraps=controller.finalize) as finalize:
            result = controller.run()

        assert result == EXIT_CODE.SUCCESS
        assert finalize.call_count == 1
        assert controller.state.stop_signal == signal.SIGINT
        assert len([m for m in capturing_logger.get_messages("info") if "Cleaning up and finalizing" in m]) == 1
        assert len([n for n in os.listdir(tmp_path) if n.endswith(".tar.gz")]) == 1


class TestSamplerFailures:

    def test_crash_preserves_data(self, tmp_path, capturing_logger, mock_executor, fake_popen):
        config = create_sample_config(str(tmp_path), duration=30)
        controller = make_controller(config, capturing_logger, mock_executor, fake_popen("crash:1"))

        with pytest.raises(CrashError) as exc_info:
            controller.run()

        assert exc_info.value.error.context["exit_code"] == 3
        report = controller.state.report
        assert report.stop_reason is StopReason.SAMPLER_EXITED
        assert os.path.isfile(report.bundle_path)
        perf_name = os.path.basename(controller.state.artifacts.perf_file)
        assert perf_name in bundle_members(report.bundle_path)

    def test_immediate_exit_is_start_error(self, tmp_path, capturing_logger, mock_executor, fake_popen):
        config = create_sample_config(str(tmp_path), duration=5)
        controller = make_controller(config, capturing_logger, mock_executor, fake_popen("exit"))

        with pytest.raises(StartError) as exc_info:
            controller.run()

        assert exc_info.value.reason is StartFailure.IMMEDIATE_EXIT
        assert controller.state.report is None
        assert not [n for n in os.listdir(tmp_path) if n.endswith(".tar.gz")]

    def test_missing_output_is_start_error(self, tmp_path, capturing_logger, mock_executor, fake_popen):
        config = create_sample_config(str(tmp_path), duration=5)
        controller = make_controller(config, capturing_logger, mock_executor, fake_popen("no-output"))

        with pytest.raises(StartError) as exc_info:
            controller.run()

        assert exc_info.value.reason is StartFailure.NO_OUTPUT_FILE
        assert controller.state.report is None
        assert controller.state.phase is RunPhase.PREFLIGHT_OK


class TestEntryPoint:
    """Full runs driven through gcollect.main.main()."""

    def test_upload_skipped_when_bundling_disabled(self, tmp_path, capturing_logger, mock_executor,
                                                   fake_popen, clean_env):
        uploader = MagicMock()
        controllers = []

        def build_controller(config, logger, executor=None):
            controller = LifecycleController(config, capturing_logger, executor=mock_executor,
                                             timing=FAST_STARTUP, popen=fake_popen("record"),
                                             uploader=uploader)
            controllers.append(controller)
            return controller

        with patch('gcollect.main.LifecycleController', side_effect=build_controller):
            result = main(["--upload", "--no-bundle", "--upload-url", "http://collector.invalid/u",
                           "-d", "1", "--core-mode", "all", "--no-turbostat", "-o", str(tmp_path)])

        assert result == EXIT_CODE.SUCCESS
        uploader.assert_not_called()

        report = controllers[0].state.report
        artifacts = controllers[0].state.artifacts
        assert report.bundle_path is None
        assert report.files == [artifacts.perf_file, artifacts.info_file]
        assert all(os.path.isfile(path) for path in report.files)
        assert not [n for n in os.listdir(tmp_path) if n.endswith(".tar.gz")]

        capturing_logger.assert_logged('warning', 'upload is skipped')
        capturing_logger.assert_logged('result', 'Output files:')
        capturing_logger.assert_logged('result', f"Perf data: {artifacts.perf_file}")
        capturing_logger.assert_logged('result', f"Info file: {artifacts.info_file}")
