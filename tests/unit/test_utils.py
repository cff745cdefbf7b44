"""
Tests for gcollect.utils.

CommandExecutor runs real (tiny) Python subprocesses here.
"""

import sys

import pytest

from gcollect.utils import CommandExecutor, format_duration


class TestCommandExecutor:
    """Tests for CommandExecutor.execute."""

    def test_captures_stdout_and_return_code(self, mock_logger):
        executor = CommandExecutor(logger=mock_logger)

        stdout, stderr, return_code = executor.execute(
            [sys.executable, "-c", "print('Architecture: x86_64')"])

        assert stdout == "Architecture: x86_64\n"
        assert stderr == ""
        assert return_code == 0

    def test_captures_stderr_and_failure(self, mock_logger):
        executor = CommandExecutor(logger=mock_logger)

        _, stderr, return_code = executor.execute(
            [sys.executable, "-c", "import sys; sys.stderr.write('no MSR access\\n'); sys.exit(3)"])

        assert stderr == "no MSR access\n"
        assert return_code == 3

    def test_list_arguments_passed_verbatim(self, mock_logger):
        executor = CommandExecutor(logger=mock_logger)

        stdout, _, _ = executor.execute(
            [sys.executable, "-c", "import sys; print(sys.argv[1])", "model name : Xeon  Gold"])

        assert stdout == "model name : Xeon  Gold\n"

    def test_missing_command_raises_oserror(self, mock_logger):
        executor = CommandExecutor(logger=mock_logger)

        with pytest.raises(OSError):
            executor.execute(["gcollect-definitely-not-installed"])

        assert executor.process is None

    def test_timeout_terminates_command(self, mock_logger):
        executor = CommandExecutor(logger=mock_logger)

        _, _, return_code = executor.execute(
            [sys.executable, "-c", "import time; time.sleep(30)"], timeout=0.5)

        assert executor.timed_out
        assert return_code != 0
        mock_logger.warning.assert_called_once()


class TestFormatDuration:

    @pytest.mark.parametrize("seconds, expected", [
        (0, "0s"),
        (42, "42s"),
        (59.6, "1m00s"),
        (75, "1m15s"),
        (3600, "1h00m00s"),
        (3723, "1h02m03s"),
    ])
    def test_formats(self, seconds, expected):
        assert format_duration(seconds) == expected
