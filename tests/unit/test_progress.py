"""
Tests for the timed collection countdown in gcollect.progress.
"""

import pytest
from unittest.mock import MagicMock, patch, PropertyMock

from gcollect.progress import collection_countdown, is_interactive_terminal


class TestIsInteractiveTerminal:

    def test_follows_console(self):
        console = MagicMock()
        type(console).is_terminal = PropertyMock(return_value=True)
        assert is_interactive_terminal(console) is True

    def test_default_console_returns_bool(self):
        assert isinstance(is_interactive_terminal(), bool)


class TestCountdownNonInteractive:

    def test_logs_once_and_ticks_are_noops(self):
        logger = MagicMock()

        with patch("gcollect.progress.is_interactive_terminal", return_value=False), \
                patch("gcollect.progress.Progress") as MockProgress:
            with collection_countdown(60, logger=logger) as tick:
                tick()
                tick()

        logger.verbose.assert_called_once_with("Collecting for 60s...")
        MockProgress.assert_not_called()

    def test_without_logger(self):
        with patch("gcollect.progress.is_interactive_terminal", return_value=False):
            with collection_countdown(5) as tick:
                tick()

    def test_zero_duration_never_draws(self):
        with patch("gcollect.progress.is_interactive_terminal", return_value=True), \
                patch("gcollect.progress.Progress") as MockProgress:
            with collection_countdown(0) as tick:
                tick()

        MockProgress.assert_not_called()


class TestCountdownInteractive:

    def test_ticks_advance_bar(self):
        with patch("gcollect.progress.is_interactive_terminal", return_value=True), \
                patch("gcollect.progress.Progress") as MockProgress:
            progress = MockProgress.return_value
            progress.add_task.return_value = 7

            with collection_countdown(10, label="Sampling") as tick:
                tick()
                tick()

        assert MockProgress.call_args.kwargs["transient"] is True
        progress.add_task.assert_called_once_with("Sampling", total=10)
        progress.start.assert_called_once()
        assert progress.advance.call_count == 2
        progress.advance.assert_called_with(7)
        progress.stop.assert_called_once()

    def test_stops_on_exception(self):
        with patch("gcollect.progress.is_interactive_terminal", return_value=True), \
                patch("gcollect.progress.Progress") as MockProgress:
            with pytest.raises(RuntimeError):
                with collection_countdown(10):
                    raise RuntimeError("sampler gone")

        MockProgress.return_value.stop.assert_called_once()
