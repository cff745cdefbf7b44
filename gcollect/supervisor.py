"""
Supervision of the perf sampler child process.

The sampler is started in its own session so a Ctrl+C at the terminal reaches
only the controller; the controller then decides when and how to stop perf.
Its standard streams are inherited untouched and perf writes straight to the
data file, so the controller only ever observes liveness and the output file.
"""

import enum
import os
import shlex
import signal
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from gcollect.config import STARTUP_LIVENESS_DELAY, STARTUP_OUTPUT_DELAY
from gcollect.error_messages import format_error
from gcollect.errors import StartError, StartFailure


class ProcessState(enum.Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    STOPPED = "stopped"
    CRASHED = "crashed"


@dataclass(frozen=True)
class StartupTiming:
    """Delays for the two start-up checks: alive, then writing its file."""
    liveness_delay: float = STARTUP_LIVENESS_DELAY
    output_delay: float = STARTUP_OUTPUT_DELAY


def build_perf_command(perf_bin: str, events: str, extra_opts: List[str],
                       core_args: List[str], output_file: str) -> List[str]:
    """perf record -e <events> <extra...> <-C list | -a> -o <file>"""
    return [perf_bin, "record", "-e", events, *extra_opts, *core_args, "-o", output_file]


class SamplerProcess:
    """
    Handle on the sampler child process.

    State moves NOT_STARTED -> RUNNING, then either STOPPED (stop() was used)
    or CRASHED (the process went away on its own).
    """

    def __init__(self, command: List[str], output_file: str, logger,
                 timing: Optional[StartupTiming] = None,
                 sleep: Callable[[float], None] = time.sleep,
                 popen: Callable[..., subprocess.Popen] = subprocess.Popen):
        self.command = command
        self.output_file = output_file
        self.logger = logger
        self.timing = timing or StartupTiming()
        self._sleep = sleep
        self._popen = popen
        self.process: Optional[subprocess.Popen] = None
        self.state = ProcessState.NOT_STARTED

    @property
    def command_str(self) -> str:
        return shlex.join(self.command)

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process else None

    @property
    def returncode(self) -> Optional[int]:
        return self.process.returncode if self.process else None

    def start(self) -> "SamplerProcess":
        """
        Launch the sampler and verify that it came up.

        Raises:
            StartError: LAUNCH_FAILED if it cannot be executed, IMMEDIATE_EXIT
                if it is gone after the first delay, NO_OUTPUT_FILE if its data
                file does not exist after the second delay (the process is
                stopped before raising).
        """
        self.logger.debug(f"Launching sampler: {self.command_str}")
        try:
            self.process = self._popen(self.command, start_new_session=True)
        except OSError as e:
            raise StartError(
                f"Failed to launch perf: {e}",
                reason=StartFailure.LAUNCH_FAILED,
                command=self.command_str,
            ) from e
        self.state = ProcessState.RUNNING

        self._sleep(self.timing.liveness_delay)
        if not self.is_running():
            self.state = ProcessState.CRASHED
            if os.path.isfile(self.output_file):
                note = "A perf data file was created but the process exited."
            else:
                note = "No perf data file was created."
            raise StartError(
                format_error('SAMPLER_IMMEDIATE_EXIT', exit_code=self.returncode, data_file_note=note),
                reason=StartFailure.IMMEDIATE_EXIT,
                command=self.command_str,
                exit_code=self.returncode,
            )

        self._sleep(self.timing.output_delay)
        if not os.path.isfile(self.output_file):
            self.stop()
            raise StartError(
                format_error('SAMPLER_NO_OUTPUT', path=self.output_file),
                reason=StartFailure.NO_OUTPUT_FILE,
                command=self.command_str,
                exit_code=self.returncode,
            )

        return self

    def is_running(self) -> bool:
        return self.process is not None and self.process.poll() is None

    def wait(self, timeout: Optional[float] = None) -> Optional[int]:
        """Wait up to `timeout` seconds; return the exit code, or None if still running."""
        if self.process is None:
            return None
        try:
            return self.process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return None

    def mark_crashed(self) -> None:
        if self.state is ProcessState.RUNNING:
            self.state = ProcessState.CRASHED

    def stop(self, sig: int = signal.SIGINT) -> Optional[int]:
        """
        Ask the sampler to exit with a graceful signal and wait for it.

        perf flushes and closes its data file on SIGINT, so there is no
        escalation to SIGKILL. A process that is already gone counts as
        stopped.

        Returns:
            The sampler's exit code, or None if it was never started.
        """
        if self.process is None:
            return None

        if self.process.poll() is None:
            self.logger.info(f"Stopping perf recording (PID: {self.pid})...")
            try:
                self.process.send_signal(sig)
            except ProcessLookupError:
                self.logger.debug(f"Sampler {self.pid} already exited")
            self.process.wait()

        if self.state is ProcessState.RUNNING:
            self.state = ProcessState.STOPPED
        self.logger.debug(f"Sampler exited with code {self.returncode}")
        return self.returncode
