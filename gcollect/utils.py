"""
Utility functions for gcollect.

Classes:
    CommandExecutor: Run a short-lived helper command and capture its output.

Functions:
    format_duration: Render seconds as a compact "1h02m03s" string.
"""

import io
import logging
import select
import shlex
import subprocess
import time
from typing import List, Optional, Tuple


class CommandExecutor:
    """
    Execute helper commands (lscpu, uname, perf archive, turbostat, ...) in a
    subprocess and capture stdout and stderr.

    Unlike the sampler these commands are expected to finish on their own; a
    timeout terminates them if they do not.
    """

    def __init__(self, logger: logging.Logger, debug: bool = False):
        self.logger = logger
        self.debug = debug
        self.process = None
        self.timed_out = False

    def execute(self,
                command: List[str],
                timeout: Optional[float] = None) -> Tuple[str, str, int]:
        """
        Execute a command and return its stdout, stderr, and return code.

        Args:
            command: The command and its arguments
            timeout: Seconds after which the command is terminated

        Returns:
            Tuple of (stdout_content, stderr_content, return_code)

        Raises:
            OSError: If the command cannot be started (e.g. not installed).
        """
        self.logger.debug(f"Executing command: {command}")

        self.timed_out = False
        self.process = None
        deadline = time.monotonic() + timeout if timeout else None

        stdout_buffer = io.StringIO()
        stderr_buffer = io.StringIO()

        try:
            self.process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                bufsize=1  # Line buffered
            )

            stdout_fd = self.process.stdout.fileno()
            stderr_fd = self.process.stderr.fileno()

            while self.process.poll() is None:
                if deadline is not None and time.monotonic() > deadline:
                    self.timed_out = True
                    self.logger.warning(f"Command timed out after {timeout}s: {shlex.join(command)}")
                    self.process.terminate()
                    break

                readable, _, _ = select.select([self.process.stdout, self.process.stderr], [], [], 0.1)
                for stream in readable:
                    line = stream.readline()
                    if not line:
                        continue
                    if stream.fileno() == stdout_fd:
                        stdout_buffer.write(line)
                    elif stream.fileno() == stderr_fd:
                        stderr_buffer.write(line)

            try:
                self.process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()

            stdout_buffer.write(self.process.stdout.read())
            stderr_buffer.write(self.process.stderr.read())

            return_code = self.process.returncode
            self.logger.debug(f"Command exited with code {return_code}")
            return stdout_buffer.getvalue(), stderr_buffer.getvalue(), return_code

        finally:
            if self.process and self.process.poll() is None:
                self.process.kill()
                self.process.wait()
            if self.process:
                for stream in (self.process.stdout, self.process.stderr):
                    if stream:
                        stream.close()


def format_duration(seconds: float) -> str:
    """
    Render a duration compactly.

    Example:
        >>> format_duration(3723)
        '1h02m03s'
        >>> format_duration(42)
        '42s'
    """
    seconds = int(round(seconds))
    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours:
        return f"{hours}h{minutes:02d}m{secs:02d}s"
    if minutes:
        return f"{minutes}m{secs:02d}s"
    return f"{secs}s"
