"""
The human-readable info file written alongside the perf data.

The header captures the run configuration before sampling starts, the system
sections describe the host, and a summary block is appended once collection
ends. Every system section is best-effort: a failing helper command leaves an
inline failure marker and the run carries on.
"""

import os
import shlex
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from gcollect.config import (
    TOOL_NAME, VERSION, DISPLAY_DATETIME_FORMAT, PROC_CMDLINE,
    PERF_BIN, LSCPU_BIN, UNAME_BIN, TURBOSTAT_BIN,
)
from gcollect.utils import CommandExecutor, format_duration

BANNER = "#" * 80
RULE = "=" * 80

# Helper commands finish in well under a second; anything slower is stuck
SECTION_TIMEOUT = 60


def display_time(moment: Optional[datetime] = None) -> str:
    moment = (moment or datetime.now()).astimezone()
    return moment.strftime(DISPLAY_DATETIME_FORMAT).strip()


class InfoFile:
    """Writer for one run's info file."""

    def __init__(self, path: str, executor: CommandExecutor, logger,
                 cmdline_path: str = PROC_CMDLINE):
        self.path = path
        self.executor = executor
        self.logger = logger
        self.cmdline_path = cmdline_path

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def write_header(self, config, artifacts, core_set, started: Optional[datetime] = None) -> None:
        """Create the file with the static facts known before sampling."""
        settings = config.describe()
        settings['Target Cores'] = core_set.describe()

        lines = [
            BANNER,
            f"# {TOOL_NAME} System Information and Configuration",
            f"# Generated: {display_time()}",
            BANNER,
            "",
            "TOOL INFORMATION:",
            f"  Tool Name: {TOOL_NAME}",
            f"  Tool Version: {VERSION}",
            f"  Hostname: {artifacts.hostname}",
            f"  Collection Start: {display_time(started)}",
            "",
            "COLLECTION CONFIGURATION:",
        ]
        lines.extend(f"  {key}: {value}" for key, value in settings.items())
        lines.extend([
            "",
            "OUTPUT FILES:",
            f"  Performance Data: {artifacts.perf_file}",
            f"  Info File: {artifacts.info_file}",
        ])
        if config.create_bundle:
            lines.append(f"  Bundle: {artifacts.bundle_file}")
        lines.extend(["", BANNER, ""])

        with open(self.path, 'w') as f:
            f.write("\n".join(lines) + "\n")

    def sections(self, config) -> List[Tuple[str, Callable[[], str]]]:
        sections = [
            ("KERNEL COMMAND LINE", self._read_cmdline),
            ("CPU INFORMATION (lscpu)", lambda: self._run([LSCPU_BIN])),
            ("KERNEL VERSION", lambda: self._run([UNAME_BIN, "-a"])),
            ("PERF VERSION", lambda: self._run([PERF_BIN, "--version"])),
        ]
        if config.include_turbostat:
            iterations = config.turbostat_iterations
            sections.append((
                f"TURBOSTAT OUTPUT ({iterations} samples)",
                lambda: self._run([TURBOSTAT_BIN, "-i", "0.001", "-n", str(iterations)], merge_stderr=True),
            ))
        return sections

    def collect_system_info(self, config) -> List[str]:
        """
        Append every system section to the file.

        Returns:
            Titles of the sections that failed.
        """
        self.logger.info("Collecting system information...")
        failed = []
        blocks = []
        for title, producer in self.sections(config):
            try:
                body = producer()
            except (OSError, RuntimeError) as e:
                name = title.split(' (')[0].title()
                self.logger.warning(f"{name} collection failed: {e}")
                body = f"{name} collection failed: {e}"
                failed.append(title)
            blocks.append(f"\n{RULE}\n{title}\n{RULE}\n{body.rstrip()}\n\n")

        with open(self.path, 'a') as f:
            f.write("".join(blocks))

        if failed:
            self.logger.warning(f"System information collected with {len(failed)} failed section(s)")
        else:
            self.logger.status("System information collected")
        return failed

    def append_summary(self, ended: datetime, stop_reason: str, elapsed: Optional[float],
                       sampler_exit_code: Optional[int]) -> bool:
        """Append the collection summary block. Returns False if the file is gone."""
        if not self.exists():
            return False

        lines = [
            "",
            RULE,
            "COLLECTION SUMMARY",
            RULE,
            f"Collection End: {display_time(ended)}",
            f"Stop Reason: {stop_reason}",
        ]
        if elapsed is not None:
            lines.append(f"Elapsed: {format_duration(elapsed)}")
        if sampler_exit_code is not None:
            lines.append(f"Perf Exit Code: {sampler_exit_code}")
        lines.append(RULE)

        with open(self.path, 'a') as f:
            f.write("\n".join(lines) + "\n")
        return True

    def _read_cmdline(self) -> str:
        with open(self.cmdline_path, 'r') as f:
            return f.read()

    def _run(self, command: List[str], merge_stderr: bool = False) -> str:
        stdout, stderr, return_code = self.executor.execute(command, timeout=SECTION_TIMEOUT)
        output = stdout + stderr if merge_stderr else stdout
        if return_code != 0:
            reason = stderr.strip().splitlines()[-1] if stderr.strip() else f"exit code {return_code}"
            raise RuntimeError(f"{shlex.join(command)}: {reason}")
        return output
