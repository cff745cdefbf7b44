"""
Pre-run environment checks for gcollect.

Public exports:
    ValidationIssue: Data class for validation problems with fix suggestions
    parse_effective_capabilities: Parse CapEff from /proc/<pid>/status text
    has_perf_privileges: Whether the process may open system-wide counters
    check_disk_space: Warn when the output directory is nearly full
"""

import os
from dataclasses import dataclass
from typing import Optional

import psutil

from gcollect.config import PROC_SELF_STATUS, MIN_FREE_SPACE_BYTES

CAP_SYS_ADMIN = 21
CAP_PERFMON = 38


@dataclass
class ValidationIssue(Exception):
    """
    A validation problem with suggested remediation.

    Attributes:
        severity: Issue severity ('error' or 'warning')
        category: Issue category ('dependency', 'privileges', 'filesystem')
        message: Description of what went wrong
        suggestion: How to fix the issue
        install_cmd: Copy-pasteable command to install a missing tool (optional)
    """
    severity: str
    category: str
    message: str
    suggestion: str
    install_cmd: Optional[str] = None

    def __str__(self) -> str:
        parts = [f"[{self.severity.upper()}] {self.message}"]
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        if self.install_cmd:
            parts.append(f"Install command: {self.install_cmd}")
        return "\n".join(parts)


def parse_effective_capabilities(status_content: str) -> int:
    """
    Return the effective capability mask from /proc/<pid>/status content.

    Returns 0 when the CapEff line is missing or malformed.

    Example:
        >>> parse_effective_capabilities("Name:\\tbash\\nCapEff:\\t000001ffffffffff\\n")
        2199023255551
    """
    for line in status_content.splitlines():
        if line.startswith('CapEff:'):
            try:
                return int(line.split(':', 1)[1].strip(), 16)
            except ValueError:
                return 0
    return 0


def has_perf_privileges(status_path: str = PROC_SELF_STATUS) -> bool:
    """
    Whether the controller may record system-wide performance counters.

    Root always qualifies. Otherwise both CAP_PERFMON and CAP_SYS_ADMIN must be
    in the effective set.
    """
    if os.geteuid() == 0:
        return True

    try:
        with open(status_path, 'r') as f:
            cap_eff = parse_effective_capabilities(f.read())
    except OSError:
        return False

    required = (1 << CAP_PERFMON) | (1 << CAP_SYS_ADMIN)
    return cap_eff & required == required


def check_disk_space(path: str, minimum_bytes: int = MIN_FREE_SPACE_BYTES) -> Optional[ValidationIssue]:
    """
    Return a warning issue when `path` has less than `minimum_bytes` free.

    Perf data files can reach hundreds of MB for long collections.
    """
    try:
        usage = psutil.disk_usage(path)
    except OSError as e:
        return ValidationIssue(
            severity='warning',
            category='filesystem',
            message=f"Could not determine free space in {path}: {e}",
            suggestion="Make sure the output directory has room for the perf data file",
        )

    if usage.free < minimum_bytes:
        free_mb = usage.free // (1024 * 1024)
        return ValidationIssue(
            severity='warning',
            category='filesystem',
            message=f"Only {free_mb} MB free in {path}",
            suggestion="Perf data files can be hundreds of MB; free up space or use --output-dir",
        )
    return None
