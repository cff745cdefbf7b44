"""
Dependency validation for gcollect.

Fail-fast checks for the external tools the controller drives. Required tools
(perf, lscpu) abort the run before any file is created; optional tools
(turbostat) only disable the feature that needs them.

Public exports:
    check_executable_available: Find an executable in PATH or extra paths
    check_perf_with_hints: Check perf with OS-specific install hints
    check_lscpu_with_hints: Check lscpu with OS-specific install hints
    check_turbostat_available: Optional turbostat check, never raises
    validate_collection_dependencies: Validate everything a run needs
"""

import os
import shutil
from typing import Optional, List

from gcollect.config import PERF_BIN, LSCPU_BIN, TURBOSTAT_BIN
from gcollect.environment import detect_os, get_install_instruction
from gcollect.error_messages import format_error
from gcollect.errors import DependencyError


def check_executable_available(
    executable: str,
    friendly_name: str,
    install_suggestion: str,
    search_paths: Optional[List[str]] = None
) -> str:
    """
    Check if an executable is available in PATH or specified locations.

    Args:
        executable: Name of the executable to find.
        friendly_name: Human-friendly name for error messages.
        install_suggestion: How to install the dependency.
        search_paths: Additional paths to search (besides PATH).

    Returns:
        Full path to the executable.

    Raises:
        DependencyError: If the executable is not found.
    """
    path = shutil.which(executable)
    if path:
        return path

    if search_paths:
        for search_path in search_paths:
            full_path = os.path.join(search_path, executable)
            if os.path.isfile(full_path) and os.access(full_path, os.X_OK):
                return full_path

    raise DependencyError(
        message=f"{friendly_name} not found",
        dependency=executable,
        suggestion=install_suggestion
    )


def check_perf_with_hints(perf_bin: str = PERF_BIN) -> str:
    """
    Check that perf is available.

    Raises:
        DependencyError: With an install command for the detected distribution.
    """
    path = shutil.which(perf_bin)
    if path:
        return path

    install_cmd = get_install_instruction("perf", detect_os())
    raise DependencyError(
        message=format_error('DEPENDENCY_PERF_MISSING', install_cmd=install_cmd),
        dependency=perf_bin,
        suggestion=install_cmd
    )


def check_lscpu_with_hints() -> str:
    """
    Check that lscpu is available.

    Raises:
        DependencyError: With an install command for the detected distribution.
    """
    path = shutil.which(LSCPU_BIN)
    if path:
        return path

    install_cmd = get_install_instruction("lscpu", detect_os())
    raise DependencyError(
        message=format_error('DEPENDENCY_LSCPU_MISSING', install_cmd=install_cmd),
        dependency=LSCPU_BIN,
        suggestion=install_cmd
    )


def check_turbostat_available(logger=None) -> Optional[str]:
    """Return the turbostat path, or None after warning that it will be skipped."""
    path = shutil.which(TURBOSTAT_BIN)
    if path:
        return path

    if logger:
        install_cmd = get_install_instruction("turbostat", detect_os())
        for line in format_error('DEPENDENCY_TURBOSTAT_MISSING', install_cmd=install_cmd).splitlines():
            logger.warning(line)
    return None


def validate_collection_dependencies(config, logger=None):
    """
    Validate all external tools needed for a run.

    Every missing required tool is reported before raising, so one attempt
    shows the whole list.

    Args:
        config: RunConfig for this run.
        logger: Optional logger.

    Returns:
        The config, with include_turbostat demoted to False when turbostat is
        missing.

    Raises:
        DependencyError: If perf or lscpu is missing.
    """
    missing: List[DependencyError] = []
    for check in (check_perf_with_hints, check_lscpu_with_hints):
        try:
            path = check()
            if logger:
                logger.debug(f"Found {os.path.basename(path)} at: {path}")
        except DependencyError as e:
            if logger:
                logger.error(e.message)
            missing.append(e)

    if missing:
        if len(missing) == 1:
            raise missing[0]
        names = ", ".join(e.error.context.get('dependency') for e in missing)
        raise DependencyError(
            message=f"Missing required dependencies: {names}",
            dependency=names,
            suggestion="Install the tools listed above and try again"
        )

    if config.include_turbostat and check_turbostat_available(logger) is None:
        config = config.with_overrides(include_turbostat=False)

    return config
