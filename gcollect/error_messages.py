"""
Centralized user-facing message templates for gcollect.

Usage:
    from gcollect.error_messages import format_error

    msg = format_error('DEPENDENCY_PERF_MISSING', install_cmd='sudo apt-get install linux-tools-common')
"""

from typing import Dict, Optional


ERROR_MESSAGES: Dict[str, str] = {
    'CONFIG_MANUAL_CORES_MISSING': (
        "Core mode is 'manual' but no core list was given.\n"
        "Specify the cores to sample, for example: --cores 1-30,33-62"
    ),

    'CONFIG_UPLOAD_URL_MISSING': (
        "Upload is enabled but no upload URL was given.\n"
        "Pass --upload-url <url> or set {env_var}."
    ),

    'CONFIG_INVALID_VALUE': (
        "Invalid value for parameter '{param}': {actual}\n"
        "Expected: {expected}"
    ),

    'DEPENDENCY_PERF_MISSING': (
        "perf tool not found.\n"
        "The perf tool records the hardware performance counters.\n"
        "Install with: {install_cmd}"
    ),

    'DEPENDENCY_LSCPU_MISSING': (
        "lscpu command not found.\n"
        "lscpu provides the CPU topology written to the info file.\n"
        "Install with: {install_cmd}"
    ),

    'DEPENDENCY_TURBOSTAT_MISSING': (
        "turbostat not found. Will skip turbostat collection.\n"
        "To include turbostat: {install_cmd}"
    ),

    'PRIVILEGES_INSUFFICIENT': (
        "gcollect must be run as root or with CAP_PERFMON and CAP_SYS_ADMIN.\n"
        "Try: sudo {command}"
    ),

    'SAMPLER_IMMEDIATE_EXIT': (
        "Failed to start perf recording: perf exited during start-up (exit code {exit_code}).\n"
        "{data_file_note}"
    ),

    'SAMPLER_NO_OUTPUT': (
        "Perf process is running but no data file was created: {path}"
    ),

    'SAMPLER_CRASHED': (
        "Perf process terminated unexpectedly after {elapsed}s (exit code {exit_code})."
    ),

    'UPLOAD_MANUAL_TRANSFER': (
        "Upload failed. Transfer the bundle manually for analysis:\n"
        "  {bundle}"
    ),

    'INTERNAL_ERROR': (
        "Internal error: {error}\n"
        "Please report this issue together with the output of GCOLLECT_DEBUG=1 gcollect ..."
    ),
}


def format_error(error_key: str, **kwargs) -> str:
    """
    Format a message template with the given parameters.

    Args:
        error_key: Key for the message template.
        **kwargs: Parameters to substitute in the template.

    Returns:
        Formatted message string.
    """
    template = ERROR_MESSAGES.get(error_key)
    if template is None:
        return f"Unknown error: {error_key}\nContext: {kwargs}"

    try:
        return template.format(**kwargs)
    except KeyError as e:
        return f"{template}\n(Missing format parameter: {e})"


def get_error_template(error_key: str) -> Optional[str]:
    """Return the raw template for a key, or None if unknown."""
    return ERROR_MESSAGES.get(error_key)
