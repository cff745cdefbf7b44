"""
Environment detection and validation for gcollect.

Public exports:
    OSInfo: Data class containing operating system information
    detect_os: Function to detect current OS and distribution
    get_install_instruction: Function to get OS-specific install commands
    INSTALL_INSTRUCTIONS: Dictionary of install commands by OS/dependency
    ValidationIssue: Data class for validation problems with fix suggestions
    has_perf_privileges: Function to check root/capabilities
    check_disk_space: Function to warn about low free space
"""

from gcollect.environment.os_detect import OSInfo, detect_os
from gcollect.environment.install_hints import (
    get_install_instruction,
    INSTALL_INSTRUCTIONS,
)
from gcollect.environment.validators import (
    ValidationIssue,
    parse_effective_capabilities,
    has_perf_privileges,
    check_disk_space,
)

__all__ = [
    "OSInfo",
    "detect_os",
    "get_install_instruction",
    "INSTALL_INSTRUCTIONS",
    "ValidationIssue",
    "parse_effective_capabilities",
    "has_perf_privileges",
    "check_disk_space",
]
