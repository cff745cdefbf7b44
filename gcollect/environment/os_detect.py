"""
OS detection used to pick install hints for missing tools.
"""

import platform
from dataclasses import dataclass
from typing import Optional

import distro


@dataclass
class OSInfo:
    """
    Operating system information for install instruction lookup.

    Attributes:
        system: Operating system type ('Linux', 'Darwin', ...)
        release: Kernel release (used to name the linux-tools package)
        machine: Machine architecture ('x86_64', 'aarch64', ...)
        distro_id: Linux distribution ID ('ubuntu', 'rhel', 'debian', ...)
        distro_name: Full distribution name
        distro_version: Distribution version ('22.04', '9.2', ...)
    """
    system: str
    release: str
    machine: str
    distro_id: Optional[str] = None
    distro_name: Optional[str] = None
    distro_version: Optional[str] = None

    @property
    def is_linux(self) -> bool:
        return self.system == 'Linux'


def detect_os() -> OSInfo:
    """
    Detect the current operating system and Linux distribution.

    Distribution details come from the `distro` package (/etc/os-release).
    """
    info = OSInfo(
        system=platform.system(),
        release=platform.release(),
        machine=platform.machine(),
    )

    if info.is_linux:
        info.distro_id = distro.id() or None
        info.distro_name = distro.name() or None
        info.distro_version = distro.version() or None

    return info
