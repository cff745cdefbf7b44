"""
OS-specific installation instructions for the external tools gcollect drives.

Public exports:
    INSTALL_INSTRUCTIONS: Mapping of (dependency, system, distro) to install commands
    get_install_instruction: Function to get the appropriate install command
"""

from typing import Optional

from gcollect.environment.os_detect import OSInfo


# None acts as a wildcard for less specific lookups. '{kernel}' is replaced
# with the running kernel release.
INSTALL_INSTRUCTIONS: dict[tuple[str, Optional[str], Optional[str]], str] = {
    ('perf', 'Linux', 'ubuntu'): 'sudo apt-get install linux-tools-common linux-tools-{kernel}',
    ('perf', 'Linux', 'debian'): 'sudo apt-get install linux-perf',
    ('perf', 'Linux', 'rhel'): 'sudo dnf install perf',
    ('perf', 'Linux', 'centos'): 'sudo yum install perf',
    ('perf', 'Linux', 'fedora'): 'sudo dnf install perf',
    ('perf', 'Linux', 'rocky'): 'sudo dnf install perf',
    ('perf', 'Linux', 'arch'): 'sudo pacman -S perf',
    ('perf', 'Linux', None): 'Install the perf tool (linux-tools) via your package manager',

    ('lscpu', 'Linux', 'ubuntu'): 'sudo apt-get install util-linux',
    ('lscpu', 'Linux', 'debian'): 'sudo apt-get install util-linux',
    ('lscpu', 'Linux', 'rhel'): 'sudo dnf install util-linux',
    ('lscpu', 'Linux', 'centos'): 'sudo yum install util-linux',
    ('lscpu', 'Linux', 'fedora'): 'sudo dnf install util-linux',
    ('lscpu', 'Linux', None): 'Install util-linux via your package manager',

    ('turbostat', 'Linux', 'ubuntu'): 'sudo apt-get install linux-tools-common linux-tools-{kernel}',
    ('turbostat', 'Linux', 'debian'): 'sudo apt-get install linux-cpupower',
    ('turbostat', 'Linux', 'rhel'): 'sudo dnf install kernel-tools',
    ('turbostat', 'Linux', 'centos'): 'sudo yum install kernel-tools',
    ('turbostat', 'Linux', 'fedora'): 'sudo dnf install kernel-tools',
    ('turbostat', 'Linux', None): 'Install turbostat (kernel tools) via your package manager',
}


def get_install_instruction(dependency: str, os_info: OSInfo) -> str:
    """
    Get the OS-specific installation instruction for a dependency.

    Lookups go from most to least specific: (dependency, system, distro),
    (dependency, system, None), (dependency, None, None).

    Examples:
        >>> ubuntu = OSInfo(system='Linux', release='6.8.0-45-generic', machine='x86_64',
        ...                 distro_id='ubuntu')
        >>> get_install_instruction('perf', ubuntu)
        'sudo apt-get install linux-tools-common linux-tools-6.8.0-45-generic'
    """
    lookups = [
        (dependency, os_info.system, os_info.distro_id),
        (dependency, os_info.system, None),
        (dependency, None, None),
    ]

    for key in lookups:
        if key in INSTALL_INSTRUCTIONS:
            return INSTALL_INSTRUCTIONS[key].replace('{kernel}', os_info.release)

    return f"Install {dependency} using your system's package manager"
