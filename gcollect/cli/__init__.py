"""
CLI argument builders for gcollect.

Modules:
    - common_args: Help messages and the argument group builders
"""

from gcollect.cli.common_args import (
    HELP_MESSAGES,
    PROGRAM_DESCRIPTION,
    add_collection_arguments,
    add_core_arguments,
    add_output_arguments,
    add_info_arguments,
    add_upload_arguments,
    add_universal_arguments,
)

__all__ = [
    'HELP_MESSAGES',
    'PROGRAM_DESCRIPTION',
    'add_collection_arguments',
    'add_core_arguments',
    'add_output_arguments',
    'add_info_arguments',
    'add_upload_arguments',
    'add_universal_arguments',
]
