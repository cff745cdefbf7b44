"""
CLI argument parsing for gcollect.

This module provides the main argument parsing entry point,
using the argument builders from the cli package.
"""

import argparse
import sys

import yaml

from gcollect.config import VERSION, CoreMode
from gcollect.errors import ConfigurationError, ErrorCode
from gcollect.cli import (
    PROGRAM_DESCRIPTION,
    add_collection_arguments,
    add_core_arguments,
    add_output_arguments,
    add_info_arguments,
    add_upload_arguments,
    add_universal_arguments,
)


def build_parser():
    parser = argparse.ArgumentParser(
        prog="gcollect",
        description=PROGRAM_DESCRIPTION,
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {VERSION}")

    add_collection_arguments(parser)
    add_core_arguments(parser)
    add_output_arguments(parser)
    add_info_arguments(parser)
    add_upload_arguments(parser)
    add_universal_arguments(parser)
    return parser


def parse_arguments(argv=None):
    """Parse command-line arguments for a collection run.

    Args:
        argv: Argument list, defaults to sys.argv[1:].

    Returns:
        argparse.Namespace: Parsed and validated arguments.

    Raises:
        ConfigurationError: If the config file cannot be applied.
    """
    parser = build_parser()
    parsed_args = parser.parse_args(argv)

    # Apply YAML config file overrides if specified
    if parsed_args.config_file:
        parsed_args = apply_yaml_config_overrides(parsed_args)

    validate_args(parsed_args)
    return parsed_args


def apply_yaml_config_overrides(args):
    """
    Apply overrides from a YAML config file to the parsed arguments.

    Keys use the argument destination names ('duration', 'core_mode', ...);
    dashed spellings ('core-mode') are accepted too.

    Args:
        args (argparse.Namespace): The parsed command-line arguments

    Returns:
        argparse.Namespace: The updated arguments with YAML overrides applied
    """
    try:
        with open(args.config_file, 'r') as f:
            yaml_config = yaml.safe_load(f)
    except FileNotFoundError:
        raise ConfigurationError(
            f"Config file {args.config_file} not found",
            parameter="config_file",
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Error parsing YAML config file: {e}",
            parameter="config_file",
            code=ErrorCode.CONFIG_PARSE_ERROR,
        )

    if not yaml_config:
        print(f"Warning: Config file {args.config_file} is empty", file=sys.stderr)
        return args

    if not isinstance(yaml_config, dict):
        raise ConfigurationError(
            f"Config file {args.config_file} must contain a mapping of argument names to values",
            parameter="config_file",
            actual=type(yaml_config).__name__,
            code=ErrorCode.CONFIG_PARSE_ERROR,
        )

    args_dict = vars(args)
    for key, value in yaml_config.items():
        key = str(key).replace('-', '_')
        if key not in args_dict or key == 'config_file':
            print(f"Warning: Config file contains unknown parameter '{key}', skipping", file=sys.stderr)
            continue

        # Skip if the value is None (to avoid overriding CLI args with None)
        if value is None:
            continue

        # perf options may be given as a YAML list
        if key == 'perf_opts' and isinstance(value, list):
            value = " ".join(str(v) for v in value)

        args_dict[key] = value

    return argparse.Namespace(**args_dict)


def validate_args(args):
    # Field ranges are checked by RunConfig.validate(); only flag combinations here
    if args.cores and args.core_mode != CoreMode.MANUAL.value:
        print(f"Warning: --cores is only used with --core-mode manual; ignoring '{args.cores}' "
              f"(core mode is '{args.core_mode}')", file=sys.stderr)
