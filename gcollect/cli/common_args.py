"""
CLI arguments and help messages for gcollect.

This module contains:
- Help message definitions
- Argument group builders, one per concern
- Universal arguments (config file, output control, what-if)
"""

from gcollect.config import (
    CORE_MODES, DEFAULT_PERF_EVENTS, DEFAULT_PERF_EXTRA_OPTS, DEFAULT_DURATION,
    DEFAULT_OUTPUT_DIR, DEFAULT_TURBOSTAT_ITERATIONS, DEFAULT_UPLOAD_TIMEOUT,
    UPLOAD_TOKEN_ENV, UPLOAD_URL_ENV, TOOL_NAME,
)

STREAM_LOG_LEVELS = ["DEBUG", "VERBOSE", "INFO", "STATUS", "WARNING", "RESULT", "ERROR", "CRITICAL"]


HELP_MESSAGES = {
    # Collection
    'events': (
        "Perf events to record (comma-separated). "
        "\nCommon combinations: "
        "\n    Basic: cycles,instructions,cache-misses "
        "\n    Detailed: cycles,instructions,L1-dcache-load-misses,LLC-load-misses"
    ),
    'duration': (
        "Collection duration in seconds. 0 collects until Ctrl+C (or SIGTERM) is received."
    ),
    'label': (
        "Label added to the output file names. Recommended, e.g. '5g_test_run1' or 'peak_throughput_test'"
    ),
    'perf_opts': (
        "Additional perf record options, split like a shell command line. Use the '=' form "
        "for values starting with a dash: --perf-opts='-T -g'"
    ),

    # Cores
    'core_mode': (
        "How to choose the cores to sample. 'auto' reads isolcpus= from /proc/cmdline and falls back "
        "to system-wide collection when no isolated cores are found, 'all' always collects system-wide, "
        "'manual' uses --cores."
    ),
    'cores': "Core list used with --core-mode manual, e.g. '1-30,33-62'",

    # Output
    'output_dir': "Directory where the perf data, info file and bundle are written.",
    'no_bundle': "Keep the individual output files instead of packing them into a .tar.gz bundle.",
    'symbol_archive': (
        "Run 'perf archive' to capture binary symbols for offline analysis. Usually not needed for "
        "optimized production binaries."
    ),

    # Info
    'no_turbostat': "Skip the turbostat section of the info file.",
    'turbostat_iterations': "Number of turbostat samples taken while gathering system information.",

    # Upload
    'upload': "Upload the bundle to the collector endpoint once collection ends.",
    'upload_url': f"Collector endpoint URL. Defaults to ${UPLOAD_URL_ENV}.",
    'upload_token': f"Bearer token for the collector endpoint. Defaults to ${UPLOAD_TOKEN_ENV}.",
    'upload_timeout': "Upload timeout in seconds.",

    # Standard
    'config_file': "Path to YAML file with argument overrides that will be applied after CLI arguments",
    'what_if': "Show the cores, perf command and output files that would be used, then exit.",
}

PROGRAM_DESCRIPTION = (
    f"{TOOL_NAME} collects hardware performance data with perf together with a description of the "
    "host, and packs the results for offline analysis."
)


def add_collection_arguments(parser):
    collection_args = parser.add_argument_group("Collection")
    collection_args.add_argument(
        '--events', '-e',
        type=str,
        default=DEFAULT_PERF_EVENTS,
        help=HELP_MESSAGES['events']
    )
    collection_args.add_argument(
        '--duration', '-d',
        type=int,
        default=DEFAULT_DURATION,
        help=HELP_MESSAGES['duration']
    )
    collection_args.add_argument(
        '--label', '-l',
        type=str,
        default="",
        help=HELP_MESSAGES['label']
    )
    collection_args.add_argument(
        '--perf-opts',
        type=str,
        default=DEFAULT_PERF_EXTRA_OPTS,
        help=HELP_MESSAGES['perf_opts']
    )


def add_core_arguments(parser):
    core_args = parser.add_argument_group("Cores")
    core_args.add_argument(
        '--core-mode',
        choices=CORE_MODES,
        default="auto",
        help=HELP_MESSAGES['core_mode']
    )
    core_args.add_argument(
        '--cores',
        type=str,
        default="",
        help=HELP_MESSAGES['cores']
    )


def add_output_arguments(parser):
    output_args = parser.add_argument_group("Output")
    output_args.add_argument(
        '--output-dir', '-o',
        type=str,
        default=DEFAULT_OUTPUT_DIR,
        help=HELP_MESSAGES['output_dir']
    )
    output_args.add_argument(
        '--no-bundle',
        action="store_false",
        dest="bundle",
        help=HELP_MESSAGES['no_bundle']
    )
    output_args.add_argument(
        '--symbol-archive',
        action="store_true",
        help=HELP_MESSAGES['symbol_archive']
    )


def add_info_arguments(parser):
    info_args = parser.add_argument_group("Info")
    info_args.add_argument(
        '--no-turbostat',
        action="store_false",
        dest="turbostat",
        help=HELP_MESSAGES['no_turbostat']
    )
    info_args.add_argument(
        '--turbostat-iterations',
        type=int,
        default=DEFAULT_TURBOSTAT_ITERATIONS,
        help=HELP_MESSAGES['turbostat_iterations']
    )


def add_upload_arguments(parser):
    upload_args = parser.add_argument_group("Upload")
    upload_args.add_argument(
        '--upload',
        action="store_true",
        help=HELP_MESSAGES['upload']
    )
    upload_args.add_argument(
        '--upload-url',
        type=str,
        default="",
        help=HELP_MESSAGES['upload_url']
    )
    upload_args.add_argument(
        '--upload-token',
        type=str,
        default="",
        help=HELP_MESSAGES['upload_token']
    )
    upload_args.add_argument(
        '--upload-timeout',
        type=int,
        default=DEFAULT_UPLOAD_TIMEOUT,
        help=HELP_MESSAGES['upload_timeout']
    )


def add_universal_arguments(parser):
    """Add the config file, output control and view-only arguments.

    Args:
        parser: Argparse parser to add arguments to.
    """
    standard_args = parser.add_argument_group("Standard Arguments")
    standard_args.add_argument(
        '--config-file', '-c',
        type=str,
        help=HELP_MESSAGES['config_file']
    )

    output_control = parser.add_argument_group("Output Control")
    output_control.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode"
    )
    output_control.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose mode"
    )
    output_control.add_argument(
        "--stream-log-level",
        type=str.upper,
        choices=STREAM_LOG_LEVELS,
        default=None,
        help="Log level for console output"
    )

    view_only_args = parser.add_argument_group("View Only")
    view_only_args.add_argument(
        "--what-if",
        action="store_true",
        help=HELP_MESSAGES['what_if']
    )
