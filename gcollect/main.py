#!/usr/bin/env python3
"""
gcollect - Main Entry Point

Parses the command line, builds the run configuration and hands it to the
lifecycle controller. Every failure is mapped to an exit code here.
"""

import sys
import traceback

from gcollect.cli_parser import parse_arguments
from gcollect.config import EXIT_CODE, GCOLLECT_DEBUG, TOOL_NAME, VERSION
from gcollect.gc_logging import setup_logging, apply_logging_options
from gcollect.errors import (
    GCollectException,
    ConfigurationError,
    DependencyError,
    PrivilegeError,
    StartError,
    CrashError,
)
from gcollect.error_messages import format_error
from gcollect.lifecycle import LifecycleController
from gcollect.run_config import RunConfig
from gcollect.utils import CommandExecutor

logger = setup_logging("gcollect")


def print_banner():
    rule = "=" * 80
    logger.status(rule)
    logger.status(f"  {TOOL_NAME} v{VERSION} - Performance Data Collection")
    logger.status(rule)


def _report(error: GCollectException):
    logger.error(error.message)
    if error.suggestion:
        logger.info(f"Suggestion: {error.suggestion}")


def _main_impl(argv=None):
    """
    Main implementation.

    Separated from main() so that main() can wrap it with exception handling.
    """
    args = parse_arguments(argv)
    apply_logging_options(logger, args)

    print_banner()

    config = RunConfig.from_args(args).validate()
    executor = CommandExecutor(logger=logger, debug=args.debug or GCOLLECT_DEBUG)
    controller = LifecycleController(config, logger, executor=executor)
    return controller.run()


def main(argv=None):
    """
    Main entry point with error handling.

    Returns:
        EXIT_CODE.SUCCESS for a completed or signal-stopped run,
        EXIT_CODE.FAILURE otherwise.
    """
    try:
        return _main_impl(argv)

    except ConfigurationError as e:
        _report(e)
        return EXIT_CODE.FAILURE

    except PrivilegeError as e:
        _report(e)
        return EXIT_CODE.FAILURE

    except DependencyError as e:
        _report(e)
        return EXIT_CODE.FAILURE

    except StartError as e:
        logger.error("Failed to start data collection. Exiting.")
        _report(e)
        return EXIT_CODE.FAILURE

    except CrashError as e:
        # Finalization already ran; the outputs were preserved
        _report(e)
        return EXIT_CODE.FAILURE

    except GCollectException as e:
        _report(e)
        return EXIT_CODE.FAILURE

    except OSError as e:
        logger.error(f"File system error: {e}")
        return EXIT_CODE.FAILURE

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return EXIT_CODE.FAILURE

    except SystemExit:
        # argparse exits for --help, --version and usage errors
        raise

    except Exception as e:
        logger.error(f"Unexpected error: {str(e)}")
        logger.error(format_error('INTERNAL_ERROR', error=str(e)))

        if GCOLLECT_DEBUG:
            logger.debug("Stack trace:")
            traceback.print_exc()
        else:
            logger.info("Set GCOLLECT_DEBUG=1 for full stack trace")

        return EXIT_CODE.FAILURE


if __name__ == "__main__":
    sys.exit(main())
