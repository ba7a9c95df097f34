"""
Unified CLI Error Handling
==========================

Provides consistent error handling and exit codes for the droidsync CLI.
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from droidsync.exceptions import DroidSyncError


class ExitCode(IntEnum):
    """Standard exit codes for CLI tools."""
    SUCCESS = 0
    NOT_IDLE = 1         # Registry did not return to idle
    INVALID_ARGS = 2     # Invalid arguments
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print full traceback for internal errors

    Raises:
        SystemExit: Always exits with an appropriate exit code
    """
    if isinstance(error, DroidSyncError):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.NOT_IDLE)

    elif isinstance(error, click.BadParameter):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
