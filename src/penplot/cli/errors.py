"""
CLI Error Handling
==================

Maps exceptions raised by penplot commands to messages and exit codes.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click


class ExitCode(IntEnum):
    """Exit codes for the penplot command."""
    SUCCESS = 0
    PROGRAM_ERROR = 1    # Parse, L-system or runtime error in the user's program
    INVALID_ARGS = 2     # Invalid arguments or missing files
    INTERNAL_ERROR = 3   # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report an exception from a command and exit with the matching code.

    Args:
        error: The exception that was raised
        verbose: If True, print the traceback for internal errors

    Raises:
        SystemExit: Always
    """
    from penplot.errors import ExecutionError, ProgramError

    if isinstance(error, ProgramError):
        # Already formatted as "file:line:col: error: ..."
        click.echo(str(error), err=True)
        sys.exit(ExitCode.PROGRAM_ERROR)

    elif isinstance(error, ExecutionError):
        click.echo(f"Runtime error: {error}", err=True)
        sys.exit(ExitCode.PROGRAM_ERROR)

    elif isinstance(error, UnicodeDecodeError):
        click.echo(f"Error: input is not valid UTF-8 ({error.reason} at byte {error.start})",
                   err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, click.BadParameter):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    elif isinstance(error, (FileNotFoundError, PermissionError, IsADirectoryError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
