"""Utility modules for swapwiz.

This module exports commonly used utility functions.
"""

from swapwiz.utils.formatting import (
    console,
    err_console,
    format_bytes,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from swapwiz.utils.shell import CommandResult, command_exists, run_command

__all__ = [
    "CommandResult",
    "command_exists",
    "console",
    "err_console",
    "format_bytes",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
    "run_command",
]
