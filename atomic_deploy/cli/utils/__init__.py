"""CLI utilities"""

from .output import (
    ConsoleSink,
    console,
    format_lifecycle_result,
    format_release_list,
    print_error,
    print_failure,
)

__all__ = [
    "ConsoleSink",
    "console",
    "format_lifecycle_result",
    "format_release_list",
    "print_error",
    "print_failure",
]
