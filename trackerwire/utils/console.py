"""Rich console output for the trackerwire CLI.

Machine-readable results (canonical statuses, event JSON) go to stdout
unstyled; status lines carry a ``[LABEL]`` prefix so they stay readable
when color is stripped.
"""

import logging

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

from trackerwire import __version__
from trackerwire.utils.logging import log_message

custom_theme = Theme(
    {
        "error": "bold red",
        "success": "bold green",
        "warning": "bold yellow",
        "info": "bold blue",
        "status": "bold cyan",
    }
)

console = Console(theme=custom_theme)
console_err = Console(theme=custom_theme, stderr=True)


def _labelled(label: str, style: str, message: str) -> str:
    return f"[{style}][[{label}]][/{style}] {escape(message)}"


def print_error(message: str) -> None:
    """Print an error to stderr and log it."""
    console_err.print(_labelled("ERROR", "error", message), highlight=False)
    log_message(f"ERROR: {message}", logging.ERROR)


def print_success(message: str) -> None:
    console.print(_labelled("SUCCESS", "success", message), highlight=False)
    log_message(f"SUCCESS: {message}")


def print_warning(message: str) -> None:
    console.print(_labelled("WARNING", "warning", message), highlight=False)
    log_message(f"WARNING: {message}", logging.WARNING)


def print_info(message: str) -> None:
    console.print(_labelled("INFO", "info", message), highlight=False)


def print_plain(text: str) -> None:
    """Print a bare result line, with no markup or highlighting."""
    console.print(text, markup=False, highlight=False, soft_wrap=True)


def show_version() -> None:
    """Display version information."""
    console.print(f"[status]trackerwire[/status] v{__version__}")


__all__ = [
    "console",
    "console_err",
    "custom_theme",
    "print_error",
    "print_success",
    "print_warning",
    "print_info",
    "print_plain",
    "show_version",
]
