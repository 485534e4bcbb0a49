from __future__ import annotations

import sys
from typing import Any

from rich.console import Console


console = Console()
err_console = Console(stderr=True)


def echo(message: Any, **kwargs: Any) -> None:
    """Print to standard output with rich formatting."""
    console.print(message, **kwargs)


def warning(message: Any, **kwargs: Any) -> None:
    """Print warning message to stderr without terminating execution."""
    err_console.print(message, style="yellow", **kwargs)


def error(message: Any, code: int = 1) -> None:
    """Print to standard error and exit with specified code."""
    err_console.print(f"Error: {message}", style="bold red")
    sys.exit(code)
