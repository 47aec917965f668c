"""Console output helpers for the CLI and the duplicate-submission guard."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from typing import TextIO


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"


def _supports_color(stream: TextIO | None = None) -> bool:
    stream = stream or sys.stdout
    if os.environ.get("NO_COLOR"):
        return False
    if not hasattr(stream, "isatty") or not stream.isatty():
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return True


def colorize(text: str, color: str, bold: bool = False, stream: TextIO | None = None) -> str:
    """Apply color to text if terminal supports it."""
    if not _supports_color(stream):
        return text
    prefix = (Colors.BOLD if bold else "") + color
    return f"{prefix}{text}{Colors.RESET}"


def print_error(message: str, stream: TextIO | None = None) -> None:
    """Print error message in red."""
    stream = stream or sys.stderr
    print(colorize("✗", Colors.RED, bold=True, stream=stream) + " " + message, file=stream)


SUMMARY_WIDTH = 60

# status -> (icon, colour, bold icon)
_STATUS_STYLES: dict[str, tuple[str, str, bool]] = {
    "written": ("✓", Colors.GREEN, True),
    "proceed": ("✓", Colors.GREEN, True),
    "failed": ("✗", Colors.RED, True),
    "declined": ("○", Colors.YELLOW, False),
    "skipped": ("○", Colors.YELLOW, False),
}


def _format_value(value: str | bool | None) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "true" if value else "false"
    return value


def print_summary_box(
    title: str, items: Sequence[tuple[str, str | bool | None]], stream: TextIO | None = None
) -> None:
    """Print key/value pairs under a title; booleans as true/false, unset values as ``-``."""
    stream = stream or sys.stdout
    width = max((len(k) for k, _ in items), default=0)
    rule = colorize("─" * SUMMARY_WIDTH, Colors.DIM, stream=stream)

    print(colorize(f"\n{title}", Colors.CYAN, bold=True, stream=stream), file=stream)
    print(rule, file=stream)
    for key, value in items:
        text = _format_value(value)
        if value is True:
            text = colorize(text, Colors.GREEN, stream=stream)
        elif value is None or value is False:
            text = colorize(text, Colors.DIM, stream=stream)
        print(f"  {key.ljust(width)}  {text}", file=stream)
    print(rule, file=stream)


def print_operation_status(
    operation: str, status: str, details: str = "", stream: TextIO | None = None
) -> None:
    """Print a one-line outcome for a CLI command, e.g. ``✓ write: written (2 files)``."""
    stream = stream or sys.stdout
    icon, color, bold = _STATUS_STYLES.get(status.lower(), ("•", Colors.BLUE, False))
    line = (
        f"{colorize(icon, color, bold=bold, stream=stream)} "
        f"{colorize(operation, Colors.BOLD, stream=stream)}: "
        f"{colorize(status, color, stream=stream)}"
    )
    if details:
        line += " " + colorize(f"({details})", Colors.DIM, stream=stream)
    print(line, file=stream)
