"""Simple UX helpers for CLI output - no external dependencies."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from typing import Any, TextIO


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    RED = "\033[31m"
    GREEN = "\033[32m"
    CYAN = "\033[36m"


def _supports_color(stream: TextIO | None = None) -> bool:
    """Check if terminal supports color output."""
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


def print_success(message: str, stream: TextIO | None = None) -> None:
    """Print success message in green."""
    stream = stream or sys.stdout
    print(
        colorize("✓", Colors.GREEN, bold=True, stream=stream) + " " + message,
        file=stream,
    )


def print_error(message: str, stream: TextIO | None = None) -> None:
    """Print error message in red."""
    stream = stream or sys.stderr
    print(colorize("✗", Colors.RED, bold=True, stream=stream) + " " + message, file=stream)


def print_fields(title: str, fields: Mapping[str, Any], stream: TextIO | None = None) -> None:
    """Print the fields about to be sent, one ``key  value`` row each."""
    stream = stream or sys.stderr
    max_key_len = max((len(k) for k in fields), default=0)
    print(colorize(title, Colors.CYAN, bold=True, stream=stream), file=stream)
    for key, value in fields.items():
        shown = ", ".join(value) if isinstance(value, list) else str(value)
        first_line, _, rest = shown.partition("\n")
        if rest:
            first_line += colorize(" …", Colors.DIM, stream=stream)
        print(f"  {key.ljust(max_key_len)}  {first_line}", file=stream)
