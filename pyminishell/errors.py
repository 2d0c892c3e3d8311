"""Shell error types and the diagnostic line format."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

PREFIX = "Minishell: "


class ShellError(Exception):
    """An error that the shell reports, with the exit status it records."""

    def __init__(self, message: str, status: int = 1) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


class ShellSyntaxError(ShellError):
    """A command line whose operators are not followed by what they need."""

    def __init__(self, message: str, status: int = 2) -> None:
        super().__init__(message, status)


class UnclosedQuoteError(ShellError):
    """A command line with a quote that is never closed."""

    def __init__(self, message: str = "Error unclosed quotes", status: int = 1) -> None:
        super().__init__(message, status)


def format_error(
    option: Optional[str], subject: Optional[str], message: Optional[str]
) -> str:
    """Build a diagnostic line; parts that are None or empty are left out."""
    return PREFIX + "".join(part for part in (option, subject, message) if part)


def report_error(
    option: Optional[str],
    subject: Optional[str],
    message: Optional[str],
    stream: Optional[TextIO] = None,
) -> str:
    """Write a diagnostic line to ``stream`` (stderr by default) and return it."""
    text = format_error(option, subject, message)
    target = sys.stderr if stream is None else stream
    target.write(text + "\n")
    target.flush()
    return text