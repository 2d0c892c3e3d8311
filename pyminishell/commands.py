"""Grouping tokens into commands and operator segments, and syntax checks."""

from __future__ import annotations

import enum
from collections.abc import Iterable, Sequence
from typing import Optional

from .errors import ShellSyntaxError


class Operator(enum.Enum):
    """The control and redirection operators the shell understands."""

    PIPE = "|"
    OUTPUT = ">"
    APPEND = ">>"
    INPUT = "<"
    HEREDOC = "<<"

    @property
    def is_redirection(self) -> bool:
        return self is not Operator.PIPE


def operator_kind(token: object) -> Optional[Operator]:
    """Return the operator a token is, or None for an ordinary word."""
    try:
        return Operator(token)
    except (ValueError, TypeError):
        return None


def split_commands(tokens: Iterable[str]) -> list[list[str]]:
    """Split tokens into command words and operator segments.

    A simple command's words are gathered first; its redirections, each with
    its target, stay behind and become segments of their own after it.
    """
    pending = list(tokens)
    commands: list[list[str]] = []
    while pending:
        head = operator_kind(pending[0])
        if head is not None:
            size = 1 if head is Operator.PIPE or len(pending) == 1 else 2
            commands.append(pending[:size])
            del pending[:size]
            continue
        words: list[str] = []
        remaining: list[str] = []
        stream = iter(pending)
        for token in stream:
            kind = operator_kind(token)
            if kind is Operator.PIPE:
                remaining.append(token)
                remaining.extend(stream)
                break
            if kind is not None:
                remaining.append(token)
                target = next(stream, None)
                if target is None:
                    break
                remaining.append(target)
            else:
                words.append(token)
        commands.append(words)
        pending = remaining
    return commands


def validate(commands: Sequence[Sequence[str]]) -> Sequence[Sequence[str]]:
    """Return ``commands`` unchanged, or raise ShellSyntaxError."""
    if commands and commands[0] and operator_kind(commands[0][0]) is Operator.PIPE:
        raise ShellSyntaxError("syntax error near unexpected token `|'")
    for position, command in enumerate(commands):
        if not command:
            continue
        kind = operator_kind(command[0])
        if kind is not None and kind.is_redirection:
            if len(command) > 1 and operator_kind(command[1]) is not None:
                raise ShellSyntaxError(
                    f"syntax error near unexpected token `{command[1]}'"
                )
            if len(command) == 1:
                raise ShellSyntaxError("syntax error near unexpected token `newline'")
        if position == len(commands) - 1 and kind is Operator.PIPE:
            raise ShellSyntaxError("syntax error near unexpected token `|'")
    return commands