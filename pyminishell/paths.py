"""Locating commands through the PATH variable."""

from __future__ import annotations

import os
from typing import Optional, Protocol

_BUILTINS = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})


class _Lookup(Protocol):
    def get(self, name: str) -> Optional[str]: ...


def find_in_path(command: str, path_value: str) -> Optional[str]:
    """Return the first PATH directory holding an entry named ``command``."""
    for directory in filter(None, path_value.split(":")):
        try:
            names = os.listdir(directory)
        except OSError:
            continue
        if command in names:
            return directory
    return None


def resolve_command(command: str, env: _Lookup) -> str:
    """Return the path to run for ``command``, or the command itself."""
    if command in _BUILTINS or "/" in command:
        return command
    path_value = env.get("PATH")
    if path_value is None:
        return command
    directory = find_in_path(command, path_value)
    if directory is None:
        return command
    return directory + "/" + command.split(" ", 1)[0]