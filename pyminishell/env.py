"""The shell's environment: an ordered list of NAME=VALUE entries."""

from __future__ import annotations

import string
from collections.abc import Iterable, Iterator, Mapping
from itertools import takewhile
from typing import Optional, Union

_WHITESPACE = " \f\n\r\t\v"


def _wrap_int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def parse_int_prefix(text: Optional[str]) -> int:
    """Read an optionally signed decimal prefix as a 32-bit integer; 0 if none."""
    if not text:
        return 0
    rest = text.lstrip(_WHITESPACE)
    sign = 1
    if rest[:1] in ("-", "+") and rest:
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    digits = "".join(takewhile(lambda char: char in string.digits, rest))
    return _wrap_int32(int(digits or "0") * sign)


class Environment:
    """Ordered environment entries; lookups use the first matching entry."""

    def __init__(self, entries: Union[Iterable[str], Mapping[str, str]] = ()) -> None:
        if isinstance(entries, Mapping):
            entries = (f"{name}={value}" for name, value in entries.items())
        self._entries: list[str] = list(entries)

    def get(self, name: Optional[str]) -> Optional[str]:
        """Return the value of ``name``, or None when it is not set."""
        if not name:
            return None
        for entry in self._entries:
            key, sep, value = entry.partition("=")
            if sep and key == name:
                return value
        return None

    def append(self, entry: str) -> None:
        """Add a raw NAME=VALUE entry at the end."""
        self._entries.append(entry)

    def unset(self, name: Optional[str]) -> bool:
        """Remove the first entry for ``name``; return whether one was removed."""
        if not name:
            return False
        prefix = name + "="
        for index, entry in enumerate(self._entries):
            if entry.startswith(prefix):
                del self._entries[index]
                return True
        return False

    def as_dict(self) -> dict[str, str]:
        """Return the variables as a mapping, first entry winning."""
        result: dict[str, str] = {}
        for entry in self._entries:
            key, sep, value = entry.partition("=")
            if sep and key not in result:
                result[key] = value
        return result

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def adjust_shlvl(self, delta: int) -> int:
        """Shift SHLVL by ``delta``, move it to the end and return the new level."""
        level = _wrap_int32(parse_int_prefix(self.get("SHLVL")) + delta)
        self.unset("SHLVL")
        self.append(f"SHLVL={level}")
        return level

    def set_status(self, status: int) -> None:
        """Record the last exit status as the variable ``?``."""
        self.unset("?")
        self.append(f"?={status}")