"""Splitting a command line into tokens, with quoting and variable expansion."""

from __future__ import annotations

from collections.abc import Iterable
from itertools import count
from typing import Optional, Protocol

from .errors import UnclosedQuoteError

_BLANK = frozenset(" \n\t")
_OPERATORS = frozenset("|<>")
_QUOTES = frozenset("'\"")
_REDIRECT = frozenset("<>")

_NAME_STOPS = _BLANK | frozenset('"$/')
_DOLLAR_STOPS = _BLANK | _OPERATORS | _QUOTES | frozenset("$/")
_COUNT_DOLLAR_STOPS = _BLANK | _OPERATORS | _QUOTES | frozenset("$")
_WORD_STOPS = _BLANK | _OPERATORS
_PLAIN_STOPS = _BLANK | _OPERATORS | _QUOTES
_QUOTED_NAME_STOPS = _BLANK | frozenset('"')
_EXPAND_SKIP_STOPS = _BLANK | frozenset('"$')
_NO_QUOTED_EXPANSION = _BLANK | _QUOTES

_ECHO_SPECIAL = frozenset({">", "<", "'", '"', ">>", "<<"})


class _Lookup(Protocol):
    def get(self, name: str) -> Optional[str]: ...


def _at(text: str, pos: int) -> str:
    """The character at ``pos``, or "" past either end."""
    return text[pos] if 0 <= pos < len(text) else ""


def _scan(text: str, pos: int, stops: frozenset[str]) -> int:
    """Position of the first character in ``stops`` at or after ``pos``."""
    while pos < len(text) and text[pos] not in stops:
        pos += 1
    return pos


def _skip_blank(text: str, pos: int) -> int:
    while pos < len(text) and text[pos] in _BLANK:
        pos += 1
    return pos


def _variable_name(text: str, pos: int) -> str:
    """The name following a ``$`` whose first character is at ``pos``."""
    if _at(text, pos) == "?":
        return "?"
    return text[pos:_scan(text, pos, _NAME_STOPS)]


def _lookup(name: str, env: _Lookup) -> Optional[str]:
    return env.get(name) if name else None


def _dollar_length(text: str, pos: int) -> int:
    """How many characters after a ``$`` belong to the reference."""
    end = pos
    while end < len(text) and text[end] not in _DOLLAR_STOPS:
        end += 1
        if text[end - 1] == "?":
            break
    return end - pos


def _quoted_expands(body: str, env: _Lookup) -> bool:
    """Whether a double-quoted body refers to at least one set variable."""
    for pos, char in enumerate(body):
        follower = _at(body, pos + 1)
        if char != "$" or not follower or follower in _NO_QUOTED_EXPANSION:
            continue
        name = body[pos + 1:_scan(body, pos + 1, _QUOTED_NAME_STOPS)]
        if _lookup(name, env) is not None:
            return True
    return False


def _literal_operator(text: str, pos: int) -> str:
    """Token for an operator written inside quotes, marked by a leading quote."""
    first = text[pos + 1]
    if first in _REDIRECT and _at(text, pos + 2) == first:
        return '"' + first + first
    return '"' + first


def quotes_balanced(text: str) -> bool:
    """Return whether every single and double quote in ``text`` is closed."""
    pos = 0
    while pos < len(text):
        char = text[pos]
        if char in _QUOTES:
            close = text.find(char, pos + 1)
            if close < 0:
                return False
            pos = close
        pos += 1
    return True


def count_tokens(text: str, env: _Lookup) -> int:
    """Estimate how many tokens ``text`` holds; unset variables count for none."""
    total = 0
    size = len(text)
    pos = _skip_blank(text, 0)
    while pos < size:
        char = text[pos]
        if char in _QUOTES:
            if _at(text, pos + 1) != char:
                pos = _scan(text, pos + 1, frozenset(char)) + 1
                total += 1
            else:
                pos += 2
        elif char in _OPERATORS:
            doubled = char in _REDIRECT and _at(text, pos + 1) == char
            pos += 2 if doubled else 1
            total += 1
        elif char == "$":
            resolved = _lookup(_variable_name(text, pos + 1), env) is not None
            pos += 1
            if pos >= size:
                total += 1
            pos = _scan(text, pos, _COUNT_DOLLAR_STOPS)
            if resolved:
                total += 1
        else:
            pos = _scan(text, pos, _WORD_STOPS)
            total += 1
        pos = _skip_blank(text, pos)
    return total


def expand_variables(text: str, env: _Lookup) -> str:
    """Expand ``$NAME`` references in ``text`` up to the first double quote.

    Unset variables expand to nothing; after a reference the rest of the
    word up to a blank, a quote or another ``$`` is dropped.
    """
    parts: list[str] = []
    pos = 0
    while pos < len(text) and text[pos] != '"':
        if text[pos] == "$":
            pos += 1
            value = _lookup(_variable_name(text, pos), env)
            if value is not None:
                parts.append(value)
            pos = _scan(text, pos, _EXPAND_SKIP_STOPS)
        else:
            parts.append(text[pos])
            pos += 1
    return "".join(parts)


def _split_words(text: str, env: _Lookup, expected: int) -> list[str]:
    slots: dict[int, str] = {}
    index = 0
    remaining = expected
    size = len(text)
    pos = _skip_blank(text, 0)

    def join(piece: str) -> None:
        slots[index] = slots.get(index, "") + piece

    while pos < size:
        char = text[pos]
        follower = _at(text, pos + 1)
        if char in _QUOTES:
            if follower == char:
                pos += 2
            else:
                close = _scan(text, pos + 1, frozenset(char))
                body = text[pos + 1:close]
                third = _at(text, pos + 2)
                if (
                    follower in _OPERATORS
                    and char in (third, _at(text, pos + 3))
                    and third != "|"
                ):
                    slots[index] = _literal_operator(text, pos)
                elif char == '"' and _quoted_expands(body, env):
                    join(expand_variables(text[pos + 1:], env))
                else:
                    join(body)
                pos += len(body) + 2
        elif char in _OPERATORS:
            if char in _REDIRECT and follower == char:
                join(char * 2)
                if _at(text, pos + 2) != " ":
                    index += 1
                pos += 2
            else:
                slots[index] = char
                if follower != " ":
                    index += 1
                pos += 1
        elif char == "$" and follower and follower not in _BLANK:
            length = _dollar_length(text, pos + 1)
            value = _lookup(_variable_name(text, pos + 1), env)
            if value is not None:
                join(value)
                pos += length + 1
            elif remaining <= 0:
                if _at(text, pos + length + 1) == " ":
                    length += 1
                pos += length + 1
        elif char in _BLANK:
            pos = _skip_blank(text, pos)
            index += 1
        else:
            end = _scan(text, pos + 1, _PLAIN_STOPS)
            join(text[pos:end])
            if _at(text, end) in _OPERATORS:
                index += 1
            pos = end
        remaining -= 1

    tokens: list[str] = []
    for slot in count():
        if slot not in slots:
            break
        tokens.append(slots[slot])
    return tokens


def join_echo_arguments(tokens: Iterable[str]) -> list[str]:
    """Append a separating space to each echo argument followed by another."""
    result = list(tokens)

    def at(pos: int) -> Optional[str]:
        return result[pos] if 0 <= pos < len(result) else None

    def special(pos: int) -> int:
        token = at(pos)
        if token is None:
            return -1
        return 1 if token in _ECHO_SPECIAL or token.startswith("./") else 0

    def pad(pos: int) -> None:
        while True:
            pos += 1
            current = at(pos)
            if current is None or at(pos + 1) is None or current == "|":
                return
            if special(pos) != 0:
                continue
            after_redirect = (
                special(pos + 1) == 1
                and at(pos + 3) is not None
                and special(pos + 3) == 0
                and at(pos + 3) != "|"
            )
            plain_next = special(pos + 1) == 0 and at(pos + 1) != "|"
            if after_redirect or plain_next:
                result[pos] = current + " "

    pos = 0
    while at(pos) is not None:
        following = at(pos + 1)
        if result[pos] == "echo" and following is not None:
            if following.startswith("-n"):
                pos += 1
            pad(pos)
        pos += 1
    return result


def tokenize(text: str, env: _Lookup) -> list[str]:
    """Split a command line into the tokens the executor works on.

    Blank lines give no tokens; a line with an unclosed quote raises
    UnclosedQuoteError. Echo arguments come back already space-joined.
    """
    if not text.strip(" \n\t"):
        return []
    if not quotes_balanced(text):
        raise UnclosedQuoteError()
    words = _split_words(text, env, count_tokens(text, env))
    return join_echo_arguments(words)