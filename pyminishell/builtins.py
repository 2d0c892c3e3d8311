"""The commands the shell runs itself: echo, cd, pwd, env, export, unset, exit."""

from __future__ import annotations

import os
import string
import sys
from collections.abc import Sequence
from itertools import takewhile
from typing import Optional, TextIO

from .env import Environment
from .errors import report_error

_WHITESPACE = " \f\n\r\t\v"
_LONG_MIN_DIGITS = "9223372036854775808"


class ShellExit(Exception):
    """Raised by the exit builtin; carries the status the shell exits with."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def _out(stream: Optional[TextIO]) -> TextIO:
    return stream if stream is not None else sys.stdout


def _cwd() -> str:
    try:
        return os.getcwd()
    except OSError:
        return ""


def is_echo_flag(word: Optional[str]) -> bool:
    """Whether ``word`` is a dash followed only by n's."""
    return bool(word) and word[0] == "-" and set(word[1:]) <= {"n"}


def echo(args: Sequence[str], out: Optional[TextIO] = None) -> int:
    """Write the arguments back to back; a leading -n flag drops the newline."""
    stream = _out(out)
    if len(args) > 1 and is_echo_flag(args[1]):
        stream.write("".join(args[2:]))
    else:
        stream.write("".join(args[1:]) + "\n")
    return 0


def _change_dir(old: str, path: Optional[str], env: Environment, err: Optional[TextIO]) -> int:
    if path is None:
        report_error("cd: ", None, ": No such file or directory", err)
        return 1
    try:
        os.chdir(path)
    except PermissionError:
        report_error("cd: ", path, ": Permission denied", err)
        return 1
    except OSError:
        report_error("cd: ", path, ": No such file or directory", err)
        return 1
    if not os.access(".", os.R_OK | os.W_OK):
        report_error("cd: ", path, ": Permission denied", err)
        return 1
    env.unset("OLDPWD")
    env.append("OLDPWD=" + old)
    env.unset("PWD")
    env.append("PWD=" + _cwd())
    return 0


def cd(
    args: Sequence[str],
    env: Environment,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Change directory, updating OLDPWD and PWD; return the exit status."""
    if len(args) > 2:
        report_error("cd: ", None, "too many arguments", err)
        return 1
    target = args[1] if len(args) > 1 else None
    old = _cwd()
    if target is None or target == "~":
        return _change_dir(old, env.get("HOME"), env, err)
    if target == "-":
        previous = env.get("OLDPWD")
        if previous is None:
            report_error("cd: ", None, ": OLDPWD not set", err)
            return 1
        _out(out).write(previous + "\n")
        return _change_dir(old, previous, env, err)
    return _change_dir(old, target, env, err)


def pwd(out: Optional[TextIO] = None) -> int:
    """Print the working directory."""
    _out(out).write(_cwd() + "\n")
    return 0


def print_env(env: Environment, out: Optional[TextIO] = None) -> int:
    """Print every environment entry on its own line."""
    stream = _out(out)
    for entry in env:
        stream.write(entry + "\n")
    return 0


def _declare(env: Environment, out: TextIO) -> None:
    for entry in env:
        name, sep, value = entry.partition("=")
        if sep:
            out.write(f'declare -x {name}={"" if False else ""}"{value}"\n')
        else:
            out.write(f"declare -x {name}\n")


def export(
    args: Sequence[str],
    env: Environment,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """List the environment, or add the first NAME=VALUE argument to it."""
    if len(args) <= 1:
        _declare(env, _out(out))
    for arg in args:
        for pos, char in enumerate(arg):
            if (pos == 0 and (char == "=" or char in string.digits)) or char == "-":
                report_error("export: `", arg, "': not a valid identifier", err)
                return 1
            if char == "=":
                env.unset(arg[:pos])
                env.append(arg)
                return 0
    return 0


def unset(args: Sequence[str], env: Environment) -> int:
    """Remove the variable named by the first argument, if any."""
    if len(args) > 1:
        env.unset(args[1])
    return 0


def _wrap_int64(value: int) -> int:
    return (value + 2**63) % 2**64 - 2**63


def parse_exit_status(text: str) -> int:
    """Read a signed 64-bit decimal prefix; out-of-range numbers give 0."""
    rest = text.lstrip(_WHITESPACE)
    sign = 1
    if rest[:1] in ("-", "+") and rest:
        if rest[0] == "-":
            sign = -1
        rest = rest[1:]
    if sign == -1 and rest[:19] == _LONG_MIN_DIGITS:
        return -(2**63)
    digits = "".join(takewhile(lambda char: char in string.digits, rest))
    if len(digits) > 19 or (len(digits) == 19 and digits[18] > "7"):
        return 0
    return _wrap_int64(_wrap_int64(int(digits or "0")) * sign)


def exit_builtin(
    args: Sequence[str],
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> None:
    """Print "exit" and raise ShellExit with the requested status."""
    _out(out).write("exit\n")
    status = 0
    if len(args) > 2:
        status = 1
        report_error(None, None, "exit: too many arguments", err)
    elif len(args) > 1:
        arg = args[1]
        status = parse_exit_status(arg)
        first = arg[:1]
        starts_numeric = bool(first) and first in string.digits + "+-"
        if not starts_numeric or (status == 0 and arg not in ("0", "+0")):
            status = 2
            report_error("exit: ", arg, ": numeric argument required", err)
    raise ShellExit(status & 0xFF)