"""Running a parsed command line: builtins, external programs and redirections."""

from __future__ import annotations

import io
import os
import subprocess
import sys
from collections.abc import Callable, Sequence
from typing import Optional, TextIO

from .builtins import cd, echo, exit_builtin, export, print_env, pwd, unset
from .commands import operator_kind, validate
from .env import Environment
from .errors import ShellSyntaxError, report_error
from .paths import resolve_command
from .redirections import STDIN, STDOUT, IOState, ReadLine, Redirector

STDERR = 2

_BUILTIN_NAMES = frozenset({"echo", "cd", "pwd", "export", "unset", "env", "exit"})


def is_builtin(name: Optional[str]) -> bool:
    """Whether ``name`` is a command the shell runs itself."""
    return name in _BUILTIN_NAMES


def _write_fd(fd: int, text: str) -> None:
    view = memoryview(text.encode())
    while view:
        written = os.write(fd, view)
        view = view[written:]


class Executor:
    """Runs command segments against an environment, tracking the last status."""

    def __init__(
        self,
        env: Environment,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        read_line: Optional[ReadLine] = None,
    ) -> None:
        self.env = env
        self._stdout = stdout if stdout is not None else sys.stdout
        self._stderr = stderr if stderr is not None else sys.stderr
        self._redirector = Redirector(self._stderr, read_line)
        self.status = 0

    def run(self, commands: Sequence[Sequence[str]]) -> int:
        """Run every segment in order and return the last exit status."""
        segments = [list(command) for command in commands]
        try:
            validate(segments)
        except ShellSyntaxError as exc:
            report_error(None, None, exc.message, self._stderr)
            self.status = exc.status
            return self.status
        state = IOState()
        index = 0
        try:
            while index < len(segments):
                command = segments[index]
                if not command:
                    index += 1
                elif operator_kind(command[0]) is not None:
                    index = self._redirect(segments, index, state)
                elif is_builtin(command[0]):
                    index = self._run_builtin(segments, index, state)
                else:
                    index = self._run_external(segments, index, state)
        finally:
            state.close()
        return self.status

    def _redirect(self, commands: Sequence[Sequence[str]], index: int, state: IOState) -> int:
        self._redirector.status = self.status
        following = self._redirector.apply(commands, index, state)
        self.status = self._redirector.status
        return following

    def _prepare(self, commands: Sequence[Sequence[str]], index: int, state: IOState) -> int:
        following = index + 1
        if (
            following < len(commands)
            and commands[following]
            and operator_kind(commands[following][0]) is not None
        ):
            following = self._redirect(commands, following, state)
        return following

    def _emit(self, text: str, state: IOState) -> None:
        if state.current_out == STDOUT:
            self._stdout.write(text)
            self._stdout.flush()
        else:
            _write_fd(state.current_out, text)

    def _captured(self, state: IOState, action: Callable[[TextIO], int]) -> None:
        if state.failed:
            self.status = 1
            return
        buffer = io.StringIO()
        self.status = action(buffer)
        self._emit(buffer.getvalue(), state)

    def _run_builtin(self, commands: Sequence[Sequence[str]], index: int, state: IOState) -> int:
        command = list(commands[index])
        following = self._prepare(commands, index, state)
        try:
            self._dispatch(command, index + 1 >= len(commands), state)
        finally:
            state.swap()
        return following

    def _dispatch(self, command: list[str], is_last: bool, state: IOState) -> None:
        name = command[0]
        if name == "echo":
            if len(command) > 1:
                self._captured(state, lambda out: echo(command, out))
            elif is_last:
                self._stdout.write("\n")
                self._stdout.flush()
        elif name == "cd":
            self.status = cd(command, self.env, self._stdout, self._stderr)
        elif name == "pwd":
            self._captured(state, pwd)
        elif name == "env":
            self._captured(state, lambda out: print_env(self.env, out))
        elif name == "export":
            if len(command) <= 1:
                self._captured(
                    state, lambda out: export(command, self.env, out, self._stderr)
                )
            elif state.is_standard:
                self.status = export(command, self.env, self._stdout, self._stderr)
        elif name == "unset":
            unset(command, self.env)
        elif name == "exit":
            if not state.is_standard:
                self.status = 2
                return
            exit_builtin(command, self._stdout, self._stderr)

    def _run_external(self, commands: Sequence[Sequence[str]], index: int, state: IOState) -> int:
        command = list(commands[index])
        following = self._prepare(commands, index, state)
        try:
            self.status = 1 if state.failed else self._spawn(command, state)
        finally:
            state.swap()
        return following

    @staticmethod
    def _target(fd: int, stream: TextIO, standard: int) -> tuple[object, bool]:
        if fd != standard:
            return fd, False
        try:
            stream.flush()
            return stream.fileno(), False
        except (AttributeError, OSError, ValueError):
            return subprocess.PIPE, True

    def _spawn(self, command: list[str], state: IOState) -> int:
        path = resolve_command(command[0], self.env)
        executable = path if "/" in path else os.path.join(os.curdir, path)
        stdin = None if state.current_in == STDIN else state.current_in
        stdout, capture_out = self._target(state.current_out, self._stdout, STDOUT)
        stderr, capture_err = self._target(STDERR, self._stderr, STDERR)
        try:
            completed = subprocess.run(
                command,
                executable=executable,
                stdin=stdin,
                stdout=stdout,
                stderr=stderr,
                env=self.env.as_dict(),
                check=False,
            )
        except OSError:
            return self._exec_failure(command[0])
        if capture_out and completed.stdout:
            self._stdout.write(completed.stdout.decode(errors="replace"))
            self._stdout.flush()
        if capture_err and completed.stderr:
            self._stderr.write(completed.stderr.decode(errors="replace"))
            self._stderr.flush()
        return completed.returncode if completed.returncode >= 0 else 0

    def _exec_failure(self, name: str) -> int:
        if "/" in name:
            if os.path.isdir(name):
                report_error(None, name, ": Is a directory", self._stderr)
                return 126
            if os.path.exists(name) and not os.access(name, os.R_OK):
                report_error(None, name, ": Permission denied", self._stderr)
                return 126
            report_error(None, name, ": No such file or directory", self._stderr)
            return 127
        report_error(None, name, ": command not found", self._stderr)
        return 127