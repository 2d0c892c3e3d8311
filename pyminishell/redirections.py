"""Pipes, file redirections and here-documents for one command."""

from __future__ import annotations

import os
import sys
import tempfile
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Optional, TextIO

from .commands import Operator, operator_kind
from .errors import report_error

STDIN = 0
STDOUT = 1

ReadLine = Callable[[str], Optional[str]]


def _read_stdin_line(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def _close(fd: int, standard: int) -> None:
    if fd >= 0 and fd != standard:
        try:
            os.close(fd)
        except OSError:
            pass


@dataclass
class IOState:
    """Descriptors for the current command and for the one after it.

    A descriptor of -1 marks a redirection that failed.
    """

    current_in: int = STDIN
    current_out: int = STDOUT
    next_in: int = STDIN
    next_out: int = STDOUT

    @property
    def failed(self) -> bool:
        return self.current_in < 0 or self.current_out < 0

    @property
    def is_standard(self) -> bool:
        return self.current_in == STDIN and self.current_out == STDOUT

    def swap(self) -> None:
        """Close the current descriptors and move the next ones into place."""
        _close(self.current_in, STDIN)
        _close(self.current_out, STDOUT)
        self.current_in, self.current_out = self.next_in, self.next_out
        self.next_in, self.next_out = STDIN, STDOUT

    def close(self) -> None:
        """Close every descriptor that is not a standard stream."""
        self.swap()
        self.swap()


class Redirector:
    """Applies operator segments to an IOState.

    ``status`` is the shell's last exit status: diagnostics for files that
    cannot be opened are only written while it is 0, and failures set it.
    """

    def __init__(
        self,
        stderr: Optional[TextIO] = None,
        read_line: Optional[ReadLine] = None,
    ) -> None:
        self._stderr = stderr if stderr is not None else sys.stderr
        self._read_line = read_line if read_line is not None else _read_stdin_line
        self.status = 0

    def _fail(self, option: Optional[str], subject: Optional[str], message: Optional[str]) -> None:
        self.status = 1
        report_error(option, subject, message, self._stderr)

    def apply(self, commands: Sequence[Sequence[str]], index: int, state: IOState) -> int:
        """Apply the operator segment at ``index`` and any that follow it.

        Stops after a pipe or before the next ordinary command, and returns
        the index of the segment to handle next.
        """
        while True:
            segment = commands[index]
            kind = operator_kind(segment[0]) if segment else None
            target = segment[1] if len(segment) > 1 else None
            if kind is Operator.PIPE:
                self._pipe(state)
                return index + 1
            if kind is Operator.OUTPUT:
                self._open_output(state, target, append=False)
            elif kind is Operator.APPEND:
                self._open_output(state, target, append=True)
            elif kind is Operator.INPUT:
                self._open_input(state, target)
            elif kind is Operator.HEREDOC and target is not None:
                fd = self.heredoc(target)
                _close(state.current_in, STDIN)
                state.current_in = fd
            following = index + 1
            if (
                following < len(commands)
                and commands[following]
                and operator_kind(commands[following][0]) is not None
            ):
                index = following
                continue
            return following

    def _pipe(self, state: IOState) -> None:
        read_end, write_end = os.pipe()
        if state.next_in == STDIN:
            state.next_in = read_end
        else:
            os.close(read_end)
        if state.current_out == STDOUT:
            state.current_out = write_end
        else:
            os.close(write_end)

    def _open_input(self, state: IOState, target: Optional[str]) -> None:
        if state.failed:
            return
        _close(state.current_in, STDIN)
        state.current_in = -1
        if target is None:
            return
        try:
            state.current_in = os.open(target, os.O_RDONLY)
        except OSError as exc:
            if self.status == 0:
                if isinstance(exc, PermissionError):
                    self._fail(None, target, ": Permission denied")
                else:
                    self._fail(None, target, ": No such file or directory")

    def _open_output(self, state: IOState, target: Optional[str], append: bool) -> None:
        if state.failed:
            return
        _close(state.current_out, STDOUT)
        state.current_out = -1
        if target is None:
            return
        flags = os.O_WRONLY | os.O_CREAT | (os.O_APPEND if append else os.O_TRUNC)
        try:
            state.current_out = os.open(target, flags, 0o664)
        except OSError as exc:
            if self.status == 0:
                if isinstance(exc, PermissionError):
                    self._fail(None, target, ": Permission denied")
                else:
                    self._fail(
                        "Error to create/read the redirected file named: ",
                        target,
                        None,
                    )

    def heredoc(self, delimiter: str) -> int:
        """Read lines up to ``delimiter`` and return a readable descriptor of them."""
        lines: list[str] = []
        line = self._read_line("> ")
        while line is not None and line != delimiter:
            lines.append(line)
            line = self._read_line("> ")
            if line is None:
                self.status = 0
                report_error(
                    "warning: here-document delimited by end-of-file (wanted `",
                    delimiter,
                    "')",
                    self._stderr,
                )
        content = "".join(text + "\n" for text in lines).encode()
        fd, path = tempfile.mkstemp(prefix=".heredoc")
        try:
            os.unlink(path)
            view = memoryview(content)
            while view:
                written = os.write(fd, view)
                view = view[written:]
            os.lseek(fd, 0, os.SEEK_SET)
        except OSError:
            os.close(fd)
            raise
        return fd