"""The interactive shell: prompt, line handling and the command entry point."""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from typing import Optional, TextIO

from .builtins import ShellExit
from .commands import split_commands
from .env import Environment
from .executor import Executor
from .lexer import tokenize
from .redirections import ReadLine

try:
    import readline as _history
except ImportError:  # pragma: no cover - platform without readline
    _history = None

PROMPT = "Minishell$: "
INTERRUPTED_STATUS = 130


def _prompt(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


class Shell:
    """A read-eval loop over an Environment copied from the process's own."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        read_line: Optional[ReadLine] = None,
    ) -> None:
        self.env = Environment(dict(os.environ) if environ is None else environ)
        self.env.unset("SHELL")
        self.env.append("SHELL=/minishell")
        self.env.adjust_shlvl(1)
        self._stdout = stdout if stdout is not None else sys.stdout
        self._stderr = stderr if stderr is not None else sys.stderr
        self._read_line = read_line if read_line is not None else _prompt
        self.executor = Executor(self.env, self._stdout, self._stderr, self._read_line)

    @property
    def status(self) -> int:
        """The exit status of the last command."""
        return self.executor.status

    @status.setter
    def status(self, value: int) -> None:
        self.executor.status = value

    def execute_line(self, line: str) -> int:
        """Tokenize and run one command line; return the resulting status."""
        self.env.append(f"?={self.status}")
        try:
            tokens = tokenize(line, self.env)
        except ShellExit:
            raise
        except Exception as exc:
            message = getattr(exc, "message", str(exc))
            self._stderr.write(message + "\n")
            self._stderr.flush()
            return self.status
        finally:
            self.env.unset("?")
        if _history is not None and line.strip(" \n\t"):
            _history.add_history(line)
        if tokens:
            self.executor.run(split_commands(tokens))
        return self.status

    def run(self) -> int:
        """Prompt until end of input or exit; return the shell's exit status."""
        while True:
            try:
                line = self._read_line(PROMPT)
            except KeyboardInterrupt:
                self._stdout.write("\n")
                self._stdout.flush()
                self.status = INTERRUPTED_STATUS
                continue
            if line is None:
                break
            try:
                self.execute_line(line)
            except ShellExit as exc:
                return exc.status
            except KeyboardInterrupt:
                self._stdout.write("\n")
                self._stdout.flush()
                self.status = INTERRUPTED_STATUS
        self._stdout.write("exit\n")
        self._stdout.flush()
        return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Start an interactive shell on the terminal."""
    return Shell().run()


if __name__ == "__main__":
    raise SystemExit(main())