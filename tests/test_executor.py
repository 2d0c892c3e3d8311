import io
import os
import sys

import pytest

from pyminishell.builtins import ShellExit
from pyminishell.env import Environment
from pyminishell.executor import Executor, is_builtin

CAT = [sys.executable, "-c", "import sys; sys.stdout.write(sys.stdin.read())"]


def make(env=None, read_line=None):
    out, err = io.StringIO(), io.StringIO()
    executor = Executor(env if env is not None else Environment(dict(os.environ)),
                        out, err, read_line)
    return executor, out, err


@pytest.mark.parametrize("name", ["echo", "cd", "pwd", "export", "unset", "env", "exit"])
def test_is_builtin_true(name):
    assert is_builtin(name) is True


def test_is_builtin_false():
    assert is_builtin("ls") is False


def test_echo_writes_arguments():
    executor, out, _ = make()
    assert executor.run([["echo", "a ", "b"]]) == 0
    assert out.getvalue() == "a b\n"


def test_echo_without_arguments_prints_newline():
    executor, out, _ = make()
    executor.run([["echo"]])
    assert out.getvalue() == "\n"


def test_echo_redirected_to_file(tmp_path):
    target = tmp_path / "out.txt"
    executor, out, _ = make()
    executor.run([["echo", "hello"], [">", str(target)]])
    assert target.read_text() == "hello\n"
    assert out.getvalue() == ""


def test_append_redirection(tmp_path):
    target = tmp_path / "log.txt"
    executor, _, _ = make()
    executor.run([["echo", "one"], [">>", str(target)]])
    executor.run([["echo", "two"], [">>", str(target)]])
    assert target.read_text() == "one\ntwo\n"


def test_syntax_error_reported():
    executor, _, err = make()
    assert executor.run([["|"]]) == 2
    assert "syntax error near unexpected token `|'" in err.getvalue()


def test_export_and_unset():
    env = Environment(["A=1"])
    executor, _, _ = make(env)
    executor.run([["export", "FOO=bar"]])
    assert env.get("FOO") == "bar"
    executor.run([["unset", "FOO"]])
    assert env.get("FOO") is None


def test_export_without_arguments_declares():
    executor, out, _ = make(Environment(["A=1"]))
    executor.run([["export"]])
    assert out.getvalue() == 'declare -x A="1"\n'


def test_env_lists_entries():
    executor, out, _ = make(Environment(["A=1", "B=2"]))
    executor.run([["env"]])
    assert out.getvalue() == "A=1\nB=2\n"


def test_exit_raises_with_status():
    executor, out, _ = make()
    with pytest.raises(ShellExit) as info:
        executor.run([["exit", "3"]])
    assert info.value.status == 3
    assert out.getvalue() == "exit\n"


def test_exit_with_redirection_does_not_exit(tmp_path):
    executor, _, _ = make()
    assert executor.run([["exit"], [">", str(tmp_path / "f")]]) == 2


def test_external_command_output():
    executor, out, _ = make()
    assert executor.run([[sys.executable, "-c", "print('x')"]]) == 0
    assert out.getvalue() == "x\n"


def test_external_exit_status():
    executor, _, _ = make()
    assert executor.run([[sys.executable, "-c", "import sys; sys.exit(5)"]]) == 5


def test_pipe_from_builtin_to_program():
    executor, out, _ = make()
    executor.run([["echo", "data"], ["|"], CAT])
    assert out.getvalue() == "data\n"


def test_input_redirection(tmp_path):
    source = tmp_path / "in.txt"
    source.write_text("content\n")
    executor, out, _ = make()
    executor.run([CAT, ["<", str(source)]])
    assert out.getvalue() == "content\n"


def test_missing_input_file(tmp_path):
    missing = str(tmp_path / "missing")
    executor, out, err = make()
    assert executor.run([CAT, ["<", missing]]) == 1
    assert err.getvalue() == f"Minishell: {missing}: No such file or directory\n"
    assert out.getvalue() == ""


def test_heredoc_feeds_program():
    lines = iter(["a", "b", "EOF"])
    executor, out, _ = make(read_line=lambda prompt: next(lines, None))
    executor.run([CAT, ["<<", "EOF"]])
    assert out.getvalue() == "a\nb\n"


def test_command_not_found(tmp_path):
    executor, _, err = make(Environment({"PATH": str(tmp_path)}))
    assert executor.run([["no-such-command-xyz"]]) == 127
    assert err.getvalue() == "Minishell: no-such-command-xyz: command not found\n"


def test_directory_is_not_runnable(tmp_path):
    executor, _, err = make()
    assert executor.run([[str(tmp_path)]]) == 126
    assert err.getvalue().endswith(": Is a directory\n")


def test_missing_path_with_slash(tmp_path):
    missing = str(tmp_path / "nothing")
    executor, _, err = make()
    assert executor.run([[missing]]) == 127
    assert err.getvalue() == f"Minishell: {missing}: No such file or directory\n"


def test_cd_updates_directory_and_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    sub = tmp_path / "sub"
    sub.mkdir()
    before = os.getcwd()
    env = Environment(["HOME=/"])
    executor, _, _ = make(env)
    assert executor.run([["cd", str(sub)]]) == 0
    assert os.path.realpath(os.getcwd()) == os.path.realpath(str(sub))
    assert env.get("OLDPWD") == before
    assert env.get("PWD") == os.getcwd()


def test_pwd_into_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "p.txt"
    executor, _, _ = make()
    executor.run([["pwd"], [">", str(target)]])
    assert target.read_text() == os.getcwd() + "\n"