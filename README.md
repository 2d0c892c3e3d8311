# pyminishell

A small interactive command shell. It reads a line, splits it into words
and operators, expands `$NAME` variables, and runs the commands it finds,
connecting them with pipes and redirections. It needs nothing beyond the
Python standard library.

## Features

- Pipelines with `|`
- Output redirection with `>` (truncate) and `>>` (append)
- Input redirection with `<`
- Here-documents with `<<`, read line by line up to a delimiter line
- Single and double quotes; variables expand inside double quotes only
- `$?` holds the status of the last command
- Builtins: `echo` (with `-n`), `cd` (with no argument or `~` for `HOME`,
  and `-` for `OLDPWD`), `pwd`, `export`, `unset`, `env` and `exit`
- Other commands are found through `PATH` and run as child processes
- On start, `SHELL` is set to `/minishell` and `SHLVL` goes up by one
- Non-empty lines are added to the line-editing history when the
  `readline` module is available

## Installing

```
pip install .
```

## Running

Start the shell:

```
pyminishell
```

It prompts with `Minishell$: `. Press Ctrl-D on an empty prompt to leave
(the shell prints `exit`), or type `exit`, optionally followed by a numeric
status. Ctrl-C at the prompt starts a new line and sets the status to 130.

```
Minishell$: echo hello | cat > out.txt
Minishell$: cat < out.txt
hello
Minishell$: export GREETING=hi
Minishell$: echo "$GREETING there"
hi there
Minishell$: exit 3
exit
```

`export` with no arguments lists the environment as `declare -x NAME="VALUE"`
lines. With arguments it adds the first `NAME=VALUE` it finds, replacing an
earlier entry of that name; names that start with a digit or `=`, or that
contain `-`, are rejected. `unset` removes the variable named by its first
argument.

## Using it from Python

```python
import io
from pyminishell.shell import Shell

out = io.StringIO()
shell = Shell({"PATH": "/usr/bin:/bin"}, stdout=out, stderr=io.StringIO(), read_line=None)
status = shell.execute_line("echo hello")
print(out.getvalue(), status)
```

`Shell.execute_line` runs one line and returns the resulting status;
`Shell.run` runs the prompt loop and returns the exit status. The `exit`
builtin raises `pyminishell.builtins.ShellExit`, which `Shell.run` turns
into its return value.

The tokenizer and command splitter can be used on their own:

```python
from pyminishell.env import Environment
from pyminishell.lexer import tokenize
from pyminishell.commands import split_commands, validate

env = Environment(["HOME=/home/user"])
commands = split_commands(tokenize("ls -l | wc -l > count.txt", env))
validate(commands)
```

`split_commands` gathers each command's words first and puts its
redirections, each with its target, in segments of their own after it.
`validate` returns the commands unchanged or raises `ShellSyntaxError`;
`tokenize` raises `UnclosedQuoteError` for a line with an unclosed quote.
Both come from `pyminishell.errors`, alongside `format_error` and
`report_error`, which build and write the `Minishell: ...` diagnostic lines.

Other pieces:

- `pyminishell.env.Environment` — ordered `NAME=VALUE` entries with `get`,
  `append`, `unset`, `as_dict`, `adjust_shlvl` and `set_status`
- `pyminishell.paths.resolve_command` — looks a command up through `PATH`
- `pyminishell.executor.Executor` — runs split commands against an
  environment and keeps the last status
- `pyminishell.redirections.Redirector` and `IOState` — pipes, file
  redirections and here-documents

## What it does not do

There are no `;`, `&&` or `||` lists, no background jobs or job control,
no subshells or command substitution, no wildcard expansion and no
scripting: the shell reads and runs one interactive line at a time.
`unset` and `export` act on a single variable per call.

## Running the tests

```
pip install .[test]
pytest
```