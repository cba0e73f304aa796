# minishell

A small interactive shell for POSIX systems. It reads a command line, checks it
for syntax errors, expands variables, and runs the resulting pipeline.

## Features

- Pipelines: `ls -l | grep py | wc -l`
- Redirections: `<`, `>`, `>>`, and here-documents with `<<`
  (fewer than 16 here-documents per line; a quoted delimiter turns off
  expansion inside the document)
- Single and double quotes, `$NAME` and `$?` expansion, and field splitting of
  unquoted expansions (assignments such as `A=$X` are not split)
- Built-in commands: `echo` (with `-n`), `pwd`, `export`, `unset`, `env`, and
  `exit`
- Commands are looked up along `PATH`, then in the current directory
- Ctrl-C discards the current line; Ctrl-D leaves the shell

Syntax errors such as unclosed quotes, `||`, a dangling pipe, a redirection
without a target, or an unmatched `{` or `}` are reported as
`minishell : Syntax error` and set the exit status to 2. A command that cannot
be found is reported as `NAME: command not found` and sets the status to 127.

A builtin run on its own changes the shell's environment; a builtin inside a
longer pipeline works on a copy, so `export A=1 | cat` leaves `A` unset.

## What it does not do

- There is no `cd` builtin: the working directory cannot be changed from
  within the shell.
- There are no command lists or conditionals (`;`, `&&`, `||`), no subshells,
  no globbing, and no job control.
- It reads commands only from a terminal; it does not run script files or
  accept command-line arguments.

## Installation

```
pip install .
```

## Usage

Start the shell from a terminal:

```
minishell
```

The shell takes no arguments (it exits with status 127 if given any) and
refuses to run, with status 1, when standard input is not a terminal. At the
`minishell➤ ` prompt, type commands as you would in any Bourne-style shell:

```
minishell➤ export GREETING="hello world"
minishell➤ echo $GREETING | tr a-z A-Z
HELLO WORLD
minishell➤ cat << EOF > notes.txt
> first line
> $GREETING
> EOF
minishell➤ exit
```

## Using it from Python

The pieces of the shell can be used on their own. A single line can be run
against an environment without starting the interactive prompt:

```python
from minishell.environment import Environment
from minishell.shell import run_line

env = Environment.from_environ({"PATH": "/usr/bin:/bin"}, "/tmp")
env.status = 0
status = run_line("echo hi | cat", env, input)
```

The third argument of `run_line` is the function used to read here-document
lines; it is called with the prompt `"> "` and returns a line, or `None` at end
of input.

Other entry points:

- `minishell.syntax.validate(line)` checks a line and raises
  `minishell.syntax.ShellSyntaxError` when it is malformed.
- `minishell.lexer.split_words(line)` splits a line into words and operators.
- `minishell.expand.expand_value(word, env)` performs variable expansion and
  quote removal on a single word; `expand_split(word, env)` also splits the
  result into fields.
- `minishell.tokens.tokenize(words, env)` turns words into typed tokens.
- `minishell.commands.build_commands(tokens, env)` groups prepared tokens into
  `Command` objects with their redirections opened.
- `minishell.executor.find_command(name, path, cwd)` resolves a command name,
  raising `CommandNotFound`, and `execute(commands, env)` runs a pipeline.

## Running the tests

```
pip install .[test]
pytest
```