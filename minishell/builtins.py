"""Commands the shell runs itself instead of starting a program."""

from __future__ import annotations

import os
import sys
from typing import IO, Sequence

from .commands import Command
from .environment import Environment

__all__ = [
    "ShellExit",
    "BUILTINS",
    "is_builtin",
    "is_echo_option",
    "echo",
    "is_valid_export",
    "export",
    "unset",
    "print_env",
    "pwd",
    "is_numeric_exit",
    "parse_exit_code",
    "exit_builtin",
    "run_builtin",
]

BUILTINS = frozenset({"echo", "pwd", "export", "unset", "env", "exit"})

_LONG_MAX = 9223372036854775807
_SPACES = "\t\n\v\f\r "
_ENV_PROGRAM = "/usr/bin/env"


class ShellExit(Exception):
    """Raised when the shell (or a forked builtin) is to exit with *code*."""

    def __init__(self, code: int) -> None:
        super().__init__(code)
        self.code = code


def _get_status(env) -> int:
    return getattr(env, "status", 0)


def _set_status(env, status: int) -> None:
    if env is not None:
        env.status = status


def is_builtin(name: str | None) -> bool:
    """True if *name* is handled by the shell itself."""
    return name is not None and name in BUILTINS


def is_echo_option(arg: str | None) -> bool:
    """True for ``-n``, ``-nn``, ``-nnn`` and so on."""
    return arg is not None and len(arg) >= 2 and arg[0] == "-" and set(arg[1:]) == {"n"}


def echo(args: Sequence[str], out: IO[str]) -> int:
    """Write the arguments after ``args[0]`` separated by spaces.

    Leading ``-n`` options suppress the final newline.
    """
    rest = list(args[1:])
    newline = True
    while rest and is_echo_option(rest[0]):
        newline = False
        rest.pop(0)
    out.write(" ".join(rest))
    if newline:
        out.write("\n")
    return 0


def is_valid_export(arg: str) -> bool:
    """True if *arg* is ``NAME``, ``NAME=VALUE`` or ``NAME+=VALUE``."""
    if not arg or not (arg[0].isascii() and (arg[0].isalpha() or arg[0] == "_")):
        return False
    for i, c in enumerate(arg[1:], start=1):
        if c.isascii() and (c.isalnum() or c == "_"):
            continue
        if c == "=" or (c == "+" and arg[i + 1:i + 2] == "="):
            return True
        return False
    return True


def _print_sorted(env: Environment, out: IO[str]) -> None:
    env.sort()
    for key, value in env.items():
        if key == "_":
            continue
        if value is None:
            out.write(f"declare -x {key}\n")
        else:
            out.write(f'declare -x {key}="{value}"\n')


def export(args: Sequence[str], env: Environment, out: IO[str], err: IO[str]) -> int:
    """Define variables, or list them sorted when no names are given.

    An invalid name is reported on *err* and sets the status to 1; the
    other arguments are still processed.  Returns 1 if any name was
    invalid, 0 otherwise.
    """
    if len(args) <= 1:
        _print_sorted(env, out)
        return 0
    failed = False
    for arg in args[1:]:
        if not is_valid_export(arg):
            err.write(f"minishell: export: `{arg}': not a valid identifier\n")
            _set_status(env, 1)
            failed = True
            continue
        if "=" not in arg:
            if env.get(arg) is None:
                env.set(arg, None)
            continue
        key, _, value = arg.partition("=")
        if key.endswith("+"):
            env.append(key[:-1], value)
        else:
            env.set(key, value)
    return 1 if failed else 0


def unset(args: Sequence[str], env: Environment) -> int:
    """Remove every variable named after ``args[0]``."""
    for name in args[1:]:
        env.unset(name)
    return 0


def print_env(env: Environment, out: IO[str]) -> int:
    """Set ``_`` to the env program and list the variables that have values."""
    env.set("_", _ENV_PROGRAM)
    for key, value in env.items():
        if value is not None:
            out.write(f"{key}={value}\n")
    return 0


def pwd(env: Environment, out: IO[str]) -> int:
    """Print the working directory, falling back on ``PWD`` if it is gone."""
    try:
        cwd = os.getcwd()
    except OSError as exc:
        if "PWD" not in env:
            print(f"pwd: {exc.strerror or exc}", file=sys.stderr)
            return 1
        out.write((env.get("PWD") or "") + "\n")
        return 0
    out.write(cwd + "\n")
    return 0


def is_numeric_exit(text: str | None) -> bool:
    """True if *text* is an optional sign followed only by digits.

    A lone sign counts as numeric.
    """
    if not text:
        return False
    body = text[1:] if text[0] in "+-" else text
    return all("0" <= c <= "9" for c in body)


def parse_exit_code(text: str) -> int:
    """Exit status (0 to 255) for the number in *text*.

    Leading whitespace and one sign are accepted; parsing stops at the
    first non-digit.  Raises ValueError when the magnitude exceeds the
    largest signed 64-bit value.
    """
    stripped = text.lstrip(_SPACES)
    sign = 1
    if stripped[:1] in ("+", "-"):
        if stripped[0] == "-":
            sign = -1
        stripped = stripped[1:]
    value = 0
    for c in stripped:
        if not "0" <= c <= "9":
            break
        value = value * 10 + (ord(c) - ord("0"))
        if value > _LONG_MAX:
            raise ValueError(f"{text}: numeric argument required")
    return (sign * value) % 256


def _numeric_error(arg: str, err: IO[str]) -> ShellExit:
    err.write(f"minishell: exit: {arg}: numeric argument required\n")
    return ShellExit(2)


def exit_builtin(
    args: Sequence[str], env, forked: bool, out: IO[str], err: IO[str]
) -> int:
    """Leave the shell by raising ShellExit.

    Without an argument the last status is used; a non-numeric or
    out-of-range argument exits with 2.  With more than one argument
    nothing exits: the status becomes 1 and 1 is returned.
    """
    if not forked:
        out.write("exit\n")
    if len(args) <= 1:
        raise ShellExit(_get_status(env))
    arg = args[1]
    if not is_numeric_exit(arg):
        raise _numeric_error(arg, err)
    if len(args) == 2:
        try:
            code = parse_exit_code(arg)
        except ValueError:
            raise _numeric_error(arg, err) from None
        raise ShellExit(code)
    out.write("minishell: exit: too many arguments\n")
    _set_status(env, 1)
    return 1


def run_builtin(command: Command, env: Environment, forked: bool = False) -> int:
    """Run the builtin named by *command* and return the shell status.

    Output goes to the command's redirection or standard output.  When
    *forked* is true the builtin runs as its own process and ShellExit is
    raised with the status at the end.
    """
    out = command.stdout if command.stdout is not None else sys.stdout
    args = command.argv
    name = command.name
    try:
        if is_builtin(name) and not command.skip:
            if name == "echo":
                echo(args, out)
                _set_status(env, 0)
            elif name == "pwd":
                pwd(env, out)
            elif name == "export":
                export(args, env, out, sys.stderr)
            elif name == "unset":
                unset(args, env)
            elif name == "env":
                print_env(env, out)
            elif name == "exit":
                exit_builtin(args, env, forked, out, sys.stderr)
    finally:
        out.flush()
    status = _get_status(env)
    if forked:
        raise ShellExit(status)
    return status