"""The interactive read-evaluate loop of the shell."""

from __future__ import annotations

import contextlib
import os
import signal
import sys
from collections.abc import Iterator
from typing import Callable, Optional, Sequence

from .builtins import ShellExit
from .commands import build_commands
from .environment import Environment
from .executor import execute
from .heredoc import HeredocInterrupted, prepare_tokens
from .lexer import split_words
from .syntax import ShellSyntaxError, validate
from .tokens import HeredocLimitError, tokenize

__all__ = ["PROMPT", "run_line", "main"]

PROMPT = "minishell➤ "

ReadLine = Callable[[str], Optional[str]]


def _get_status(env) -> int:
    return getattr(env, "status", 0)


def run_line(line: str, env, read_line: ReadLine | None = None) -> int:
    """Parse and run one command line and return the shell status.

    Syntax errors and too many here-documents give status 2, an
    interrupted here-document gives 130.  ShellExit raised by ``exit``
    propagates to the caller.
    """
    try:
        validate(line)
        tokens = tokenize(split_words(line), env)
        if not tokens:
            return _get_status(env)
        prepare_tokens(tokens, env, read_line)
    except (ShellSyntaxError, HeredocLimitError) as exc:
        print(exc, file=sys.stderr)
        env.status = exc.status
        return exc.status
    except HeredocInterrupted as exc:
        print()
        env.status = exc.status
        return exc.status
    commands = build_commands(tokens, env)
    if not commands:
        return _get_status(env)
    return execute(commands, env)


@contextlib.contextmanager
def _quit_ignored() -> Iterator[None]:
    number = getattr(signal, "SIGQUIT", None)
    previous = signal.getsignal(number) if number is not None else None
    if previous is None:
        yield
        return
    signal.signal(number, signal.SIG_IGN)
    try:
        yield
    finally:
        signal.signal(number, previous)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the interactive shell and return its exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    if args:
        print("minishell : no arguments please", file=sys.stderr)
        return 127
    if not sys.stdin.isatty():
        print("use terminal please.", file=sys.stderr)
        return 1
    env = Environment.from_environ(os.environ)
    env.status = 0
    try:
        import readline  # noqa: F401  (line editing and history for input())
    except ImportError:
        pass
    with _quit_ignored():
        while True:
            try:
                line = input(PROMPT)
            except EOFError:
                print("exit")
                return env.status
            except KeyboardInterrupt:
                print()
                env.status = 130
                continue
            try:
                run_line(line, env)
            except ShellExit as exc:
                return exc.code