"""Grouping prepared tokens into the commands of a pipeline."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from typing import IO

from .lexer import TokenType
from .tokens import Token

__all__ = ["Command", "build_commands"]

_AMBIGUOUS = "minishell : ambiguous redirect"


@dataclass
class Command:
    """One command of a pipeline with its arguments and redirections.

    ``stdin`` and ``stdout`` are None when the command uses the pipeline's
    streams; ``skip`` marks a command whose redirections failed.
    """

    argv: list[str] = field(default_factory=list)
    stdin: IO[str] | None = None
    stdout: IO[str] | None = None
    skip: bool = False

    @property
    def name(self) -> str | None:
        """The command name, or None when there are no words."""
        return self.argv[0] if self.argv else None

    def close(self) -> None:
        """Close any files this command redirects to or from."""
        for stream in (self.stdin, self.stdout):
            if stream is not None:
                stream.close()
        self.stdin = None
        self.stdout = None


def _set_status(env, status: int) -> None:
    if env is not None:
        env.status = status


def _skip_to_pipe(tokens: list[Token], i: int) -> int:
    while i + 1 < len(tokens) and tokens[i + 1].type is not TokenType.PIPE:
        i += 1
    return i


def _open(path: str, flags: int, mode: str) -> IO[str]:
    fd = os.open(path, flags, 0o644)
    return os.fdopen(fd, mode)


def _replace_stdin(command: Command, stream: IO[str] | None) -> None:
    if command.stdin is not None:
        command.stdin.close()
    command.stdin = stream


def _replace_stdout(command: Command, stream: IO[str] | None) -> None:
    if command.stdout is not None:
        command.stdout.close()
    command.stdout = stream


def _redirect(tokens: list[Token], i: int, command: Command) -> tuple[int, bool]:
    """Apply the redirection at *i*; return the index reached and whether it failed."""
    kind = tokens[i].type
    if kind not in (TokenType.REDIRECT_IN, TokenType.APPEND, TokenType.REDIRECT_OUT):
        return i, False
    if i + 1 >= len(tokens):
        return i, False
    target = tokens[i + 1]
    if kind is TokenType.REDIRECT_IN:
        _replace_stdin(command, None)
    else:
        _replace_stdout(command, None)
    if target.ambiguous:
        if kind is TokenType.REDIRECT_IN:
            _replace_stdout(command, None)
        print(_AMBIGUOUS, file=sys.stderr)
        return _skip_to_pipe(tokens, i), True
    if kind is TokenType.REDIRECT_OUT and target.value == "|" and i + 2 < len(tokens):
        i += 1
        target = tokens[i + 1]
    try:
        if kind is TokenType.REDIRECT_IN:
            command.stdin = _open(target.value or "", os.O_RDONLY, "r")
        elif kind is TokenType.APPEND:
            command.stdout = _open(
                target.value or "", os.O_WRONLY | os.O_CREAT | os.O_APPEND, "a"
            )
        else:
            command.stdout = _open(
                target.value or "", os.O_RDWR | os.O_CREAT | os.O_TRUNC, "w"
            )
    except OSError as exc:
        print(f"minishell: {exc.strerror or exc}", file=sys.stderr)
        return _skip_to_pipe(tokens, i), True
    return i + 1, False


def _fill(tokens: list[Token], i: int, command: Command, env) -> int:
    """Fill *command* from the tokens starting at *i*; return where it stopped."""
    n = len(tokens)
    while i < n and tokens[i].type is not TokenType.PIPE:
        token = tokens[i]
        if token.type is TokenType.WORD:
            if token.value is not None:
                command.argv.append(token.value)
            if token.value and "minishell" in token.value:
                return n
        elif token.type is TokenType.HEREDOC:
            if token.heredoc is None:
                command.skip = True
            _replace_stdin(command, token.heredoc)
            token.heredoc = None
        else:
            i, failed = _redirect(tokens, i, command)
            if failed:
                command.skip = True
                _set_status(env, 1)
        i += 1
    return i


def build_commands(tokens: list[Token], env) -> list[Command]:
    """Split *tokens* at pipes into commands and open their redirections.

    A word containing ``minishell`` ends the pipeline there.  When the line
    holds no word at all, every opened file is closed again and an empty
    list is returned.
    """
    commands: list[Command] = []
    i = 0
    n = len(tokens)
    while i < n:
        command = Command()
        i = _fill(tokens, i, command, env)
        commands.append(command)
        if i < n and tokens[i].type is TokenType.PIPE:
            i += 1
    if not any(token.type is TokenType.WORD for token in tokens):
        for command in commands:
            command.close()
        return []
    return commands