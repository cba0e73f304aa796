"""Syntax checks run on a raw input line before it is split."""

from __future__ import annotations

__all__ = [
    "ShellSyntaxError",
    "check_quotes",
    "check_operators",
    "check_braces",
    "validate",
]

_BLANKS = " \t"
_QUOTES = "'\""


class ShellSyntaxError(Exception):
    """A command line that cannot be parsed; the shell status becomes 2."""

    status = 2

    def __init__(self, message: str = "minishell : Syntax error") -> None:
        super().__init__(message)


def check_quotes(line: str) -> str:
    """Raise if a quote in *line* is never closed; return *line* otherwise."""
    i = 0
    while i < len(line):
        c = line[i]
        if c in _QUOTES:
            closing = line.find(c, i + 1)
            if closing == -1:
                raise ShellSyntaxError()
            i = closing
        i += 1
    return line


def _skip_blanks(line: str, i: int) -> int:
    while i < len(line) and line[i] in _BLANKS:
        i += 1
    return i


def _run_length(line: str, i: int, c: str) -> int:
    end = i
    while end < len(line) and line[end] == c:
        end += 1
    return end - i


def _check_redirection(line: str, i: int) -> int:
    c = line[i]
    run = _run_length(line, i, c)
    if run > 2:
        raise ShellSyntaxError()
    i = _skip_blanks(line, i + run)
    if i >= len(line) or line[i] in "|<>":
        raise ShellSyntaxError()
    return i


def _check_pipe(line: str, i: int) -> int:
    before = i - 1
    while before >= 0 and line[before] in _BLANKS:
        before -= 1
    if before == -1:
        raise ShellSyntaxError()
    if _run_length(line, i, "|") > 1:
        raise ShellSyntaxError()
    i = _skip_blanks(line, i + 1)
    if i >= len(line) or line[i] == "|":
        raise ShellSyntaxError()
    return i


def check_operators(line: str) -> str:
    """Raise on misplaced pipes and redirections; return *line* otherwise.

    A pipe needs a word before and after it, ``||`` is refused, a
    redirection may be at most two characters and needs a word after it.
    ``>|`` is read as an output redirection followed by a pipe.
    """
    i = 0
    n = len(line)
    while i < n:
        c = line[i]
        if c in _QUOTES:
            closing = line.find(c, i + 1)
            i = n if closing == -1 else closing
        elif c in "<>":
            if c == ">" and line[i + 1:i + 2] == "|":
                i += 1
                continue
            i = _check_redirection(line, i)
        elif c == "|":
            i = _check_pipe(line, i)
        if i < n:
            i += 1
    return line


def check_braces(line: str) -> str:
    """Raise on an unmatched ``{`` or ``}``; return *line* otherwise."""
    i = 0
    while i < len(line):
        c = line[i]
        if c == "{":
            closing = line.find("}", i)
            if closing == -1:
                raise ShellSyntaxError()
            i = closing + 1
        elif c == "}":
            raise ShellSyntaxError()
        else:
            i += 1
    return line


def validate(line: str) -> str:
    """Run every syntax check on *line* and return it unchanged."""
    check_quotes(line)
    check_operators(line)
    check_braces(line)
    return line