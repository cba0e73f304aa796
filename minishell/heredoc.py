"""Reading here-document bodies and final preparation of tokens."""

from __future__ import annotations

import sys
import tempfile
from typing import IO, Callable, Optional

from .expand import lookup, remove_quotes
from .lexer import TokenType, identifier_length, variable_span
from .tokens import Token

__all__ = [
    "HeredocInterrupted",
    "expand_heredoc_line",
    "collect_heredoc",
    "open_heredoc",
    "prepare_tokens",
]

ReadLine = Callable[[str], Optional[str]]

_WORDLIKE = frozenset(
    {
        TokenType.EXPANSION,
        TokenType.SINGLE_QUOTED,
        TokenType.DOUBLE_QUOTED,
        TokenType.WORD,
    }
)


class HeredocInterrupted(Exception):
    """Reading a here-document was interrupted; the status becomes 130."""

    status = 130


def _read_line(prompt: str) -> str | None:
    try:
        return input(prompt)
    except EOFError:
        return None


def _set_status(env, status: int) -> None:
    if env is not None:
        env.status = status


def expand_heredoc_line(line: str, env) -> str:
    """Replace every ``$`` reference in a here-document line by its value."""
    out: list[str] = []
    start = 0
    i = 0
    n = len(line)
    while i < n:
        if line[i] == "$" and i + 1 < n and identifier_length(line[i + 1:]):
            out.append(line[start:i])
            out.append(lookup(line[i:], env) or "")
            i += variable_span(line, i)
            start = i
        else:
            i += 1
    out.append(line[start:])
    return "".join(out)


def collect_heredoc(
    delimiter: str | None, env, expand: bool, read_line: ReadLine | None = None
) -> str:
    """Read lines until *delimiter* or end of input and return the body.

    Lines holding ``$`` are expanded when *expand* is true.  An interrupt
    while reading raises HeredocInterrupted.
    """
    read = read_line or _read_line
    body: list[str] = []
    while True:
        try:
            line = read("> ")
        except KeyboardInterrupt as exc:
            raise HeredocInterrupted() from exc
        if line is None or line == delimiter:
            break
        if expand and "$" in line:
            line = expand_heredoc_line(line, env)
        body.append(line + "\n")
    return "".join(body)


def open_heredoc(token: Token, env, read_line: ReadLine | None = None) -> IO[str]:
    """Read the body ended by the delimiter *token* into an anonymous file.

    The returned file is positioned at its start, ready to serve as input.
    """
    body_file = tempfile.TemporaryFile("w+")
    try:
        body = collect_heredoc(
            token.value, env, not token.quoted_delimiter, read_line
        )
        body_file.write(body)
        body_file.flush()
        body_file.seek(0)
    except BaseException:
        body_file.close()
        raise
    _set_status(env, 0)
    return body_file


def _close_heredocs(tokens: list[Token]) -> None:
    for token in tokens:
        if token.heredoc is not None:
            token.heredoc.close()
            token.heredoc = None


def prepare_tokens(
    tokens: list[Token], env, read_line: ReadLine | None = None
) -> list[Token]:
    """Read here-documents and remove remaining quotes, in place.

    Word-like tokens become plain words.  If a here-document is
    interrupted, the bodies already read are closed and
    HeredocInterrupted propagates.
    """
    for index, token in enumerate(tokens):
        if token.type in _WORDLIKE:
            token.type = TokenType.WORD
        if token.type is TokenType.HEREDOC and index + 1 < len(tokens):
            try:
                token.heredoc = open_heredoc(tokens[index + 1], env, read_line)
            except HeredocInterrupted:
                _close_heredocs(tokens)
                raise
            except OSError as exc:
                print(f"open: {exc.strerror or exc}", file=sys.stderr)
        if not token.quotes_removed:
            token.value = remove_quotes(token.value)
            token.quotes_removed = True
    return tokens