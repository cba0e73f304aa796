"""Turning the words of a command line into typed tokens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import IO, Iterable

from .expand import expand_split, expand_value, needs_field_split, remove_quotes
from .lexer import QUOTES, TokenType, classify, has_variable

__all__ = ["Token", "HeredocLimitError", "tokenize", "MAX_HEREDOCS"]

MAX_HEREDOCS = 16


@dataclass
class Token:
    """One token of a command line.

    ``quotes_removed`` marks values whose quoting has already been dealt
    with during expansion; ``quoted_delimiter`` marks a here-document
    delimiter that was quoted, which turns off expansion in its body;
    ``heredoc`` holds the opened body of a ``<<`` token.
    """

    type: TokenType
    value: str | None
    ambiguous: bool = False
    quoted_delimiter: bool = False
    quotes_removed: bool = False
    heredoc: IO[str] | None = None


class HeredocLimitError(Exception):
    """Too many here-documents in one command line; the status becomes 2."""

    status = 2

    def __init__(
        self, message: str = "minishell : maximum here-document count exceeded"
    ) -> None:
        super().__init__(message)


def _expand_word(word: str, kind: TokenType, env) -> list[Token]:
    split = needs_field_split(word, env)
    if not split or kind is TokenType.FILE:
        value = expand_value(word, env)
        token = Token(kind, value, quotes_removed=True)
        if kind is TokenType.FILE:
            token.ambiguous = not value or split
        return [token]
    return [
        Token(TokenType.WORD, field, quotes_removed=True)
        for field in expand_split(word, env)
    ]


def tokenize(words: Iterable[str], env) -> list[Token]:
    """Classify *words* and expand the variables they hold.

    A word following ``<<`` is a delimiter and is never expanded; a quoted
    delimiter loses its quotes and disables expansion of the body.  Raises
    HeredocLimitError when the line holds sixteen or more here-documents.
    """
    tokens: list[Token] = []
    for word in words:
        previous = tokens[-1].type if tokens else None
        kind = classify(word, previous)
        if previous is TokenType.HEREDOC:
            kind = TokenType.DELIMITER
        if kind is not TokenType.DELIMITER and has_variable(word):
            tokens.extend(_expand_word(word, kind, env))
            continue
        token = Token(kind, word)
        if kind is TokenType.DELIMITER and any(q in word for q in QUOTES):
            token.value = remove_quotes(word)
            token.quoted_delimiter = True
        tokens.append(token)
    if sum(token.type is TokenType.HEREDOC for token in tokens) >= MAX_HEREDOCS:
        raise HeredocLimitError()
    return tokens