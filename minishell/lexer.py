"""Splitting an input line into words and classifying them."""

from __future__ import annotations

from enum import Enum, auto

__all__ = [
    "TokenType",
    "is_space",
    "identifier_length",
    "variable_span",
    "split_words",
    "has_variable",
    "quote_kind",
    "classify",
]

SPACES = "\t\n\v\f\r "
QUOTES = "'\""
OPERATORS = "|<>"
REDIRECTIONS = "<>"


class TokenType(Enum):
    """Kinds of token produced from the words of a command line."""

    WORD = auto()
    PIPE = auto()
    REDIRECT_IN = auto()
    REDIRECT_OUT = auto()
    APPEND = auto()
    HEREDOC = auto()
    DOUBLE_QUOTED = auto()
    SINGLE_QUOTED = auto()
    DELIMITER = auto()
    EXPANSION = auto()
    FILE = auto()


_FILE_PRODUCERS = frozenset(
    {TokenType.REDIRECT_IN, TokenType.REDIRECT_OUT, TokenType.APPEND}
)


def is_space(c: str) -> bool:
    """Return True for ASCII whitespace (tab through carriage return, space)."""
    return len(c) == 1 and c in SPACES


def _is_ascii_alnum(c: str) -> bool:
    return c.isascii() and c.isalnum()


def _is_name_char(c: str) -> bool:
    return _is_ascii_alnum(c) or c in "?_"


def identifier_length(text: str) -> int:
    """Length of the variable name at the start of *text*, 0 if there is none.

    The first character may also be ``$``; the rest are letters, digits,
    ``_`` or ``?``.
    """
    if not text:
        return 0
    first = text[0]
    if not (_is_name_char(first) or first == "$"):
        return 0
    length = 1
    for c in text[1:]:
        if not _is_name_char(c):
            break
        length += 1
    return length


def variable_span(text: str, index: int) -> int:
    """Number of characters taken by the ``$`` reference starting at *index*."""
    after = text[index + 1:index + 2]
    if after and (after in "$?" or ("0" <= after <= "9")):
        return 2
    return 1 + identifier_length(text[index + 1:])


def _plain_word_length(line: str, start: int) -> int:
    i = start
    n = len(line)
    while i < n:
        c = line[i]
        if c in OPERATORS:
            return i - start
        if c in QUOTES:
            closing = line.find(c, i + 1)
            if closing == -1:
                return n - start
            i = closing
        elif is_space(c):
            break
        i += 1
    return i - start


def _word_length(line: str, start: int) -> int:
    c = line[start]
    if c == "|":
        return 1
    if c in REDIRECTIONS:
        end = start
        while end < len(line) and line[end] in REDIRECTIONS:
            end += 1
        return end - start
    return _plain_word_length(line, start)


def _skip_spaces(line: str, i: int) -> int:
    while i < len(line) and is_space(line[i]):
        i += 1
    return i


def split_words(line: str) -> list[str]:
    """Split *line* into words, operators and quoted sections.

    Pipes stand alone, runs of ``<``/``>`` form one word, and quoted text
    keeps its quotes and any whitespace inside it.
    """
    words: list[str] = []
    i = _skip_spaces(line, 0)
    while i < len(line):
        length = _word_length(line, i)
        words.append(line[i:i + length])
        i = _skip_spaces(line, i + length)
    return words


def has_variable(word: str) -> bool:
    """True if *word* holds a ``$`` reference outside single quotes."""
    in_single = False
    in_double = False
    for i, c in enumerate(word):
        if c == "'" and not in_double:
            in_single = not in_single
        if c == '"' and not in_single:
            in_double = not in_double
        if (
            c == "$"
            and i + 1 < len(word)
            and identifier_length(word[i + 1:])
            and not in_single
        ):
            return True
    return False


def quote_kind(word: str) -> str | None:
    """The first quote character found in *word*, or None."""
    return next((c for c in word if c in QUOTES), None)


def classify(word: str | None, previous: TokenType | None) -> TokenType:
    """Token type of *word*, given the type of the token before it."""
    if previous in _FILE_PRODUCERS:
        return TokenType.FILE
    if word is None:
        return TokenType.WORD
    if has_variable(word):
        return TokenType.EXPANSION
    if word.startswith("|"):
        return TokenType.PIPE
    if word.startswith("<"):
        return TokenType.HEREDOC if word.startswith("<<") else TokenType.REDIRECT_IN
    if word.startswith(">"):
        return TokenType.APPEND if word.startswith(">>") else TokenType.REDIRECT_OUT
    kind = quote_kind(word)
    if kind == "'":
        return TokenType.SINGLE_QUOTED
    if kind == '"':
        return TokenType.DOUBLE_QUOTED
    return TokenType.WORD