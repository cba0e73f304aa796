"""Variable expansion, quote removal and field splitting of words."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from .lexer import SPACES, identifier_length, is_space, variable_span

__all__ = [
    "SegmentKind",
    "Segment",
    "remove_quotes",
    "lookup",
    "split_variables",
    "expand_value",
    "contains_space",
    "needs_field_split",
    "split_fields",
    "expand_split",
]

_FIELD_SEPARATORS = re.compile(f"[{re.escape(SPACES)}]+")


class SegmentKind(Enum):
    """Whether a piece of a word is literal text or a ``$`` reference."""

    WORD = auto()
    VAR = auto()


@dataclass(frozen=True)
class Segment:
    """One piece of a word: literal text or a variable reference."""

    value: str
    kind: SegmentKind


@dataclass
class _QuoteState:
    single: bool = False
    double: bool = False


def _status(env: object) -> int:
    return getattr(env, "status", 0)


def remove_quotes(value: str | None) -> str:
    """Strip quoting from *value*.

    Quote characters that open or close a quoted section are dropped, a
    ``$`` directly before a quote outside any quotes is dropped, and ``$$``
    is kept as it is.
    """
    if value is None:
        return ""
    out: list[str] = []
    single = double = False
    i = 0
    n = len(value)
    while i < n:
        c = value[i]
        nxt = value[i + 1:i + 2]
        if c == "'" and not double:
            single = not single
            i += 1
        elif c == '"' and not single:
            double = not double
            i += 1
        elif c == "$" and not double and not single and nxt and nxt in "'\"":
            i += 1
        elif c == "$" and nxt == "$":
            out.append("$$")
            i += 2
        else:
            out.append(c)
            i += 1
    return "".join(out)


def _strip_quotes(state: _QuoteState, text: str | None) -> str:
    """Remove quotes from one segment, carrying quote state between segments."""
    if text is None:
        return ""
    out: list[str] = []
    for c in text:
        if c == "'" and not state.double:
            state.single = not state.single
        elif c == '"' and not state.single:
            state.double = not state.double
        elif c == "$" and not state.double and not state.single:
            # The look-ahead is taken relative to the output position.
            ahead = len(out) + 1
            following = text[ahead] if ahead < len(text) else ""
            if following not in ("'", '"', ""):
                out.append(c)
        else:
            out.append(c)
    return "".join(out)


def lookup(variable: str, env) -> str | None:
    """Value of the ``$`` reference at the start of *variable*.

    ``$?`` gives the last exit status, read from the ``status`` attribute
    of *env* (0 when it has none).  Unset variables, variables without a
    value and empty values all give None.
    """
    span = variable_span(variable, 0)
    name = variable[1:span]
    if not name:
        return None
    if name == "?":
        return str(_status(env))
    if env is None:
        return None
    return env.get(name) or None


def split_variables(text: str) -> list[Segment]:
    """Cut *text* into literal pieces and the variable references between them.

    References inside single quotes are left in the literal text.
    """
    segments: list[Segment] = []
    single = double = False
    i = 0
    n = len(text)
    while i < n:
        start = i
        while i < n:
            c = text[i]
            if c == "$" and i + 1 < n and identifier_length(text[i + 1:]) and not single:
                break
            if c == "'" and not double:
                single = not single
            elif c == '"' and not single:
                double = not double
            i += 1
        if i > start:
            segments.append(Segment(text[start:i], SegmentKind.WORD))
        if i >= n:
            break
        span = variable_span(text, i)
        segments.append(Segment(text[i:i + span], SegmentKind.VAR))
        i += span
    return segments


def _join(left: str | None, right: str | None) -> str | None:
    if left is None and right is None:
        return None
    return (left or "") + (right or "")


def expand_value(text: str, env) -> str | None:
    """Expand every variable in *text* and remove its quotes.

    Returns None when nothing at all is left.
    """
    state = _QuoteState()
    result: str | None = None
    for segment in split_variables(text):
        if segment.value == "$?":
            piece: str | None = str(_status(env))
        elif segment.value == "$":
            piece = segment.value
        elif segment.kind is SegmentKind.VAR:
            piece = lookup(segment.value, env)
        else:
            piece = _strip_quotes(state, segment.value)
        result = _join(result, piece)
    return result


def contains_space(text: str | None) -> bool:
    """True if *text* holds any ASCII whitespace."""
    return text is not None and any(is_space(c) for c in text)


def needs_field_split(value: str, env) -> bool:
    """True if an unquoted variable in *value* expands to text with spaces.

    Once an ``=`` has been seen outside double quotes the word is an
    assignment and is never split.
    """
    single = double = False
    assigned = False
    i = 0
    n = len(value)
    while i < n:
        c = value[i]
        if c == "=" and not double:
            assigned = True
        if (
            c == "$"
            and i + 1 < n
            and identifier_length(value[i + 1:])
            and not single
            and not double
        ):
            expanded = lookup(value[i:], env)
            i += variable_span(value, i)
            if contains_space(expanded) and not assigned:
                return True
            continue
        if c == "'" and not double:
            single = not single
        elif c == '"' and not single:
            double = not double
        i += 1
    return False


def split_fields(text: str | None) -> list[str]:
    """Split *text* on runs of ASCII whitespace, dropping empty fields."""
    if not text:
        return []
    return [field for field in _FIELD_SEPARATORS.split(text) if field]


def _emit(fields: list[str], prefix: str | None, has_next: bool) -> list[str]:
    out: list[str] = []
    last = len(fields) - 1
    for position, field in enumerate(fields):
        if position == 0:
            out.append(_join(prefix, field) or "")
        elif position == last and has_next:
            break
        else:
            out.append(field)
    return out


def expand_split(value: str, env) -> list[str]:
    """Expand *value* and split the result into separate words.

    The literal text before a variable is glued to its first field, and the
    last field of a variable is held back to join what follows it.
    """
    segments = split_variables(value)
    state = _QuoteState()
    fields: list[str] | None = None
    current: str | None = None
    words: list[str] = []
    for position, segment in enumerate(segments):
        has_next = position + 1 < len(segments)
        if segment.kind is SegmentKind.WORD:
            current = _strip_quotes(state, segment.value)
            if fields:
                current = fields[-1] + current
        if segment.kind is SegmentKind.VAR or not has_next:
            fields = split_fields(lookup(segment.value, env))
            words.extend(_emit(fields, current, has_next))
        if (
            segment.kind is SegmentKind.VAR
            and has_next
            and segments[position + 1].kind is SegmentKind.VAR
        ):
            current = fields[-1] if fields else None
    return words