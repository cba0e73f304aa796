"""The shell's variable table, kept in definition order."""

from __future__ import annotations

import os
from collections.abc import Iterable, Iterator, Mapping

__all__ = ["Environment", "DEFAULT_PATH"]

DEFAULT_PATH = "/usr/local/sbin:/usr/local/bin:/usr/sbin:/usr/bin:/sbin:/bin"


def _parse_entry(entry: str) -> tuple[str, str | None]:
    key, sep, value = entry.partition("=")
    return (key, value) if sep else (key, None)


class Environment:
    """Ordered shell variables.

    A variable may be declared without a value (``export NAME``); such a
    variable is present but has the value None and is left out of the
    environment handed to child processes.
    """

    def __init__(
        self,
        entries: Mapping[str, str | None] | Iterable[tuple[str, str | None]] | None = None,
    ) -> None:
        self._vars: dict[str, str | None] = {}
        if entries is None:
            return
        pairs = entries.items() if isinstance(entries, Mapping) else entries
        for key, value in pairs:
            # The first definition of a name wins, as lookups find it first.
            self._vars.setdefault(key, value)

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | Iterable[str] | None,
        cwd: str | None = None,
    ) -> "Environment":
        """Build the table from a process environment.

        *environ* is a mapping or a sequence of ``KEY=VALUE`` strings; an
        entry without ``=`` becomes a variable with no value.  When the
        environment is empty a minimal default set is created, using *cwd*
        (or the current directory) for ``PWD``.
        """
        if isinstance(environ, Mapping):
            pairs: list[tuple[str, str | None]] = list(environ.items())
        else:
            pairs = [_parse_entry(entry) for entry in environ or ()]
        if pairs:
            return cls(pairs)
        if cwd is None:
            try:
                cwd = os.getcwd()
            except OSError:
                cwd = None
        return cls(
            [
                ("OLDPWD", None),
                ("PATH", DEFAULT_PATH),
                ("PWD", cwd),
                ("SHLVL", "1"),
            ]
        )

    def get(self, key: str) -> str | None:
        """Value of *key*, or None if it is unset or has no value."""
        return self._vars.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def __iter__(self) -> Iterator[str]:
        return iter(self._vars)

    def set(self, key: str, value: str | None) -> None:
        """Give *key* the value *value*, adding it at the end if new."""
        self._vars[key] = value

    def append(self, key: str, value: str) -> None:
        """Append *value* to the value of *key* (the ``+=`` form)."""
        current = self._vars.get(key)
        self._vars[key] = value if current is None else current + value

    def unset(self, key: str) -> None:
        """Remove *key*; removing an absent name does nothing."""
        self._vars.pop(key, None)

    def items(self) -> list[tuple[str, str | None]]:
        """All ``(key, value)`` pairs in their current order."""
        return list(self._vars.items())

    def sort(self) -> None:
        """Reorder the variables by name."""
        self._vars = dict(sorted(self._vars.items(), key=lambda kv: kv[0]))

    def to_envp(self) -> list[str]:
        """``KEY=VALUE`` strings for every variable that has a value."""
        return [f"{key}={value}" for key, value in self._vars.items() if value is not None]

    def __repr__(self) -> str:
        return f"Environment({self.items()!r})"