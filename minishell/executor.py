"""Running a pipeline of commands as child processes and builtins."""

from __future__ import annotations

import contextlib
import copy
import os
import signal
import subprocess
import sys
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from typing import IO

from .builtins import ShellExit, is_builtin, run_builtin
from .commands import Command
from .lexer import SPACES

__all__ = ["CommandNotFound", "split_path", "find_command", "execute"]

_INTERRUPT_SIGNALS = ("SIGINT", "SIGQUIT")


class CommandNotFound(Exception):
    """No executable could be found for a command name; status 127."""

    status = 127

    def __init__(self, name: str) -> None:
        super().__init__(f"{name}: command not found")
        self.name = name


def split_path(path: str | None) -> list[str]:
    """Directories of a ``PATH`` value, with empty entries dropped."""
    return [directory for directory in (path or "").split(":") if directory]


def _is_executable(path: str) -> bool:
    return os.access(path, os.X_OK)


def _is_blank(text: str) -> bool:
    return not text or all(c in SPACES for c in text)


def find_command(name: str, path: str | None = None, cwd: str | None = None) -> str:
    """Resolve *name* to the path of an executable.

    A name holding ``/`` is used as it is.  Otherwise each directory of
    *path* is tried, then the directory *cwd* (the current one by
    default).  Raises CommandNotFound when nothing executable is found.
    """
    if "/" in name:
        if _is_executable(name):
            return name
        raise CommandNotFound(name)
    if _is_blank(name):
        raise CommandNotFound(name)
    for directory in split_path(path):
        candidate = f"{directory}/{name}"
        if _is_executable(candidate):
            return candidate
    if cwd is None:
        try:
            cwd = os.getcwd()
        except OSError:
            cwd = None
    if cwd is not None:
        candidate = f"{cwd}/{name}"
        if _is_executable(candidate):
            return candidate
    raise CommandNotFound(name)


@dataclass
class _Stage:
    """One started element of a pipeline."""

    process: subprocess.Popen | None = None
    thread: threading.Thread | None = None
    status: int | None = None

    def wait(self) -> None:
        if self.process is not None:
            self.process.wait()
        if self.thread is not None:
            self.thread.join()


def _get_status(env) -> int:
    return getattr(env, "status", 0)


def _set_status(env, status: int) -> None:
    if env is not None:
        env.status = status


def _signal_numbers() -> list[int]:
    return [
        getattr(signal, name)
        for name in _INTERRUPT_SIGNALS
        if hasattr(signal, name)
    ]


def _default_signals() -> None:
    for number in _signal_numbers():
        signal.signal(number, signal.SIG_DFL)


@contextlib.contextmanager
def _interrupts_ignored() -> Iterator[None]:
    """Keep the shell itself alive while its children receive interrupts."""
    if threading.current_thread() is not threading.main_thread():
        yield
        return
    saved: dict[int, object] = {}
    for number in _signal_numbers():
        previous = signal.getsignal(number)
        if previous is None:
            continue
        saved[number] = previous
        signal.signal(number, signal.SIG_IGN)
    try:
        yield
    finally:
        for number, handler in saved.items():
            signal.signal(number, handler)


def _child_environment(env) -> dict[str, str]:
    return {key: value for key, value in env.items() if value is not None}


def _close_quietly(command: Command) -> None:
    with contextlib.suppress(OSError):
        command.close()


def _builtin_worker(command: Command, env, stage: _Stage) -> None:
    try:
        run_builtin(command, env, forked=True)
    except ShellExit as exc:
        stage.status = exc.code
    except OSError:
        stage.status = 1
    finally:
        _close_quietly(command)


def _start_builtin(command: Command, env, writer: int | None) -> _Stage:
    """Run a builtin of a pipeline on its own copy of the environment."""
    out: IO[str] | None = command.stdout
    if out is None and writer is not None:
        out = os.fdopen(writer, "w")
    elif writer is not None:
        os.close(writer)
    own = Command(argv=list(command.argv), stdin=command.stdin, stdout=out)
    command.stdin = None
    command.stdout = None
    stage = _Stage()
    stage.thread = threading.Thread(
        target=_builtin_worker, args=(own, copy.deepcopy(env), stage), daemon=True
    )
    stage.thread.start()
    return stage


def _spawn(command: Command, env, stdin, stdout) -> _Stage:
    """Start an external program for *command*, or record why it cannot run."""
    name = command.name
    if name is None:
        return _Stage(status=_get_status(env))
    try:
        path = find_command(name, env.get("PATH") or "")
    except CommandNotFound as exc:
        print(exc, file=sys.stderr)
        return _Stage(status=exc.status)
    if os.path.isdir(path):
        print(f"minishell: {path}: Is a directory", file=sys.stderr)
        return _Stage(status=126)
    try:
        process = subprocess.Popen(
            command.argv,
            executable=path,
            stdin=stdin,
            stdout=stdout,
            env=_child_environment(env),
            preexec_fn=_default_signals if os.name == "posix" else None,
        )
    except OSError as exc:
        print(f"{path}: {exc.strerror or exc}", file=sys.stderr)
        return _Stage(status=exc.errno or 1)
    return _Stage(process=process)


def _final_status(stage: _Stage | None) -> int:
    if stage is None:
        return 0
    if stage.process is None:
        return stage.status or 0
    code = stage.process.returncode
    if code >= 0:
        return code
    number = -code
    if hasattr(signal, "SIGQUIT") and number == signal.SIGQUIT:
        sys.stderr.write("Quit (core dumped)")
        sys.stderr.flush()
    sys.stdout.write("\n")
    sys.stdout.flush()
    return 128 + number


def execute(commands: list[Command], env) -> int:
    """Run *commands* as a pipeline and return the resulting status.

    A lone builtin runs inside the shell and may change its environment;
    builtins within a longer pipeline work on a copy.  A command marked
    ``skip`` is not run and the command after it reads what the command
    before it wrote.  The status is that of the last command started.
    """
    if len(commands) == 1 and is_builtin(commands[0].name):
        return run_builtin(commands[0], env, forked=False)
    stages: list[_Stage] = []
    last: _Stage | None = None
    upstream: int | None = None
    sys.stdout.flush()
    sys.stderr.flush()
    with _interrupts_ignored():
        try:
            for index, command in enumerate(commands):
                if command.skip:
                    _close_quietly(command)
                    continue
                reader = writer = None
                if index + 1 < len(commands):
                    reader, writer = os.pipe()
                stdin = command.stdin if command.stdin is not None else upstream
                if is_builtin(command.name):
                    stage = _start_builtin(command, env, writer)
                else:
                    stdout = command.stdout if command.stdout is not None else writer
                    stage = _spawn(command, env, stdin, stdout)
                    if writer is not None:
                        os.close(writer)
                    _close_quietly(command)
                if upstream is not None:
                    os.close(upstream)
                upstream = reader
                stages.append(stage)
                last = stage
        finally:
            if upstream is not None:
                os.close(upstream)
            for stage in stages:
                stage.wait()
    status = _final_status(last)
    _set_status(env, status)
    return status