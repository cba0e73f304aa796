import io
import os

import pytest

from minishell.builtins import (
    ShellExit,
    echo,
    exit_builtin,
    export,
    is_builtin,
    is_echo_option,
    is_numeric_exit,
    is_valid_export,
    parse_exit_code,
    print_env,
    pwd,
    run_builtin,
    unset,
)
from minishell.commands import Command
from minishell.environment import Environment


def make_env(entries=None, status=0):
    env = Environment(entries or [])
    env.status = status
    return env


@pytest.mark.parametrize("name", ["echo", "pwd", "export", "unset", "env", "exit"])
def test_is_builtin_true(name):
    assert is_builtin(name) is True


@pytest.mark.parametrize("name", ["ls", "", None, "ECHO"])
def test_is_builtin_false(name):
    assert is_builtin(name) is False


@pytest.mark.parametrize("arg,expected", [
    ("-n", True), ("-nnnn", True), ("-", False), ("-nx", False),
    ("n", False), ("", False), (None, False),
])
def test_is_echo_option(arg, expected):
    assert is_echo_option(arg) is expected


def test_echo_joins_with_spaces_and_newline():
    out = io.StringIO()
    assert echo(["echo", "hello", "world"], out) == 0
    assert out.getvalue() == "hello world\n"


def test_echo_n_options_suppress_newline():
    out = io.StringIO()
    echo(["echo", "-n", "-nnn", "hi", "there"], out)
    assert out.getvalue() == "hi there"


def test_echo_stops_options_at_first_non_option():
    out = io.StringIO()
    echo(["echo", "-nx", "-n", "a"], out)
    assert out.getvalue() == "-nx -n a\n"


def test_echo_without_arguments():
    out = io.StringIO()
    echo(["echo"], out)
    assert out.getvalue() == "\n"


@pytest.mark.parametrize("arg,expected", [
    ("NAME", True), ("_x1", True), ("A=b", True), ("A+=b", True),
    ("A=", True), ("1A", False), ("", False), ("A-B", False),
    ("A+", False), ("=x", False),
])
def test_is_valid_export(arg, expected):
    assert is_valid_export(arg) is expected


def test_export_sets_and_appends():
    env = make_env([("A", "1")])
    out, err = io.StringIO(), io.StringIO()
    assert export(["export", "B=two", "A+=x", "C+=new"], env, out, err) == 0
    assert env.get("B") == "two"
    assert env.get("A") == "1x"
    assert env.get("C") == "new"
    assert err.getvalue() == ""


def test_export_bare_name_keeps_existing_value():
    env = make_env([("A", "1")])
    export(["export", "A", "D"], env, io.StringIO(), io.StringIO())
    assert env.get("A") == "1"
    assert "D" in env
    assert env.get("D") is None


def test_export_empty_value():
    env = make_env()
    export(["export", "E="], env, io.StringIO(), io.StringIO())
    assert env.get("E") == ""


def test_export_invalid_identifier_reports_and_continues():
    env = make_env()
    err = io.StringIO()
    assert export(["export", "1bad", "OK=1"], env, io.StringIO(), err) == 1
    assert err.getvalue() == "minishell: export: `1bad': not a valid identifier\n"
    assert env.status == 1
    assert env.get("OK") == "1"


def test_export_lists_sorted_and_hides_underscore():
    env = make_env([("Z", "last"), ("_", "hidden"), ("A", "first"), ("M", None)])
    out = io.StringIO()
    export(["export"], env, out, io.StringIO())
    assert out.getvalue().splitlines() == [
        'declare -x A="first"',
        "declare -x M",
        'declare -x Z="last"',
    ]


def test_unset_removes_names():
    env = make_env([("A", "1"), ("B", "2"), ("C", "3")])
    unset(["unset", "A", "C", "MISSING"], env)
    assert env.items() == [("B", "2")]


def test_print_env_sets_underscore_and_skips_valueless():
    env = make_env([("A", "1"), ("B", None)])
    out = io.StringIO()
    assert print_env(env, out) == 0
    assert env.get("_") == "/usr/bin/env"
    assert out.getvalue() == "A=1\n_=/usr/bin/env\n"


def test_pwd_prints_current_directory():
    out = io.StringIO()
    assert pwd(make_env(), out) == 0
    assert out.getvalue() == os.getcwd() + "\n"


@pytest.mark.parametrize("text,expected", [
    ("42", True), ("-5", True), ("+7", True), ("+", True),
    ("12a", False), ("", False), (None, False), ("a", False),
])
def test_is_numeric_exit(text, expected):
    assert is_numeric_exit(text) is expected


@pytest.mark.parametrize("n", [0, 1, 42, 255])
def test_parse_exit_code_round_trip(n):
    assert parse_exit_code(str(n)) == n


def test_parse_exit_code_whitespace_and_sign():
    assert parse_exit_code("  +42") == 42
    assert parse_exit_code("-1") == 255


def test_parse_exit_code_wraps_into_byte_range():
    for n in (256, 1000, 123456789):
        assert 0 <= parse_exit_code(str(n)) <= 255
        assert parse_exit_code(str(n)) == parse_exit_code(str(n + 256))


def test_parse_exit_code_limits():
    assert 0 <= parse_exit_code("9223372036854775807") <= 255
    with pytest.raises(ValueError):
        parse_exit_code("9223372036854775808")
    with pytest.raises(ValueError):
        parse_exit_code("-9223372036854775808")


def test_exit_without_argument_uses_status():
    env = make_env(status=3)
    out = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit"], env, False, out, io.StringIO())
    assert info.value.code == 3
    assert out.getvalue() == "exit\n"


def test_exit_with_number():
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", "42"], make_env(), False, io.StringIO(), io.StringIO())
    assert info.value.code == 42


def test_exit_forked_prints_nothing():
    out = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", "7"], make_env(), True, out, io.StringIO())
    assert info.value.code == 7
    assert out.getvalue() == ""


@pytest.mark.parametrize("arg", ["abc", "12a", "9223372036854775808"])
def test_exit_numeric_argument_required(arg):
    err = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", arg], make_env(), False, io.StringIO(), err)
    assert info.value.code == 2
    assert err.getvalue() == f"minishell: exit: {arg}: numeric argument required\n"


def test_exit_too_many_arguments():
    env = make_env()
    out = io.StringIO()
    assert exit_builtin(["exit", "1", "2"], env, False, out, io.StringIO()) == 1
    assert env.status == 1
    assert out.getvalue() == "exit\nminishell: exit: too many arguments\n"


def test_exit_non_numeric_wins_over_too_many():
    with pytest.raises(ShellExit) as info:
        exit_builtin(["exit", "x", "2"], make_env(), True, io.StringIO(), io.StringIO())
    assert info.value.code == 2


def test_run_builtin_echo_to_redirect():
    env = make_env(status=5)
    out = io.StringIO()
    command = Command(argv=["echo", "hi"], stdout=out)
    assert run_builtin(command, env) == 0
    assert out.getvalue() == "hi\n"


def test_run_builtin_skipped_command_does_nothing():
    env = make_env(status=1)
    out = io.StringIO()
    command = Command(argv=["echo", "hi"], stdout=out, skip=True)
    assert run_builtin(command, env) == 1
    assert out.getvalue() == ""


def test_run_builtin_forked_raises_with_status():
    env = make_env()
    command = Command(argv=["export", "9x"], stdout=io.StringIO())
    with pytest.raises(ShellExit) as info:
        run_builtin(command, env, forked=True)
    assert info.value.code == 1


def test_run_builtin_unset_and_env():
    env = make_env([("A", "1"), ("B", "2")])
    run_builtin(Command(argv=["unset", "A"]), env)
    out = io.StringIO()
    run_builtin(Command(argv=["env"], stdout=out), env)
    assert out.getvalue() == "B=2\n_=/usr/bin/env\n"


def test_run_builtin_exit_raises():
    env = make_env(status=4)
    with pytest.raises(ShellExit) as info:
        run_builtin(Command(argv=["exit"], stdout=io.StringIO()), env)
    assert info.value.code == 4