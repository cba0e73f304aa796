import pytest

from minishell.environment import Environment
from minishell.heredoc import (
    HeredocInterrupted,
    collect_heredoc,
    expand_heredoc_line,
    open_heredoc,
    prepare_tokens,
)
from minishell.lexer import TokenType, split_words
from minishell.tokens import Token, tokenize


def reader(lines, prompts=None):
    it = iter(lines)

    def read(prompt):
        if prompts is not None:
            prompts.append(prompt)
        return next(it, None)

    return read


@pytest.fixture
def env():
    return Environment({"USER": "alice"})


def test_expand_line(env):
    assert expand_heredoc_line("hi $USER!", env) == "hi alice!"


def test_expand_line_unset(env):
    assert expand_heredoc_line("a$NOPE", env) == "a"


def test_expand_line_lone_dollar(env):
    assert expand_heredoc_line("$", env) == "$"
    assert expand_heredoc_line("cost 5$", env) == "cost 5$"


def test_expand_line_status(env):
    env.status = 3
    assert expand_heredoc_line("code $?", env) == "code 3"


def test_collect_stops_at_delimiter(env):
    prompts = []
    body = collect_heredoc("EOF", env, True, reader(["x $USER", "EOF", "after"], prompts))
    assert body == "x alice\n"
    assert prompts == ["> ", "> "]


def test_collect_without_expansion(env):
    body = collect_heredoc("EOF", env, False, reader(["x $USER", "EOF"]))
    assert body == "x $USER\n"


def test_collect_until_end_of_input(env):
    body = collect_heredoc("EOF", env, True, reader(["one", "two"]))
    assert body.splitlines() == ["one", "two"]


def test_collect_interrupted(env):
    def read(prompt):
        raise KeyboardInterrupt

    with pytest.raises(HeredocInterrupted) as info:
        collect_heredoc("EOF", env, True, read)
    assert info.value.status == 130


def test_open_heredoc(env):
    token = Token(TokenType.DELIMITER, "EOF")
    body = open_heredoc(token, env, reader(["line $USER", "EOF"]))
    try:
        assert body.read() == "line alice\n"
    finally:
        body.close()
    assert env.status == 0


def test_open_heredoc_quoted(env):
    token = Token(TokenType.DELIMITER, "EOF", quoted_delimiter=True)
    body = open_heredoc(token, env, reader(["line $USER", "EOF"]))
    try:
        assert body.read() == "line $USER\n"
    finally:
        body.close()


def test_prepare_reads_heredoc(env):
    tokens = tokenize(split_words("cat << EOF"), env)
    prepare_tokens(tokens, env, reader(["one", "EOF"]))
    try:
        assert tokens[1].heredoc.read() == "one\n"
    finally:
        tokens[1].heredoc.close()
    assert tokens[0].type is TokenType.WORD


def test_prepare_removes_quotes(env):
    tokens = prepare_tokens(tokenize(split_words("echo 'a b' \"c\""), env), env)
    assert [t.value for t in tokens] == ["echo", "a b", "c"]
    assert all(t.type is TokenType.WORD for t in tokens)


def test_prepare_interrupt_propagates(env):
    def read(prompt):
        raise KeyboardInterrupt

    tokens = tokenize(split_words("cat << A"), env)
    with pytest.raises(HeredocInterrupted):
        prepare_tokens(tokens, env, read)
    assert tokens[1].heredoc is None