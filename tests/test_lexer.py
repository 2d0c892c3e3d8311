import pytest

from pyminishell.env import Environment
from pyminishell.errors import UnclosedQuoteError
from pyminishell.lexer import (
    count_tokens,
    expand_variables,
    join_echo_arguments,
    quotes_balanced,
    tokenize,
)


@pytest.fixture
def env():
    environment = Environment(["HOME=/home/user", "USER=alice", "EMPTY="])
    environment.set_status(0)
    return environment


@pytest.mark.parametrize(
    "text, expected",
    [
        ("echo 'a'", True),
        ('echo "a', False),
        ("'\"'", True),
        ("\"'\"", True),
        ("'", False),
        ("plain words", True),
    ],
)
def test_quotes_balanced(text, expected):
    assert quotes_balanced(text) is expected


def test_simple_words(env):
    assert tokenize("ls -l", env) == ["ls", "-l"]


def test_pipe_with_spaces(env):
    assert tokenize("ls | wc -l", env) == ["ls", "|", "wc", "-l"]


def test_pipe_without_spaces(env):
    assert tokenize("ls|wc", env) == ["ls", "|", "wc"]


def test_heredoc_operator(env):
    assert tokenize("cat << EOF", env) == ["cat", "<<", "EOF"]


def test_redirect_without_spaces(env):
    assert tokenize("cat>out", env) == ["cat", ">", "out"]


def test_adjacent_quotes_join_word(env):
    assert tokenize('ab"cd"', env) == ["abcd"]


def test_single_quotes_do_not_expand(env):
    assert tokenize("'$HOME'", env) == ["$HOME"]


def test_variable_expands(env):
    assert tokenize("$HOME", env) == ["/home/user"]


def test_variable_in_double_quotes_expands(env):
    assert tokenize('"$HOME"', env) == ["/home/user"]


def test_double_quoted_text_with_variable(env):
    assert tokenize('"$USER is here"', env) == ["alice is here"]


def test_quoted_reference_with_slash_stays_literal(env):
    assert tokenize('"$HOME/x"', env) == ["$HOME/x"]


def test_unset_variable_is_dropped(env):
    assert tokenize("$NOPE ls", env) == ["ls"]


def test_unset_variable_between_words(env):
    assert tokenize("echo $NOPE hi", env) == ["echo", "hi"]


def test_consecutive_variables_join(env):
    assert tokenize("$HOME$USER", env) == ["/home/user" + "alice"]


def test_status_variable(env):
    assert tokenize("$?", env) == ["0"]
    assert tokenize("$?x", env) == ["0x"]


def test_empty_variable_gives_empty_token(env):
    assert tokenize("$EMPTY", env) == [""]


def test_empty_quotes_end_the_token_list(env):
    assert tokenize('echo "" hi', env) == ["echo"]


def test_quoted_operator_is_marked_literal(env):
    assert tokenize('">"', env) == ['">']


def test_echo_arguments_are_space_joined(env):
    assert tokenize("echo a b", env) == ["echo", "a ", "b"]


def test_echo_with_flag(env):
    assert tokenize("echo -n a b", env) == ["echo", "-n", "a ", "b"]


def test_echo_stops_at_pipe(env):
    assert tokenize("echo a b | cat", env) == ["echo", "a ", "b", "|", "cat"]


@pytest.mark.parametrize("text", ["", "   ", " \t\n "])
def test_blank_line_gives_no_tokens(env, text):
    assert tokenize(text, env) == []


def test_unclosed_quote_raises(env):
    with pytest.raises(UnclosedQuoteError) as info:
        tokenize('echo "abc', env)
    assert info.value.status == 1


@pytest.mark.parametrize(
    "text",
    ["ls -l", "ls | wc -l", "ls|wc", "cat << EOF", "cat>out", "grep x < in > out"],
)
def test_count_matches_plain_tokenization(env, text):
    assert count_tokens(text, env) == len(tokenize(text, env))


def test_count_ignores_unset_variable(env):
    assert count_tokens("$NOPE", env) == 0
    assert tokenize("$NOPE", env) == []


def test_count_lone_dollar(env):
    assert count_tokens("$", env) == 1
    assert tokenize("$", env) == ["$"]


def test_count_skips_empty_quotes(env):
    assert count_tokens("''", env) == 0


def test_expand_variables_stops_at_double_quote(env):
    assert expand_variables('$USER and $HOME" ignored', env) == "alice and /home/user"


def test_expand_variables_drops_unset(env):
    assert expand_variables("$NOPE", env) == ""


def test_expand_variables_drops_bare_dollar(env):
    assert expand_variables("$ x", env) == " x"


def test_expand_variables_drops_rest_of_word(env):
    assert expand_variables("$HOME/bin", env) == "/home/user"


def test_join_echo_leaves_path_argument_alone():
    tokens = ["echo", "a", "./x"]
    assert join_echo_arguments(tokens) == ["echo", "a", "./x"]


def test_join_echo_around_redirection():
    tokens = ["echo", "a", ">", "f", "b"]
    assert join_echo_arguments(tokens) == ["echo", "a ", ">", "f ", "b"]


def test_join_echo_does_not_mutate_input():
    tokens = ["echo", "a", "b"]
    joined = join_echo_arguments(tokens)
    assert tokens == ["echo", "a", "b"]
    assert joined == ["echo", "a ", "b"]


def test_join_echo_without_echo_is_unchanged():
    tokens = ["ls", "a", "b"]
    assert join_echo_arguments(tokens) == tokens