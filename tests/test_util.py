import errno
import io
import os

import pytest

from snush.lexsyn import lex_line
from snush.tokens import Token, TokenType
from snush.util import (
    BuiltinType,
    ErrorPrinter,
    check_bg,
    check_builtin,
    count_pipe,
    dump_lex,
    special_token_to_str,
)


def test_error_printer_message():
    stream = io.StringIO()
    ErrorPrinter("snush", stream).message("Missing command name")
    assert stream.getvalue() == "snush: Missing command name\n"


def test_error_printer_os_error_uses_shell_name():
    stream = io.StringIO()
    error = OSError(errno.ENOENT, os.strerror(errno.ENOENT))
    ErrorPrinter("snush", stream).os_error(error)
    assert stream.getvalue() == f"snush: {os.strerror(errno.ENOENT)}\n"


def test_error_printer_os_error_uses_subject():
    stream = io.StringIO()
    error = OSError(errno.ENOENT, os.strerror(errno.ENOENT))
    ErrorPrinter("snush", stream).os_error(error, "nosuchcmd")
    assert stream.getvalue() == f"nosuchcmd: {os.strerror(errno.ENOENT)}\n"


def test_error_printer_requires_name():
    with pytest.raises(ValueError):
        ErrorPrinter("", io.StringIO())


@pytest.mark.parametrize(
    "value, expected",
    [
        ("cd", BuiltinType.CD),
        ("exit", BuiltinType.EXIT),
        ("cdx", BuiltinType.NORMAL),
        ("exits", BuiltinType.NORMAL),
        ("ls", BuiltinType.NORMAL),
    ],
)
def test_check_builtin(value, expected):
    assert check_builtin(Token(TokenType.WORD, value)) is expected


def test_check_builtin_rejects_valueless_token():
    with pytest.raises(ValueError):
        check_builtin(Token(TokenType.PIPE))


def test_count_pipe():
    assert count_pipe(lex_line("a | b | c")) == 2
    assert count_pipe(lex_line("a b c")) == 0


def test_check_bg():
    assert check_bg(lex_line("sleep 5 &")) is True
    assert check_bg(lex_line("sleep 5")) is False


@pytest.mark.parametrize(
    "kind, text",
    [
        (TokenType.PIPE, "TOKEN_PIPE(|)"),
        (TokenType.REDIN, "TOKEN_REDIRECTION_IN(<)"),
        (TokenType.REDOUT, "TOKEN_REDIRECTION_OUT(>)"),
        (TokenType.BG, "TOKEN_BACKGROUND(&)"),
    ],
)
def test_special_token_to_str(kind, text):
    assert special_token_to_str(Token(kind)) == text


def test_special_token_to_str_rejects_word():
    with pytest.raises(ValueError):
        special_token_to_str(Token(TokenType.WORD, "ls"))


def test_dump_lex_silent_without_debug(monkeypatch):
    monkeypatch.delenv("DEBUG", raising=False)
    stream = io.StringIO()
    dump_lex(lex_line("ls | wc"), stream)
    assert stream.getvalue() == ""


def test_dump_lex_with_debug(monkeypatch):
    monkeypatch.setenv("DEBUG", "1")
    stream = io.StringIO()
    dump_lex(lex_line("ls | wc"), stream)
    assert stream.getvalue().splitlines() == [
        '[0] TOKEN_WORD("ls")',
        "[1] TOKEN_PIPE(|)",
        '[2] TOKEN_WORD("wc")',
    ]