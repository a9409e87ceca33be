"""Helpers for error reporting, builtin detection and token inspection."""

from __future__ import annotations

import enum
import os
import sys
from typing import Iterable, Optional, TextIO

from snush.tokens import Token, TokenType


class BuiltinType(enum.Enum):
    """Whether a command is a shell builtin, and which one."""

    NORMAL = enum.auto()
    EXIT = enum.auto()
    CD = enum.auto()


class ErrorPrinter:
    """Writes error messages prefixed with the shell's name."""

    def __init__(self, shell_name: str, stream: Optional[TextIO] = None) -> None:
        if not shell_name:
            raise ValueError("Initialization failed: Shell name not set")
        self.shell_name = shell_name
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def _write(self, prefix: str, text: str) -> None:
        self.stream.write(f"{prefix}: {text}\n")
        self.stream.flush()

    def message(self, text: str) -> None:
        """Report a plain error message."""
        self._write(self.shell_name, text)

    def os_error(self, error: OSError, subject: Optional[str] = None) -> None:
        """Report an operating-system error, prefixed by subject or shell name."""
        description = error.strerror or str(error)
        self._write(subject if subject is not None else self.shell_name, description)


def check_builtin(token: Token) -> BuiltinType:
    """Classify the command word of a command line."""
    if token.value is None:
        raise ValueError("command token has no value")
    if token.value == "cd":
        return BuiltinType.CD
    if token.value == "exit":
        return BuiltinType.EXIT
    return BuiltinType.NORMAL


def count_pipe(tokens: Iterable[Token]) -> int:
    """Return the number of pipe tokens."""
    return sum(1 for token in tokens if token.type is TokenType.PIPE)


def check_bg(tokens: Iterable[Token]) -> bool:
    """Return True if the command asks to run in the background."""
    return any(token.type is TokenType.BG for token in tokens)


_SPECIAL_NAMES = {
    TokenType.PIPE: "TOKEN_PIPE(|)",
    TokenType.REDIN: "TOKEN_REDIRECTION_IN(<)",
    TokenType.REDOUT: "TOKEN_REDIRECTION_OUT(>)",
    TokenType.BG: "TOKEN_BACKGROUND(&)",
}


def special_token_to_str(token: Token) -> str:
    """Describe a non-word token."""
    try:
        return _SPECIAL_NAMES[token.type]
    except KeyError:
        raise ValueError("word tokens have no special description") from None


def dump_lex(tokens: Iterable[Token], stream: Optional[TextIO] = None) -> None:
    """Print the tokens when the DEBUG environment variable is set."""
    if os.environ.get("DEBUG") is None:
        return
    out = stream if stream is not None else sys.stderr
    for index, token in enumerate(tokens):
        if token.value is None:
            out.write(f"[{index}] {special_token_to_str(token)}\n")
        else:
            out.write(f'[{index}] TOKEN_WORD("{token.value}")\n')