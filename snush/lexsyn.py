"""Lexical analysis and syntax checking of shell command lines."""

from __future__ import annotations

import enum
import itertools
from typing import List, Optional, Sequence

from snush.tokens import Token, TokenType

MAX_LINE_SIZE = 1024
MAX_ARGS_CNT = 64

_SPACE = frozenset(" \t\v\f\r")
_END = frozenset("\n\0")
_SPECIAL = {
    "|": TokenType.PIPE,
    "&": TokenType.BG,
    ">": TokenType.REDOUT,
    "<": TokenType.REDIN,
}
_QUOTES = {'"', "'"}


class LexError(Exception):
    """A command line could not be split into tokens."""


class UnmatchedQuoteError(LexError):
    """A quoted section was not closed before the end of the line."""

    def __init__(self) -> None:
        super().__init__("Unmatched quote")


class LineTooLongError(LexError):
    """The command line exceeds the maximum line size."""

    def __init__(self) -> None:
        super().__init__("Command is too large")


class SyntaxResult(enum.Enum):
    """Ways in which a token sequence can be syntactically wrong."""

    NOCMD = "Missing command name"
    MULTREDIN = "Multiple redirection of standard input"
    NODESTIN = "Standard input redirection without file name"
    MULTREDOUT = "Multiple redirection of standard out"
    NODESTOUT = "Standard output redirection without file name"
    INVALIDBG = "Invalid use of background"

    @property
    def message(self) -> str:
        return self.value


class ShellSyntaxError(Exception):
    """A token sequence does not form a valid command."""

    def __init__(self, result: SyntaxResult) -> None:
        super().__init__(result.message)
        self.result = result


class _State(enum.Enum):
    START = enum.auto()
    IN_WORD = enum.auto()
    IN_DQUOTE = enum.auto()
    IN_QUOTE = enum.auto()


def lex_line(line: str) -> List[Token]:
    """Split a command line into tokens.

    Reading stops at the first newline or NUL character, or at the end of
    the string. Raises UnmatchedQuoteError or LineTooLongError.
    """
    tokens: List[Token] = []
    state = _State.START
    word: List[str] = []

    def flush_word() -> None:
        tokens.append(Token(TokenType.WORD, "".join(word)))
        word.clear()

    for index, c in enumerate(itertools.chain(line, "\0")):
        if index == MAX_LINE_SIZE:
            raise LineTooLongError()

        if state is _State.START or state is _State.IN_WORD:
            in_word = state is _State.IN_WORD
            if c in _END:
                if in_word:
                    flush_word()
                return tokens
            if c in _SPACE:
                if in_word:
                    flush_word()
                state = _State.START
            elif c in _SPECIAL:
                if in_word:
                    flush_word()
                tokens.append(Token(_SPECIAL[c]))
                state = _State.START
            elif c == '"':
                state = _State.IN_DQUOTE
            elif c == "'":
                state = _State.IN_QUOTE
            else:
                word.append(c)
                state = _State.IN_WORD
        else:
            closing = '"' if state is _State.IN_DQUOTE else "'"
            if c == closing:
                state = _State.IN_WORD
            elif c in _END:
                raise UnmatchedQuoteError()
            else:
                word.append(c)

    # The trailing NUL always ends the loop above.
    return tokens


def _needs_word_after(following: Optional[Token]) -> bool:
    return following is None or not following.is_word()


def syntax_check(tokens: Sequence[Token]) -> None:
    """Validate a token sequence, raising ShellSyntaxError on failure."""
    if not tokens:
        return
    if not tokens[0].is_word():
        raise ShellSyntaxError(SyntaxResult.NOCMD)

    redin_seen = redout_seen = pipe_seen = False
    following_tokens = itertools.chain(tokens[2:], [None])
    for token, following in zip(tokens[1:], following_tokens):
        if token.type is TokenType.PIPE:
            if redout_seen:
                raise ShellSyntaxError(SyntaxResult.MULTREDOUT)
            if _needs_word_after(following):
                raise ShellSyntaxError(SyntaxResult.NOCMD)
            pipe_seen = True
        elif token.type is TokenType.BG:
            if following is not None:
                raise ShellSyntaxError(SyntaxResult.INVALIDBG)
        elif token.type is TokenType.REDIN:
            if pipe_seen or redin_seen:
                raise ShellSyntaxError(SyntaxResult.MULTREDIN)
            if _needs_word_after(following):
                raise ShellSyntaxError(SyntaxResult.NODESTIN)
            redin_seen = True
        elif token.type is TokenType.REDOUT:
            if redout_seen:
                raise ShellSyntaxError(SyntaxResult.MULTREDOUT)
            if _needs_word_after(following):
                raise ShellSyntaxError(SyntaxResult.NODESTOUT)
            redout_seen = True