"""Token types produced by the command-line lexer."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class TokenType(enum.Enum):
    """Kinds of tokens that make up a command line."""

    PIPE = enum.auto()
    REDIN = enum.auto()
    REDOUT = enum.auto()
    WORD = enum.auto()
    BG = enum.auto()


@dataclass(frozen=True)
class Token:
    """One lexical unit of a command line; only words carry a value."""

    type: TokenType
    value: Optional[str] = None

    def is_word(self) -> bool:
        """Return True if this token is a word."""
        return self.type is TokenType.WORD