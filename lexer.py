from __future__ import annotations
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from parser import SourceLocation


class LineError(Exception):
    """Base class for interpreter errors."""

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        location: Optional["SourceLocation"] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.location = location

    @property
    def line(self) -> Optional[int]:
        return self.location.line if self.location is not None else None


class LineParseError(LineError):
    """Raised when a program cannot be loaded (unbalanced blocks)."""


SPECIALS = frozenset("=()#+-*/^<>!")

DIGITS = frozenset("0123456789")


def is_number(token: str) -> bool:
    return token != "" and all(ch in DIGITS for ch in token)


def is_special(token: str) -> bool:
    return len(token) == 1 and token in SPECIALS


class Lexer:
    def __init__(self, text: str) -> None:
        self.text = text

    def tokenize(self) -> List[str]:
        tokens: List[str] = []
        tokens_append = tokens.append
        pending: List[str] = []
        specials = SPECIALS

        for ch in self.text:
            if ch.isspace():
                if pending:
                    tokens_append("".join(pending))
                    pending.clear()
                continue
            if ch in specials:
                if pending:
                    tokens_append("".join(pending))
                    pending.clear()
                tokens_append(ch)
                continue
            pending.append(ch)

        if pending:
            tokens_append("".join(pending))
        if not tokens:
            # Blank lines still yield one token so every instruction has a head.
            tokens_append("")
        return tokens


def tokenize(line: str) -> List[str]:
    return Lexer(line).tokenize()
