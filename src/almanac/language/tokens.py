"""Token scanner shared by the entry and search grammars."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Token:
    """A whitespace-delimited unit of a statement."""

    text: str  # original casing, used for free-text fields
    position: int  # index in the token stream

    @property
    def keyword(self) -> str:
        """Lower-cased form used for keyword matching."""
        return self.text.lower()


def scan(text: str) -> list[Token]:
    """Split a statement into tokens, dropping runs of whitespace."""
    return [Token(text=part, position=i) for i, part in enumerate(text.split())]


class TokenStream:
    """Left-to-right cursor over scanned tokens. No backtracking."""

    def __init__(self, tokens: list[Token]) -> None:
        self._tokens = tokens
        self._pos = 0

    @classmethod
    def from_text(cls, text: str) -> "TokenStream":
        return cls(scan(text))

    def peek(self) -> Token | None:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return None

    def next(self) -> Token | None:
        token = self.peek()
        if token is not None:
            self._pos += 1
        return token

    def accept(self, *keywords: str) -> Token | None:
        """Consume the next token if its keyword is one of `keywords`."""
        token = self.peek()
        if token is not None and token.keyword in keywords:
            self._pos += 1
            return token
        return None

    def rest(self) -> list[Token]:
        """Consume and return every remaining token."""
        remaining = self._tokens[self._pos :]
        self._pos = len(self._tokens)
        return remaining

    def exhausted(self) -> bool:
        return self._pos >= len(self._tokens)
