"""Opaque identity tokens.

An ``IdentityValue`` wraps either an externally issued token (``str`` or
``int``) or a freshly generated UUID4 string.  Aggregates reference one
another only through these values, never through object references.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Self

from domain_kernel.core.errors import ValidationError
from domain_kernel.core.ids import new_id

Token = str | int


@total_ordering
@dataclass(frozen=True, eq=False)
class IdentityValue:
    """Immutable, comparable identity token.

    Equality and hashing use the token value only, so an ``OrderId("a")``
    and a plain ``IdentityValue("a")`` compare equal.
    """

    token: Token

    def __post_init__(self) -> None:
        _check_token(type(self).__name__, self.token)

    @classmethod
    def create(cls, token: Token | None = None) -> Self:
        """Wrap *token*, or generate a new globally-unique one when omitted."""
        if token is None:
            return cls(new_id())
        if isinstance(token, str):
            token = token.strip()
        return cls(token)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IdentityValue):
            return NotImplemented
        return self.token == other.token

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, IdentityValue):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def _sort_key(self) -> tuple[int, Token]:
        # Integer tokens sort before string tokens
        return (0 if isinstance(self.token, int) else 1, self.token)

    def __hash__(self) -> int:
        return hash(self.token)

    def __str__(self) -> str:
        return str(self.token)


def _check_token(subject: str, token: object) -> None:
    # bool is an int subclass but never a meaningful identity
    if isinstance(token, bool) or not isinstance(token, (str, int)):
        raise ValidationError(subject, "token must be a string or an integer", token)
    if isinstance(token, str) and not token.strip():
        raise ValidationError(subject, "token must not be blank", token)
