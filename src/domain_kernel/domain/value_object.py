"""Value-object contract and the kernel's reusable value objects.

Design invariants
-----------------
1.  Instances are built **only** through ``create()``.  Calling the class
    directly raises ``TypeError``.
2.  ``create()`` normalizes raw input, validates the normalized fields and
    only then builds the instance.  A failure raises ``ValidationError``
    and no instance is ever observable.
3.  Every instance is a frozen dataclass: equality and hashing are
    structural over the normalized fields.
4.  "Changes" (``_with``) re-run ``create()`` and return a new instance.

Subclasses are frozen dataclasses that implement ``normalize`` (whose
parameter names match the field names) and, optionally, ``validate``.
"""

from __future__ import annotations

import dataclasses
import re
from contextvars import ContextVar
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, ClassVar, Self

from domain_kernel.core.errors import ValidationError

# Set only while ``create()`` is building an instance
_building: ContextVar[bool] = ContextVar("_building", default=False)


@dataclass(frozen=True)
class ValueObject:
    """Immutable, identity-less, structurally compared value."""

    def __post_init__(self) -> None:
        if not _building.get():
            name = type(self).__name__
            raise TypeError(f"{name} instances must be built with {name}.create()")

    @classmethod
    def create(cls, *args: Any, **kwargs: Any) -> Self:
        """Normalize, validate and build an instance.

        Raises
        ------
        ValidationError
            If the input cannot be normalized or breaks the value's rule.
        """
        try:
            fields = cls.normalize(*args, **kwargs)
        except ValidationError:
            raise
        except (TypeError, ValueError, ArithmeticError) as exc:
            raise ValidationError(cls.__name__, str(exc), args or kwargs) from exc
        cls.validate(fields)
        token = _building.set(True)
        try:
            return cls(**fields)
        finally:
            _building.reset(token)

    @classmethod
    def normalize(cls, *args: Any, **kwargs: Any) -> dict[str, Any]:
        """Return the normalized field mapping for the raw input."""
        raise NotImplementedError(f"{cls.__name__} must implement normalize()")

    @classmethod
    def validate(cls, fields: dict[str, Any]) -> None:
        """Raise ``ValidationError`` if *fields* break the value's rule."""

    def _with(self, **changes: Any) -> Self:
        current = {f.name: getattr(self, f.name) for f in dataclasses.fields(self)}
        current.update(changes)
        return type(self).create(**current)


# ---------------------------------------------------------------------------
# Email
# ---------------------------------------------------------------------------

_EMAIL_RE = re.compile(r"^[a-z0-9._%+\-]+@[a-z0-9\-]+(\.[a-z0-9\-]+)*\.[a-z]{2,}$")


@dataclass(frozen=True)
class Email(ValueObject):
    """E-mail address, trimmed and case-folded."""

    address: str

    @classmethod
    def normalize(cls, address: str) -> dict[str, Any]:
        if not isinstance(address, str):
            raise ValidationError("Email", "address must be a string", address)
        return {"address": address.strip().casefold()}

    @classmethod
    def validate(cls, fields: dict[str, Any]) -> None:
        address = fields["address"]
        if len(address) > 254 or not _EMAIL_RE.match(address):
            raise ValidationError("Email", f"{address!r} is not an e-mail address", address)

    @property
    def domain(self) -> str:
        return self.address.rsplit("@", 1)[1]

    def __str__(self) -> str:
        return self.address


# ---------------------------------------------------------------------------
# Money
# ---------------------------------------------------------------------------

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class Money(ValueObject):
    """Non-negative monetary amount in a single currency.

    Amounts are ``Decimal`` quantized to cents; floats are converted
    through ``str`` so ``Money.create(0.1)`` is exactly ``0.10``.
    """

    amount: Decimal
    currency: str = "USD"

    QUANTUM: ClassVar[Decimal] = Decimal("0.01")

    @classmethod
    def normalize(cls, amount: Any, currency: str = "USD") -> dict[str, Any]:
        if isinstance(amount, bool):
            raise ValidationError("Money", "amount must be numeric", amount)
        if not isinstance(currency, str):
            raise ValidationError("Money", "currency must be a string", currency)
        try:
            value = Decimal(str(amount).strip())
        except InvalidOperation as exc:
            raise ValidationError("Money", f"{amount!r} is not a number", amount) from exc
        if not value.is_finite():
            raise ValidationError("Money", "amount must be finite", amount)
        return {
            "amount": value.quantize(cls.QUANTUM, rounding=ROUND_HALF_UP),
            "currency": currency.strip().upper(),
        }

    @classmethod
    def validate(cls, fields: dict[str, Any]) -> None:
        if fields["amount"] < 0:
            raise ValidationError("Money", "amount must not be negative", fields["amount"])
        if not _CURRENCY_RE.match(fields["currency"]):
            raise ValidationError("Money", "currency must be a 3-letter code", fields["currency"])

    @classmethod
    def zero(cls, currency: str = "USD") -> Self:
        return cls.create(0, currency)

    def add(self, other: Money) -> Money:
        self._check_currency(other)
        return self._with(amount=self.amount + other.amount)

    def subtract(self, other: Money) -> Money:
        """Return the difference; raises ``ValidationError`` if negative."""
        self._check_currency(other)
        return self._with(amount=self.amount - other.amount)

    def multiply(self, factor: int) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, int):
            raise ValidationError("Money", "factor must be an integer", factor)
        return self._with(amount=self.amount * factor)

    def _check_currency(self, other: Money) -> None:
        if other.currency != self.currency:
            raise ValidationError(
                "Money",
                f"currency mismatch: {self.currency} vs {other.currency}",
                other.currency,
            )

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"
