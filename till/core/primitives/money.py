"""
Till Money Primitive — Fixed-Point Amounts
============================================
Engine: Core Primitives
Authority: Till Doctrine — Deterministic, Integer Minor Units

Every amount the tender engine touches is a Money value:
totals, tender lines, change, store credit, loyalty value.

RULES (NON-NEGOTIABLE):
- All amounts use integer minor units (cents/paise) — NO floats
- Currency is explicit on every monetary value
- Cross-currency arithmetic is refused, never converted implicitly
- Display strings are converted only at the presentation edge (parse)

This file contains NO formatting or localization logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation


MINOR_UNIT_EXPONENT = 2
MAX_MAJOR_DIGITS = 15


class InvalidAmountError(ValueError):
    """Raised when a display string cannot be read as an amount."""


# ══════════════════════════════════════════════════════════════
# MONEY VALUE OBJECT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Money:
    """
    Monetary value in integer minor units (cents).

    Rules:
    - amount is in minor units (e.g. 1050 = $10.50)
    - currency is ISO 4217 (e.g. "USD", "KES", "TZS")
    - No floats ever. Integer arithmetic only.
    """
    amount: int
    currency: str

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise TypeError(
                f"Money amount must be int (minor units), "
                f"got {type(self.amount).__name__}. "
                f"Use cents/paise, not decimals."
            )
        if not self.currency or not isinstance(self.currency, str):
            raise ValueError("currency must be a non-empty ISO 4217 string.")
        if len(self.currency) != 3:
            raise ValueError(
                f"currency must be 3-letter ISO 4217 code, "
                f"got '{self.currency}'."
            )

    # ── Arithmetic ────────────────────────────────────────────

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def negate(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def floor_zero(self) -> Money:
        """max(0, self) — remaining balances never go negative."""
        if self.amount < 0:
            return Money.zero(self.currency)
        return self

    # ── Comparison ────────────────────────────────────────────

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount >= other.amount

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def _assert_same_currency(self, other: Money) -> None:
        if not isinstance(other, Money):
            raise TypeError(f"Cannot operate with {type(other).__name__}.")
        if self.currency != other.currency:
            raise ValueError(
                f"Currency mismatch: {self.currency} vs {other.currency}. "
                f"Cross-currency operations require explicit conversion."
            )

    # ── Serialization ─────────────────────────────────────────

    def to_dict(self) -> dict:
        return {"amount": self.amount, "currency": self.currency}

    @classmethod
    def from_dict(cls, data: dict) -> Money:
        return cls(amount=data["amount"], currency=data["currency"])

    # ── Constructors ──────────────────────────────────────────

    @classmethod
    def zero(cls, currency: str) -> Money:
        return cls(amount=0, currency=currency)

    @classmethod
    def parse(cls, text: str, currency: str) -> Money:
        """
        Read a display string ("57.43", "60", " 12.5 ") into minor units.

        Raises InvalidAmountError for empty or unparsable text, non-finite
        values, amounts of MAX_MAJOR_DIGITS or more integer digits, and
        more fractional digits than the minor unit allows.
        Sign is preserved; rejecting non-positive amounts is a policy concern.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidAmountError("Amount is empty.")
        try:
            value = Decimal(text.strip())
        except InvalidOperation:
            raise InvalidAmountError(f"Amount '{text}' is not a number.") from None
        if not value.is_finite():
            raise InvalidAmountError(f"Amount '{text}' is not finite.")
        if value.adjusted() >= MAX_MAJOR_DIGITS:
            raise InvalidAmountError(
                f"Amount '{text}' exceeds {MAX_MAJOR_DIGITS} integer digits."
            )

        too_small = not value.is_zero() and value.adjusted() < -MINOR_UNIT_EXPONENT
        minor = value if too_small else value.scaleb(MINOR_UNIT_EXPONENT)
        if too_small or minor != minor.to_integral_value():
            raise InvalidAmountError(
                f"Amount '{text}' has more than "
                f"{MINOR_UNIT_EXPONENT} decimal places."
            )
        return cls(amount=int(minor), currency=currency)


def min_of(first: Money, *others: Money) -> Money:
    """Smallest of one or more same-currency amounts."""
    result = first
    for other in others:
        if other < result:
            result = other
    return result


def sum_of(amounts, currency: str) -> Money:
    """Sum an iterable of Money, starting from zero in `currency`."""
    total = Money.zero(currency)
    for amount in amounts:
        total = total + amount
    return total
