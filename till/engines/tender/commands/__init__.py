"""
Till Tender Engine — Requests & Tender Lines
===============================================
The closed set of payment methods, the request a cashier's input
becomes, and the immutable tender line a policy produces.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from till.core.primitives.money import Money


# ══════════════════════════════════════════════════════════════
# PAYMENT METHODS
# ══════════════════════════════════════════════════════════════

class PaymentMethod(Enum):
    """Closed variant of accepted tenders."""
    CASH = "CASH"
    CARD = "CARD"
    LOYALTY = "LOYALTY"
    GIFT_CARD = "GIFT_CARD"
    STORE_CREDIT = "STORE_CREDIT"


def coerce_method(value: Union[PaymentMethod, str, None]) -> Optional[PaymentMethod]:
    """
    Resolve a method forwarded by the presentation layer.

    Accepts the enum itself or its name in any case ("cash", "gift_card").
    Returns None for anything unknown.
    """
    if isinstance(value, PaymentMethod):
        return value
    if not isinstance(value, str):
        return None
    try:
        return PaymentMethod(value.strip().upper())
    except ValueError:
        return None


# ══════════════════════════════════════════════════════════════
# TENDER REQUEST
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TenderRequest:
    """
    One payment as entered, before its method policy runs.

    raw_amount:        Amount typed by the cashier (None = not entered).
    reference:         Gift card number, card slip, etc.
    requested_points:  Loyalty points the customer asks to redeem.

    Only types are checked here. Non-positive amounts and missing
    references are policy rejections, not construction errors.
    """
    method: PaymentMethod
    raw_amount: Optional[Money] = None
    reference: Optional[str] = None
    requested_points: Optional[int] = None

    def __post_init__(self):
        if not isinstance(self.method, PaymentMethod):
            raise ValueError(f"method must be PaymentMethod, got {self.method!r}.")
        if self.raw_amount is not None and not isinstance(self.raw_amount, Money):
            raise TypeError(
                f"raw_amount must be Money, got {type(self.raw_amount).__name__}. "
                f"Use Money.parse() at the input boundary."
            )
        if self.reference is not None and not isinstance(self.reference, str):
            raise TypeError("reference must be a string.")
        if self.requested_points is not None and (
            isinstance(self.requested_points, bool)
            or not isinstance(self.requested_points, int)
        ):
            raise TypeError("requested_points must be int.")

    @property
    def clean_reference(self) -> Optional[str]:
        """Reference stripped of whitespace; None when blank."""
        if self.reference is None:
            return None
        stripped = self.reference.strip()
        return stripped or None


# ══════════════════════════════════════════════════════════════
# TENDER LINE
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TenderLine:
    """A committed payment. Never edited; removed wholesale."""
    method: PaymentMethod
    amount: Money
    reference: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.method, PaymentMethod):
            raise ValueError("method must be PaymentMethod enum.")
        if not isinstance(self.amount, Money):
            raise ValueError("amount must be Money.")
        if self.amount.amount < 0:
            raise ValueError("Tender line amount cannot be negative.")

    def to_dict(self) -> dict:
        return {
            "method": self.method.value,
            "amount": self.amount.to_dict(),
            "reference": self.reference,
        }
