"""
Till Party Primitive — Customer & Loyalty Context
===================================================
Engine: Core Primitives
Authority: Till Doctrine — Deterministic, Integer Minor Units

Read-only snapshots supplied by the customer/loyalty provider:

- CustomerContext   — points balance and outstanding balance of the
                      customer attached to a checkout (None for walk-in).
- LoyaltySettings   — program parameters: earn rate, point value,
                      minimum redemption.

RULES (NON-NEGOTIABLE):
- Snapshots are immutable; the tender engine never debits them
- Store credit is derived, never stored (negative balance = credit owed)
- Point arithmetic is integer; no floats

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal
from typing import Dict, Optional, Protocol, Union

from till.core.primitives.money import Money


Rate = Union[int, Decimal]


# ══════════════════════════════════════════════════════════════
# CUSTOMER CONTEXT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class CustomerContext:
    """
    Customer snapshot taken when the checkout opens.

    outstanding_balance > 0 → customer owes the store.
    outstanding_balance < 0 → store owes the customer (store credit).
    """
    available_loyalty_points: int
    outstanding_balance: Money
    customer_id: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.available_loyalty_points, bool) or not isinstance(
            self.available_loyalty_points, int
        ):
            raise TypeError("available_loyalty_points must be int.")
        if self.available_loyalty_points < 0:
            raise ValueError("available_loyalty_points cannot be negative.")
        if not isinstance(self.outstanding_balance, Money):
            raise TypeError("outstanding_balance must be Money.")

    @property
    def available_store_credit(self) -> Money:
        return self.outstanding_balance.negate().floor_zero()


# ══════════════════════════════════════════════════════════════
# LOYALTY SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LoyaltySettings:
    """
    Loyalty program parameters.

    points_per_dollar:     Points earned per major unit spent (int or Decimal).
    point_value_in_cents:  Minor units one point is worth on redemption.
    min_redeem_points:     Smallest redemption accepted.
    """
    points_per_dollar: Rate
    point_value_in_cents: int
    min_redeem_points: int = 0

    def __post_init__(self):
        if isinstance(self.points_per_dollar, bool) or not isinstance(
            self.points_per_dollar, (int, Decimal)
        ):
            raise TypeError("points_per_dollar must be int or Decimal.")
        if isinstance(self.points_per_dollar, Decimal) and not (
            self.points_per_dollar.is_finite()
        ):
            raise ValueError("points_per_dollar must be finite.")
        if self.points_per_dollar < 0:
            raise ValueError("points_per_dollar cannot be negative.")
        if isinstance(self.point_value_in_cents, bool) or not isinstance(
            self.point_value_in_cents, int
        ):
            raise TypeError("point_value_in_cents must be int.")
        if self.point_value_in_cents <= 0:
            raise ValueError("point_value_in_cents must be positive.")
        if (
            isinstance(self.min_redeem_points, bool)
            or not isinstance(self.min_redeem_points, int)
            or self.min_redeem_points < 0
        ):
            raise ValueError("min_redeem_points must be a non-negative int.")

    def redemption_value(self, points: int, currency: str) -> Money:
        """Monetary value of `points` when redeemed."""
        return Money(amount=points * self.point_value_in_cents, currency=currency)

    def points_covering(self, amount: Money) -> int:
        """Points needed to cover `amount` (ceiling)."""
        return -(-amount.amount // self.point_value_in_cents)

    def points_within(self, amount: Money) -> int:
        """Whole points contained in `amount` (floor)."""
        return amount.amount // self.point_value_in_cents

    def points_earned(self, spent: Money) -> int:
        """Points earned on `spent`: floor(major units × points_per_dollar)."""
        if spent.amount <= 0:
            return 0
        earned = Decimal(spent.amount) * Decimal(self.points_per_dollar) / 100
        return int(earned.to_integral_value(rounding=ROUND_FLOOR))


# ══════════════════════════════════════════════════════════════
# CUSTOMER PROVIDER PROTOCOL
# ══════════════════════════════════════════════════════════════

class CustomerProvider(Protocol):
    """
    Source of customer snapshots and loyalty program settings.

    Implementations may back this with a database, API, or in-memory store.
    """

    def get_customer(self, customer_id: str) -> Optional[CustomerContext]:
        ...  # pragma: no cover

    def get_loyalty_settings(self) -> Optional[LoyaltySettings]:
        ...  # pragma: no cover


class InMemoryCustomerProvider:
    """Simple in-memory provider for testing and bootstrap."""

    def __init__(self, loyalty_settings: Optional[LoyaltySettings] = None) -> None:
        self._customers: Dict[str, CustomerContext] = {}
        self._loyalty_settings = loyalty_settings

    def add_customer(self, customer: CustomerContext) -> None:
        if not customer.customer_id:
            raise ValueError("customer_id is required to register a customer.")
        self._customers[customer.customer_id] = customer

    def get_customer(self, customer_id: str) -> Optional[CustomerContext]:
        return self._customers.get(customer_id)

    def get_loyalty_settings(self) -> Optional[LoyaltySettings]:
        return self._loyalty_settings
