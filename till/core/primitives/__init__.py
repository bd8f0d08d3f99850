"""
Till Core Primitives — Reusable Checkout Building Blocks
==========================================================
Primitives are the shared value objects every tender operation uses.
They are:

- Pure Python (no framework dependency)
- Immutable (frozen dataclasses)
- Deterministic (same input → same output)
- Integer minor units only

Primitives:
    money  — fixed-point amounts with currency
    party  — customer snapshot, loyalty program settings, provider protocol
"""

from till.core.primitives.money import (
    InvalidAmountError,
    Money,
    min_of,
    sum_of,
)
from till.core.primitives.party import (
    CustomerContext,
    CustomerProvider,
    InMemoryCustomerProvider,
    LoyaltySettings,
)

__all__ = [
    "Money",
    "InvalidAmountError",
    "min_of",
    "sum_of",
    "CustomerContext",
    "CustomerProvider",
    "InMemoryCustomerProvider",
    "LoyaltySettings",
]
