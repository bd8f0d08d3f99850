"""
Till Core Config — Tender Settings
=====================================
Doctrine: No hardcoded currency or loyalty program in engine logic.

Settings are a frozen snapshot loaded once at startup, either
built directly (tests, embedding applications) or read from the
environment:

    TILL_CURRENCY                    ISO 4217 code (default USD)
    TILL_LOYALTY_POINTS_PER_DOLLAR   int or decimal string
    TILL_LOYALTY_POINT_VALUE_CENTS   positive int
    TILL_LOYALTY_MIN_REDEEM_POINTS   non-negative int (default 0)

The loyalty program is configured only when both the earn rate and
the point value are present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Mapping, Optional

from till.core.primitives.party import LoyaltySettings


DEFAULT_CURRENCY = "USD"

ENV_CURRENCY = "TILL_CURRENCY"
ENV_POINTS_PER_DOLLAR = "TILL_LOYALTY_POINTS_PER_DOLLAR"
ENV_POINT_VALUE_CENTS = "TILL_LOYALTY_POINT_VALUE_CENTS"
ENV_MIN_REDEEM_POINTS = "TILL_LOYALTY_MIN_REDEEM_POINTS"


@dataclass(frozen=True)
class TenderSettings:
    """Checkout-wide defaults applied to every session."""

    currency: str = DEFAULT_CURRENCY
    default_loyalty: Optional[LoyaltySettings] = None

    def __post_init__(self) -> None:
        if not self.currency or len(self.currency) != 3 or not self.currency.isalpha():
            raise ValueError(
                f"currency must be 3-letter ISO 4217 code, got '{self.currency}'."
            )
        if self.currency != self.currency.upper():
            raise ValueError(f"currency must be upper-case, got '{self.currency}'.")


def _read_int(environ: Mapping[str, str], key: str) -> Optional[int]:
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{key} must be an integer, got '{raw}'.") from None


def _read_rate(environ: Mapping[str, str], key: str):
    raw = environ.get(key)
    if raw is None or not raw.strip():
        return None
    text = raw.strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise ValueError(f"{key} must be a number, got '{raw}'.") from None
    if not value.is_finite():
        raise ValueError(f"{key} must be finite, got '{raw}'.")
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> TenderSettings:
    """Build TenderSettings from environment variables."""
    if environ is None:
        environ = os.environ

    currency = (environ.get(ENV_CURRENCY) or DEFAULT_CURRENCY).strip()

    points_per_dollar = _read_rate(environ, ENV_POINTS_PER_DOLLAR)
    point_value = _read_int(environ, ENV_POINT_VALUE_CENTS)
    min_redeem = _read_int(environ, ENV_MIN_REDEEM_POINTS)

    loyalty = None
    if points_per_dollar is not None and point_value is not None:
        loyalty = LoyaltySettings(
            points_per_dollar=points_per_dollar,
            point_value_in_cents=point_value,
            min_redeem_points=min_redeem or 0,
        )

    return TenderSettings(currency=currency, default_loyalty=loyalty)
