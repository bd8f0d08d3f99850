"""
Till Tender Engine — Method Policies
=======================================
One policy per payment method. Each turns a TenderRequest into the
effective TenderLine the method is allowed to contribute, or a
RejectionReason.

Policies are pure: they read the session (lines, customer, loyalty
settings) and never mutate it. Dispatch goes through METHOD_POLICIES.

Contribution rules:
    CASH          full raw amount (overpayment stays in the line)
    CARD          min(raw, remaining); raw defaults to remaining
    LOYALTY       min(points × point value, remaining)
    GIFT_CARD     min(raw, remaining); reference required
    STORE_CREDIT  min(raw, credit, remaining); raw defaults to
                  min(credit, remaining)
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Optional, Protocol, Tuple

from till.core.commands.outcomes import TenderOutcome
from till.core.commands.rejection import ReasonCode, RejectionReason
from till.core.primitives.money import Money, min_of
from till.core.primitives.party import CustomerContext, LoyaltySettings
from till.engines.tender.commands import PaymentMethod, TenderLine, TenderRequest


class SessionView(Protocol):
    """What a policy may read from the session."""

    @property
    def currency(self) -> str: ...

    @property
    def lines(self) -> Tuple[TenderLine, ...]: ...

    @property
    def customer(self) -> Optional[CustomerContext]: ...

    @property
    def loyalty_settings(self) -> Optional[LoyaltySettings]: ...


MethodPolicy = Callable[[TenderRequest, Money, SessionView], TenderOutcome]


def _reject(code: str, message: str, policy_name: str) -> TenderOutcome:
    return TenderOutcome.rejected(
        RejectionReason(code=code, message=message, policy_name=policy_name)
    )


def points_used(
    lines: Iterable[TenderLine],
    loyalty_settings: LoyaltySettings,
) -> int:
    """Points already committed by loyalty lines (floor per line)."""
    return sum(
        loyalty_settings.points_within(line.amount)
        for line in lines
        if line.method == PaymentMethod.LOYALTY
    )


def points_redeemed(
    lines: Iterable[TenderLine],
    loyalty_settings: LoyaltySettings,
) -> int:
    """Points to debit at settlement (ceiling per line)."""
    return sum(
        loyalty_settings.points_covering(line.amount)
        for line in lines
        if line.method == PaymentMethod.LOYALTY
    )


# ══════════════════════════════════════════════════════════════
# PER-METHOD POLICIES
# ══════════════════════════════════════════════════════════════

def cash_policy(
    request: TenderRequest,
    remaining_due: Money,
    session: SessionView,
) -> TenderOutcome:
    """Cash keeps the full tendered amount; excess is change later."""
    amount = request.raw_amount
    if amount is None or not amount.is_positive():
        return _reject(
            ReasonCode.INVALID_AMOUNT,
            "Cash amount must be greater than zero.",
            "cash_policy",
        )
    return TenderOutcome.accepted(TenderLine(
        method=PaymentMethod.CASH,
        amount=amount,
        reference=request.clean_reference,
    ))


def card_policy(
    request: TenderRequest,
    remaining_due: Money,
    session: SessionView,
) -> TenderOutcome:
    """Card is never charged beyond what is still owed."""
    amount = request.raw_amount if request.raw_amount is not None else remaining_due
    if not amount.is_positive():
        return _reject(
            ReasonCode.INVALID_AMOUNT,
            "Card amount must be greater than zero.",
            "card_policy",
        )
    return TenderOutcome.accepted(TenderLine(
        method=PaymentMethod.CARD,
        amount=min_of(amount, remaining_due),
        reference=request.clean_reference,
    ))


def loyalty_policy(
    request: TenderRequest,
    remaining_due: Money,
    session: SessionView,
) -> TenderOutcome:
    """
    Redeem points against the remaining balance.

    Requested points are clamped to what the customer still has after
    the loyalty lines already in the session (counted with floor).
    The reference reports the points the contribution actually
    consumes (ceiling).
    """
    customer = session.customer
    if customer is None:
        return _reject(
            ReasonCode.CUSTOMER_REQUIRED,
            "Loyalty redemption requires a customer.",
            "loyalty_policy",
        )
    settings = session.loyalty_settings
    if settings is None:
        return _reject(
            ReasonCode.LOYALTY_NOT_CONFIGURED,
            "Loyalty program is not configured for this checkout.",
            "loyalty_policy",
        )

    still_available = max(
        0, customer.available_loyalty_points - points_used(session.lines, settings),
    )
    requested = max(0, min(request.requested_points or 0, still_available))

    if requested < settings.min_redeem_points:
        return _reject(
            ReasonCode.BELOW_MINIMUM_REDEMPTION,
            f"Minimum {settings.min_redeem_points} points required, got {requested}.",
            "loyalty_policy",
        )
    if requested == 0:
        return _reject(
            ReasonCode.INVALID_AMOUNT,
            "No loyalty points available to redeem.",
            "loyalty_policy",
        )

    value = settings.redemption_value(requested, session.currency)
    effective = min_of(value, remaining_due)
    return TenderOutcome.accepted(TenderLine(
        method=PaymentMethod.LOYALTY,
        amount=effective,
        reference=f"{settings.points_covering(effective)} points",
    ))


def gift_card_policy(
    request: TenderRequest,
    remaining_due: Money,
    session: SessionView,
) -> TenderOutcome:
    """Gift card needs its number and a positive amount."""
    reference = request.clean_reference
    if reference is None:
        return _reject(
            ReasonCode.MISSING_REFERENCE,
            "Gift card number is required.",
            "gift_card_policy",
        )
    amount = request.raw_amount
    if amount is None or not amount.is_positive():
        return _reject(
            ReasonCode.INVALID_AMOUNT,
            "Gift card amount must be greater than zero.",
            "gift_card_policy",
        )
    return TenderOutcome.accepted(TenderLine(
        method=PaymentMethod.GIFT_CARD,
        amount=min_of(amount, remaining_due),
        reference=reference,
    ))


def store_credit_policy(
    request: TenderRequest,
    remaining_due: Money,
    session: SessionView,
) -> TenderOutcome:
    """Spend the customer's credit balance, capped by credit and balance owed."""
    customer = session.customer
    if customer is None:
        return _reject(
            ReasonCode.CUSTOMER_REQUIRED,
            "Store credit requires a customer.",
            "store_credit_policy",
        )

    credit = customer.available_store_credit
    if request.raw_amount is not None:
        amount = request.raw_amount
    else:
        amount = min_of(credit, remaining_due)

    if not amount.is_positive():
        return _reject(
            ReasonCode.INVALID_AMOUNT,
            "Store credit amount must be greater than zero.",
            "store_credit_policy",
        )
    return TenderOutcome.accepted(TenderLine(
        method=PaymentMethod.STORE_CREDIT,
        amount=min_of(amount, credit, remaining_due),
        reference=request.clean_reference,
    ))


# ══════════════════════════════════════════════════════════════
# POLICY LOOKUP
# ══════════════════════════════════════════════════════════════

METHOD_POLICIES: Dict[PaymentMethod, MethodPolicy] = {
    PaymentMethod.CASH: cash_policy,
    PaymentMethod.CARD: card_policy,
    PaymentMethod.LOYALTY: loyalty_policy,
    PaymentMethod.GIFT_CARD: gift_card_policy,
    PaymentMethod.STORE_CREDIT: store_credit_policy,
}


def evaluate_request(
    request: TenderRequest,
    remaining_due: Money,
    session: SessionView,
) -> TenderOutcome:
    """Run the request through its method policy."""
    if (
        request.raw_amount is not None
        and request.raw_amount.currency != session.currency
    ):
        return _reject(
            ReasonCode.INVALID_AMOUNT,
            f"Amount currency {request.raw_amount.currency} does not match "
            f"checkout currency {session.currency}.",
            "currency_guard",
        )
    return METHOD_POLICIES[request.method](request, remaining_due, session)
