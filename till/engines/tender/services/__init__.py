"""
Till Tender Engine — Session Service
=======================================
One TenderSession per checkout:
    open → add/remove lines → finalize (authorize) → closed
                                      ↘ authorize fails → collecting
    open/processing → cancel → closed

All amounts are derived from the current line tuple on demand.
Nothing here computes a running total that could drift.

Collaborators:
    Authorizer      — awaited once per finalize (opaque external call)
    SettlementSink  — receives the settled lines, change and points used
    Clock           — timestamps history and settlement
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol, Tuple, Union

from till.core.commands.outcomes import TenderOutcome
from till.core.commands.rejection import ReasonCode, RejectionReason
from till.core.config.settings import TenderSettings
from till.core.primitives.money import Money, sum_of
from till.core.primitives.party import (
    CustomerContext,
    CustomerProvider,
    LoyaltySettings,
)
from till.core.time.clock import Clock, SystemClock
from till.engines.tender.commands import (
    PaymentMethod,
    TenderLine,
    TenderRequest,
    coerce_method,
)
from till.engines.tender.events import (
    TENDER_AUTHORIZE_FAILED_V1,
    TENDER_CANCELLED_V1,
    TENDER_FINALIZE_STARTED_V1,
    TENDER_LINE_ADDED_V1,
    TENDER_LINE_REMOVED_V1,
    TENDER_SESSION_OPENED_V1,
    TENDER_SETTLED_V1,
    build_authorize_failed_payload,
    build_cancelled_payload,
    build_finalize_started_payload,
    build_line_added_payload,
    build_line_removed_payload,
    build_session_opened_payload,
    build_settled_payload,
)
from till.engines.tender.policies import (
    evaluate_request,
    points_redeemed,
    points_used,
)


logger = logging.getLogger("till.tender")


# ══════════════════════════════════════════════════════════════
# STATE & COLLABORATOR PROTOCOLS
# ══════════════════════════════════════════════════════════════

class SessionState(Enum):
    COLLECTING = "COLLECTING"
    PROCESSING = "PROCESSING"
    CLOSED = "CLOSED"


@dataclass(frozen=True)
class AuthorizationResult:
    """Answer of the external authorize step."""
    approved: bool
    reason: str = ""


class Authorizer(Protocol):
    async def __call__(
        self, *, lines: Tuple[TenderLine, ...], total_due: Money,
    ) -> AuthorizationResult:
        ...  # pragma: no cover


class SettlementSink(Protocol):
    """Posts the settlement: ledger, inventory, loyalty debit."""

    def on_loyalty_points_used(self, points: int) -> None:
        ...  # pragma: no cover

    def on_settled(
        self, lines: Tuple[TenderLine, ...], change: Money, loyalty_points_used: int,
    ) -> None:
        ...  # pragma: no cover


async def approve_all(
    *, lines: Tuple[TenderLine, ...], total_due: Money,
) -> AuthorizationResult:
    """Default authorizer for tenders that need no external approval."""
    return AuthorizationResult(approved=True)


# ══════════════════════════════════════════════════════════════
# RESULTS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SettlementResult:
    """
    Immutable output of a successful finalize.

    change is non-zero only when a single unstaged cash payment was
    settled directly; overpayment through committed cash lines is
    reported by `overpaid` instead.
    """
    lines: Tuple[TenderLine, ...]
    change: Money
    loyalty_points_used: int
    total_due: Money
    total_paid: Money
    loyalty_points_earned: int
    settled_at: datetime

    @property
    def overpaid(self) -> Money:
        return (self.total_paid - self.total_due - self.change).floor_zero()

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "change": self.change.to_dict(),
            "loyalty_points_used": self.loyalty_points_used,
            "total_due": self.total_due.to_dict(),
            "total_paid": self.total_paid.to_dict(),
            "overpaid": self.overpaid.to_dict(),
            "loyalty_points_earned": self.loyalty_points_earned,
            "settled_at": self.settled_at.isoformat(),
        }


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything the presentation layer needs to render the checkout."""
    state: SessionState
    total_due: Money
    total_paid: Money
    remaining_due: Money
    lines: Tuple[TenderLine, ...]
    can_finalize: bool
    max_redeemable_points: int


# ══════════════════════════════════════════════════════════════
# TENDER SESSION
# ══════════════════════════════════════════════════════════════

class TenderSession:
    """Split-tender state for a single checkout."""

    def __init__(
        self,
        *,
        total_due: Money,
        customer: Optional[CustomerContext] = None,
        loyalty_settings: Optional[LoyaltySettings] = None,
        authorizer: Optional[Authorizer] = None,
        sink: Optional[SettlementSink] = None,
        clock: Optional[Clock] = None,
    ):
        if not isinstance(total_due, Money):
            raise TypeError("total_due must be Money.")
        if total_due.amount < 0:
            raise ValueError("total_due cannot be negative.")
        if customer is not None and (
            customer.outstanding_balance.currency != total_due.currency
        ):
            raise ValueError(
                f"Customer balance currency {customer.outstanding_balance.currency} "
                f"does not match checkout currency {total_due.currency}."
            )

        self._total_due = total_due
        self._customer = customer
        self._loyalty_settings = loyalty_settings
        self._authorizer = authorizer or approve_all
        self._sink = sink
        self._clock = clock or SystemClock()
        self._lines: Tuple[TenderLine, ...] = ()
        self._state = SessionState.COLLECTING
        self._history: List[Dict[str, Any]] = []

        self._record(
            TENDER_SESSION_OPENED_V1,
            build_session_opened_payload(
                total_due,
                customer.customer_id if customer is not None else None,
                loyalty_settings is not None,
            ),
        )
        logger.info(
            f"Tender session opened: total_due={total_due.amount} "
            f"{total_due.currency}"
        )

    # ── Read side ─────────────────────────────────────────────

    @property
    def currency(self) -> str:
        return self._total_due.currency

    @property
    def total_due(self) -> Money:
        return self._total_due

    @property
    def lines(self) -> Tuple[TenderLine, ...]:
        return self._lines

    @property
    def customer(self) -> Optional[CustomerContext]:
        return self._customer

    @property
    def loyalty_settings(self) -> Optional[LoyaltySettings]:
        return self._loyalty_settings

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def history(self) -> Tuple[Dict[str, Any], ...]:
        return tuple(self._history)

    def total_paid(self) -> Money:
        return sum_of((line.amount for line in self._lines), self.currency)

    def remaining_due(self) -> Money:
        return (self._total_due - self.total_paid()).floor_zero()

    def can_finalize(self) -> bool:
        return (
            self._state == SessionState.COLLECTING
            and not self.remaining_due().is_positive()
        )

    def points_used_in_session(self) -> int:
        if self._loyalty_settings is None:
            return 0
        return points_used(self._lines, self._loyalty_settings)

    def max_redeemable_points(self) -> int:
        """Points the customer could still redeem against the balance owed."""
        if self._customer is None or self._loyalty_settings is None:
            return 0
        still_available = max(
            0,
            self._customer.available_loyalty_points - self.points_used_in_session(),
        )
        return min(
            still_available,
            self._loyalty_settings.points_within(self.remaining_due()),
        )

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            total_due=self._total_due,
            total_paid=self.total_paid(),
            remaining_due=self.remaining_due(),
            lines=self._lines,
            can_finalize=self.can_finalize(),
            max_redeemable_points=self.max_redeemable_points(),
        )

    # ── Mutations ─────────────────────────────────────────────

    def add_line(
        self,
        method: Union[PaymentMethod, str],
        raw_amount: Optional[Money] = None,
        reference: Optional[str] = None,
        *,
        requested_points: Optional[int] = None,
    ) -> TenderOutcome:
        """Validate one payment through its method policy and commit it."""
        guard = self._mutation_guard("add_line")
        if guard is not None:
            return guard

        resolved = coerce_method(method)
        if resolved is None:
            return _rejection(
                ReasonCode.UNKNOWN_METHOD,
                f"Payment method '{method}' is not accepted.",
                "method_lookup",
            )

        request = TenderRequest(
            method=resolved,
            raw_amount=raw_amount,
            reference=reference,
            requested_points=requested_points,
        )
        outcome = evaluate_request(request, self.remaining_due(), self)
        if outcome.is_rejected:
            logger.debug(
                f"{resolved.value} tender rejected by "
                f"'{outcome.reason.policy_name}': [{outcome.code}]"
            )
            return outcome

        line = outcome.value
        self._lines = self._lines + (line,)
        remaining = self.remaining_due()
        self._record(
            TENDER_LINE_ADDED_V1,
            build_line_added_payload(line, len(self._lines) - 1, remaining),
        )
        logger.debug(
            f"{line.method.value} line added: amount={line.amount.amount}, "
            f"remaining_due={remaining.amount}"
        )
        return outcome

    def remove_line(self, index: int) -> TenderOutcome:
        """Drop the line at `index`; the removed line is returned."""
        if isinstance(index, bool) or not isinstance(index, int):
            raise TypeError(f"index must be int, got {type(index).__name__}.")

        guard = self._mutation_guard("remove_line")
        if guard is not None:
            return guard

        if not 0 <= index < len(self._lines):
            return _rejection(
                ReasonCode.LINE_NOT_FOUND,
                f"No tender line at index {index}.",
                "remove_line",
            )

        removed = self._lines[index]
        self._lines = self._lines[:index] + self._lines[index + 1:]
        remaining = self.remaining_due()
        self._record(
            TENDER_LINE_REMOVED_V1,
            build_line_removed_payload(removed, index, remaining),
        )
        logger.debug(
            f"{removed.method.value} line removed at {index}: "
            f"remaining_due={remaining.amount}"
        )
        return TenderOutcome.accepted(removed)

    async def finalize(
        self, pending: Optional[TenderRequest] = None,
    ) -> TenderOutcome:
        """
        Authorize and close the checkout.

        `pending` is a payment entered but never added. It is settled
        directly only when no line was committed; it is the one path
        that produces cash change.

        A pending payment goes through its method policy first, so a
        policy rejection (INVALID_AMOUNT, MISSING_REFERENCE, ...) is
        returned as is. NOT_SETTLED means the checkout is still short:
        no pending payment and unpaid lines, or a valid pending payment
        that does not cover the total.

        Once the session is cancelled while authorization is in flight,
        the authorizer's answer is ignored, including an exception it
        raises: the call returns SESSION_CLOSED.
        """
        guard = self._mutation_guard("finalize")
        if guard is not None:
            return guard

        convenience = not self._lines and pending is not None
        if convenience:
            staged = self._stage_pending(pending)
            if staged.is_rejected:
                return staged
            lines, change = staged.value
        else:
            if pending is not None:
                logger.debug("Pending tender ignored: committed lines exist.")
            if not self.can_finalize():
                return _rejection(
                    ReasonCode.NOT_SETTLED,
                    f"Total not fully paid: {self.remaining_due().amount} "
                    f"{self.currency} remaining.",
                    "finalize",
                )
            lines, change = self._lines, Money.zero(self.currency)

        self._state = SessionState.PROCESSING
        self._record(
            TENDER_FINALIZE_STARTED_V1,
            build_finalize_started_payload(lines, self._total_due, convenience),
        )
        logger.info(f"Finalize started: {len(lines)} tender line(s)")

        try:
            authorization = await self._authorizer(
                lines=lines, total_due=self._total_due,
            )
        except Exception as exc:
            if self._state == SessionState.CLOSED:
                logger.info(f"Authorization error ignored after cancel: {exc!r}")
                return _cancelled_in_flight()
            self._state = SessionState.COLLECTING
            raise

        if self._state == SessionState.CLOSED:
            logger.info("Authorization result ignored: session was cancelled.")
            return _cancelled_in_flight()

        if not authorization.approved:
            self._state = SessionState.COLLECTING
            reason = authorization.reason or "Authorization declined."
            self._record(
                TENDER_AUTHORIZE_FAILED_V1,
                build_authorize_failed_payload(reason),
            )
            logger.info(f"Authorization failed: {reason}")
            return _rejection(ReasonCode.AUTHORIZE_FAILED, reason, "authorizer")

        result = self._build_result(lines, change)
        self._lines = lines
        self._state = SessionState.CLOSED
        self._record(TENDER_SETTLED_V1, build_settled_payload(result))
        logger.info(
            f"Tender settled: paid={result.total_paid.amount}, "
            f"change={result.change.amount}, "
            f"points_used={result.loyalty_points_used}"
        )

        if self._sink is not None:
            if result.loyalty_points_used > 0:
                self._sink.on_loyalty_points_used(result.loyalty_points_used)
            self._sink.on_settled(
                result.lines, result.change, result.loyalty_points_used,
            )
        return TenderOutcome.accepted(result)

    def cancel(self) -> None:
        """Close the session and discard its lines. Safe to repeat."""
        if self._state == SessionState.CLOSED:
            return
        previous = self._state
        discarded = self._lines
        self._lines = ()
        self._state = SessionState.CLOSED
        self._record(
            TENDER_CANCELLED_V1,
            build_cancelled_payload(discarded, previous.value),
        )
        logger.info(f"Tender session cancelled from {previous.value}")

    # ── Internals ─────────────────────────────────────────────

    def _mutation_guard(self, operation: str) -> Optional[TenderOutcome]:
        if self._state == SessionState.PROCESSING:
            return _rejection(
                ReasonCode.ALREADY_PROCESSING,
                f"Cannot {operation} while payment is being processed.",
                "session_state_guard",
            )
        if self._state == SessionState.CLOSED:
            return _rejection(
                ReasonCode.SESSION_CLOSED,
                f"Cannot {operation}: session is closed.",
                "session_state_guard",
            )
        return None

    def _stage_pending(self, pending: TenderRequest) -> TenderOutcome:
        """Turn an unstaged payment into the single settling line."""
        outcome = evaluate_request(pending, self._total_due, self)
        if outcome.is_rejected:
            return outcome

        line = outcome.value
        if line.amount < self._total_due:
            return _rejection(
                ReasonCode.NOT_SETTLED,
                f"Pending {line.method.value} payment of {line.amount.amount} "
                f"does not cover {self._total_due.amount} {self.currency}.",
                "finalize",
            )

        if line.method == PaymentMethod.CASH:
            change = (line.amount - self._total_due).floor_zero()
        else:
            change = Money.zero(self.currency)
        return TenderOutcome.accepted(((line,), change))

    def _build_result(
        self, lines: Tuple[TenderLine, ...], change: Money,
    ) -> SettlementResult:
        settings = self._loyalty_settings
        points_spent = 0
        points_earned = 0
        if settings is not None:
            points_spent = points_redeemed(lines, settings)
            if self._customer is not None:
                redeemed_value = sum_of(
                    (
                        line.amount for line in lines
                        if line.method == PaymentMethod.LOYALTY
                    ),
                    self.currency,
                )
                points_earned = settings.points_earned(
                    (self._total_due - redeemed_value).floor_zero()
                )

        return SettlementResult(
            lines=lines,
            change=change,
            loyalty_points_used=points_spent,
            total_due=self._total_due,
            total_paid=sum_of((line.amount for line in lines), self.currency),
            loyalty_points_earned=points_earned,
            settled_at=self._clock.now_utc(),
        )

    def _record(self, event_type: str, payload: dict) -> None:
        self._history.append({
            "event_type": event_type,
            "payload": payload,
            "occurred_at": self._clock.now_utc(),
        })


def _rejection(code: str, message: str, policy_name: str) -> TenderOutcome:
    return TenderOutcome.rejected(
        RejectionReason(code=code, message=message, policy_name=policy_name)
    )


def _cancelled_in_flight() -> TenderOutcome:
    return _rejection(
        ReasonCode.SESSION_CLOSED,
        "Session was cancelled while authorization was in flight.",
        "finalize",
    )


# ══════════════════════════════════════════════════════════════
# CONSTRUCTION
# ══════════════════════════════════════════════════════════════

def open_session(
    total_due: Money,
    customer: Optional[CustomerContext] = None,
    loyalty_settings: Optional[LoyaltySettings] = None,
    *,
    settings: Optional[TenderSettings] = None,
    authorizer: Optional[Authorizer] = None,
    sink: Optional[SettlementSink] = None,
    clock: Optional[Clock] = None,
) -> TenderSession:
    """
    Open a tender session for one checkout.

    With `settings`, the total must be in the configured currency and
    the configured loyalty program applies unless one is passed.
    """
    if settings is not None:
        if total_due.currency != settings.currency:
            raise ValueError(
                f"total_due currency {total_due.currency} does not match "
                f"configured currency {settings.currency}."
            )
        if loyalty_settings is None:
            loyalty_settings = settings.default_loyalty

    return TenderSession(
        total_due=total_due,
        customer=customer,
        loyalty_settings=loyalty_settings,
        authorizer=authorizer,
        sink=sink,
        clock=clock,
    )


def open_session_for_customer(
    total_due: Money,
    customer_id: Optional[str],
    provider: CustomerProvider,
    *,
    settings: Optional[TenderSettings] = None,
    authorizer: Optional[Authorizer] = None,
    sink: Optional[SettlementSink] = None,
    clock: Optional[Clock] = None,
) -> TenderSession:
    """
    Open a session with customer and loyalty data from `provider`.

    A None customer_id is a walk-in sale. An unknown id raises
    LookupError: the checkout referenced a customer that does not exist.
    """
    customer = None
    if customer_id is not None:
        customer = provider.get_customer(customer_id)
        if customer is None:
            raise LookupError(f"Customer '{customer_id}' not found.")

    return open_session(
        total_due,
        customer,
        provider.get_loyalty_settings(),
        settings=settings,
        authorizer=authorizer,
        sink=sink,
        clock=clock,
    )
