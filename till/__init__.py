"""
Till — Split-Tender Settlement Engine
=======================================
Public API for the checkout presentation layer:

    session = open_session(Money(5743, "USD"))
    session.add_line(PaymentMethod.CARD, Money(2000, "USD"))
    outcome = await session.finalize(
        TenderRequest(PaymentMethod.CASH, Money(6000, "USD"))
    )
"""

from till.core.commands import (
    OutcomeStatus,
    ReasonCode,
    RejectionReason,
    TenderOutcome,
)
from till.core.config import TenderSettings, load_settings
from till.core.primitives import (
    CustomerContext,
    CustomerProvider,
    InMemoryCustomerProvider,
    InvalidAmountError,
    LoyaltySettings,
    Money,
)
from till.core.time import Clock, FixedClock, SystemClock
from till.engines.tender.commands import PaymentMethod, TenderLine, TenderRequest
from till.engines.tender.services import (
    AuthorizationResult,
    Authorizer,
    SessionSnapshot,
    SessionState,
    SettlementResult,
    SettlementSink,
    TenderSession,
    approve_all,
    open_session,
    open_session_for_customer,
)

__version__ = "0.1.0"

__all__ = [
    "Money",
    "InvalidAmountError",
    "CustomerContext",
    "CustomerProvider",
    "InMemoryCustomerProvider",
    "LoyaltySettings",
    "OutcomeStatus",
    "ReasonCode",
    "RejectionReason",
    "TenderOutcome",
    "TenderSettings",
    "load_settings",
    "Clock",
    "FixedClock",
    "SystemClock",
    "PaymentMethod",
    "TenderLine",
    "TenderRequest",
    "AuthorizationResult",
    "Authorizer",
    "SessionSnapshot",
    "SessionState",
    "SettlementResult",
    "SettlementSink",
    "TenderSession",
    "approve_all",
    "open_session",
    "open_session_for_customer",
]
