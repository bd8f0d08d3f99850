"""
Till Command Layer — Outcomes & Rejections
============================================
Every tender operation produces exactly one Outcome.
REJECTED outcomes are first-class values, never exceptions.
"""

from till.core.commands.outcomes import (
    OutcomeStatus,
    TenderOutcome,
)
from till.core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    "OutcomeStatus",
    "TenderOutcome",
    "ReasonCode",
    "RejectionReason",
]
