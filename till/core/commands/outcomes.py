"""
Till Command Layer — Outcome Contract
========================================
Every tender operation produces exactly one Outcome.

ACCEPTED → operation applied, value attached.
REJECTED → session unchanged, reason is mandatory.

Rules:
- Outcome is immutable (frozen dataclass)
- REJECTED must contain reason (RejectionReason)
- ACCEPTED must NOT contain reason
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from till.core.commands.rejection import RejectionReason


T = TypeVar("T")


class OutcomeStatus(Enum):
    """Binary decision. No middle ground."""
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


@dataclass(frozen=True)
class TenderOutcome(Generic[T]):
    """
    Result of a tender operation.

    Fields:
        status:  ACCEPTED or REJECTED.
        value:   Produced value (line, settlement) when ACCEPTED.
        reason:  RejectionReason when REJECTED, None otherwise.
    """

    status: OutcomeStatus
    value: Optional[T] = None
    reason: Optional[RejectionReason] = None

    def __post_init__(self):
        if not isinstance(self.status, OutcomeStatus):
            raise ValueError(
                f"status must be OutcomeStatus, got {type(self.status).__name__}."
            )

        if self.status == OutcomeStatus.REJECTED and self.reason is None:
            raise ValueError(
                "REJECTED outcome must include a RejectionReason. "
                "No silent rejections allowed."
            )

        if self.status == OutcomeStatus.ACCEPTED and self.reason is not None:
            raise ValueError(
                "ACCEPTED outcome must NOT include a RejectionReason."
            )

    @classmethod
    def accepted(cls, value: Any = None) -> TenderOutcome:
        return cls(status=OutcomeStatus.ACCEPTED, value=value)

    @classmethod
    def rejected(cls, reason: RejectionReason) -> TenderOutcome:
        return cls(status=OutcomeStatus.REJECTED, reason=reason)

    @property
    def is_accepted(self) -> bool:
        return self.status == OutcomeStatus.ACCEPTED

    @property
    def is_rejected(self) -> bool:
        return self.status == OutcomeStatus.REJECTED

    @property
    def code(self) -> Optional[str]:
        """Rejection code, or None when accepted."""
        return self.reason.code if self.reason is not None else None
