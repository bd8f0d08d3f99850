"""
Till Command Layer — Rejection Model
=======================================
Structured rejection reasons for refused tender operations.

Every rejection must be:
- Deterministic (same input → same rejection)
- Machine-readable (code)
- Human-readable (message)
- Attributable (policy_name)

Rejections are returned as values. They are never raised.
"""

from __future__ import annotations

from dataclasses import dataclass


# ══════════════════════════════════════════════════════════════
# REJECTION REASON (frozen explanation structure)
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class RejectionReason:
    """
    Structured reason for a refused operation.

    Fields:
        code:        Machine-readable code (e.g. 'INVALID_AMOUNT').
        message:     Human-readable explanation.
        policy_name: Name of the policy or guard that refused.
    """

    code: str
    message: str
    policy_name: str

    def __post_init__(self):
        if not self.code or not isinstance(self.code, str):
            raise ValueError("code must be a non-empty string.")

        if not self.message or not isinstance(self.message, str):
            raise ValueError("message must be a non-empty string.")

        if not self.policy_name or not isinstance(self.policy_name, str):
            raise ValueError("policy_name must be a non-empty string.")

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "policy_name": self.policy_name,
        }


# ══════════════════════════════════════════════════════════════
# STANDARD REJECTION CODES
# ══════════════════════════════════════════════════════════════

class ReasonCode:
    """
    Known rejection codes.

    Convention: SCREAMING_SNAKE_CASE.
    """

    # ── Amount / method validation ────────────────────────────
    INVALID_AMOUNT = "INVALID_AMOUNT"
    BELOW_MINIMUM_REDEMPTION = "BELOW_MINIMUM_REDEMPTION"
    MISSING_REFERENCE = "MISSING_REFERENCE"
    CUSTOMER_REQUIRED = "CUSTOMER_REQUIRED"
    LOYALTY_NOT_CONFIGURED = "LOYALTY_NOT_CONFIGURED"
    UNKNOWN_METHOD = "UNKNOWN_METHOD"

    # ── Session lifecycle ─────────────────────────────────────
    NOT_SETTLED = "NOT_SETTLED"
    ALREADY_PROCESSING = "ALREADY_PROCESSING"
    SESSION_CLOSED = "SESSION_CLOSED"
    LINE_NOT_FOUND = "LINE_NOT_FOUND"

    # ── Authorization ─────────────────────────────────────────
    AUTHORIZE_FAILED = "AUTHORIZE_FAILED"
