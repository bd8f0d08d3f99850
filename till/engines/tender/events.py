"""
Till Tender Engine — History Event Types and Payload Builders
===============================================================
Engine: Tender (split-tender settlement)

A tender session keeps an in-memory, append-only history of what
happened to it: lines added/removed, finalize attempts, authorize
failures, settlement, cancellation. The history is for the
presentation layer and diagnostics; it is never persisted here.
"""

from __future__ import annotations

from typing import Iterable

from till.core.primitives.money import Money
from till.engines.tender.commands import TenderLine


# ══════════════════════════════════════════════════════════════
# EVENT TYPE CONSTANTS
# ══════════════════════════════════════════════════════════════

TENDER_SESSION_OPENED_V1 = "tender.session.opened.v1"
TENDER_LINE_ADDED_V1 = "tender.line.added.v1"
TENDER_LINE_REMOVED_V1 = "tender.line.removed.v1"
TENDER_FINALIZE_STARTED_V1 = "tender.finalize.started.v1"
TENDER_AUTHORIZE_FAILED_V1 = "tender.authorize.failed.v1"
TENDER_SETTLED_V1 = "tender.settled.v1"
TENDER_CANCELLED_V1 = "tender.cancelled.v1"

TENDER_EVENT_TYPES = (
    TENDER_SESSION_OPENED_V1,
    TENDER_LINE_ADDED_V1,
    TENDER_LINE_REMOVED_V1,
    TENDER_FINALIZE_STARTED_V1,
    TENDER_AUTHORIZE_FAILED_V1,
    TENDER_SETTLED_V1,
    TENDER_CANCELLED_V1,
)


# ══════════════════════════════════════════════════════════════
# PAYLOAD BUILDERS
# ══════════════════════════════════════════════════════════════

def build_session_opened_payload(
    total_due: Money,
    customer_id,
    loyalty_enabled: bool,
) -> dict:
    return {
        "total_due": total_due.to_dict(),
        "customer_id": customer_id,
        "loyalty_enabled": loyalty_enabled,
    }


def build_line_added_payload(
    line: TenderLine,
    index: int,
    remaining_due: Money,
) -> dict:
    return {
        "index": index,
        "line": line.to_dict(),
        "remaining_due": remaining_due.to_dict(),
    }


def build_line_removed_payload(
    line: TenderLine,
    index: int,
    remaining_due: Money,
) -> dict:
    return {
        "index": index,
        "line": line.to_dict(),
        "remaining_due": remaining_due.to_dict(),
    }


def build_finalize_started_payload(
    lines: Iterable[TenderLine],
    total_due: Money,
    convenience: bool,
) -> dict:
    return {
        "lines": [line.to_dict() for line in lines],
        "total_due": total_due.to_dict(),
        "convenience": convenience,
    }


def build_authorize_failed_payload(reason: str) -> dict:
    return {"reason": reason}


def build_settled_payload(result) -> dict:
    return result.to_dict()


def build_cancelled_payload(
    discarded: Iterable[TenderLine],
    from_state: str,
) -> dict:
    return {
        "discarded_lines": [line.to_dict() for line in discarded],
        "from_state": from_state,
    }
