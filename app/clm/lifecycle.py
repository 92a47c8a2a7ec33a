"""
Contract lifecycle rules.

Single source of truth for which status changes are legal and whether a
contract's field values may still be edited. Pure functions only: no I/O,
no state.
"""
from __future__ import annotations

from enum import Enum


class ContractStatus(str, Enum):
    """Contract lifecycle status."""

    CREATED = "CREATED"
    APPROVED = "APPROVED"
    SENT = "SENT"
    SIGNED = "SIGNED"
    LOCKED = "LOCKED"      # Terminal: archived after signature
    REVOKED = "REVOKED"    # Terminal: withdrawn before signature


# Declared order is the order actions are offered in.
STATUS_TRANSITIONS: dict[ContractStatus, tuple[ContractStatus, ...]] = {
    ContractStatus.CREATED: (ContractStatus.APPROVED, ContractStatus.REVOKED),
    ContractStatus.APPROVED: (ContractStatus.SENT,),
    ContractStatus.SENT: (ContractStatus.SIGNED, ContractStatus.REVOKED),
    ContractStatus.SIGNED: (ContractStatus.LOCKED,),
    ContractStatus.LOCKED: (),
    ContractStatus.REVOKED: (),
}

READ_ONLY_STATUSES = frozenset({ContractStatus.LOCKED, ContractStatus.REVOKED})


def parse_status(raw: object) -> ContractStatus:
    """Parse a status string (case-insensitive). Raises ValueError when unknown."""
    s = raw.strip().upper() if isinstance(raw, str) else ""
    try:
        return ContractStatus(s)
    except ValueError:
        raise ValueError(f"Invalid status: {raw!r}") from None


def is_valid_transition(current: ContractStatus, target: ContractStatus) -> bool:
    return target in STATUS_TRANSITIONS[current]


def next_statuses(current: ContractStatus) -> tuple[ContractStatus, ...]:
    return STATUS_TRANSITIONS[current]


def is_terminal(status: ContractStatus) -> bool:
    return not STATUS_TRANSITIONS[status]


def can_edit(status: ContractStatus) -> bool:
    # Independent of the transition table: SIGNED is still editable.
    return status not in READ_ONLY_STATUSES
