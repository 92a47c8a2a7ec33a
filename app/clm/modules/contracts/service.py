"""
Contracts service layer.
Handles instantiation from blueprints, field edits, status transitions and dashboard queries.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Any

from app.clm.lifecycle import ContractStatus, can_edit, is_valid_transition, next_statuses
from app.clm.modules.blueprints.models import FieldType
from app.clm.modules.contracts.models import Contract, ContractField, default_value, make_value
from app.clm.utils import clean_str, new_id, utcnow

if TYPE_CHECKING:
    from app.clm.modules.blueprints.models import Blueprint
    from app.clm.repository import Repository

logger = logging.getLogger(__name__)

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")

UNKNOWN_BLUEPRINT = "Unknown"


class NotEditableError(ValueError):
    pass


@dataclass(frozen=True)
class TransitionOutcome:
    accepted: bool
    contract: Contract | None
    previous: ContractStatus | None
    message: str


def instantiate_contract(blueprint: "Blueprint", name: str | None = None) -> Contract:
    """New CREATED contract with a snapshot of the blueprint's fields at default values."""
    return Contract(
        id=new_id(),
        name=clean_str(name) or f"{blueprint.name} - Contract",
        blueprint_id=blueprint.id,
        fields=tuple(ContractField(field=f, value=default_value(f.type)) for f in blueprint.fields),
        status=ContractStatus.CREATED,
        created_at=utcnow(),
    )


def create_contract(contracts: "Repository[Contract]", blueprint: "Blueprint", name: str | None = None) -> Contract:
    c = contracts.save(instantiate_contract(blueprint, name))
    logger.info("Contract %s created from blueprint %s", c.id, blueprint.id)
    return c


def change_status(contracts: "Repository[Contract]", contract_id: str, target: ContractStatus) -> TransitionOutcome:
    """
    Apply a status change atomically: validate against the lifecycle table, then
    persist the whole updated contract. A rejected change leaves storage untouched.
    """
    current = contracts.get(contract_id)
    if current is None:
        return TransitionOutcome(accepted=False, contract=None, previous=None, message="Contract not found")

    if not is_valid_transition(current.status, target):
        logger.info("Rejected transition %s -> %s for contract %s", current.status.value, target.value, contract_id)
        return TransitionOutcome(
            accepted=False,
            contract=current,
            previous=current.status,
            message="Invalid status transition",
        )

    updated = contracts.save(replace(current, status=target))
    logger.info("Contract %s status %s -> %s", contract_id, current.status.value, target.value)
    return TransitionOutcome(
        accepted=True,
        contract=updated,
        previous=current.status,
        message=f"Contract status changed to {target.value}",
    )


def _is_calendar_date(raw: str) -> bool:
    # fromisoformat alone also takes basic and week forms on newer Pythons.
    if not DATE_PATTERN.fullmatch(raw):
        return False
    try:
        date.fromisoformat(raw)
    except ValueError:
        return False
    return True


def _coerce_value(cf: ContractField, raw: Any):
    ftype = cf.field.type
    if ftype is FieldType.DATE and isinstance(raw, str):
        # An empty date input clears the value.
        raw = raw.strip() or None
        if raw is not None and not _is_calendar_date(raw):
            raise ValueError(f"Field {cf.field.label}: date must be YYYY-MM-DD.")
    try:
        return make_value(ftype, raw)
    except ValueError as e:
        raise ValueError(f"Field {cf.field.label}: {e}") from e


def apply_field_values(contract: Contract, values: Mapping[str, Any]) -> Contract:
    """Return a copy with new values. Field shape (ids, types, labels, positions) never changes."""
    unknown = [fid for fid in values if contract.get_field(fid) is None]
    if unknown:
        raise ValueError(f"Unknown field id(s): {', '.join(unknown)}")
    fields = tuple(
        replace(cf, value=_coerce_value(cf, values[cf.id])) if cf.id in values else cf
        for cf in contract.fields
    )
    return replace(contract, fields=fields)


def update_contract(
    contracts: "Repository[Contract]",
    contract: Contract,
    *,
    name: str | None = None,
    values: Mapping[str, Any] | None = None,
) -> Contract:
    """Rename and/or edit field values. Only allowed while the status is editable."""
    if not can_edit(contract.status):
        raise NotEditableError(f"Contract is {contract.status.value} and cannot be edited.")

    updated = contract
    if name is not None:
        new_name = clean_str(name)
        if not new_name:
            raise ValueError("Contract name is required.")
        updated = replace(updated, name=new_name)
    if values:
        updated = apply_field_values(updated, values)

    if updated == contract:
        return contract
    return contracts.save(updated)


def blueprint_name_for(contract: Contract, blueprints: "Repository[Blueprint]") -> str:
    bp = blueprints.get(contract.blueprint_id)
    return bp.name if bp else UNKNOWN_BLUEPRINT


# Dashboard

class ContractFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    PENDING = "pending"
    SIGNED = "signed"


FILTER_STATUSES: dict[ContractFilter, frozenset[ContractStatus] | None] = {
    ContractFilter.ALL: None,
    ContractFilter.ACTIVE: frozenset({ContractStatus.CREATED, ContractStatus.APPROVED, ContractStatus.SENT}),
    ContractFilter.PENDING: frozenset({ContractStatus.CREATED, ContractStatus.APPROVED}),
    ContractFilter.SIGNED: frozenset({ContractStatus.SIGNED, ContractStatus.LOCKED}),
}


@dataclass(frozen=True)
class ContractSummary:
    total: int
    active: int
    pending: int
    signed: int


def parse_filter(raw: str | None) -> ContractFilter:
    s = (raw or "all").strip().lower()
    try:
        return ContractFilter(s)
    except ValueError:
        raise ValueError(f"Invalid filter: {raw!r}") from None


def filter_contracts(
    contracts: Iterable[Contract],
    contract_filter: ContractFilter = ContractFilter.ALL,
    query: str | None = None,
    blueprint_names: Mapping[str, str] | None = None,
) -> list[Contract]:
    allowed = FILTER_STATUSES[contract_filter]
    out = [c for c in contracts if allowed is None or c.status in allowed]

    q = (query or "").strip().lower()
    if q:
        names = blueprint_names or {}
        out = [
            c for c in out
            if q in c.name.lower() or q in names.get(c.blueprint_id, "").lower()
        ]
    return out


def summarize_contracts(contracts: Iterable[Contract]) -> ContractSummary:
    items = list(contracts)

    def _count(f: ContractFilter) -> int:
        statuses = FILTER_STATUSES[f] or frozenset()
        return sum(1 for c in items if c.status in statuses)

    return ContractSummary(
        total=len(items),
        active=_count(ContractFilter.ACTIVE),
        pending=_count(ContractFilter.PENDING),
        signed=_count(ContractFilter.SIGNED),
    )


# Detail view helpers

ACTION_LABELS: dict[ContractStatus, str] = {
    ContractStatus.APPROVED: "Approve Contract",
    ContractStatus.SENT: "Send Contract",
    ContractStatus.SIGNED: "Sign Contract",
    ContractStatus.LOCKED: "Lock & Archive",
    ContractStatus.REVOKED: "Revoke Contract",
}

STATUS_MESSAGES: dict[ContractStatus, str] = {
    ContractStatus.CREATED: "You can approve or revoke this contract.",
    ContractStatus.APPROVED: "This contract is approved. You can now send it.",
    ContractStatus.SENT: "This contract is currently in the Sent stage. You can sign the contract or revoke it. Locking will be available after signature.",
    ContractStatus.SIGNED: "This contract has been signed. You can now lock it for archiving.",
    ContractStatus.LOCKED: "This contract is locked and cannot be edited or changed.",
    ContractStatus.REVOKED: "This contract has been revoked and cannot proceed further.",
}

TIMELINE_STAGES: tuple[tuple[ContractStatus, str], ...] = (
    (ContractStatus.CREATED, "Created"),
    (ContractStatus.APPROVED, "Approved"),
    (ContractStatus.SENT, "Sent"),
    (ContractStatus.SIGNED, "Signed"),
    (ContractStatus.LOCKED, "Locked"),
)


def available_actions(status: ContractStatus) -> list[dict[str, str]]:
    return [{"status": s.value, "label": ACTION_LABELS[s]} for s in next_statuses(status)]


def status_message(status: ContractStatus) -> str:
    return STATUS_MESSAGES[status]


def lifecycle_timeline(status: ContractStatus) -> list[dict[str, Any]]:
    """Main-line stages with progress flags. REVOKED is off the main line, so nothing is completed."""
    stage_statuses = [s for s, _ in TIMELINE_STAGES]
    current_index = stage_statuses.index(status) if status in stage_statuses else -1
    return [
        {
            "status": s.value,
            "label": label,
            "completed": i <= current_index,
            "current": i == current_index,
        }
        for i, (s, label) in enumerate(TIMELINE_STAGES)
    ]
