from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.clm.modules.blueprints.models import (
    POSITION_MAX,
    POSITION_MIN,
    Blueprint,
    Field,
    FieldType,
    Position,
)
from app.clm.utils import clean_str, new_id, utcnow

if TYPE_CHECKING:
    from app.clm.repository import Repository


class BlueprintValidationError(ValueError):
    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = errors


VALID_FIELD_TYPES = tuple(t.value for t in FieldType)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_blueprint_payload(payload: dict) -> list[str]:
    """Validate blueprint creation/replacement payload. Returns list of errors."""
    errors: list[str] = []
    if not clean_str(payload.get("name")):
        errors.append("Name is required.")

    fields = payload.get("fields")
    if not isinstance(fields, list) or not fields:
        errors.append("At least one field is required.")
        return errors

    seen_ids: set[str] = set()
    for i, f in enumerate(fields, start=1):
        if not isinstance(f, dict):
            errors.append(f"Field {i}: must be an object.")
            continue
        ftype = clean_str(f.get("type")).lower()
        if ftype not in VALID_FIELD_TYPES:
            errors.append(f"Field {i}: invalid type. Must be one of: {', '.join(VALID_FIELD_TYPES)}")
        if not clean_str(f.get("label")):
            errors.append(f"Field {i}: label is required.")
        pos = f.get("position")
        if not isinstance(pos, dict):
            errors.append(f"Field {i}: position is required.")
        else:
            for axis in ("x", "y"):
                v = pos.get(axis)
                if not _is_number(v) or not POSITION_MIN <= v <= POSITION_MAX:
                    errors.append(f"Field {i}: position {axis} must be between {POSITION_MIN} and {POSITION_MAX}.")
        fid = clean_str(f.get("id"))
        if fid:
            if fid in seen_ids:
                errors.append(f"Field {i}: duplicate id {fid}.")
            seen_ids.add(fid)
    return errors


def build_field(payload: dict) -> Field:
    pos = payload["position"]
    return Field(
        id=clean_str(payload.get("id")) or new_id(),
        type=FieldType(clean_str(payload.get("type")).lower()),
        label=clean_str(payload.get("label")),
        position=Position(x=pos["x"], y=pos["y"]),
    )


def build_blueprint(payload: dict, existing: Blueprint | None = None) -> Blueprint:
    """
    Build a blueprint from a validated payload.

    With `existing`, this is a full replacement: id and created_at are kept,
    name and fields come entirely from the payload.
    """
    return Blueprint(
        id=existing.id if existing else new_id(),
        name=clean_str(payload.get("name")),
        fields=tuple(build_field(f) for f in payload["fields"]),
        created_at=existing.created_at if existing else utcnow(),
    )


def create_blueprint(blueprints: "Repository[Blueprint]", payload: dict) -> Blueprint:
    errors = validate_blueprint_payload(payload)
    if errors:
        raise BlueprintValidationError(errors)
    return blueprints.save(build_blueprint(payload))


def replace_blueprint(blueprints: "Repository[Blueprint]", existing: Blueprint, payload: dict) -> Blueprint:
    errors = validate_blueprint_payload(payload)
    if errors:
        raise BlueprintValidationError(errors)
    return blueprints.save(build_blueprint(payload, existing=existing))


def blueprint_names(blueprints: "Repository[Blueprint]") -> dict[str, str]:
    return {bp.id: bp.name for bp in blueprints.all()}
