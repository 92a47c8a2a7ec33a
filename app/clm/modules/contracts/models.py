from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from app.clm.lifecycle import ContractStatus
from app.clm.modules.blueprints.models import Field, FieldType, field_from_dict, field_to_dict
from app.clm.utils import format_timestamp, parse_timestamp


def _check_optional_str(value: Any) -> None:
    if value is not None and not isinstance(value, str):
        raise ValueError(f"Expected a string value, got {type(value).__name__}.")


@dataclass(frozen=True)
class TextValue:
    value: str | None = None

    def __post_init__(self) -> None:
        _check_optional_str(self.value)


@dataclass(frozen=True)
class DateValue:
    value: str | None = None  # YYYY-MM-DD

    def __post_init__(self) -> None:
        _check_optional_str(self.value)


@dataclass(frozen=True)
class SignatureValue:
    value: str | None = None  # typed name, not a verified signature

    def __post_init__(self) -> None:
        _check_optional_str(self.value)


@dataclass(frozen=True)
class CheckboxValue:
    value: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.value, bool):
            raise ValueError(f"Checkbox value must be a boolean, got {type(self.value).__name__}.")


FieldValue = Union[TextValue, DateValue, SignatureValue, CheckboxValue]

VALUE_TYPES: dict[FieldType, type] = {
    FieldType.TEXT: TextValue,
    FieldType.DATE: DateValue,
    FieldType.SIGNATURE: SignatureValue,
    FieldType.CHECKBOX: CheckboxValue,
}


def default_value(field_type: FieldType) -> FieldValue:
    """checkbox -> False, everything else -> absent."""
    return VALUE_TYPES[field_type]()


def make_value(field_type: FieldType, raw: Any) -> FieldValue:
    """Build the value variant for a field type. Raises ValueError on a type mismatch."""
    return VALUE_TYPES[field_type](raw)


@dataclass(frozen=True)
class ContractField:
    field: Field
    value: FieldValue

    def __post_init__(self) -> None:
        expected = VALUE_TYPES[self.field.type]
        if not isinstance(self.value, expected):
            raise ValueError(
                f"Field {self.field.id} is {self.field.type.value}; got {type(self.value).__name__}."
            )

    @property
    def id(self) -> str:
        return self.field.id


@dataclass(frozen=True)
class Contract:
    id: str
    name: str
    blueprint_id: str
    fields: tuple[ContractField, ...]
    status: ContractStatus
    created_at: datetime

    def __post_init__(self) -> None:
        if not isinstance(self.status, ContractStatus):
            raise ValueError(f"Invalid status: {self.status!r}")

    def get_field(self, field_id: str) -> ContractField | None:
        for cf in self.fields:
            if cf.id == field_id:
                return cf
        return None


def contract_field_to_dict(cf: ContractField) -> dict[str, Any]:
    data = field_to_dict(cf.field)
    # Absent values are omitted, never written as null.
    if cf.value.value is not None:
        data["value"] = cf.value.value
    return data


def contract_field_from_dict(data: dict[str, Any]) -> ContractField:
    f = field_from_dict(data)
    if "value" in data and data["value"] is not None:
        value = make_value(f.type, data["value"])
    else:
        value = default_value(f.type)
    return ContractField(field=f, value=value)


def contract_to_dict(c: Contract) -> dict[str, Any]:
    return {
        "id": c.id,
        "name": c.name,
        "blueprintId": c.blueprint_id,
        "fields": [contract_field_to_dict(cf) for cf in c.fields],
        "status": c.status.value,
        "createdAt": format_timestamp(c.created_at),
    }


def contract_from_dict(data: dict[str, Any]) -> Contract:
    return Contract(
        id=str(data["id"]),
        name=str(data.get("name") or ""),
        blueprint_id=str(data.get("blueprintId") or ""),
        fields=tuple(contract_field_from_dict(f) for f in data.get("fields") or []),
        status=ContractStatus(data["status"]),
        created_at=parse_timestamp(data["createdAt"]),
    )
