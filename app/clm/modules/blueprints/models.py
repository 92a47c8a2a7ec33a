from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from app.clm.utils import format_timestamp, parse_timestamp


class FieldType(str, Enum):
    TEXT = "text"
    DATE = "date"
    SIGNATURE = "signature"
    CHECKBOX = "checkbox"


POSITION_MIN = 0
POSITION_MAX = 100


def _check_coordinate(name: str, value: Any) -> None:
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"Position {name} must be a number.")
    if not POSITION_MIN <= value <= POSITION_MAX:
        raise ValueError(f"Position {name} must be between {POSITION_MIN} and {POSITION_MAX}.")


@dataclass(frozen=True)
class Position:
    """Percentage offsets within the rendering surface."""

    x: float
    y: float

    def __post_init__(self) -> None:
        _check_coordinate("x", self.x)
        _check_coordinate("y", self.y)


@dataclass(frozen=True)
class Field:
    """A template slot. Blueprint fields never carry a value."""

    id: str
    type: FieldType
    label: str
    position: Position

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Field id is required.")
        if not isinstance(self.type, FieldType):
            raise ValueError(f"Invalid field type: {self.type!r}")


@dataclass(frozen=True)
class Blueprint:
    id: str
    name: str
    fields: tuple[Field, ...]
    created_at: datetime

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Blueprint name is required.")
        seen: set[str] = set()
        for f in self.fields:
            if not f.label.strip():
                raise ValueError("Field label is required.")
            if f.id in seen:
                raise ValueError(f"Duplicate field id: {f.id}")
            seen.add(f.id)


def field_to_dict(f: Field) -> dict[str, Any]:
    return {
        "id": f.id,
        "type": f.type.value,
        "label": f.label,
        "position": {"x": f.position.x, "y": f.position.y},
    }


def field_from_dict(data: dict[str, Any]) -> Field:
    if not isinstance(data, dict):
        raise ValueError(f"Field must be an object, got {type(data).__name__}.")
    pos = data.get("position") or {}
    if not isinstance(pos, dict):
        raise ValueError(f"Field position must be an object, got {type(pos).__name__}.")
    return Field(
        id=str(data["id"]),
        type=FieldType(data["type"]),
        label=str(data.get("label") or ""),
        position=Position(x=pos.get("x"), y=pos.get("y")),
    )


def blueprint_to_dict(bp: Blueprint) -> dict[str, Any]:
    return {
        "id": bp.id,
        "name": bp.name,
        "fields": [field_to_dict(f) for f in bp.fields],
        "createdAt": format_timestamp(bp.created_at),
    }


def blueprint_from_dict(data: dict[str, Any]) -> Blueprint:
    return Blueprint(
        id=str(data["id"]),
        name=str(data.get("name") or ""),
        fields=tuple(field_from_dict(f) for f in data.get("fields") or []),
        created_at=parse_timestamp(data["createdAt"]),
    )
