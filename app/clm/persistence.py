"""
Entity stores: one JSON collection per entity kind, persisted through a Storage backend.

Reads never fail. A missing key, an unparseable document, or an unreadable
backend all degrade to an empty collection; individually malformed records
are skipped. Writes replace-or-append by id and propagate StorageError.
"""
from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from app.clm.modules.blueprints.models import Blueprint, blueprint_from_dict, blueprint_to_dict
from app.clm.modules.contracts.models import Contract, contract_from_dict, contract_to_dict
from app.clm.storage import Storage, StorageError

logger = logging.getLogger(__name__)

BLUEPRINTS_KEY = "contract_management_blueprints"
CONTRACTS_KEY = "contract_management_contracts"

T = TypeVar("T")


class EntityStore(Generic[T]):
    def __init__(
        self,
        storage: Storage,
        key: str,
        *,
        encode: Callable[[T], dict[str, Any]],
        decode: Callable[[dict[str, Any]], T],
    ) -> None:
        self.storage = storage
        self.key = key
        self._encode = encode
        self._decode = decode

    def _read_records(self) -> list[dict[str, Any]]:
        """Parsed records; StorageError from the backend propagates."""
        raw = self.storage.read_text(self.key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt collection %s; treating as empty: %s", self.key, e)
            return []
        if not isinstance(data, list):
            logger.warning("Collection %s is not a JSON array; treating as empty", self.key)
            return []
        return [r for r in data if isinstance(r, dict)]

    def _write_records(self, records: list[dict[str, Any]]) -> None:
        self.storage.write_text(self.key, json.dumps(records))

    def get_all(self) -> list[T]:
        try:
            records = self._read_records()
        except StorageError as e:
            logger.warning("Storage read failed for %s; treating as empty: %s", self.key, e)
            return []
        out: list[T] = []
        for record in records:
            try:
                out.append(self._decode(record))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed record in %s (id=%s): %s", self.key, record.get("id"), e)
        return out

    def save(self, entity: T) -> None:
        record = self._encode(entity)
        records = self._read_records()
        for i, existing in enumerate(records):
            if existing.get("id") == record["id"]:
                records[i] = record
                break
        else:
            records.append(record)
        self._write_records(records)

    def delete(self, entity_id: str) -> None:
        records = self._read_records()
        kept = [r for r in records if r.get("id") != entity_id]
        if len(kept) == len(records):
            return
        self._write_records(kept)


def blueprint_store(storage: Storage) -> EntityStore[Blueprint]:
    return EntityStore(storage, BLUEPRINTS_KEY, encode=blueprint_to_dict, decode=blueprint_from_dict)


def contract_store(storage: Storage) -> EntityStore[Contract]:
    return EntityStore(storage, CONTRACTS_KEY, encode=contract_to_dict, decode=contract_from_dict)
