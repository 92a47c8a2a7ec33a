from __future__ import annotations

import logging
from typing import Generic, Protocol, TypeVar

from app.clm.persistence import EntityStore

logger = logging.getLogger(__name__)


class _HasId(Protocol):
    @property
    def id(self) -> str: ...


T = TypeVar("T", bound=_HasId)


class Repository(Generic[T]):
    """
    In-memory ordered collection keyed by id, backed by an EntityStore.

    Initialised once via load(); every write hits the store first so memory
    never runs ahead of what is persisted.
    """

    def __init__(self, store: EntityStore[T], *, name: str = "entities") -> None:
        self.store = store
        self.name = name
        self._items: dict[str, T] = {}
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def load(self) -> None:
        if self._loaded:
            raise RuntimeError(f"{self.name} repository already loaded")
        self._items = {e.id: e for e in self.store.get_all()}
        self._loaded = True
        logger.info("Loaded %s %s", len(self._items), self.name)

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise RuntimeError(f"{self.name} repository used before load()")

    def all(self) -> list[T]:
        self._require_loaded()
        return list(self._items.values())

    def get(self, entity_id: str) -> T | None:
        self._require_loaded()
        return self._items.get(entity_id)

    def save(self, entity: T) -> T:
        self._require_loaded()
        self.store.save(entity)
        # Replacing an existing key keeps its position.
        self._items[entity.id] = entity
        return entity

    def delete(self, entity_id: str) -> None:
        self._require_loaded()
        self.store.delete(entity_id)
        self._items.pop(entity_id, None)

    def __len__(self) -> int:
        return len(self._items)
