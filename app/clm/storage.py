from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.clm.db import session_scope
from app.clm.models import StorageEntry


class StorageError(RuntimeError):
    pass


class Storage:
    """Text key/value backend. Keys name whole collections, values are JSON documents."""

    def read_text(self, key: str) -> str | None:
        raise NotImplementedError

    def write_text(self, key: str, text: str) -> None:
        raise NotImplementedError

    def exists(self, key: str) -> bool:
        return self.read_text(key) is not None


@dataclass(frozen=True)
class LocalStorage(Storage):
    root: Path

    def _path(self, key: str) -> Path:
        safe_key = key.lstrip("/").replace("\\", "/")
        return self.root / f"{safe_key}.json"

    def read_text(self, key: str) -> str | None:
        p = self._path(key)
        if not p.exists():
            return None
        try:
            return p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Cannot read {p}: {e}") from e

    def write_text(self, key: str, text: str) -> None:
        p = self._path(key)
        # Readers only ever see a complete file.
        tmp = p.with_suffix(".json.tmp")
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(p)
        except OSError as e:
            raise StorageError(f"Cannot write {p}: {e}") from e


@dataclass(frozen=True)
class DatabaseStorage(Storage):
    sm: sessionmaker

    def read_text(self, key: str) -> str | None:
        try:
            with session_scope(self.sm) as s:
                row = s.get(StorageEntry, key)
                return row.value if row else None
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot read storage entry {key!r}: {e}") from e

    def write_text(self, key: str, text: str) -> None:
        try:
            with session_scope(self.sm) as s:
                row = s.get(StorageEntry, key)
                if row is None:
                    s.add(StorageEntry(key=key, value=text, updated_at=datetime.utcnow()))
                else:
                    row.value = text
                    row.updated_at = datetime.utcnow()
        except SQLAlchemyError as e:
            raise StorageError(f"Cannot write storage entry {key!r}: {e}") from e


def storage_from_config(config: dict, sm: sessionmaker | None = None) -> Storage:
    backend = (config.get("STORAGE_BACKEND") or "database").strip().lower()
    if backend == "local":
        return LocalStorage(root=Path(config.get("STORAGE_DIR") or "storage"))
    if backend != "database":
        raise StorageError(f"Unknown STORAGE_BACKEND: {backend!r}")
    if sm is None:
        raise StorageError("Database storage requires a sessionmaker.")
    return DatabaseStorage(sm=sm)
