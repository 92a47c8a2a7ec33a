import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    storage_backend: str
    storage_dir: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///clm.db"),
        storage_backend=_getenv("STORAGE_BACKEND", "database"),
        storage_dir=_getenv("STORAGE_DIR", os.path.join(os.getcwd(), "storage")),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        "STORAGE_BACKEND": s.storage_backend,
        "STORAGE_DIR": s.storage_dir,
        # request body limit for JSON payloads (1MB)
        "MAX_CONTENT_LENGTH": 1 * 1024 * 1024,
    }
