from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class StorageEntry(Base):
    """
    Key/value row holding one serialized entity collection.
    Keep this table intentionally generic; the collection layout is owned by app.clm.persistence.
    """

    __tablename__ = "storage_entries"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)  # e.g. "contract_management_contracts"
    value: Mapped[str] = mapped_column(Text, nullable=False)  # JSON document
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)
