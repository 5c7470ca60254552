"""
Module: shift_kernel.models.kv_entry
Responsibility: ORM persistence for the key-value blob table.  Each row holds
    one serialized collection (all shifts, the active punch, workplaces...)
    under a stable key.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - key is the primary key; at most one row per key.
    - value is opaque JSON text; the kernel's stores own its shape.
"""

from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from shift_kernel.db.base import Base


class KeyValueEntry(Base):
    """One stored blob."""

    __tablename__ = "kv_entries"

    key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
    )

    value: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<KeyValueEntry {self.key}: {len(self.value)} chars>"
