"""
Module: shift_kernel.db.base
Responsibility: the declarative base every ORM model inherits from.
Architecture position: Kernel > DB.  Lowest import target in the kernel;
    MUST NOT import from models/, stores/, services/, selectors/, or domain/.

Invariants enforced:
    - datetime columns are DateTime(timezone=True).
    - Constraints get deterministic names, so SQLite table rebuilds and
      future migrations can address them.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, MetaData
from sqlalchemy.orm import DeclarativeBase

NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
    }
