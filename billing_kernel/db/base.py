"""
Module: billing_kernel.db.base
Responsibility: Declarative base class for the SQL collaborator's ORM rows.
    Provides the integer primary key convention and the type annotation map
    used by every row class.
Architecture position: Kernel > DB.  Lowest-level import target of the SQL
    collaborator.  MUST NOT import from models/, services/, selectors/ or
    domain/.

Invariants enforced:
    - Integer primary keys: ledger entry, definition and charge ids are the
      ints the domain uses, assigned by the database.
    - Timezone-aware timestamps: UTCDateTime returns aware UTC datetimes even
      on backends (SQLite) that drop the offset.
    - No floats: monetary columns are stored as (currency, unscaled, scale).
"""

from datetime import datetime, timezone
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Timestamp stored as UTC and always loaded timezone-aware.

    Guarantees:
        - process_bind_param: aware datetime -> UTC; naive datetimes are
          taken to be UTC already.
        - process_result_value: naive value from the driver -> aware UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


# SQLite only autoincrements INTEGER PRIMARY KEY columns.
Identifier = BigInteger().with_variant(Integer(), "sqlite")


class Base(DeclarativeBase):
    """
    Declarative base for all billing ORM rows.

    Guarantees:
        - id is a database-assigned integer primary key.
        - datetime maps to UTCDateTime -- always timezone-aware.
        - int maps to BigInteger (Integer on SQLite).
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: UTCDateTime(),
        int: Identifier,
    }

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
