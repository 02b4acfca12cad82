"""
BaseService -- abstract base for the SQL write-side services.

Responsibility:
    Provides the common constructor and session-handling contract for the
    SQL writers.  Writers receive a SQLAlchemy ``Session`` and persist with
    ``session.flush()`` -- never ``session.commit()``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure for the SQL
    collaborator.  The pure services (LedgerStore, OverageEngine,
    LedgerService, CatalogService) do not extend it.

Invariants enforced:
    - Transaction boundaries: writers flush within the caller's transaction
      and never commit or roll back.  The caller (``session_scope`` or a
      test harness) owns commit and rollback.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from billing_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for SQL write-side services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.
    """

    def __init__(self, session: Session):
        self.session = session
