"""
Module: billing_kernel.selectors.base
Responsibility: Abstract base class for the read-only selectors that
    implement the kernel's read ports over a SQLAlchemy Session.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush or commit.
    - Domain return convention: selectors return frozen domain objects, never
      ORM rows.
    - Session ownership: the caller owns the session and its transaction.
      A Session is not thread-safe; share a selector across threads only
      behind a store that serializes its reads.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from billing_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries
        and return domain objects.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
