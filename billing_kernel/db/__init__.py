"""Database layer - engine, declarative base and column types."""

from billing_kernel.db.base import Base, UTCDateTime
from billing_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "Base",
    "UTCDateTime",
    "create_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
]
