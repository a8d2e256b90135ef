"""Database layer: engine, sessions and declarative base classes."""

from customs_kernel.db.base import Base, TrackedBase, UUIDString
from customs_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    read_only_session,
    reset_engine,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "read_only_session",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "Base",
    "TrackedBase",
    "UUIDString",
]
