"""Database package: shared engine, session factory and tenant store."""

from legalflow.db.base import Base, close_db, get_session_factory, init_db
from legalflow.db.store import SqlTenantStore, TenantStore, get_store

__all__ = [
    "Base",
    "SqlTenantStore",
    "TenantStore",
    "close_db",
    "get_session_factory",
    "get_store",
    "init_db",
]
