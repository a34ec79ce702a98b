"""Infrastructure services used by the application wiring."""

from .postgres import PostgresPool
from .storage import Storage, build_storage, register_token_users

__all__ = ["PostgresPool", "Storage", "build_storage", "register_token_users"]
