"""SQLite backend: repositories, connection and container factory."""

from .factory import create_sqlite_container

__all__ = ["create_sqlite_container"]
