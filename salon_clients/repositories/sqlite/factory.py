"""Builds a Container backed by the bundled SQLite database."""

from typing import Optional

from ...container import Container
from ..change_feed import LocalChangeFeed
from .client_repository import SQLiteClientRepository
from .connection import SQLiteConnection
from .tag_repository import SQLiteTagRepository


def create_sqlite_container(db_path: Optional[str] = None) -> Container:
    """Wires client and tag repositories over one database file.

    Client writes publish on a fresh ``LocalChangeFeed``, which is also the
    feed handed to views built from this container. ``db_path`` defaults to
    ``data/salon_clients.db`` at the repository root.
    """
    connection = SQLiteConnection(db_path)
    feed = LocalChangeFeed()
    return Container(
        clients=SQLiteClientRepository(connection, feed),
        tags=SQLiteTagRepository(connection),
        feed=feed,
    )
