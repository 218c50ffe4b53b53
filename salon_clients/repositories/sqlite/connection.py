"""SQLite connection and schema for the bundled client backend."""

import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional

from ...config import logger as log


DEFAULT_DB_PATH = Path(__file__).parent.parent.parent.parent / "data" / "salon_clients.db"

SCHEMA_VERSION = 1


def _register_types() -> None:
    """Stores dates, datetimes and amounts as ISO / decimal text."""
    sqlite3.register_adapter(date, date.isoformat)
    sqlite3.register_adapter(datetime, datetime.isoformat)
    sqlite3.register_adapter(Decimal, str)
    # Accepts "2025-01-31" as well as a full timestamp for DATE columns.
    sqlite3.register_converter("DATE", lambda raw: date.fromisoformat(raw.decode()[:10]))
    sqlite3.register_converter("DATETIME", lambda raw: datetime.fromisoformat(raw.decode()))
    sqlite3.register_converter("DECIMAL", lambda raw: Decimal(raw.decode()))


_register_types()


# Clients are soft-deleted: deleted_at set, the row kept so references survive.
# The phone index is not unique because duplicated clients share the phone.
SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS clients (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        phone TEXT NOT NULL,
        birthday DATE,
        notes TEXT,
        referrer_id TEXT REFERENCES clients(id) ON DELETE SET NULL,
        whatsapp_link TEXT,
        facebook_link TEXT,
        instagram_link TEXT,
        tiktok_link TEXT,
        total_spent DECIMAL DEFAULT 0,
        total_visits INTEGER DEFAULT 0,
        last_visit_date DATE,
        created_by_user_id TEXT,
        created_at DATETIME NOT NULL,
        deleted_at DATETIME,
        CHECK (referrer_id IS NULL OR referrer_id != id)
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_clients_phone
    ON clients(phone) WHERE deleted_at IS NULL
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_clients_referrer
    ON clients(referrer_id) WHERE deleted_at IS NULL
    """,
    """
    CREATE TABLE IF NOT EXISTS client_tags (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL COLLATE NOCASE UNIQUE,
        created_at DATETIME
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS client_tags_assignments (
        id TEXT PRIMARY KEY,
        client_id TEXT NOT NULL REFERENCES clients(id) ON DELETE CASCADE,
        tag_id TEXT NOT NULL REFERENCES client_tags(id) ON DELETE CASCADE,
        created_at DATETIME,
        UNIQUE (client_id, tag_id)
    )
    """,
)

TABLES = ("client_tags_assignments", "client_tags", "clients")


class SQLiteConnection:
    """Opens one short-lived connection per unit of work.

    ``get_connection`` commits when the block exits cleanly and rolls back
    otherwise. Foreign keys are enforced on every connection.
    """

    def __init__(self, db_path: Optional[str] = None, timeout: float = 5.0):
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self.timeout = timeout
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.create_schema()

    @contextmanager
    def get_connection(self):
        conn = sqlite3.connect(
            self.db_path,
            timeout=self.timeout,
            detect_types=sqlite3.PARSE_DECLTYPES | sqlite3.PARSE_COLNAMES,
        )
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def schema_version(self) -> int:
        with self.get_connection() as conn:
            return conn.execute("PRAGMA user_version").fetchone()[0]

    def create_schema(self) -> None:
        """Creates missing tables and indexes. Safe to run on every start."""
        with self.get_connection() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
            conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        log.debug("repo.sqlite", "schema ready", path=self.db_path, version=SCHEMA_VERSION)

    def drop_all(self) -> None:
        """Drops every table and recreates an empty schema."""
        with self.get_connection() as conn:
            conn.execute("PRAGMA foreign_keys = OFF")
            for table in TABLES:
                conn.execute(f"DROP TABLE IF EXISTS {table}")
        log.warn("repo.sqlite", "all client data dropped", path=self.db_path)
        self.create_schema()
