"""SQLite implementation of ClientRepository."""

import sqlite3
import uuid
from datetime import datetime
from typing import Optional

from ..interfaces.client_repository import IClientRepository
from ..change_feed import LocalChangeFeed
from ...domain.client import Client
from ...errors import DuplicatePhoneConflict, TransientCollaboratorError
from ...config import logger as log
from .connection import SQLiteConnection


# Columns a caller may write. Activity totals belong to appointments and sales.
WRITABLE_COLUMNS = (
    "name",
    "phone",
    "birthday",
    "notes",
    "referrer_id",
    "whatsapp_link",
    "facebook_link",
    "instagram_link",
    "tiktok_link",
    "created_by_user_id",
)

_SELECT_LIVE = "SELECT * FROM clients WHERE deleted_at IS NULL"


def _row_to_client(row: sqlite3.Row) -> Client:
    data = dict(row)
    data.pop("deleted_at", None)
    return Client.from_dict(data)


class SQLiteClientRepository(IClientRepository):
    """SQLite implementation of client repository.

    Deletion is soft: rows get a ``deleted_at`` stamp and disappear from every
    read. Each write publishes an event on the change feed when one is given.

    Queries run inline in the async methods and block the event loop while
    they execute; fine for a local file, not for a shared server.
    """

    def __init__(
        self, connection: SQLiteConnection, feed: Optional[LocalChangeFeed] = None
    ):
        self._conn = connection
        self._feed = feed

    def _publish(self, event: str) -> None:
        if self._feed is not None:
            self._feed.publish(event)

    def _raise_from(self, e: sqlite3.Error, phone: Optional[str] = None):
        if isinstance(e, sqlite3.IntegrityError) and "phone" in str(e) and phone:
            raise DuplicatePhoneConflict(phone) from e
        raise TransientCollaboratorError(str(e)) from e

    async def fetch_all(self) -> list[Client]:
        """Gets every live client, newest first."""
        log.debug("repo.client", "fetch_all")
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f"{_SELECT_LIVE} ORDER BY created_at DESC")
                results = [_row_to_client(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            self._raise_from(e)
        log.debug("repo.client", "fetch_all result", count=len(results))
        return results

    async def get_by_id(self, client_id: str) -> Optional[Client]:
        """Gets a client by ID."""
        log.debug("repo.client", "get_by_id", client_id=client_id)
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(f"{_SELECT_LIVE} AND id = ?", (client_id,))
                row = cursor.fetchone()
        except sqlite3.Error as e:
            self._raise_from(e)
        return _row_to_client(row) if row else None

    async def create(self, data: dict) -> Client:
        """Creates a client from its static attributes and returns it."""
        record = {k: data.get(k) for k in WRITABLE_COLUMNS}
        record["id"] = str(uuid.uuid4())
        record["created_at"] = datetime.now()
        log.debug("repo.client", "create", name=record["name"], phone=record["phone"])

        columns = ", ".join(record)
        placeholders = ", ".join("?" for _ in record)
        try:
            with self._conn.get_connection() as conn:
                conn.execute(
                    f"INSERT INTO clients ({columns}) VALUES ({placeholders})",
                    tuple(record.values()),
                )
        except sqlite3.Error as e:
            self._raise_from(e, phone=record["phone"])

        self._publish("insert")
        created = await self.get_by_id(record["id"])
        log.info("repo.client", "created", client_id=record["id"])
        return created

    async def update(self, client_id: str, data: dict) -> Client:
        """Updates static attributes of a client and returns it."""
        changes = {k: data[k] for k in WRITABLE_COLUMNS if k in data}
        log.debug("repo.client", "update", client_id=client_id, fields=list(changes))
        if changes:
            assignments = ", ".join(f"{k} = ?" for k in changes)
            try:
                with self._conn.get_connection() as conn:
                    cursor = conn.execute(
                        f"UPDATE clients SET {assignments} "
                        "WHERE id = ? AND deleted_at IS NULL",
                        (*changes.values(), client_id),
                    )
                    updated = cursor.rowcount
            except sqlite3.Error as e:
                self._raise_from(e, phone=changes.get("phone"))
            if updated == 0:
                raise TransientCollaboratorError(f"Cliente no encontrado: {client_id}")
            self._publish("update")

        client = await self.get_by_id(client_id)
        if client is None:
            raise TransientCollaboratorError(f"Cliente no encontrado: {client_id}")
        return client

    async def delete_many(self, client_ids: list[str]) -> int:
        """Soft-deletes clients in one statement. Returns rows affected."""
        if not client_ids:
            return 0
        log.debug("repo.client", "delete_many", count=len(client_ids))
        placeholders = ", ".join("?" for _ in client_ids)
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.execute(
                    f"UPDATE clients SET deleted_at = ? "
                    f"WHERE id IN ({placeholders}) AND deleted_at IS NULL",
                    (datetime.now(), *client_ids),
                )
                affected = cursor.rowcount
        except sqlite3.Error as e:
            self._raise_from(e)

        if affected < len(client_ids):
            log.warn(
                "repo.client",
                "delete_many affected fewer rows than requested",
                requested=len(client_ids),
                affected=affected,
            )
        if affected:
            self._publish("delete")
        return affected

    async def update_referrer(
        self, client_ids: list[str], referrer_id: Optional[str]
    ) -> None:
        """Sets (or clears, with None) the referrer of several clients at once."""
        if not client_ids:
            return
        log.debug(
            "repo.client",
            "update_referrer",
            count=len(client_ids),
            referrer_id=referrer_id,
        )
        placeholders = ", ".join("?" for _ in client_ids)
        try:
            with self._conn.get_connection() as conn:
                conn.execute(
                    f"UPDATE clients SET referrer_id = ? "
                    f"WHERE id IN ({placeholders}) AND deleted_at IS NULL",
                    (referrer_id, *client_ids),
                )
        except sqlite3.Error as e:
            self._raise_from(e)
        self._publish("update")

    async def check_duplicate_phone(
        self, phone: str, exclude_id: Optional[str] = None
    ) -> Optional[Client]:
        """Gets the live client already using a phone, ignoring exclude_id."""
        log.debug("repo.client", "check_duplicate_phone", phone=phone)
        query = f"{_SELECT_LIVE} AND phone = ?"
        params: tuple = (phone,)
        if exclude_id:
            query += " AND id != ?"
            params = (phone, exclude_id)
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(query, params)
                row = cursor.fetchone()
        except sqlite3.Error as e:
            self._raise_from(e)
        return _row_to_client(row) if row else None

    async def fetch_referrals(self, client_id: str) -> list[Client]:
        """Gets clients referred by the given client, newest first."""
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"{_SELECT_LIVE} AND referrer_id = ? ORDER BY created_at DESC",
                    (client_id,),
                )
                return [_row_to_client(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            self._raise_from(e)

    def record_visit(self, client_id: str, amount, visit_date) -> None:
        """Adds a visit to a client's activity totals.

        Stands in for the appointment/sales side of the backend, which owns
        these columns. Used by seed scripts and tests.
        """
        with self._conn.get_connection() as conn:
            conn.execute(
                """UPDATE clients
                   SET total_visits = total_visits + 1,
                       total_spent = CAST(total_spent AS REAL) + ?,
                       last_visit_date = ?
                   WHERE id = ?""",
                (float(amount), visit_date, client_id),
            )
        self._publish("update")
