"""SQLite implementation of TagRepository."""

import sqlite3
import uuid
from datetime import datetime
from typing import Optional

from ..interfaces.tag_repository import ITagRepository
from ...domain.tag import ClientTag, ClientTagAssignment
from ...errors import TransientCollaboratorError, ValidationError
from ...config import logger as log
from .connection import SQLiteConnection


class SQLiteTagRepository(ITagRepository):
    """SQLite implementation of tag repository.

    Methods are async to match the interface but run their queries inline,
    blocking the event loop for the duration of each statement.
    """

    def __init__(self, connection: SQLiteConnection):
        self._conn = connection

    async def fetch_all(self) -> list[ClientTag]:
        """Gets all tags ordered by name."""
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute("SELECT * FROM client_tags ORDER BY name COLLATE NOCASE")
                return [ClientTag.from_dict(dict(row)) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise TransientCollaboratorError(str(e)) from e

    async def create(self, name: str) -> ClientTag:
        """Creates a tag. Names are unique ignoring case."""
        name = name.strip()
        if not name:
            raise ValidationError("El nombre de la etiqueta es requerido", field="name")
        if await self.tag_exists(name):
            raise ValidationError(f"La etiqueta '{name}' ya existe", field="name")

        tag = ClientTag(id=str(uuid.uuid4()), name=name, created_at=datetime.now())
        try:
            with self._conn.get_connection() as conn:
                conn.execute(
                    "INSERT INTO client_tags (id, name, created_at) VALUES (?, ?, ?)",
                    (tag.id, tag.name, tag.created_at),
                )
        except sqlite3.Error as e:
            raise TransientCollaboratorError(str(e)) from e
        log.debug("repo.tag", "create", tag_id=tag.id, name=tag.name)
        return tag

    async def tag_exists(self, name: str) -> Optional[ClientTag]:
        """Gets the tag with this name, compared case-insensitively."""
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT * FROM client_tags WHERE name = ? COLLATE NOCASE",
                    (name.strip(),),
                )
                row = cursor.fetchone()
        except sqlite3.Error as e:
            raise TransientCollaboratorError(str(e)) from e
        return ClientTag.from_dict(dict(row)) if row else None

    async def get_tag_ids_for_client(self, client_id: str) -> list[str]:
        """Gets the ids of the tags assigned to a client."""
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    "SELECT tag_id FROM client_tags_assignments WHERE client_id = ?",
                    (client_id,),
                )
                return [row["tag_id"] for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise TransientCollaboratorError(str(e)) from e

    async def resolve_client_ids_by_tags(self, tag_ids: list[str]) -> list[str]:
        """Gets ids of clients carrying any of the given tags."""
        if not tag_ids:
            return []
        log.debug("repo.tag", "resolve_client_ids_by_tags", tag_ids=tag_ids)
        placeholders = ", ".join("?" for _ in tag_ids)
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    f"""SELECT DISTINCT client_id FROM client_tags_assignments
                        WHERE tag_id IN ({placeholders})""",
                    tuple(tag_ids),
                )
                results = [row["client_id"] for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise TransientCollaboratorError(str(e)) from e
        log.debug("repo.tag", "resolve_client_ids_by_tags result", count=len(results))
        return results

    async def sync_client_tags(self, client_id: str, tag_ids: list[str]) -> None:
        """Makes the client's assignments exactly tag_ids."""
        wanted = set(tag_ids)
        current = set(await self.get_tag_ids_for_client(client_id))
        to_add = wanted - current
        to_remove = current - wanted
        log.debug(
            "repo.tag",
            "sync_client_tags",
            client_id=client_id,
            added=len(to_add),
            removed=len(to_remove),
        )
        try:
            with self._conn.get_connection() as conn:
                for tag_id in to_remove:
                    conn.execute(
                        """DELETE FROM client_tags_assignments
                           WHERE client_id = ? AND tag_id = ?""",
                        (client_id, tag_id),
                    )
                for tag_id in sorted(to_add):
                    assignment = ClientTagAssignment(
                        id=str(uuid.uuid4()),
                        client_id=client_id,
                        tag_id=tag_id,
                        created_at=datetime.now(),
                    )
                    conn.execute(
                        """INSERT INTO client_tags_assignments
                           (id, client_id, tag_id, created_at)
                           VALUES (:id, :client_id, :tag_id, :created_at)""",
                        assignment.to_dict(),
                    )
        except sqlite3.Error as e:
            raise TransientCollaboratorError(str(e)) from e

    async def copy_assignments(self, source_id: str, target_id: str) -> None:
        """Gives target_id the same tags as source_id."""
        tag_ids = await self.get_tag_ids_for_client(source_id)
        if tag_ids:
            await self.sync_client_tags(target_id, tag_ids)

    async def usage_counts(self) -> dict[str, int]:
        """Gets the number of live clients using each tag, keyed by tag id."""
        try:
            with self._conn.get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """SELECT a.tag_id AS tag_id, COUNT(*) AS total
                       FROM client_tags_assignments a
                       JOIN clients c ON c.id = a.client_id
                       WHERE c.deleted_at IS NULL
                       GROUP BY a.tag_id"""
                )
                return {row["tag_id"]: row["total"] for row in cursor.fetchall()}
        except sqlite3.Error as e:
            raise TransientCollaboratorError(str(e)) from e
