"""Interface for client tag repository."""

from abc import ABC, abstractmethod
from typing import Optional

from ...domain.tag import ClientTag


class ITagRepository(ABC):
    """Contract for tag and tag-assignment data access."""

    @abstractmethod
    async def fetch_all(self) -> list[ClientTag]:
        """Gets all tags ordered by name."""
        pass

    @abstractmethod
    async def create(self, name: str) -> ClientTag:
        """Creates a tag."""
        pass

    @abstractmethod
    async def tag_exists(self, name: str) -> Optional[ClientTag]:
        """Gets the tag with this name, compared case-insensitively."""
        pass

    @abstractmethod
    async def get_tag_ids_for_client(self, client_id: str) -> list[str]:
        """Gets the ids of the tags assigned to a client."""
        pass

    @abstractmethod
    async def resolve_client_ids_by_tags(self, tag_ids: list[str]) -> list[str]:
        """Gets ids of clients carrying any of the given tags."""
        pass

    @abstractmethod
    async def sync_client_tags(self, client_id: str, tag_ids: list[str]) -> None:
        """Makes the client's assignments exactly tag_ids."""
        pass

    @abstractmethod
    async def copy_assignments(self, source_id: str, target_id: str) -> None:
        """Gives target_id the same tags as source_id."""
        pass

    @abstractmethod
    async def usage_counts(self) -> dict[str, int]:
        """Gets the number of clients using each tag, keyed by tag id."""
        pass
