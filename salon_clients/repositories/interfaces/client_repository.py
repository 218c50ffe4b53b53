"""Interface for client repository."""

from abc import ABC, abstractmethod
from typing import Optional

from ...domain.client import Client


class IClientRepository(ABC):
    """Contract for client data access.

    Implementations raise TransientCollaboratorError for backend failures and
    DuplicatePhoneConflict when the phone unique constraint rejects a write.
    """

    @abstractmethod
    async def fetch_all(self) -> list[Client]:
        """Gets every live client, newest first."""
        pass

    @abstractmethod
    async def get_by_id(self, client_id: str) -> Optional[Client]:
        """Gets a client by ID."""
        pass

    @abstractmethod
    async def create(self, data: dict) -> Client:
        """Creates a client from its static attributes and returns it."""
        pass

    @abstractmethod
    async def update(self, client_id: str, data: dict) -> Client:
        """Updates static attributes of a client and returns it."""
        pass

    @abstractmethod
    async def delete_many(self, client_ids: list[str]) -> int:
        """Deletes clients in one batch. Returns the number of rows affected."""
        pass

    @abstractmethod
    async def update_referrer(
        self, client_ids: list[str], referrer_id: Optional[str]
    ) -> None:
        """Sets (or clears, with None) the referrer of several clients at once."""
        pass

    @abstractmethod
    async def check_duplicate_phone(
        self, phone: str, exclude_id: Optional[str] = None
    ) -> Optional[Client]:
        """Gets the client already using a phone, ignoring exclude_id."""
        pass

    @abstractmethod
    async def fetch_referrals(self, client_id: str) -> list[Client]:
        """Gets clients referred by the given client."""
        pass
