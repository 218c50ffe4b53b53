"""Tag entities - free-form labels attached to clients."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union


@dataclass
class ClientTag:
    """A label such as "VIP" or "Novia 2025". Names are unique ignoring case."""

    id: str
    name: str
    created_at: Optional[Union[datetime, str]] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ClientTag":
        """Creates a ClientTag from a dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            created_at=data.get("created_at"),
        )

    def to_dict(self) -> dict:
        """Converts to dictionary."""
        return {"id": self.id, "name": self.name, "created_at": self.created_at}


@dataclass
class ClientTagAssignment:
    """Links a tag to a client."""

    id: str
    client_id: str
    tag_id: str
    created_at: Optional[Union[datetime, str]] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ClientTagAssignment":
        """Creates a ClientTagAssignment from a dictionary."""
        return cls(
            id=data["id"],
            client_id=data["client_id"],
            tag_id=data["tag_id"],
            created_at=data.get("created_at"),
        )

    def to_dict(self) -> dict:
        """Converts to dictionary."""
        return {
            "id": self.id,
            "client_id": self.client_id,
            "tag_id": self.tag_id,
            "created_at": self.created_at,
        }
