"""Contracts the core expects from its persistence backend."""

from .change_feed import IClientChangeFeed
from .client_repository import IClientRepository
from .tag_repository import ITagRepository

__all__ = ["IClientChangeFeed", "IClientRepository", "ITagRepository"]
