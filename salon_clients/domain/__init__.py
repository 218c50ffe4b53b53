"""Domain entities and value objects."""

from .client import Client
from .tag import ClientTag, ClientTagAssignment
from .client_list import FilterCriteria, PresetCounts
from .bulk_result import BulkResult, ItemFailure, Outcome, UndoNotice

__all__ = [
    "Client",
    "ClientTag",
    "ClientTagAssignment",
    "FilterCriteria",
    "PresetCounts",
    "BulkResult",
    "ItemFailure",
    "Outcome",
    "UndoNotice",
]
