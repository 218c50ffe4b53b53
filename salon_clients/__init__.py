"""
salon_clients - client list core for a salon management app

Filters, sorts and selects clients over a snapshot fetched from the backend,
and runs bulk actions (delete, export, duplicate, assign referrer) on the
selection.
"""
from .domain import BulkResult, Client, ClientTag, FilterCriteria, PresetCounts
from .errors import (
    BulkActionInProgress,
    ClientsError,
    DuplicatePhoneConflict,
    InvalidArgumentError,
    TransientCollaboratorError,
    ValidationError,
)
from .services import (
    BulkActionOrchestrator,
    ClientListView,
    ClientSelection,
    filter_clients,
    save_client,
    sort_clients,
)

__version__ = "0.1.0"

__all__ = [
    "BulkResult",
    "Client",
    "ClientTag",
    "FilterCriteria",
    "PresetCounts",
    "BulkActionInProgress",
    "ClientsError",
    "DuplicatePhoneConflict",
    "InvalidArgumentError",
    "TransientCollaboratorError",
    "ValidationError",
    "BulkActionOrchestrator",
    "ClientListView",
    "ClientSelection",
    "filter_clients",
    "save_client",
    "sort_clients",
]
