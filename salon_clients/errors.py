"""Exceptions raised by the client-list core."""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .domain.client import Client


class ClientsError(Exception):
    """Base class for every error raised by this package."""


class ValidationError(ClientsError):
    """The caller asked for something invalid; nothing was sent to the backend."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidArgumentError(ValidationError):
    """A value outside a fixed set (sort field, direction, preset) was passed."""


class TransientCollaboratorError(ClientsError):
    """The persistence backend failed (network, constraint, permission)."""


class DuplicatePhoneConflict(ClientsError):
    """Another client is already registered with the same phone."""

    def __init__(self, phone: str, existing: Optional["Client"] = None):
        super().__init__("El teléfono ya está registrado con otro cliente.")
        self.phone = phone
        self.existing = existing


class BulkActionInProgress(ClientsError):
    """A bulk action was started while another one is still running."""
