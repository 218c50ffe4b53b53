"""Results returned by bulk actions over the client selection."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Literal, Optional


BulkAction = Literal["delete", "export", "duplicate", "assign_referrer"]
BulkStatus = Literal["succeeded", "partially_succeeded", "failed"]
BulkState = Literal["idle", "running", "succeeded", "partially_succeeded", "failed"]


class Outcome:
    """Why a bulk action ended the way it did."""

    SUCCESS = "success"
    PARTIAL = "partial_outcome"
    NONE_DELETED = "none_deleted"
    FAILED = "failed"


@dataclass(frozen=True)
class ItemFailure:
    """A single id that could not be processed, with the backend's message."""

    client_id: str
    error: str


@dataclass(frozen=True)
class UndoNotice:
    """Informational undo window shown after deleting a single client.

    Accepting it does NOT restore anything: the backend already committed the
    deletion. Callers may display it and refresh the list, nothing more.
    """

    client_id: str
    client_name: Optional[str]
    expires_at: datetime
    restores_data: bool = False

    @classmethod
    def open(
        cls, client_id: str, client_name: Optional[str], seconds: int
    ) -> "UndoNotice":
        return cls(
            client_id=client_id,
            client_name=client_name,
            expires_at=datetime.now() + timedelta(seconds=seconds),
        )

    def is_active(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.now()) < self.expires_at


@dataclass
class BulkResult:
    """Structured outcome of a bulk action.

    ``requested`` and ``affected`` are kept separate so callers can say
    "3 of 5" instead of reducing the result to a boolean.
    """

    action: BulkAction
    status: BulkStatus
    outcome: str
    requested: int
    affected: int
    failures: list[ItemFailure] = field(default_factory=list)
    created_ids: list[str] = field(default_factory=list)
    undo: Optional[UndoNotice] = None
    filename: Optional[str] = None
    payload: Optional[bytes] = None

    @property
    def is_partial(self) -> bool:
        return self.outcome == Outcome.PARTIAL

    @property
    def none_affected(self) -> bool:
        return self.affected == 0

    @property
    def failed_count(self) -> int:
        return self.requested - self.affected

    def to_dict(self) -> dict:
        """Converts to dictionary."""
        return {
            "action": self.action,
            "status": self.status,
            "outcome": self.outcome,
            "requested": self.requested,
            "affected": self.affected,
            "failures": [
                {"client_id": f.client_id, "error": f.error} for f in self.failures
            ],
            "created_ids": list(self.created_ids),
            "undo": (
                {
                    "client_id": self.undo.client_id,
                    "expires_at": self.undo.expires_at.isoformat(),
                    "restores_data": self.undo.restores_data,
                }
                if self.undo
                else None
            ),
            "filename": self.filename,
        }
