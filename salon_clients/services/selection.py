"""Selection of clients for bulk actions."""

from typing import Callable, Iterable, Optional

from ..config import logger as log
from ..domain.client import Client
from .client_list import CHANGE_SNAPSHOT, ClientListView


class ClientSelection:
    """Set of client ids marked for a bulk action.

    Ids may point at clients hidden by the current filters; they stay selected.
    "Select all" always means "exactly what is visible now", replacing any
    previous selection. Ids whose client disappears from the raw collection
    are pruned when the selection is bound to a view.
    """

    def __init__(self):
        self._ids: set[str] = set()
        self._unbind: Optional[Callable[[], None]] = None

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    @property
    def count(self) -> int:
        return len(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, client_id: str) -> bool:
        return client_id in self._ids

    def is_selected(self, client_id: str) -> bool:
        return client_id in self._ids

    def select_all(self, checked: bool, current_view: Iterable[Client]) -> None:
        if checked:
            self._ids = {c.id for c in current_view}
        else:
            self._ids = set()

    def select_one(self, client_id: str, checked: bool) -> None:
        if checked:
            self._ids.add(client_id)
        else:
            self._ids.discard(client_id)

    def clear(self) -> None:
        self._ids = set()

    def prune(self, existing_ids: Iterable[str]) -> set[str]:
        """Drops ids not in ``existing_ids``. Returns the ids dropped."""
        existing = set(existing_ids)
        dropped = self._ids - existing
        if dropped:
            self._ids &= existing
            log.debug("clients.selection", "pruned ghost selections", dropped=dropped)
        return dropped

    def is_all_selected(self, current_view: Iterable[Client]) -> bool:
        """True when every visible client is selected and something is visible."""
        visible = {c.id for c in current_view}
        return bool(visible) and visible <= self._ids

    def bind(self, view: ClientListView) -> None:
        """Prunes deleted clients every time the view loads a new snapshot."""
        self.unbind()

        def on_change(changed: ClientListView, reason: str) -> None:
            if reason == CHANGE_SNAPSHOT:
                self.prune(changed.raw_ids)

        self._unbind = view.on_change(on_change)

    def unbind(self) -> None:
        if self._unbind is not None:
            self._unbind()
            self._unbind = None
