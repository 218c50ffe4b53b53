"""Derived view controller for the client list.

Owns the filter, search and sort state, holds a read-only snapshot of the raw
collection and recomputes ``sort(filter(raw))`` whenever either changes.
Realtime events never patch the snapshot: they trigger a full refetch.
"""

import asyncio
from typing import Callable, Iterable, Optional

from ..config import logger as log
from ..constants.client_filters import (
    ClientFilterType,
    ClientSortField,
    FilterPresets,
    ListDefaults,
    SortDirections,
)
from ..domain.client import Client
from ..domain.client_list import FilterCriteria, PresetCounts
from ..errors import ClientsError, InvalidArgumentError
from ..repositories.interfaces.change_feed import IClientChangeFeed
from ..repositories.interfaces.client_repository import IClientRepository
from ..repositories.interfaces.tag_repository import ITagRepository
from .filters import count_by_preset, filter_clients
from .sorting import sort_clients, validate_sort


ViewListener = Callable[["ClientListView", str], None]

CHANGE_SNAPSHOT = "snapshot"
CHANGE_CRITERIA = "criteria"


class ClientListView:
    """Filtered and sorted view over the client collection.

    Use it as an async context manager to subscribe to the change feed and
    load the first snapshot; leaving the block unsubscribes.
    """

    def __init__(
        self,
        clients: IClientRepository,
        tags: ITagRepository,
        feed: Optional[IClientChangeFeed] = None,
    ):
        self._clients_repo = clients
        self._tags_repo = tags
        self._feed = feed

        self._raw: tuple[Client, ...] = ()
        self._snapshot_version = 0
        self._loaded = False

        self._search_query = ""
        self._preset: str = ListDefaults.PRESET
        self._selected_tag_ids: frozenset[str] = frozenset()
        self._tag_client_ids: frozenset[str] = frozenset()
        self._sort_field: str = ListDefaults.SORT_FIELD
        self._sort_direction: str = ListDefaults.SORT_DIRECTION

        # Monotonic tokens: an async result is applied only if its token is
        # still the latest one issued.
        self._tag_generation = 0
        self._fetch_generation = 0

        self._view_cache: Optional[tuple[tuple, list[Client]]] = None
        self._counts_cache: Optional[tuple[int, PresetCounts]] = None

        self._listeners: list[ViewListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._pending: set[asyncio.Task] = set()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribes to the change feed and loads the first snapshot."""
        if self._feed is not None and self._unsubscribe is None:
            self._unsubscribe = self._feed.subscribe(self._on_feed_event)
            log.debug("clients.view", "subscribed to change feed")
        await self.refresh()

    async def stop(self) -> None:
        """Unsubscribes and cancels refetches still in flight."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
            log.debug("clients.view", "unsubscribed from change feed")
        pending = list(self._pending)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    async def __aenter__(self) -> "ClientListView":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def settle(self) -> None:
        """Waits until refetches triggered by the change feed have finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _on_feed_event(self, event: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            log.warn("clients.view", "change event outside event loop ignored", event=event)
            return
        log.debug("clients.view", "change event, refetching", event=event)
        task = loop.create_task(self._refresh_in_background(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _refresh_in_background(self, event: str) -> None:
        try:
            await self.refresh()
        except ClientsError as e:
            log.exception("clients.view", "refetch after change failed", e, event=event)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    async def refresh(self) -> list[Client]:
        """Refetches the whole collection and recomputes the view.

        A fetch that completes after a newer one was issued is discarded.
        """
        self._fetch_generation += 1
        generation = self._fetch_generation
        clients = await self._clients_repo.fetch_all()
        if generation != self._fetch_generation:
            log.debug("clients.view", "stale fetch discarded", generation=generation)
            return self.clients
        self.load(clients)
        return self.clients

    def load(self, clients: Iterable[Client]) -> None:
        """Replaces the raw snapshot with a copy of ``clients``."""
        self._raw = tuple(clients)
        self._snapshot_version += 1
        self._loaded = True
        log.debug("clients.view", "snapshot loaded", count=len(self._raw))
        self._notify(CHANGE_SNAPSHOT)

    @property
    def raw_clients(self) -> tuple[Client, ...]:
        return self._raw

    @property
    def raw_ids(self) -> frozenset[str]:
        return frozenset(c.id for c in self._raw)

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def find(self, client_id: str) -> Optional[Client]:
        for client in self._raw:
            if client.id == client_id:
                return client
        return None

    # ------------------------------------------------------------------
    # Criteria
    # ------------------------------------------------------------------

    @property
    def search_query(self) -> str:
        return self._search_query

    def set_search_query(self, query: str) -> None:
        query = query or ""
        if query != self._search_query:
            self._search_query = query
            self._notify(CHANGE_CRITERIA)

    @property
    def preset(self) -> str:
        return self._preset

    def set_preset(self, preset: ClientFilterType) -> None:
        if preset not in FilterPresets.VALUES:
            raise InvalidArgumentError(f"Filtro inválido: {preset!r}", field="preset")
        if preset != self._preset:
            self._preset = preset
            self._notify(CHANGE_CRITERIA)

    @property
    def selected_tag_ids(self) -> frozenset[str]:
        return self._selected_tag_ids

    @property
    def tag_client_ids(self) -> frozenset[str]:
        return self._tag_client_ids

    async def set_selected_tags(self, tag_ids: Iterable[str]) -> bool:
        """Changes the tag filter and resolves its member clients.

        Until the lookup answers, the tag filter is not applied (fails open).
        Returns False when the answer arrived after a newer selection and was
        dropped.
        """
        tag_ids = frozenset(tag_ids)
        self._tag_generation += 1
        generation = self._tag_generation
        self._selected_tag_ids = tag_ids
        self._tag_client_ids = frozenset()
        self._notify(CHANGE_CRITERIA)

        if not tag_ids:
            return True

        try:
            client_ids = await self._tags_repo.resolve_client_ids_by_tags(sorted(tag_ids))
        except ClientsError as e:
            if generation != self._tag_generation:
                return False
            log.error("clients.view", "tag resolution failed", tag_ids=tag_ids, error=str(e))
            raise

        if generation != self._tag_generation:
            log.debug(
                "clients.view",
                "stale tag resolution discarded",
                generation=generation,
                current=self._tag_generation,
            )
            return False

        self._tag_client_ids = frozenset(client_ids)
        log.debug("clients.view", "tags resolved", clients=len(self._tag_client_ids))
        self._notify(CHANGE_CRITERIA)
        return True

    @property
    def sort_field(self) -> str:
        return self._sort_field

    @property
    def sort_direction(self) -> str:
        return self._sort_direction

    def handle_sort(self, field: ClientSortField) -> None:
        """Same field flips the direction; a new field starts ascending."""
        validate_sort(field, SortDirections.ASC)
        if field == self._sort_field:
            self._sort_direction = (
                SortDirections.DESC
                if self._sort_direction == SortDirections.ASC
                else SortDirections.ASC
            )
        else:
            self._sort_field = field
            self._sort_direction = SortDirections.ASC
        self._notify(CHANGE_CRITERIA)

    def set_sort(self, field: ClientSortField, direction: str) -> None:
        validate_sort(field, direction)
        self._sort_field = field
        self._sort_direction = direction
        self._notify(CHANGE_CRITERIA)

    def reset_filters(self) -> None:
        """Back to preset ``all`` with no tags and no search."""
        self._tag_generation += 1
        self._preset = FilterPresets.ALL
        self._selected_tag_ids = frozenset()
        self._tag_client_ids = frozenset()
        self._search_query = ""
        self._notify(CHANGE_CRITERIA)

    @property
    def criteria(self) -> FilterCriteria:
        return FilterCriteria(
            preset=self._preset,
            selected_tag_ids=self._selected_tag_ids,
            tag_client_ids=self._tag_client_ids,
            search_query=self._search_query,
        )

    @property
    def has_active_filters(self) -> bool:
        return self._preset != FilterPresets.ALL or bool(self._selected_tag_ids)

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def recompute(self) -> list[Client]:
        """Filters then sorts the snapshot. Memoized on snapshot and criteria."""
        criteria = self.criteria
        key = (self._snapshot_version, criteria, self._sort_field, self._sort_direction)
        if self._view_cache is not None and self._view_cache[0] == key:
            return list(self._view_cache[1])

        view = sort_clients(
            filter_clients(self._raw, criteria), self._sort_field, self._sort_direction
        )
        self._view_cache = (key, view)
        return list(view)

    @property
    def clients(self) -> list[Client]:
        return self.recompute()

    @property
    def visible_ids(self) -> list[str]:
        return [c.id for c in self.recompute()]

    @property
    def counts(self) -> PresetCounts:
        """Preset badge counts over the raw snapshot, ignoring tags and search."""
        if self._counts_cache is None or self._counts_cache[0] != self._snapshot_version:
            self._counts_cache = (self._snapshot_version, count_by_preset(self._raw))
        return self._counts_cache[1]

    @property
    def filter_labels(self) -> list[tuple[str, str, int]]:
        """(preset, label, count) for each preset badge, in display order."""
        counts = self.counts
        return [
            (preset, FilterPresets.LABELS[preset], counts.get(preset))
            for preset in FilterPresets.VALUES
        ]

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_change(self, listener: ViewListener) -> Callable[[], None]:
        """Registers ``listener(view, reason)``; returns the unregister function."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _notify(self, reason: str) -> None:
        for listener in list(self._listeners):
            listener(self, reason)
