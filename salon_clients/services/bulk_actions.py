"""Bulk actions over the client selection.

Each action runs ``idle -> running -> succeeded | partially_succeeded |
failed -> idle``. Validation problems raise before the backend is called;
backend outcomes come back as a ``BulkResult`` with exact counts. The
selection is only touched after the backend has answered.
"""

import asyncio
import time
from contextlib import contextmanager
from typing import Any, Awaitable, Callable, Iterable, Optional

from ..config import logger as log
from ..config.env import get_copy_suffix, get_undo_window_seconds
from ..constants.client_filters import SOCIAL_FIELDS
from ..domain.bulk_result import (
    BulkAction,
    BulkResult,
    BulkState,
    ItemFailure,
    Outcome,
    UndoNotice,
)
from ..domain.client import Client
from ..errors import (
    BulkActionInProgress,
    ClientsError,
    TransientCollaboratorError,
    ValidationError,
)
from ..repositories.interfaces.client_repository import IClientRepository
from ..repositories.interfaces.tag_repository import ITagRepository
from .client_list import ClientListView
from .export import export_filename, generate_csv, select_for_export
from .selection import ClientSelection


SaveFile = Callable[[str, bytes], Any]

# Static attributes carried over to a copy. Activity totals, id and
# created_at are left for the backend to initialise.
DUPLICATED_FIELDS = ("phone", "birthday", "notes", "referrer_id", *SOCIAL_FIELDS)


async def call_backend(operation: Awaitable):
    """Awaits a backend call, surfacing any failure as TransientCollaboratorError."""
    try:
        return await operation
    except ClientsError:
        raise
    except Exception as e:
        raise TransientCollaboratorError(str(e)) from e


def build_duplicate(source: Client, suffix: str) -> dict:
    data = {field: getattr(source, field) for field in DUPLICATED_FIELDS}
    data["name"] = f"{source.name}{suffix}"
    data["created_by_user_id"] = source.created_by_user_id
    return data


class BulkActionOrchestrator:
    """Runs delete, export, duplicate and assign-referrer over selected clients."""

    def __init__(
        self,
        clients: IClientRepository,
        tags: ITagRepository,
        selection: ClientSelection,
        view: Optional[ClientListView] = None,
        save_file: Optional[SaveFile] = None,
        undo_window_seconds: Optional[int] = None,
        copy_suffix: Optional[str] = None,
    ):
        self._clients_repo = clients
        self._tags_repo = tags
        self._selection = selection
        self._view = view
        self._save_file = save_file
        self._undo_window = (
            undo_window_seconds
            if undo_window_seconds is not None
            else get_undo_window_seconds()
        )
        self._copy_suffix = copy_suffix if copy_suffix is not None else get_copy_suffix()

        self.state: BulkState = "idle"
        self.last_status: Optional[str] = None
        self.last_result: Optional[BulkResult] = None

    @property
    def is_running(self) -> bool:
        return self.state == "running"

    @contextmanager
    def _running(self, action: BulkAction):
        if self.is_running:
            raise BulkActionInProgress(f"Ya hay una acción masiva en curso ({action})")
        self.state = "running"
        started = time.perf_counter()
        log.debug("clients.bulk", "start", action=action)
        try:
            yield
            log.debug(
                "clients.bulk",
                "done",
                action=action,
                elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        except Exception as e:
            self.last_status = "failed"
            log.exception("clients.bulk", "failed", e, action=action)
            raise
        finally:
            self.state = "idle"

    def _finish(self, result: BulkResult) -> BulkResult:
        self.last_status = result.status
        self.last_result = result
        log_fn = log.info if result.status == "succeeded" else log.warn
        log_fn(
            "clients.bulk",
            "finished",
            action=result.action,
            status=result.status,
            requested=result.requested,
            affected=result.affected,
        )
        return result

    def _target_ids(self, ids: Optional[Iterable[str]]) -> list[str]:
        """Explicit ids, or the selection ordered like the collection."""
        if ids is not None:
            return list(dict.fromkeys(ids))
        selected = self._selection.ids
        ordered = []
        if self._view is not None:
            ordered = [c.id for c in self._view.raw_clients if c.id in selected]
        return ordered + sorted(selected - set(ordered))

    async def _refresh(self) -> None:
        if self._view is None:
            return
        try:
            await self._view.refresh()
        except ClientsError as e:
            log.exception("clients.bulk", "refresh after bulk action failed", e)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    async def delete(
        self, ids: Optional[Iterable[str]] = None, client_name: Optional[str] = None
    ) -> BulkResult:
        """Deletes clients in one batch and compares affected rows to the request.

        Nothing deleted keeps the selection so the user can retry. A single
        successful delete carries an informational undo notice.
        """
        target = self._target_ids(ids)
        if not target:
            raise ValidationError("No hay clientes seleccionados para eliminar.")

        with self._running("delete"):
            affected = await call_backend(self._clients_repo.delete_many(target))
            affected = max(0, min(int(affected or 0), len(target)))

            if affected == 0:
                result = BulkResult(
                    action="delete",
                    status="failed",
                    outcome=Outcome.NONE_DELETED,
                    requested=len(target),
                    affected=0,
                )
            elif affected < len(target):
                self._selection.clear()
                result = BulkResult(
                    action="delete",
                    status="partially_succeeded",
                    outcome=Outcome.PARTIAL,
                    requested=len(target),
                    affected=affected,
                )
            else:
                self._selection.clear()
                undo = None
                if len(target) == 1:
                    if client_name is None and self._view is not None:
                        found = self._view.find(target[0])
                        client_name = found.name if found else None
                    undo = UndoNotice.open(target[0], client_name, self._undo_window)
                result = BulkResult(
                    action="delete",
                    status="succeeded",
                    outcome=Outcome.SUCCESS,
                    requested=len(target),
                    affected=affected,
                    undo=undo,
                )

            await self._refresh()
            return self._finish(result)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export(
        self,
        clients: Optional[Iterable[Client]] = None,
        ids: Optional[Iterable[str]] = None,
    ) -> BulkResult:
        """Serializes the selected clients to CSV and hands it to ``save_file``.

        Works on the raw collection (not the filtered view), in collection
        order. Selected ids missing from the collection make it partial.
        """
        target = self._target_ids(ids)
        if not target:
            raise ValidationError("No hay clientes seleccionados para exportar.")
        if clients is None:
            clients = self._view.raw_clients if self._view is not None else ()

        with self._running("export"):
            rows = select_for_export(clients, target)
            payload = generate_csv(rows).encode("utf-8")
            filename = export_filename()
            if rows and self._save_file is not None:
                self._save_file(filename, payload)

            if not rows:
                status, outcome = "failed", Outcome.FAILED
            elif len(rows) < len(target):
                status, outcome = "partially_succeeded", Outcome.PARTIAL
            else:
                status, outcome = "succeeded", Outcome.SUCCESS
            return self._finish(
                BulkResult(
                    action="export",
                    status=status,
                    outcome=outcome,
                    requested=len(target),
                    affected=len(rows),
                    filename=filename if rows else None,
                    payload=payload if rows else None,
                )
            )

    # ------------------------------------------------------------------
    # Duplicate
    # ------------------------------------------------------------------

    async def _duplicate_one(self, client_id: str) -> str:
        source = self._view.find(client_id) if self._view is not None else None
        if source is None:
            source = await call_backend(self._clients_repo.get_by_id(client_id))
        if source is None:
            raise TransientCollaboratorError("Cliente no encontrado")

        copy = await call_backend(
            self._clients_repo.create(build_duplicate(source, self._copy_suffix))
        )
        try:
            await call_backend(self._tags_repo.copy_assignments(client_id, copy.id))
        except TransientCollaboratorError as e:
            raise TransientCollaboratorError(
                f"Copia {copy.id} creada sin etiquetas: {e}"
            ) from e
        return copy.id

    async def duplicate(self, ids: Optional[Iterable[str]] = None) -> BulkResult:
        """Copies each client with its tags. Copies are independent of each other."""
        from_selection = ids is None
        target = self._target_ids(ids)
        if not target:
            raise ValidationError("No hay clientes seleccionados para duplicar.")

        with self._running("duplicate"):
            outcomes = await asyncio.gather(
                *(self._duplicate_one(client_id) for client_id in target),
                return_exceptions=True,
            )

            created_ids: list[str] = []
            failures: list[ItemFailure] = []
            for client_id, outcome in zip(target, outcomes):
                if isinstance(outcome, ClientsError):
                    failures.append(ItemFailure(client_id, str(outcome)))
                elif isinstance(outcome, BaseException):
                    raise outcome
                else:
                    created_ids.append(outcome)

            if not failures:
                status, result_outcome = "succeeded", Outcome.SUCCESS
            elif created_ids:
                status, result_outcome = "partially_succeeded", Outcome.PARTIAL
            else:
                status, result_outcome = "failed", Outcome.FAILED

            if created_ids and from_selection:
                self._selection.clear()

            await self._refresh()
            return self._finish(
                BulkResult(
                    action="duplicate",
                    status=status,
                    outcome=result_outcome,
                    requested=len(target),
                    affected=len(created_ids),
                    failures=failures,
                    created_ids=created_ids,
                )
            )

    # ------------------------------------------------------------------
    # Assign referrer
    # ------------------------------------------------------------------

    async def assign_referrer(
        self, referrer_id: Optional[str], ids: Optional[Iterable[str]] = None
    ) -> BulkResult:
        """Sets ``referrer_id`` on every target client in one batch (None clears it).

        The referrer may not be one of the targets: a client cannot refer itself.
        """
        target = self._target_ids(ids)
        if not target:
            raise ValidationError("No hay clientes seleccionados.")
        referrer_id = referrer_id or None
        if referrer_id is not None and referrer_id in target:
            raise ValidationError(
                "Un cliente no puede ser su propio referente.", field="referrer_id"
            )

        with self._running("assign_referrer"):
            await call_backend(self._clients_repo.update_referrer(target, referrer_id))
            self._selection.clear()
            await self._refresh()
            return self._finish(
                BulkResult(
                    action="assign_referrer",
                    status="succeeded",
                    outcome=Outcome.SUCCESS,
                    requested=len(target),
                    affected=len(target),
                )
            )
