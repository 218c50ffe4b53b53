"""
Tests for BulkActionOrchestrator.

Covers the delete outcome classification (full, partial, none deleted), undo
notices, error propagation, duplicate with per-item failures and tag copy,
export through the orchestrator, referrer assignment and the
one-action-at-a-time guard.
"""

import asyncio
from datetime import datetime, timedelta
from typing import get_args

import pytest

from salon_clients.domain.bulk_result import BulkState, Outcome
from salon_clients.errors import (
    BulkActionInProgress,
    TransientCollaboratorError,
    ValidationError,
)
from salon_clients.services.bulk_actions import (
    BulkActionOrchestrator,
    build_duplicate,
    call_backend,
)
from salon_clients.services.client_list import ClientListView
from salon_clients.services.selection import ClientSelection
from tests.fixtures import (
    FakeClientRepository,
    FakeTagRepository,
    make_client,
    make_clients,
    scenario_clients,
)


class Harness:
    """Repository, view, selection and orchestrator wired together."""

    def __init__(self, clients, repo=None):
        self.repo = repo or FakeClientRepository()
        self.repo.seed(clients)
        self.tags = FakeTagRepository()
        self.view = ClientListView(self.repo, self.tags)
        self.view.load(clients)
        self.selection = ClientSelection()
        self.selection.bind(self.view)
        self.saved = []
        self.bulk = BulkActionOrchestrator(
            self.repo,
            self.tags,
            self.selection,
            view=self.view,
            save_file=lambda name, data: self.saved.append((name, data)),
            undo_window_seconds=8,
            copy_suffix=" (Copia)",
        )

    def select(self, *ids):
        for client_id in ids:
            self.selection.select_one(client_id, True)


class TestDelete:
    def test_full_delete_clears_selection_and_refreshes(self):
        h = Harness(make_clients(3))
        h.select("1", "2")

        result = asyncio.run(h.bulk.delete())

        assert result.status == "succeeded"
        assert result.outcome == Outcome.SUCCESS
        assert (result.requested, result.affected) == (2, 2)
        assert result.undo is None
        assert h.selection.count == 0
        assert [c.id for c in h.view.raw_clients] == ["3"]
        assert h.bulk.state == "idle"
        assert h.bulk.last_status == "succeeded"

    def test_partial_delete_reports_counts_and_clears_selection(self):
        h = Harness(make_clients(5))
        h.selection.select_all(True, h.view.clients)
        h.repo.delete_affected = 3

        result = asyncio.run(h.bulk.delete())

        assert result.status == "partially_succeeded"
        assert result.outcome == "partial_outcome"
        assert result.is_partial
        assert (result.requested, result.affected, result.failed_count) == (5, 3, 2)
        assert h.selection.count == 0
        assert h.repo.methods_called().count("fetch_all") == 1

    def test_none_deleted_keeps_selection(self):
        h = Harness(make_clients(3))
        h.select("1", "2")
        h.repo.delete_affected = 0

        result = asyncio.run(h.bulk.delete())

        assert result.status == "failed"
        assert result.outcome == Outcome.NONE_DELETED
        assert result.none_affected
        assert h.selection.ids == frozenset({"1", "2"})

    def test_single_delete_opens_informational_undo(self):
        h = Harness(scenario_clients())
        h.select("1")

        before = datetime.now()
        result = asyncio.run(h.bulk.delete())

        assert result.undo is not None
        assert result.undo.client_id == "1"
        assert result.undo.client_name == "Ana"
        assert result.undo.restores_data is False
        assert result.undo.is_active()
        assert result.undo.expires_at >= before + timedelta(seconds=8)
        assert not result.undo.is_active(result.undo.expires_at)

    def test_backend_error_propagates_and_keeps_selection(self):
        h = Harness(make_clients(3))
        h.select("1", "2")
        h.repo.fail["delete_many"] = TransientCollaboratorError("permission denied")

        with pytest.raises(TransientCollaboratorError):
            asyncio.run(h.bulk.delete())

        assert h.selection.ids == frozenset({"1", "2"})
        assert h.bulk.state == "idle"
        assert h.bulk.last_status == "failed"
        assert "fetch_all" not in h.repo.methods_called()

    def test_unexpected_exception_is_wrapped(self):
        h = Harness(make_clients(2))
        h.select("1")
        h.repo.fail["delete_many"] = RuntimeError("socket closed")

        with pytest.raises(TransientCollaboratorError) as exc:
            asyncio.run(h.bulk.delete())
        assert "socket closed" in str(exc.value)

    def test_empty_selection_is_rejected_before_backend(self):
        h = Harness(make_clients(2))
        with pytest.raises(ValidationError):
            asyncio.run(h.bulk.delete())
        assert "delete_many" not in h.repo.methods_called()

    def test_target_follows_collection_order(self):
        h = Harness(make_clients(4))
        h.select("4", "1", "3")

        asyncio.run(h.bulk.delete())

        assert h.repo.calls[0] == ("delete_many", ["1", "3", "4"])


class TestConcurrency:
    def test_second_action_while_running_is_rejected(self):
        class GatedRepository(FakeClientRepository):
            gate = None

            async def delete_many(self, client_ids):
                await self.gate.wait()
                return await super().delete_many(client_ids)

        h = Harness(make_clients(3), repo=GatedRepository())
        h.select("1")

        async def run():
            h.repo.gate = asyncio.Event()
            first = asyncio.create_task(h.bulk.delete())
            await asyncio.sleep(0)
            assert h.bulk.is_running
            assert h.bulk.state in get_args(BulkState)
            with pytest.raises(BulkActionInProgress):
                await h.bulk.assign_referrer("3", ids=["2"])
            h.repo.gate.set()
            return await first

        result = asyncio.run(run())
        assert result.status == "succeeded"
        assert not h.bulk.is_running
        assert h.bulk.state == "idle"


class TestDuplicate:
    def test_copies_fields_and_tags(self):
        source = make_client(
            "1",
            "Ana",
            notes="Alergia al tinte",
            instagram_link="@ana",
            total_spent=500,
            total_visits=9,
        )
        h = Harness([source])
        h.tags.assign("1", "vip", "color")
        h.select("1")

        result = asyncio.run(h.bulk.duplicate())

        assert result.status == "succeeded"
        assert result.created_ids == ["new-1"]
        copy = h.repo.clients["new-1"]
        assert copy.name == "Ana (Copia)"
        assert copy.phone == source.phone
        assert copy.notes == "Alergia al tinte"
        assert copy.instagram_link == "@ana"
        assert copy.total_visits == 0
        assert h.tags.assignments["new-1"] == {"vip", "color"}
        assert h.selection.count == 0

    def test_failures_are_per_item(self):
        h = Harness(scenario_clients())
        h.repo.fail_create = lambda data: data["name"].startswith("Beto")
        h.select("1", "2", "3")

        result = asyncio.run(h.bulk.duplicate())

        assert result.status == "partially_succeeded"
        assert result.affected == 2
        assert [f.client_id for f in result.failures] == ["2"]
        assert "Beto" in result.failures[0].error
        assert len(result.created_ids) == 2

    def test_all_failed_keeps_selection(self):
        h = Harness(make_clients(2))
        h.repo.fail_create = lambda data: True
        h.select("1", "2")

        result = asyncio.run(h.bulk.duplicate())

        assert result.status == "failed"
        assert result.affected == 0
        assert h.selection.count == 2

    def test_tag_copy_failure_counts_as_item_failure(self):
        h = Harness(make_clients(1))
        h.tags.assign("1", "vip")
        h.tags.fail["copy"] = TransientCollaboratorError("timeout")

        result = asyncio.run(h.bulk.duplicate(ids=["1"]))

        assert result.status == "failed"
        assert "new-1" in result.failures[0].error

    def test_missing_source_is_fetched_from_backend(self):
        h = Harness(make_clients(1))
        h.repo.clients["9"] = make_client("9", "Fuera de vista")

        result = asyncio.run(h.bulk.duplicate(ids=["9"]))

        assert result.status == "succeeded"
        assert ("get_by_id", "9") in h.repo.calls

    def test_explicit_ids_leave_selection_alone(self):
        h = Harness(make_clients(2))
        h.select("2")
        asyncio.run(h.bulk.duplicate(ids=["1"]))
        assert h.selection.ids == frozenset({"2"})

    def test_build_duplicate_skips_activity_totals(self):
        data = build_duplicate(make_client("1", "Ana", total_spent=10), " (Copia)")
        assert data["name"] == "Ana (Copia)"
        assert "total_spent" not in data
        assert "id" not in data


class TestExport:
    def test_exports_selection_in_collection_order(self):
        h = Harness(make_clients(3))
        h.select("3", "1")

        result = h.bulk.export()

        assert result.status == "succeeded"
        assert result.filename.startswith("clientes_")
        assert result.filename.endswith(".csv")
        assert h.saved == [(result.filename, result.payload)]
        lines = result.payload.decode("utf-8").split("\n")
        assert len(lines) == 3
        assert lines[1].startswith('"1",')
        assert lines[2].startswith('"3",')

    def test_export_uses_raw_collection_not_view(self):
        h = Harness(scenario_clients())
        h.select("2")
        h.view.set_preset("with_visits")

        result = h.bulk.export()

        assert result.affected == 1
        assert '"Beto"' in result.payload.decode("utf-8")

    def test_missing_ids_make_export_partial(self):
        h = Harness(make_clients(2))
        result = h.bulk.export(ids=["1", "ghost"])
        assert result.status == "partially_succeeded"
        assert (result.requested, result.affected) == (2, 1)

    def test_nothing_found_saves_nothing(self):
        h = Harness(make_clients(2))
        result = h.bulk.export(ids=["ghost"])
        assert result.status == "failed"
        assert result.payload is None
        assert h.saved == []

    def test_export_keeps_selection(self):
        h = Harness(make_clients(2))
        h.select("1")
        h.bulk.export()
        assert h.selection.ids == frozenset({"1"})

    def test_empty_selection_rejected(self):
        h = Harness(make_clients(2))
        with pytest.raises(ValidationError):
            h.bulk.export()


class TestAssignReferrer:
    def test_self_referral_rejected_without_backend_call(self):
        h = Harness(make_clients(3))
        h.select("1", "2")

        with pytest.raises(ValidationError) as exc:
            asyncio.run(h.bulk.assign_referrer("2"))

        assert exc.value.field == "referrer_id"
        assert h.repo.calls == []
        assert h.selection.count == 2

    def test_assigns_in_one_batch(self):
        h = Harness(make_clients(3))
        h.select("1", "2")

        result = asyncio.run(h.bulk.assign_referrer("3"))

        assert result.status == "succeeded"
        assert h.repo.calls[0] == ("update_referrer", ["1", "2"], "3")
        assert h.view.find("1").referrer_id == "3"
        assert h.view.find("2").referrer_id == "3"
        assert h.selection.count == 0

    def test_empty_referrer_clears(self):
        h = Harness([make_client("1", referrer_id="2"), make_client("2")])
        asyncio.run(h.bulk.assign_referrer("", ids=["1"]))
        assert h.repo.calls[0] == ("update_referrer", ["1"], None)

    def test_backend_failure_keeps_selection(self):
        h = Harness(make_clients(3))
        h.select("1")
        h.repo.fail["update_referrer"] = TransientCollaboratorError("rls")

        with pytest.raises(TransientCollaboratorError):
            asyncio.run(h.bulk.assign_referrer("3"))
        assert h.selection.ids == frozenset({"1"})


class TestCallBackend:
    def test_passes_result_through(self):
        async def ok():
            return 7

        assert asyncio.run(call_backend(ok())) == 7

    def test_keeps_package_errors(self):
        async def bad():
            raise ValidationError("nope")

        with pytest.raises(ValidationError):
            asyncio.run(call_backend(bad()))
