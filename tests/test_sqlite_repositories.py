"""
Tests for the SQLite backend: client and tag repositories, the change feed
they publish to, and the container factory.

Each test gets its own database file under pytest's tmp_path.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from salon_clients.errors import TransientCollaboratorError, ValidationError
from salon_clients.repositories.sqlite import create_sqlite_container
from salon_clients.repositories.sqlite.client_repository import SQLiteClientRepository
from salon_clients.repositories.sqlite.connection import SCHEMA_VERSION, SQLiteConnection
from salon_clients.repositories.sqlite.tag_repository import SQLiteTagRepository
from salon_clients.services.client_list import ClientListView


def record(name, phone, **fields):
    data = {"name": name, "phone": phone}
    data.update(fields)
    return data


@pytest.fixture
def container(sqlite_db_path):
    return create_sqlite_container(sqlite_db_path)


class TestClientRepository:
    def test_create_and_read_back(self, container):
        async def run():
            created = await container.clients.create(
                record("Ana", "5551234567", birthday="1990-05-04", instagram_link="@ana")
            )
            fetched = await container.clients.get_by_id(created.id)
            return created, fetched

        created, fetched = asyncio.run(run())
        assert fetched == created
        assert fetched.birthday == date(1990, 5, 4)
        assert fetched.instagram_link == "@ana"
        assert fetched.total_visits == 0
        assert fetched.created_at is not None

    def test_fetch_all_newest_first(self, container):
        async def run():
            for i in range(3):
                await container.clients.create(record(f"C{i}", f"555000000{i}"))
            return await container.clients.fetch_all()

        assert [c.name for c in asyncio.run(run())] == ["C2", "C1", "C0"]

    def test_totals_are_not_writable(self, container):
        async def run():
            created = await container.clients.create(
                record("Ana", "5551234567", total_spent=999, total_visits=9)
            )
            return await container.clients.get_by_id(created.id)

        client = asyncio.run(run())
        assert client.total_visits == 0
        assert Decimal(str(client.total_spent)) == 0

    def test_record_visit_updates_activity(self, container):
        async def run():
            created = await container.clients.create(record("Ana", "5551234567"))
            container.clients.record_visit(created.id, 250, date(2025, 6, 1))
            container.clients.record_visit(created.id, 100.5, date(2025, 6, 8))
            return await container.clients.get_by_id(created.id)

        client = asyncio.run(run())
        assert client.total_visits == 2
        assert float(client.total_spent) == 350.5
        assert client.last_visit_date == date(2025, 6, 8)

    def test_update_changes_static_fields(self, container):
        async def run():
            created = await container.clients.create(record("Ana", "5551234567"))
            return await container.clients.update(created.id, {"notes": "VIP"})

        assert asyncio.run(run()).notes == "VIP"

    def test_update_missing_client_fails(self, container):
        with pytest.raises(TransientCollaboratorError):
            asyncio.run(container.clients.update("nope", {"notes": "x"}))

    def test_soft_delete_reports_affected_rows(self, container):
        async def run():
            a = await container.clients.create(record("A", "5550000001"))
            b = await container.clients.create(record("B", "5550000002"))
            first = await container.clients.delete_many([a.id, "ghost"])
            again = await container.clients.delete_many([a.id])
            remaining = await container.clients.fetch_all()
            return first, again, remaining, b

        first, again, remaining, b = asyncio.run(run())
        assert first == 1
        assert again == 0
        assert [c.id for c in remaining] == [b.id]

    def test_deleted_phone_can_be_reused(self, container):
        async def run():
            a = await container.clients.create(record("A", "5550000001"))
            await container.clients.delete_many([a.id])
            return await container.clients.check_duplicate_phone("5550000001")

        assert asyncio.run(run()) is None

    def test_check_duplicate_phone_excludes_self(self, container):
        async def run():
            a = await container.clients.create(record("A", "5550000001"))
            other = await container.clients.check_duplicate_phone("5550000001")
            own = await container.clients.check_duplicate_phone("5550000001", a.id)
            return a, other, own

        a, other, own = asyncio.run(run())
        assert other.id == a.id
        assert own is None

    def test_update_referrer_and_referrals(self, container):
        async def run():
            ana = await container.clients.create(record("Ana", "5550000001"))
            beto = await container.clients.create(record("Beto", "5550000002"))
            carla = await container.clients.create(record("Carla", "5550000003"))
            await container.clients.update_referrer([beto.id, carla.id], ana.id)
            referred = await container.clients.fetch_referrals(ana.id)
            await container.clients.update_referrer([carla.id], None)
            after = await container.clients.fetch_referrals(ana.id)
            return ana, beto, carla, referred, after

        ana, beto, carla, referred, after = asyncio.run(run())
        assert {c.id for c in referred} == {beto.id, carla.id}
        assert [c.id for c in after] == [beto.id]

    def test_self_referral_rejected_by_database(self, container):
        async def run():
            ana = await container.clients.create(record("Ana", "5550000001"))
            await container.clients.update_referrer([ana.id], ana.id)

        with pytest.raises(TransientCollaboratorError):
            asyncio.run(run())

    def test_unknown_referrer_rejected(self, container):
        with pytest.raises(TransientCollaboratorError):
            asyncio.run(
                container.clients.create(record("Ana", "5550000001", referrer_id="ghost"))
            )

    def test_writes_publish_events(self, container):
        events = []
        container.feed.subscribe(events.append)

        async def run():
            a = await container.clients.create(record("A", "5550000001"))
            await container.clients.update(a.id, {"notes": "x"})
            await container.clients.delete_many([a.id])
            await container.clients.delete_many([a.id])

        asyncio.run(run())
        assert events == ["insert", "update", "delete"]


class TestTagRepository:
    def test_names_are_unique_ignoring_case(self, container):
        async def run():
            await container.tags.create("VIP")
            await container.tags.create("vip ")

        with pytest.raises(ValidationError):
            asyncio.run(run())

    def test_blank_name_rejected(self, container):
        with pytest.raises(ValidationError):
            asyncio.run(container.tags.create("  "))

    def test_fetch_all_sorted_by_name(self, container):
        async def run():
            for name in ("color", "Alisado", "boda"):
                await container.tags.create(name)
            return await container.tags.fetch_all()

        assert [t.name for t in asyncio.run(run())] == ["Alisado", "boda", "color"]

    def test_sync_resolve_copy_and_usage(self, container):
        async def run():
            vip = await container.tags.create("VIP")
            color = await container.tags.create("Color")
            ana = await container.clients.create(record("Ana", "5550000001"))
            beto = await container.clients.create(record("Beto", "5550000002"))
            copy = await container.clients.create(record("Ana (Copia)", "5550000001"))

            await container.tags.sync_client_tags(ana.id, [vip.id, color.id])
            await container.tags.sync_client_tags(beto.id, [vip.id])
            await container.tags.sync_client_tags(beto.id, [color.id])
            await container.tags.copy_assignments(ana.id, copy.id)

            return {
                "both": await container.tags.resolve_client_ids_by_tags([vip.id, color.id]),
                "vip": await container.tags.resolve_client_ids_by_tags([vip.id]),
                "none": await container.tags.resolve_client_ids_by_tags([]),
                "copy_tags": await container.tags.get_tag_ids_for_client(copy.id),
                "usage": await container.tags.usage_counts(),
                "ids": (ana.id, beto.id, copy.id, vip.id, color.id),
            }

        out = asyncio.run(run())
        ana_id, beto_id, copy_id, vip_id, color_id = out["ids"]
        assert sorted(out["both"]) == sorted([ana_id, beto_id, copy_id])
        assert sorted(out["vip"]) == sorted([ana_id, copy_id])
        assert out["none"] == []
        assert sorted(out["copy_tags"]) == sorted([vip_id, color_id])
        assert out["usage"] == {vip_id: 2, color_id: 3}

    def test_usage_counts_skip_deleted_clients(self, container):
        async def run():
            vip = await container.tags.create("VIP")
            ana = await container.clients.create(record("Ana", "5550000001"))
            beto = await container.clients.create(record("Beto", "5550000002"))
            await container.tags.sync_client_tags(ana.id, [vip.id])
            await container.tags.sync_client_tags(beto.id, [vip.id])
            await container.clients.delete_many([beto.id])
            return vip.id, await container.tags.usage_counts()

        vip_id, usage = asyncio.run(run())
        assert usage == {vip_id: 1}


class TestFactory:
    def test_container_wires_sqlite_backend(self, sqlite_db_path):
        container = create_sqlite_container(sqlite_db_path)
        assert isinstance(container.clients, SQLiteClientRepository)
        assert isinstance(container.tags, SQLiteTagRepository)

    def test_schema_creation_is_idempotent(self, sqlite_db_path):
        SQLiteConnection(sqlite_db_path)
        connection = SQLiteConnection(sqlite_db_path)
        assert connection.schema_version() == SCHEMA_VERSION

    def test_drop_all_empties_the_database(self, sqlite_db_path):
        container = create_sqlite_container(sqlite_db_path)

        async def seed():
            client = await container.clients.create(record("Ana", "5550000001"))
            tag = await container.tags.create("VIP")
            await container.tags.sync_client_tags(client.id, [tag.id])

        asyncio.run(seed())
        SQLiteConnection(sqlite_db_path).drop_all()

        async def read():
            return await container.clients.fetch_all(), await container.tags.fetch_all()

        assert asyncio.run(read()) == ([], [])

    def test_view_refetches_on_sqlite_writes(self, container):
        view = ClientListView(container.clients, container.tags, container.feed)

        async def run():
            async with view:
                await container.clients.create(record("Ana", "5550000001"))
                await view.settle()
                return [c.name for c in view.clients]

        assert asyncio.run(run()) == ["Ana"]
