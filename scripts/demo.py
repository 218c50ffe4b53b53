#!/usr/bin/env python3
"""Demo - seeds a local SQLite database and walks through the client list.

Uso:
    python scripts/demo.py                 # base de datos en data/demo_clients.db
    python scripts/demo.py --db /tmp/x.db  # otra ruta
    python scripts/demo.py --reset         # borra la base antes de sembrar
"""

import argparse
import asyncio
import sys
from datetime import date
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

# Agregar el directorio raíz al path
ROOT_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT_DIR))

load_dotenv(ROOT_DIR / ".env")

from salon_clients.config.env import get_db_path
from salon_clients.container import set_container
from salon_clients.repositories.sqlite import create_sqlite_container
from salon_clients.repositories.sqlite.connection import SQLiteConnection
from salon_clients.services import (
    BulkActionOrchestrator,
    ClientListView,
    ClientSelection,
    format_phone,
    save_client,
)

console = Console()

DEMO_CLIENTS = [
    {"name": "Ana López", "phone": "5512345678", "instagram_link": "ana.nails"},
    {"name": "Beto Ramírez", "phone": "5587654321"},
    {"name": "Ana María Torres", "phone": "5511112222", "tiktok_link": "anamaria"},
    {"name": "Carla Núñez", "phone": "5533334444", "notes": 'Prefiere "gel" sin brillo'},
    {"name": "Diego Salas", "phone": "5555556666", "whatsapp_link": "5555556666"},
]

# (indice del cliente, monto, fecha de visita)
DEMO_VISITS = [
    (0, Decimal("350.00"), date(2025, 3, 2)),
    (0, Decimal("420.00"), date(2025, 5, 18)),
    (2, Decimal("0"), date(2025, 4, 9)),
    (3, Decimal("1200.50"), date(2025, 6, 1)),
]


def render(view: ClientListView, selection: ClientSelection, title: str) -> None:
    table = Table(title=title)
    table.add_column("", width=2)
    table.add_column("Cliente")
    table.add_column("Teléfono")
    table.add_column("Visitas", justify="right")
    table.add_column("Gastado", justify="right")
    table.add_column("Última Visita")

    for client in view.clients:
        table.add_row(
            "x" if client.id in selection else "",
            client.name,
            format_phone(client.phone),
            str(client.total_visits),
            str(client.total_spent),
            str(client.last_visit_date or ""),
        )
    console.print(table)
    badges = "  ".join(f"{label} ({count})" for _, label, count in view.filter_labels)
    console.print(f"[dim]{badges}[/dim]")


async def run(db_path: str) -> None:
    container = create_sqlite_container(db_path)
    set_container(container)

    if not await container.clients.fetch_all():
        vip = await container.tags.create("VIP")
        created = []
        for data in DEMO_CLIENTS:
            created.append(await save_client(data, tag_ids=[]))
        await container.clients.update_referrer([created[2].id], created[0].id)
        await container.tags.sync_client_tags(created[0].id, [vip.id])
        await container.tags.sync_client_tags(created[3].id, [vip.id])
        for index, amount, visit_date in DEMO_VISITS:
            container.clients.record_visit(created[index].id, amount, visit_date)

    selection = ClientSelection()
    exported = {}

    async with ClientListView(container.clients, container.tags, container.feed) as view:
        selection.bind(view)
        orchestrator = BulkActionOrchestrator(
            container.clients,
            container.tags,
            selection,
            view=view,
            save_file=lambda name, payload: exported.update({name: payload}),
        )

        render(view, selection, "Todos los clientes")

        view.set_preset("with_visits")
        view.set_search_query("ana")
        view.handle_sort("name")
        render(view, selection, "Con visitas, búsqueda 'ana', por nombre")

        view.reset_filters()
        tags = await container.tags.fetch_all()
        await view.set_selected_tags([t.id for t in tags if t.name == "VIP"])
        selection.select_all(True, view.clients)
        render(view, selection, "Etiqueta VIP, todos seleccionados")

        result = orchestrator.export()
        console.print(f"Exportado: {result.filename} ({result.affected} filas)")
        console.print(exported[result.filename].decode("utf-8"), markup=False)

        result = await orchestrator.duplicate()
        console.print(f"Duplicados: {result.affected} de {result.requested}")
        await view.settle()
        render(view, selection, "Después de duplicar")


def main():
    parser = argparse.ArgumentParser(description="Demo de la lista de clientes")
    parser.add_argument(
        "--db",
        default=get_db_path() or str(ROOT_DIR / "data" / "demo_clients.db"),
    )
    parser.add_argument("--reset", action="store_true", help="Borra la base antes")
    args = parser.parse_args()

    if args.reset:
        SQLiteConnection(args.db).drop_all()

    asyncio.run(run(args.db))


if __name__ == "__main__":
    main()
