"""CSV export of clients."""

import csv
import io
from datetime import date, datetime
from typing import Any, Callable, Iterable, Optional

from ..config.env import get_export_filename_prefix
from ..domain.client import Client


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _attr(name: str) -> Callable[[Client], str]:
    return lambda client: _text(getattr(client, name))


# Ordered (header, serializer) pairs. Adding a column means adding it here.
EXPORT_COLUMNS: list[tuple[str, Callable[[Client], str]]] = [
    ("ID", _attr("id")),
    ("Nombre", _attr("name")),
    ("Teléfono", _attr("phone")),
    ("Email", lambda client: ""),
    ("Fecha Nacimiento", _attr("birthday")),
    ("Notas", _attr("notes")),
    ("Total Gastado", _attr("total_spent")),
    ("Total Visitas", _attr("total_visits")),
    ("Última Visita", _attr("last_visit_date")),
    ("WhatsApp", _attr("whatsapp_link")),
    ("Facebook", _attr("facebook_link")),
    ("Instagram", _attr("instagram_link")),
    ("TikTok", _attr("tiktok_link")),
    ("ID Referente", _attr("referrer_id")),
    ("Fecha Creación", _attr("created_at")),
]

EXPORT_HEADERS = [header for header, _ in EXPORT_COLUMNS]


def client_to_row(client: Client) -> list[str]:
    return [serialize(client) for _, serialize in EXPORT_COLUMNS]


def generate_csv(clients: Iterable[Client]) -> str:
    """Renders clients as CSV: every field quoted, quotes doubled, rows split by \\n.

    Returns an empty string when there is nothing to export.
    """
    rows = [client_to_row(c) for c in clients]
    if not rows:
        return ""

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(EXPORT_HEADERS)
    writer.writerows(rows)
    return buffer.getvalue()[: -len("\n")]


def select_for_export(
    clients: Iterable[Client], selected_ids: Iterable[str]
) -> list[Client]:
    """Keeps the selected clients, in collection order."""
    wanted = set(selected_ids)
    return [c for c in clients if c.id in wanted]


def export_filename(today: Optional[date] = None, prefix: Optional[str] = None) -> str:
    prefix = prefix or get_export_filename_prefix()
    return f"{prefix}_{(today or date.today()).isoformat()}.csv"
