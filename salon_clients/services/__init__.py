"""
Client-list services: filter, sort, derived view, selection and bulk actions
"""
from .filters import count_by_preset, filter_clients, to_number
from .sorting import sort_clients, to_timestamp
from .client_list import ClientListView
from .selection import ClientSelection
from .export import generate_csv, export_filename
from .bulk_actions import BulkActionOrchestrator
from .client_editor import save_client
from .formats import format_phone, parse_phone_input

__all__ = [
    "count_by_preset",
    "filter_clients",
    "to_number",
    "sort_clients",
    "to_timestamp",
    "ClientListView",
    "ClientSelection",
    "generate_csv",
    "export_filename",
    "BulkActionOrchestrator",
    "save_client",
    "format_phone",
    "parse_phone_input",
]
