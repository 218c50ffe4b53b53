"""Sort engine for the client list."""

from datetime import date, datetime, time, timezone
from typing import Any, Callable, Iterable

from ..constants.client_filters import (
    ClientSortDirection,
    ClientSortField,
    SortDirections,
    SortFields,
)
from ..domain.client import Client
from ..errors import InvalidArgumentError
from .filters import to_number


def to_timestamp(value: Any) -> float:
    """Converts a date, datetime or ISO string to epoch seconds.

    Missing or unparsable values map to 0 (the epoch). Naive values are read
    as UTC so that dates and datetimes from different sources compare.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                value = date.fromisoformat(text)
            else:
                value = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return 0.0
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc).timestamp()
    return 0.0


SORT_KEYS: dict[str, Callable[[Client], Any]] = {
    SortFields.NAME: lambda c: (c.name or "").lower(),
    SortFields.TOTAL_SPENT: lambda c: to_number(c.total_spent),
    SortFields.TOTAL_VISITS: lambda c: to_number(c.total_visits),
    SortFields.LAST_VISIT_DATE: lambda c: to_timestamp(c.last_visit_date),
    SortFields.CREATED_AT: lambda c: to_timestamp(c.created_at),
}


def validate_sort(field: str, direction: str) -> None:
    """Raises InvalidArgumentError for a field or direction outside the fixed set."""
    if field not in SORT_KEYS:
        raise InvalidArgumentError(
            f"Campo de ordenamiento inválido: {field!r}", field="sort_field"
        )
    if direction not in SortDirections.VALUES:
        raise InvalidArgumentError(
            f"Dirección de ordenamiento inválida: {direction!r}",
            field="sort_direction",
        )


def sort_clients(
    clients: Iterable[Client],
    field: ClientSortField,
    direction: ClientSortDirection,
) -> list[Client]:
    """Returns a new list ordered by ``field``; ties keep their input order.

    ``sorted(reverse=True)`` stays stable for equal keys, so descending order
    flips the comparison without reordering ties.
    """
    validate_sort(field, direction)
    return sorted(
        clients,
        key=SORT_KEYS[field],
        reverse=direction == SortDirections.DESC,
    )
