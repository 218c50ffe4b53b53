"""Filter engine for the client list.

Every function here is pure and total: malformed values degrade to ``0`` or
"absent" instead of raising, so a bad row can never break the whole list.
"""

from decimal import Decimal
from typing import Any, Callable, Iterable

from ..constants.client_filters import FilterPresets, SOCIAL_FIELDS
from ..domain.client import Client
from ..domain.client_list import FilterCriteria, PresetCounts


def to_number(value: Any) -> float:
    """Coerces a numeric-ish value (int, Decimal, "150.00") to float, 0 on failure."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, Decimal):
        if not value.is_finite():
            return 0.0
        number = float(value)
    else:
        text = str(value).strip()
        # Digit separators ("1_000") are not numbers here.
        if "_" in text:
            return 0.0
        try:
            number = float(Decimal(text))
        except (ArithmeticError, ValueError):
            return 0.0
    # NaN and infinities count as unparsable.
    if number != number or number in (float("inf"), float("-inf")):
        return 0.0
    return number


def has_visits(client: Client) -> bool:
    return to_number(client.total_visits) > 0


def has_sales(client: Client) -> bool:
    return to_number(client.total_spent) > 0


def is_referred(client: Client) -> bool:
    return bool(client.referrer_id)


PRESET_PREDICATES: dict[str, Callable[[Client], bool]] = {
    FilterPresets.WITH_VISITS: has_visits,
    FilterPresets.WITH_SALES: has_sales,
    FilterPresets.REFERRED: is_referred,
}


def matches_search(client: Client, query: str) -> bool:
    """Case-insensitive substring match over name, phone and social handles.

    ``query`` must already be lowercased. The phone is compared raw: it is
    stored as digits, so "555" matches but "(555)" does not.
    """
    if query in (client.name or "").lower():
        return True
    if query in (client.phone or ""):
        return True
    for field in SOCIAL_FIELDS:
        value = getattr(client, field)
        if value and query in value.lower():
            return True
    return False


def filter_clients(clients: Iterable[Client], criteria: FilterCriteria) -> list[Client]:
    """Reduces a collection to the clients matching every criterion.

    Keeps input order. An unknown preset behaves like ``all``; callers that
    take presets from user input validate them first.

    Tag filtering fails open: while ``tag_client_ids`` is still empty (the
    lookup is in flight, or it found nobody) the collection is not narrowed,
    so the list never flashes empty when a tag is picked.
    """
    filtered = list(clients)

    predicate = PRESET_PREDICATES.get(criteria.preset)
    if predicate is not None:
        filtered = [c for c in filtered if predicate(c)]

    if criteria.selected_tag_ids and criteria.tag_client_ids:
        filtered = [c for c in filtered if c.id in criteria.tag_client_ids]

    query = (criteria.search_query or "").strip().lower()
    if query:
        filtered = [c for c in filtered if matches_search(c, query)]

    return filtered


def count_by_preset(clients: Iterable[Client]) -> PresetCounts:
    """Counts clients per preset over the unfiltered collection."""
    clients = list(clients)
    return PresetCounts(
        all=len(clients),
        with_visits=sum(1 for c in clients if has_visits(c)),
        with_sales=sum(1 for c in clients if has_sales(c)),
        referred=sum(1 for c in clients if is_referred(c)),
    )
