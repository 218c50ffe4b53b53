"""Value objects describing the client list state."""

from dataclasses import dataclass, field
from typing import Optional

from ..constants.client_filters import ClientFilterType, FilterPresets


@dataclass(frozen=True)
class FilterCriteria:
    """Everything the filter engine needs to reduce a client collection.

    ``tag_client_ids`` is the externally resolved set of clients carrying any
    of ``selected_tag_ids``; it stays empty until resolution completes.
    """

    preset: ClientFilterType = FilterPresets.ALL
    selected_tag_ids: frozenset[str] = field(default_factory=frozenset)
    tag_client_ids: frozenset[str] = field(default_factory=frozenset)
    search_query: str = ""


@dataclass(frozen=True)
class PresetCounts:
    """Badge counts per preset, always over the unfiltered collection."""

    all: int = 0
    with_visits: int = 0
    with_sales: int = 0
    referred: int = 0

    def get(self, preset: str) -> Optional[int]:
        return getattr(self, preset, None) if preset in FilterPresets.VALUES else None

    def to_dict(self) -> dict:
        """Converts to dictionary."""
        return {
            "all": self.all,
            "with_visits": self.with_visits,
            "with_sales": self.with_sales,
            "referred": self.referred,
        }
