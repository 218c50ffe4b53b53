"""Filter, sort and export constants for the client list."""

from typing import Literal


ClientFilterType = Literal["all", "with_visits", "with_sales", "referred"]
ClientSortField = Literal[
    "name", "total_spent", "total_visits", "last_visit_date", "created_at"
]
ClientSortDirection = Literal["asc", "desc"]


class FilterPresets:
    """Named preset filters shown as badges above the client list."""

    ALL = "all"
    WITH_VISITS = "with_visits"
    WITH_SALES = "with_sales"
    REFERRED = "referred"

    VALUES = (ALL, WITH_VISITS, WITH_SALES, REFERRED)

    LABELS = {
        ALL: "Todos",
        WITH_VISITS: "Con Visitas",
        WITH_SALES: "Con Ventas",
        REFERRED: "Referidos",
    }


class SortFields:
    """Fields the client list can be ordered by."""

    NAME = "name"
    TOTAL_SPENT = "total_spent"
    TOTAL_VISITS = "total_visits"
    LAST_VISIT_DATE = "last_visit_date"
    CREATED_AT = "created_at"

    VALUES = (NAME, TOTAL_SPENT, TOTAL_VISITS, LAST_VISIT_DATE, CREATED_AT)


class SortDirections:
    ASC = "asc"
    DESC = "desc"

    VALUES = (ASC, DESC)


class ListDefaults:
    """Initial state of a freshly opened client list."""

    PRESET = FilterPresets.ALL
    SORT_FIELD = SortFields.CREATED_AT
    SORT_DIRECTION = SortDirections.DESC


SOCIAL_FIELDS = ("whatsapp_link", "facebook_link", "instagram_link", "tiktok_link")

PHONE_LENGTH = 10
