"""Client entity - a customer of the salon."""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from ..constants.client_filters import SOCIAL_FIELDS


Amount = Union[Decimal, int, float, str]


@dataclass
class Client:
    """A client of the business.

    ``total_spent``, ``total_visits`` and ``last_visit_date`` are maintained by
    the backend from appointments and sales; this package only reads them.
    Backends may hand them over as strings, so consumers coerce explicitly.
    """

    id: str
    name: str
    phone: str
    created_at: Union[datetime, str]
    birthday: Optional[Union[date, str]] = None
    notes: Optional[str] = None
    referrer_id: Optional[str] = None
    whatsapp_link: Optional[str] = None
    facebook_link: Optional[str] = None
    instagram_link: Optional[str] = None
    tiktok_link: Optional[str] = None
    total_spent: Amount = 0
    total_visits: Union[int, str] = 0
    last_visit_date: Optional[Union[date, datetime, str]] = None
    created_by_user_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Client":
        """Creates a Client from a dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            phone=data.get("phone") or "",
            created_at=data["created_at"],
            birthday=data.get("birthday"),
            notes=data.get("notes"),
            referrer_id=data.get("referrer_id"),
            whatsapp_link=data.get("whatsapp_link"),
            facebook_link=data.get("facebook_link"),
            instagram_link=data.get("instagram_link"),
            tiktok_link=data.get("tiktok_link"),
            total_spent=data.get("total_spent") or 0,
            total_visits=data.get("total_visits") or 0,
            last_visit_date=data.get("last_visit_date"),
            created_by_user_id=data.get("created_by_user_id"),
        )

    def to_dict(self) -> dict:
        """Converts to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "birthday": self.birthday,
            "notes": self.notes,
            "referrer_id": self.referrer_id,
            "whatsapp_link": self.whatsapp_link,
            "facebook_link": self.facebook_link,
            "instagram_link": self.instagram_link,
            "tiktok_link": self.tiktok_link,
            "total_spent": self.total_spent,
            "total_visits": self.total_visits,
            "last_visit_date": self.last_visit_date,
            "created_by_user_id": self.created_by_user_id,
            "created_at": self.created_at,
        }

    @property
    def social_links(self) -> dict[str, str]:
        """Social handles that are set, keyed by field name."""
        links = {}
        for field in SOCIAL_FIELDS:
            value = getattr(self, field)
            if value:
                links[field] = value
        return links

    @property
    def is_referred(self) -> bool:
        return bool(self.referrer_id)
