"""Phone helpers shared by the client form and search."""

import re

from ..constants.client_filters import PHONE_LENGTH

_NON_DIGITS = re.compile(r"\D")


def parse_phone_input(value: str) -> str:
    """Keeps the digits of what the user typed, at most 10 of them."""
    return _NON_DIGITS.sub("", value or "")[:PHONE_LENGTH]


def format_phone(phone: str) -> str:
    """Renders a 10-digit phone as (XXX) XXX-XXXX; anything else is returned as is."""
    cleaned = _NON_DIGITS.sub("", phone or "")
    if len(cleaned) == PHONE_LENGTH:
        return f"({cleaned[:3]}) {cleaned[3:6]}-{cleaned[6:]}"
    return phone
