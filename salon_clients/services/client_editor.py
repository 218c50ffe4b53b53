"""Create and update clients from the client form."""

from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from ..config import logger as log
from ..container import Container, get_container
from ..domain.client import Client
from ..errors import DuplicatePhoneConflict, TransientCollaboratorError, ValidationError
from ..models.client import ClientInput
from .bulk_actions import call_backend
from .formats import parse_phone_input

# Messages backends use when the phone unique constraint rejects a write.
_UNIQUE_VIOLATION_MARKERS = ("unique constraint", "23505")


def parse_client_input(data: Union[dict, ClientInput]) -> ClientInput:
    """Validates form data, normalising the phone to its digits first."""
    if isinstance(data, ClientInput):
        return data
    data = dict(data)
    if isinstance(data.get("phone"), str):
        data["phone"] = parse_phone_input(data["phone"])
    try:
        return ClientInput(**data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        raise ValidationError(first.get("msg", str(e)), field=field) from e


async def save_client(
    data: Union[dict, ClientInput],
    tag_ids: Optional[list[str]] = None,
    existing_client_id: Optional[str] = None,
    container: Optional[Container] = None,
) -> Client:
    """Creates or updates a client and syncs its tags.

    The phone is checked against other clients before writing. A unique
    constraint rejection from the backend (a concurrent writer got there
    first) is reported the same way.

    Raises:
        ValidationError: Invalid form data or self referral.
        DuplicatePhoneConflict: Another client already uses the phone.
        TransientCollaboratorError: The backend failed.
    """
    container = container or get_container()
    client_input = parse_client_input(data)

    if existing_client_id and client_input.referrer_id == existing_client_id:
        raise ValidationError(
            "Un cliente no puede ser su propio referente.", field="referrer_id"
        )

    existing = await call_backend(
        container.clients.check_duplicate_phone(client_input.phone, existing_client_id)
    )
    if existing is not None:
        log.warn(
            "clients.editor",
            "duplicate phone",
            phone=client_input.phone,
            existing_id=existing.id,
        )
        raise DuplicatePhoneConflict(client_input.phone, existing)

    record = client_input.to_record()
    try:
        if existing_client_id:
            client = await call_backend(
                container.clients.update(existing_client_id, record)
            )
        else:
            client = await call_backend(container.clients.create(record))
    except TransientCollaboratorError as e:
        message = str(e).lower()
        if any(marker in message for marker in _UNIQUE_VIOLATION_MARKERS):
            raise DuplicatePhoneConflict(client_input.phone) from e
        raise

    if tag_ids is not None:
        await call_backend(container.tags.sync_client_tags(client.id, tag_ids))

    log.info(
        "clients.editor",
        "client updated" if existing_client_id else "client created",
        client_id=client.id,
        tags=len(tag_ids or []),
    )
    return client
