"""
ClientInput - datos que envía el formulario de cliente al guardar
"""

import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..constants.client_filters import PHONE_LENGTH

_PHONE_RE = re.compile(rf"^\d{{{PHONE_LENGTH}}}$")


class ClientInput(BaseModel):
    """
    Payload de creación/edición de un cliente.
    Los totales y la fecha de última visita no se aceptan aquí: los mantiene
    el backend a partir de citas y ventas.
    """

    name: str = Field(..., min_length=1, description="Nombre del cliente")
    phone: str = Field(..., description="Teléfono de 10 dígitos")
    birthday: Optional[date] = Field(None, description="Fecha de nacimiento")
    notes: Optional[str] = Field(None, description="Notas libres")
    referrer_id: Optional[str] = Field(None, description="ID del cliente que lo refirió")

    # Redes sociales
    whatsapp_link: Optional[str] = None
    facebook_link: Optional[str] = None
    instagram_link: Optional[str] = None
    tiktok_link: Optional[str] = None

    class Config:
        from_attributes = True
        str_strip_whitespace = True

    @field_validator(
        "birthday",
        "notes",
        "referrer_id",
        "whatsapp_link",
        "facebook_link",
        "instagram_link",
        "tiktok_link",
        mode="before",
    )
    @classmethod
    def empty_string_to_none(cls, value):
        if isinstance(value, str) and value.strip() == "":
            return None
        return value

    @field_validator("phone")
    @classmethod
    def phone_has_ten_digits(cls, value: str) -> str:
        if not _PHONE_RE.match(value):
            raise ValueError("El teléfono debe tener exactamente 10 dígitos")
        return value

    def to_record(self) -> dict:
        """Fields to send to the backend, dates as ISO strings."""
        data = self.model_dump()
        if self.birthday is not None:
            data["birthday"] = self.birthday.isoformat()
        return data
