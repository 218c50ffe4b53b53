"""
Modelos de entrada validados con pydantic
"""
from .client import ClientInput

__all__ = ["ClientInput"]
