"""Shared test doubles and data builders."""

from .factories import make_client, make_clients, scenario_clients
from .fakes import FakeClientRepository, FakeTagRepository

__all__ = [
    "make_client",
    "make_clients",
    "scenario_clients",
    "FakeClientRepository",
    "FakeTagRepository",
]
